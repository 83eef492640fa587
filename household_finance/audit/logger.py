"""
Audit Logger

DESIGN DECISION: Every mutation a household member requests is logged.
The audit trail answers "who changed what" in a store several people
write to, and keeps the error of every failed write.

The audit logger:
- Is async so it fits the async storage calls around it
- Never raises: a failed audit write is logged locally and reported
  as False, the mutation it describes is unaffected
- Supports correlation IDs so an edit and the snapshot it caused can
  be traced together
"""

from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from household_finance.models.audit import AuditEvent, AuditEventBuilder
from household_finance.models.mutation import ValidationIssue
from household_finance.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (Google Sheets or in-memory) for persistence
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("household_finance.audit")

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_transaction_created(
        self,
        household_id: str,
        transaction_id: Optional[str],
        transaction_type: str,
        amount: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_created(
            household_id=household_id,
            transaction_id=transaction_id,
            transaction_type=transaction_type,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_transaction_updated(
        self,
        household_id: Optional[str],
        transaction_id: str,
        fields: dict[str, Any],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            fields=fields,
            household_id=household_id,
            correlation_id=correlation_id,
        ))

    async def log_transaction_deleted(
        self,
        household_id: Optional[str],
        transaction_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.transaction_deleted(
            transaction_id=transaction_id,
            household_id=household_id,
            correlation_id=correlation_id,
        ))

    async def log_delete_not_confirmed(
        self,
        transaction_id: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.delete_not_confirmed(
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        ))

    async def log_category_added(
        self,
        household_id: str,
        name: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.category_added(
            household_id=household_id,
            name=name,
            correlation_id=correlation_id,
        ))

    async def log_account_created(
        self,
        household_id: str,
        account_id: Optional[str],
        name: str,
        starting_amount: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.savings_account_created(
            household_id=household_id,
            account_id=account_id,
            name=name,
            starting_amount=starting_amount,
            correlation_id=correlation_id,
        ))

    async def log_account_updated(
        self,
        household_id: str,
        account_id: str,
        fields: dict[str, Any],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.savings_account_updated(
            household_id=household_id,
            account_id=account_id,
            fields=fields,
            correlation_id=correlation_id,
        ))

    async def log_snapshot_appended(
        self,
        household_id: str,
        account_id: str,
        capital: float,
        value: float,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_appended(
            household_id=household_id,
            account_id=account_id,
            capital=capital,
            value=value,
            correlation_id=correlation_id,
        ))

    async def log_snapshot_failed(
        self,
        household_id: str,
        account_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.snapshot_failed(
            household_id=household_id,
            account_id=account_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        entity_type: str,
        issues: list[ValidationIssue],
        household_id: Optional[str],
        correlation_id: UUID,
    ) -> None:
        """Log rejected user input."""
        await self.log(AuditEventBuilder.validation_failed(
            entity_type=entity_type,
            issues=[issue.model_dump() for issue in issues],
            household_id=household_id,
            correlation_id=correlation_id,
        ))

    async def log_mutation_failed(
        self,
        operation: str,
        entity_type: str,
        error_message: str,
        correlation_id: UUID,
        entity_id: Optional[str] = None,
        household_id: Optional[str] = None,
    ) -> None:
        """Log a write the store rejected."""
        await self.log(AuditEventBuilder.mutation_failed(
            operation=operation,
            entity_type=entity_type,
            error_message=error_message,
            entity_id=entity_id,
            household_id=household_id,
            correlation_id=correlation_id,
        ))

    async def log_report_rebuilt(
        self,
        household_id: str,
        transaction_count: int,
        account_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.report_rebuilt(
            household_id=household_id,
            transaction_count=transaction_count,
            account_count=account_count,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log system error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., editing an account).
    Pass it through all subsequent operations.
    """
    return uuid4()
