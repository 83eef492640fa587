"""
Audit Models for the Household Finance Tracker

Every mutation a household member requests is logged for audit purposes.
This provides:
1. Traceability of who-changed-what in a shared household
2. Debugging information when a write to the store fails
3. Ability to reconstruct history

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"
    DELETE_NOT_CONFIRMED = "delete_not_confirmed"
    CATEGORY_ADDED = "category_added"

    # Savings
    SAVINGS_ACCOUNT_CREATED = "savings_account_created"
    SAVINGS_ACCOUNT_UPDATED = "savings_account_updated"
    SAVINGS_VALUE_UPDATED = "savings_value_updated"
    SNAPSHOT_APPENDED = "snapshot_appended"
    SNAPSHOT_FAILED = "snapshot_failed"

    # Input and persistence failures
    VALIDATION_FAILED = "validation_failed"
    MUTATION_FAILED = "mutation_failed"

    # Derived views
    REPORT_REBUILT = "report_rebuilt"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every mutation creates at least one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which household and which record
    household_id: Optional[str] = Field(
        default=None,
        description="Household the event belongs to"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'transaction', 'savings_account')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Store ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., an edit and its snapshot)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    # Error information (if applicable)
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "household_id": self.household_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, household_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.household_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.transaction_created(household_id, tx_id, ...)
        event = AuditEventBuilder.snapshot_appended(household_id, account_id, ...)
    """

    @staticmethod
    def transaction_created(
        household_id: str,
        transaction_id: Optional[str],
        transaction_type: str,
        amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            household_id=household_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description=f"Transaction recorded: {transaction_type} {amount:g}",
            details={
                "type": transaction_type,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_updated(
        transaction_id: str,
        fields: dict[str, Any],
        household_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            household_id=household_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction edited",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def transaction_deleted(
        transaction_id: str,
        household_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            household_id=household_id,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Transaction deleted",
            is_user_action=True,
        )

    @staticmethod
    def delete_not_confirmed(
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DELETE_NOT_CONFIRMED,
            entity_type="transaction",
            entity_id=transaction_id,
            correlation_id=correlation_id,
            description="Deletion requested without confirmation; nothing deleted",
            is_user_action=True,
        )

    @staticmethod
    def category_added(
        household_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CATEGORY_ADDED,
            household_id=household_id,
            entity_type="category",
            correlation_id=correlation_id,
            description=f"Custom category added: {name}",
            details={"name": name},
            is_user_action=True,
        )

    @staticmethod
    def savings_account_created(
        household_id: str,
        account_id: Optional[str],
        name: str,
        starting_amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVINGS_ACCOUNT_CREATED,
            household_id=household_id,
            entity_type="savings_account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Savings account created: {name}",
            details={
                "name": name,
                "starting_amount": starting_amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def savings_account_updated(
        household_id: str,
        account_id: str,
        fields: dict[str, Any],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        event_type = (
            AuditEventType.SAVINGS_VALUE_UPDATED
            if set(fields) == {"current_value"}
            else AuditEventType.SAVINGS_ACCOUNT_UPDATED
        )
        return AuditEvent(
            event_type=event_type,
            household_id=household_id,
            entity_type="savings_account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Savings account updated",
            details={"fields": fields},
            is_user_action=True,
        )

    @staticmethod
    def snapshot_appended(
        household_id: str,
        account_id: str,
        capital: float,
        value: float,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_APPENDED,
            household_id=household_id,
            entity_type="savings_account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description=f"Value snapshot logged: capital {capital:g}, value {value:g}",
            details={
                "capital": capital,
                "value": value,
            },
        )

    @staticmethod
    def snapshot_failed(
        household_id: str,
        account_id: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SNAPSHOT_FAILED,
            severity=AuditSeverity.WARNING,
            household_id=household_id,
            entity_type="savings_account",
            entity_id=account_id,
            correlation_id=correlation_id,
            description="Value snapshot could not be logged",
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        entity_type: str,
        issues: list[dict],
        household_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            household_id=household_id,
            entity_type=entity_type,
            correlation_id=correlation_id,
            description=f"Input validation failed with {len(issues)} issues",
            details={"issues": issues},
            is_user_action=True,
        )

    @staticmethod
    def mutation_failed(
        operation: str,
        entity_type: str,
        error_message: str,
        entity_id: Optional[str] = None,
        household_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MUTATION_FAILED,
            severity=AuditSeverity.ERROR,
            household_id=household_id,
            entity_type=entity_type,
            entity_id=entity_id,
            correlation_id=correlation_id,
            description=f"Store rejected {operation} of {entity_type}",
            error_message=error_message,
            details={"operation": operation},
        )

    @staticmethod
    def report_rebuilt(
        household_id: str,
        transaction_count: int,
        account_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_REBUILT,
            severity=AuditSeverity.DEBUG,
            household_id=household_id,
            entity_type="report",
            correlation_id=correlation_id,
            description=(
                f"Report rebuilt from {transaction_count} transactions "
                f"and {account_count} accounts"
            ),
            details={
                "transaction_count": transaction_count,
                "account_count": account_count,
            },
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
