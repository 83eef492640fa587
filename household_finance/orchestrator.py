"""
Main Orchestrator for the Household Finance Tracker

This module ties together storage, validation, audit and reports, and
defines the end-to-end flows for:
1. Transactions (validate → write → audit → refresh)
2. Savings accounts (validate → write → snapshot → audit → refresh)
3. Report delivery (load full snapshot → rebuild → push to subscribers)

DESIGN DECISION: The orchestrator enforces the boundaries:
- No input is written before it validates
- No transaction is deleted without explicit confirmation
- Every account change appends a value snapshot
- Every step is audited
- Storage failures come back as a failed MutationResult, never raised

Mutations are not retried. A failed write is reported to the caller,
who may simply try again.
"""

import inspect
from datetime import datetime
from typing import Any, Awaitable, Callable, Optional, Union
from uuid import UUID

import structlog
from pydantic import ValidationError as PydanticValidationError

from household_finance.audit import AuditLogger, create_correlation_id
from household_finance.config import AppSettings, get_settings
from household_finance.models.mutation import (
    MutationResult,
    ValidationIssue,
    ValidationResult,
)
from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import (
    DEFAULT_CATEGORIES,
    Transaction,
    TransactionType,
    TransactionUpdate,
)
from household_finance.models.views import HouseholdReport, HouseholdSnapshot
from household_finance.reports import ReportBuilder, account_deposits
from household_finance.reports.monthly import ALL_YEARS, YearFilter
from household_finance.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsHouseholdStorage,
    InMemoryAuditStorage,
    InMemoryHouseholdStorage,
    NotFoundError,
    SavingsStorageInterface,
    StorageError,
    TransactionStorageInterface,
)
from household_finance.utils import coerce_number
from household_finance.validation import (
    parse_amount,
    validate_account_name,
    validate_household_id,
    validate_new_transaction,
)


logger = structlog.get_logger(__name__)

ReportHandler = Callable[[HouseholdReport], Union[None, Awaitable[None]]]

STORAGE_FAILED_MESSAGE = "Could not save the change, please try again"


class HouseholdFeed:
    """
    Push-style delivery of household reports.

    Handlers subscribe per household. Every refresh loads the three
    record lists as one full snapshot, rebuilds the report from scratch
    and hands it to every handler of that household.
    """

    def __init__(
        self,
        storage: Union[TransactionStorageInterface, SavingsStorageInterface],
        report_builder: Optional[ReportBuilder] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._builder = report_builder or ReportBuilder()
        self._audit_logger = audit_logger
        self._handlers: dict[str, list[ReportHandler]] = {}
        self._year_filters: dict[str, YearFilter] = {}

    def subscribe(self, household_id: str, handler: ReportHandler) -> Callable[[], None]:
        """
        Register a handler for a household's reports.

        Returns a callable that unsubscribes the handler.
        """
        household_id = household_id.strip()
        self._handlers.setdefault(household_id, []).append(handler)
        return lambda: self.unsubscribe(household_id, handler)

    def unsubscribe(self, household_id: str, handler: ReportHandler) -> None:
        handlers = self._handlers.get(household_id.strip(), [])
        if handler in handlers:
            handlers.remove(handler)

    def subscriber_count(self, household_id: str) -> int:
        return len(self._handlers.get(household_id.strip(), []))

    def set_year_filter(self, household_id: str, year_filter: YearFilter) -> None:
        """Year shown in the monthly listing of this household's reports."""
        self._year_filters[household_id.strip()] = year_filter

    async def load_snapshot(self, household_id: str) -> HouseholdSnapshot:
        """Load one consistent delivery of a household's records."""
        transactions = await self._storage.list_transactions(household_id)
        accounts = await self._storage.list_accounts(household_id)
        snapshots = await self._storage.list_snapshots(household_id)
        return HouseholdSnapshot(
            household_id=household_id,
            transactions=transactions,
            accounts=accounts,
            snapshots=snapshots,
        )

    async def refresh(
        self,
        household_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[HouseholdReport]:
        """
        Rebuild a household's report and push it to its subscribers.

        Returns the report, or None when the records could not be loaded.
        """
        household_id = household_id.strip()
        try:
            snapshot = await self.load_snapshot(household_id)
        except StorageError as e:
            logger.error("household_load_failed", household_id=household_id, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="household_load_failed",
                    error_message=str(e),
                    details={"household_id": household_id},
                    correlation_id=correlation_id,
                )
            return None

        report = self._builder.build(
            snapshot,
            year_filter=self._year_filters.get(household_id, ALL_YEARS),
        )

        if self._audit_logger:
            await self._audit_logger.log_report_rebuilt(
                household_id=household_id,
                transaction_count=len(snapshot.transactions),
                account_count=len(snapshot.accounts),
                correlation_id=correlation_id,
            )

        for handler in list(self._handlers.get(household_id, [])):
            try:
                result = handler(report)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                # One failing subscriber must not starve the others
                logger.error("report_handler_failed", household_id=household_id, error=str(e))

        return report


class TransactionFlow:
    """
    Orchestrates transaction mutations.

    Flow:
    1. Validate → reject bad input before any write
    2. Write → one storage call, not retried
    3. Audit → success or failure
    4. Refresh → push the rebuilt report when a feed is attached
    """

    def __init__(
        self,
        storage: TransactionStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        feed: Optional[HouseholdFeed] = None,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._feed = feed
        self._settings = settings or AppSettings()
        self._clock = clock

    async def _refresh(self, household_id: Optional[str], correlation_id: UUID) -> None:
        if self._feed and household_id:
            await self._feed.refresh(household_id, correlation_id=correlation_id)

    async def _rejected(
        self,
        validation: ValidationResult,
        household_id: Optional[str],
        correlation_id: UUID,
        entity_type: str = "transaction",
    ) -> MutationResult:
        await self._audit_logger.log_validation_failed(
            entity_type=entity_type,
            issues=validation.issues,
            household_id=household_id,
            correlation_id=correlation_id,
        )
        return MutationResult.failed(validation.summary(), issues=validation.issues)

    async def record_transaction(
        self,
        household_id: str,
        transaction_type: Union[TransactionType, str],
        amount: Any,
        category: Optional[str] = None,
        description: str = "",
        date: Any = None,
        savings_account_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Record a new transaction.

        A missing category becomes the savings label for deposits and
        the "other" label for everything else. The account link is kept
        only for saving deposits.
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = validate_new_transaction(
            household_id, amount, transaction_type, savings_account_id
        )
        if not validation.is_valid:
            return await self._rejected(validation, household_id, correlation_id)

        household_id = household_id.strip()
        tx_type = TransactionType(transaction_type)
        is_deposit = tx_type is TransactionType.SAVING_DEPOSIT
        now = self._clock()

        transaction = Transaction(
            household_id=household_id,
            type=tx_type,
            amount=parse_amount(amount),
            category=category or (
                self._settings.savings_category_label
                if is_deposit
                else self._settings.other_category_label
            ),
            description=description or "",
            date=date if date not in (None, "") else now,
            savings_account_id=savings_account_id.strip() if is_deposit else None,
            created_at=now,
        )

        try:
            stored = await self._storage.create_transaction(transaction)
        except StorageError as e:
            await self._audit_logger.log_mutation_failed(
                operation="create",
                entity_type="transaction",
                error_message=str(e),
                household_id=household_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(STORAGE_FAILED_MESSAGE)

        await self._audit_logger.log_transaction_created(
            household_id=household_id,
            transaction_id=stored.id,
            transaction_type=stored.type.value,
            amount=stored.amount,
            correlation_id=correlation_id,
        )
        await self._refresh(household_id, correlation_id)
        return MutationResult.ok(stored.id)

    async def edit_transaction(
        self,
        transaction_id: str,
        update: Union[TransactionUpdate, dict],
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Overwrite amount, date, type, category and description in place.

        The edited amount must still be greater than zero.
        """
        correlation_id = correlation_id or create_correlation_id()
        if isinstance(update, dict):
            try:
                update = TransactionUpdate.model_validate(update)
            except PydanticValidationError as e:
                validation = ValidationResult(issues=[
                    ValidationIssue(
                        field=".".join(str(part) for part in error["loc"]) or "update",
                        issue_type="invalid_value",
                        message=error["msg"],
                    )
                    for error in e.errors()
                ])
                return await self._rejected(validation, None, correlation_id)

        if update.amount <= 0:
            validation = ValidationResult()
            validation.issues.append(_amount_issue())
            return await self._rejected(validation, None, correlation_id)

        try:
            updated = await self._storage.update_transaction(transaction_id, update)
        except NotFoundError:
            return MutationResult.failed("Transaction not found", entity_id=transaction_id)
        except StorageError as e:
            await self._audit_logger.log_mutation_failed(
                operation="update",
                entity_type="transaction",
                error_message=str(e),
                entity_id=transaction_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(STORAGE_FAILED_MESSAGE, entity_id=transaction_id)

        await self._audit_logger.log_transaction_updated(
            household_id=updated.household_id,
            transaction_id=transaction_id,
            fields=update.model_dump(mode="json"),
            correlation_id=correlation_id,
        )
        await self._refresh(updated.household_id, correlation_id)
        return MutationResult.ok(transaction_id)

    async def delete_transaction(
        self,
        transaction_id: str,
        confirmed: bool = False,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Delete a transaction.

        CRITICAL: Nothing is deleted unless confirmed is True.
        """
        correlation_id = correlation_id or create_correlation_id()

        if not confirmed:
            await self._audit_logger.log_delete_not_confirmed(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed("Deletion not confirmed", entity_id=transaction_id)

        try:
            existing = await self._storage.get_transaction(transaction_id)
            deleted = await self._storage.delete_transaction(transaction_id)
        except StorageError as e:
            await self._audit_logger.log_mutation_failed(
                operation="delete",
                entity_type="transaction",
                error_message=str(e),
                entity_id=transaction_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(STORAGE_FAILED_MESSAGE, entity_id=transaction_id)

        if not deleted:
            return MutationResult.failed("Transaction not found", entity_id=transaction_id)

        household_id = existing.household_id if existing else None
        await self._audit_logger.log_transaction_deleted(
            household_id=household_id,
            transaction_id=transaction_id,
            correlation_id=correlation_id,
        )
        await self._refresh(household_id, correlation_id)
        return MutationResult.ok(transaction_id, message="Deleted")

    async def available_categories(self, household_id: str) -> list[str]:
        """Default categories followed by the household's own, first occurrence wins."""
        custom: list[str] = []
        if validate_household_id(household_id).is_valid:
            try:
                custom = await self._storage.list_custom_categories(household_id.strip())
            except StorageError as e:
                logger.warning("custom_categories_unavailable", household_id=household_id, error=str(e))

        return list(dict.fromkeys([*DEFAULT_CATEGORIES, *custom]))

    async def add_category(
        self,
        household_id: str,
        name: str,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """Add a custom category; adding an existing one is a no-op success."""
        correlation_id = correlation_id or create_correlation_id()

        validation = validate_household_id(household_id)
        name = (name or "").strip()
        if not name:
            validation.issues.append(_name_issue("Category name is required"))
        if not validation.is_valid:
            return await self._rejected(validation, household_id, correlation_id, "category")

        household_id = household_id.strip()
        if name in DEFAULT_CATEGORIES:
            return MutationResult.ok(name, message="Category already exists")

        try:
            added = await self._storage.add_custom_category(household_id, name)
        except StorageError as e:
            await self._audit_logger.log_mutation_failed(
                operation="create",
                entity_type="category",
                error_message=str(e),
                household_id=household_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(STORAGE_FAILED_MESSAGE)

        if not added:
            return MutationResult.ok(name, message="Category already exists")

        await self._audit_logger.log_category_added(
            household_id=household_id,
            name=name,
            correlation_id=correlation_id,
        )
        return MutationResult.ok(name, message="Category added")


class SavingsFlow:
    """
    Orchestrates savings account mutations.

    Every change to an account's value or capital basis appends a
    snapshot {capital, value} to the append-only value log. A snapshot
    that fails to append is logged and audited but does not undo or
    fail the account change that caused it.
    """

    def __init__(
        self,
        storage: Union[TransactionStorageInterface, SavingsStorageInterface],
        audit_logger: Optional[AuditLogger] = None,
        feed: Optional[HouseholdFeed] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._storage = storage
        self._audit_logger = audit_logger or AuditLogger()
        self._feed = feed
        self._clock = clock

    async def _refresh(self, household_id: str, correlation_id: UUID) -> None:
        if self._feed:
            await self._feed.refresh(household_id, correlation_id=correlation_id)

    async def _log_snapshot(
        self,
        household_id: str,
        account_id: str,
        capital: float,
        value: float,
        correlation_id: UUID,
    ) -> bool:
        snapshot = SavingsSnapshot(
            household_id=household_id,
            account_id=account_id,
            capital=capital,
            value=value,
            created_at=self._clock(),
        )
        try:
            await self._storage.append_snapshot(snapshot)
        except StorageError as e:
            logger.warning("snapshot_append_failed", account_id=account_id, error=str(e))
            await self._audit_logger.log_snapshot_failed(
                household_id=household_id,
                account_id=account_id,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return False

        await self._audit_logger.log_snapshot_appended(
            household_id=household_id,
            account_id=account_id,
            capital=capital,
            value=value,
            correlation_id=correlation_id,
        )
        return True

    async def _capital(self, account: SavingsAccount, starting_amount: float) -> float:
        """Starting amount plus the deposits currently linked to the account."""
        transactions = await self._storage.list_transactions(
            account.household_id,
            transaction_type=TransactionType.SAVING_DEPOSIT,
        )
        return starting_amount + account_deposits(account.id, transactions)

    async def _mutation_failed(
        self,
        operation: str,
        error: Exception,
        correlation_id: UUID,
        account_id: Optional[str] = None,
        household_id: Optional[str] = None,
    ) -> MutationResult:
        await self._audit_logger.log_mutation_failed(
            operation=operation,
            entity_type="savings_account",
            error_message=str(error),
            entity_id=account_id,
            household_id=household_id,
            correlation_id=correlation_id,
        )
        return MutationResult.failed(STORAGE_FAILED_MESSAGE, entity_id=account_id)

    async def create_account(
        self,
        household_id: str,
        name: str,
        starting_amount: Any = 0,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Create an account valued at its starting amount.

        Writes the account and an initial snapshot {start, start}.
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = validate_household_id(household_id)
        validation.issues.extend(validate_account_name(name).issues)
        if not validation.is_valid:
            await self._audit_logger.log_validation_failed(
                entity_type="savings_account",
                issues=validation.issues,
                household_id=household_id,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(validation.summary(), issues=validation.issues)

        household_id = household_id.strip()
        start = coerce_number(starting_amount)

        try:
            stored = await self._storage.create_account(SavingsAccount(
                household_id=household_id,
                name=name.strip(),
                starting_amount=start,
                current_value=start,
                created_at=self._clock(),
            ))
        except StorageError as e:
            return await self._mutation_failed("create", e, correlation_id, household_id=household_id)

        await self._audit_logger.log_account_created(
            household_id=household_id,
            account_id=stored.id,
            name=stored.name,
            starting_amount=start,
            correlation_id=correlation_id,
        )
        await self._log_snapshot(household_id, stored.id, start, start, correlation_id)
        await self._refresh(household_id, correlation_id)
        return MutationResult.ok(stored.id)

    async def edit_account(
        self,
        account_id: str,
        name: str,
        starting_amount: Any,
        current_value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Full edit of name, starting amount and current value.

        Capital is re-derived from the deposits linked right now, and a
        snapshot {capital, value} is appended.
        """
        correlation_id = correlation_id or create_correlation_id()

        validation = validate_account_name(name)
        if not validation.is_valid:
            await self._audit_logger.log_validation_failed(
                entity_type="savings_account",
                issues=validation.issues,
                household_id=None,
                correlation_id=correlation_id,
            )
            return MutationResult.failed(validation.summary(), entity_id=account_id, issues=validation.issues)

        fields = {
            "name": name.strip(),
            "starting_amount": coerce_number(starting_amount),
            "current_value": coerce_number(current_value),
        }

        try:
            account = await self._storage.get_account(account_id)
            if account is None:
                return MutationResult.failed("Savings account not found", entity_id=account_id)
            capital = await self._capital(account, fields["starting_amount"])
            updated = await self._storage.update_account(account_id, fields)
        except NotFoundError:
            return MutationResult.failed("Savings account not found", entity_id=account_id)
        except StorageError as e:
            return await self._mutation_failed("update", e, correlation_id, account_id=account_id)

        await self._audit_logger.log_account_updated(
            household_id=updated.household_id,
            account_id=account_id,
            fields=fields,
            correlation_id=correlation_id,
        )
        await self._log_snapshot(
            updated.household_id, account_id, capital, fields["current_value"], correlation_id
        )
        await self._refresh(updated.household_id, correlation_id)
        return MutationResult.ok(account_id)

    async def update_current_value(
        self,
        account_id: str,
        value: Any,
        correlation_id: Optional[UUID] = None,
    ) -> MutationResult:
        """
        Quick update of only the market value.

        Non-numeric input is rejected without touching storage. The
        appended snapshot carries the unchanged capital.
        """
        correlation_id = correlation_id or create_correlation_id()

        numeric = parse_amount(value)
        if numeric is None:
            validation = ValidationResult()
            validation.issues.append(_amount_issue("current_value", "Value must be a number"))
            return MutationResult.failed(validation.summary(), entity_id=account_id, issues=validation.issues)

        try:
            account = await self._storage.get_account(account_id)
            if account is None:
                return MutationResult.failed("Savings account not found", entity_id=account_id)
            capital = await self._capital(account, account.starting_amount)
            updated = await self._storage.update_account(account_id, {"current_value": numeric})
        except NotFoundError:
            return MutationResult.failed("Savings account not found", entity_id=account_id)
        except StorageError as e:
            return await self._mutation_failed("update", e, correlation_id, account_id=account_id)

        await self._audit_logger.log_account_updated(
            household_id=updated.household_id,
            account_id=account_id,
            fields={"current_value": numeric},
            correlation_id=correlation_id,
        )
        await self._log_snapshot(updated.household_id, account_id, capital, numeric, correlation_id)
        await self._refresh(updated.household_id, correlation_id)
        return MutationResult.ok(account_id)


def _amount_issue(field: str = "amount", message: str = "Amount must be greater than zero") -> ValidationIssue:
    return ValidationIssue(field=field, issue_type="invalid_amount", message=message)


def _name_issue(message: str) -> ValidationIssue:
    return ValidationIssue(field="name", issue_type="missing", message=message)


def create_app_components(
    use_storage: bool = True,
    clock: Callable[[], datetime] = datetime.now,
) -> tuple[TransactionFlow, SavingsFlow, HouseholdFeed, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False (or leave Sheets unconfigured) to run
                    on the in-memory backend.
        clock: Source of "now" for reports and record timestamps

    Returns:
        (transaction_flow, savings_flow, feed, sheets_client)
    """
    sheets_client = None
    household_storage = None
    audit_storage = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            household_storage = GoogleSheetsHouseholdStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage not configured - continue in memory
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None

    if household_storage is None:
        household_storage = InMemoryHouseholdStorage()
        audit_storage = InMemoryAuditStorage()

    app_settings = get_settings().app
    audit_logger = AuditLogger(audit_storage)
    feed = HouseholdFeed(
        household_storage,
        report_builder=ReportBuilder(app_settings, clock=clock),
        audit_logger=audit_logger,
    )

    transaction_flow = TransactionFlow(
        household_storage,
        audit_logger=audit_logger,
        feed=feed,
        settings=app_settings,
        clock=clock,
    )
    savings_flow = SavingsFlow(
        household_storage,
        audit_logger=audit_logger,
        feed=feed,
        clock=clock,
    )

    return transaction_flow, savings_flow, feed, sheets_client
