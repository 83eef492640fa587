"""
In-Memory Storage Implementation

Keeps every record stream of every household in process memory.
Used by the test suite and as the fallback backend when no external
store is configured.

Records are copied on the way in and on the way out, so callers can
never mutate stored state behind the store's back.
"""

from typing import Any, Optional
from uuid import UUID, uuid4

from household_finance.models.audit import AuditEvent
from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import (
    Transaction,
    TransactionType,
    TransactionUpdate,
)
from household_finance.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SavingsStorageInterface,
    TransactionStorageInterface,
)


ACCOUNT_UPDATABLE_FIELDS = {"name", "starting_amount", "current_value"}


def _new_id() -> str:
    return uuid4().hex


class InMemoryHouseholdStorage(TransactionStorageInterface, SavingsStorageInterface):
    """Transactions, categories, savings accounts and snapshots in memory."""

    def __init__(self):
        # dicts keep insertion order, which is the "store order"
        self._transactions: dict[str, Transaction] = {}
        self._accounts: dict[str, SavingsAccount] = {}
        self._snapshots: list[SavingsSnapshot] = []
        self._categories: dict[str, list[str]] = {}

    # -- transactions ---------------------------------------------------------

    async def create_transaction(self, transaction: Transaction) -> Transaction:
        stored = transaction.model_copy(update={"id": _new_id()})
        self._transactions[stored.id] = stored
        return stored.model_copy()

    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        tx = self._transactions.get(transaction_id)
        return tx.model_copy() if tx else None

    async def update_transaction(
        self,
        transaction_id: str,
        update: TransactionUpdate,
    ) -> Transaction:
        existing = self._transactions.get(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction not found: {transaction_id}")
        updated = update.apply_to(existing)
        self._transactions[transaction_id] = updated
        return updated.model_copy()

    async def delete_transaction(self, transaction_id: str) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    async def list_transactions(
        self,
        household_id: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        return [
            tx.model_copy()
            for tx in self._transactions.values()
            if tx.household_id == household_id
            and (transaction_type is None or tx.type is transaction_type)
        ]

    async def list_custom_categories(self, household_id: str) -> list[str]:
        return list(self._categories.get(household_id, []))

    async def add_custom_category(self, household_id: str, name: str) -> bool:
        names = self._categories.setdefault(household_id, [])
        if name in names:
            return False
        names.append(name)
        return True

    # -- savings accounts -----------------------------------------------------

    async def create_account(self, account: SavingsAccount) -> SavingsAccount:
        stored = account.model_copy(update={"id": _new_id()})
        self._accounts[stored.id] = stored
        return stored.model_copy()

    async def get_account(self, account_id: str) -> Optional[SavingsAccount]:
        account = self._accounts.get(account_id)
        return account.model_copy() if account else None

    async def update_account(
        self,
        account_id: str,
        fields: dict[str, Any],
    ) -> SavingsAccount:
        existing = self._accounts.get(account_id)
        if existing is None:
            raise NotFoundError(f"Savings account not found: {account_id}")

        unknown = set(fields) - ACCOUNT_UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields cannot be updated: {sorted(unknown)}")

        # Re-validate so the usual coercion applies to the new values
        data = existing.model_dump()
        data.update(fields)
        updated = SavingsAccount.model_validate(data)
        self._accounts[account_id] = updated
        return updated.model_copy()

    async def list_accounts(self, household_id: str) -> list[SavingsAccount]:
        return [
            account.model_copy()
            for account in self._accounts.values()
            if account.household_id == household_id
        ]

    # -- snapshots (append-only) ----------------------------------------------

    async def append_snapshot(self, snapshot: SavingsSnapshot) -> SavingsSnapshot:
        stored = snapshot.model_copy(update={"id": _new_id()})
        self._snapshots.append(stored)
        return stored

    async def list_snapshots(
        self,
        household_id: str,
        account_id: Optional[str] = None,
    ) -> list[SavingsSnapshot]:
        return [
            s
            for s in self._snapshots
            if s.household_id == household_id
            and (account_id is None or s.account_id == account_id)
        ]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log in memory."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
