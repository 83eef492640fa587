"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for another managed store later
2. Use in-memory storage for testing
3. Keep the report builders decoupled from storage implementation

The interface is intentionally simple - we're not building a database.
Every list operation returns the FULL current list for a household;
there is no pagination and no delta protocol.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional
from uuid import UUID

from household_finance.models.audit import AuditEvent
from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import (
    Transaction,
    TransactionType,
    TransactionUpdate,
)


class TransactionStorageInterface(ABC):
    """
    Abstract interface for transaction storage operations.

    Any storage implementation must implement these methods.
    """

    @abstractmethod
    async def create_transaction(self, transaction: Transaction) -> Transaction:
        """
        Store a new transaction.

        Args:
            transaction: The transaction to store (its id is ignored)

        Returns:
            The stored transaction with its store-assigned id

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        """
        Retrieve a transaction by its ID.

        Returns:
            The transaction if found, None otherwise
        """
        pass

    @abstractmethod
    async def update_transaction(
        self,
        transaction_id: str,
        update: TransactionUpdate,
    ) -> Transaction:
        """
        Overwrite the editable fields of an existing transaction.

        Returns:
            The updated transaction

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def delete_transaction(self, transaction_id: str) -> bool:
        """
        Delete a transaction by ID.

        Returns:
            True if deleted, False if it did not exist
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        household_id: str,
        transaction_type: Optional[TransactionType] = None,
    ) -> list[Transaction]:
        """
        List every transaction of a household.

        Args:
            household_id: The household to list
            transaction_type: Only this type, when given

        Returns:
            The full list, in store order
        """
        pass

    @abstractmethod
    async def list_custom_categories(self, household_id: str) -> list[str]:
        """Category names a household added on top of the defaults."""
        pass

    @abstractmethod
    async def add_custom_category(self, household_id: str, name: str) -> bool:
        """
        Add a custom category for a household.

        Returns:
            True if added, False if it already existed
        """
        pass


class SavingsStorageInterface(ABC):
    """
    Abstract interface for savings accounts and their value snapshots.

    Snapshots are append-only: there is deliberately no way to update
    or delete one through this interface.
    """

    @abstractmethod
    async def create_account(self, account: SavingsAccount) -> SavingsAccount:
        """
        Store a new savings account.

        Returns:
            The stored account with its store-assigned id
        """
        pass

    @abstractmethod
    async def get_account(self, account_id: str) -> Optional[SavingsAccount]:
        """Retrieve an account by its ID, None if not found."""
        pass

    @abstractmethod
    async def update_account(
        self,
        account_id: str,
        fields: dict[str, Any],
    ) -> SavingsAccount:
        """
        Update some fields of an account.

        Args:
            account_id: The account to update
            fields: Field name to new value (name, starting_amount,
                    current_value)

        Raises:
            NotFoundError: If the account doesn't exist
        """
        pass

    @abstractmethod
    async def list_accounts(self, household_id: str) -> list[SavingsAccount]:
        """List every savings account of a household."""
        pass

    @abstractmethod
    async def append_snapshot(self, snapshot: SavingsSnapshot) -> SavingsSnapshot:
        """
        Append a value snapshot to the log.

        Returns:
            The stored snapshot with its store-assigned id
        """
        pass

    @abstractmethod
    async def list_snapshots(
        self,
        household_id: str,
        account_id: Optional[str] = None,
    ) -> list[SavingsSnapshot]:
        """List a household's snapshots, optionally for one account."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., an edit and its snapshot).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity.

        Returns:
            List of events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class StorageConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
