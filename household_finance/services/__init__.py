"""Services package."""

from household_finance.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsHouseholdStorage,
    InMemoryAuditStorage,
    InMemoryHouseholdStorage,
    NotFoundError,
    SavingsStorageInterface,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsHouseholdStorage",
    "InMemoryAuditStorage",
    "InMemoryHouseholdStorage",
    "NotFoundError",
    "SavingsStorageInterface",
    "StorageConnectionError",
    "StorageError",
    "TransactionStorageInterface",
]
