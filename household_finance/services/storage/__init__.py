"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Google Sheets is the shared backend; the in-memory store backs tests and
runs without credentials.
"""

from household_finance.services.storage.interface import (
    AuditStorageInterface,
    NotFoundError,
    SavingsStorageInterface,
    StorageConnectionError,
    StorageError,
    TransactionStorageInterface,
)
from household_finance.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryHouseholdStorage,
)
from household_finance.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsHouseholdStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "SavingsStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "NotFoundError",
    "StorageConnectionError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryHouseholdStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsHouseholdStorage",
]
