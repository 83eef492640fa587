"""
Shared fixtures for the household finance tests.

No real Google Sheets calls in tests: flows run on the in-memory
backend and the Sheets adapter runs against a fake worksheet.
"""

import pytest

from household_finance.audit import AuditLogger
from household_finance.services.storage import (
    InMemoryAuditStorage,
    InMemoryHouseholdStorage,
)
from tests.factories import NOW, make_tx


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def storage():
    return InMemoryHouseholdStorage()


@pytest.fixture
def audit_storage():
    return InMemoryAuditStorage()


@pytest.fixture
def audit_logger(audit_storage):
    return AuditLogger(audit_storage)


@pytest.fixture
def scenario():
    """One income, one uncategorized expense, one deposit, all January 2024."""
    return [
        make_tx("income", 1000, "2024-01-05"),
        make_tx("expense", 400, "2024-01-10"),
        make_tx("saving_deposit", 100, "2024-01-15", category="ignored"),
    ]
