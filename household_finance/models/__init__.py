"""
Data Models Package

This package contains all Pydantic models used by the household finance
tracker: stored records, derived views, mutation results and audit events.
"""

from household_finance.models.transaction import (
    DEFAULT_CATEGORIES,
    OTHER_CATEGORY,
    SAVINGS_CATEGORY,
    Transaction,
    TransactionType,
    TransactionUpdate,
)
from household_finance.models.savings import (
    SavingsAccount,
    SavingsSnapshot,
)
from household_finance.models.views import (
    CategoryShare,
    HouseholdReport,
    HouseholdSnapshot,
    MonthCashflow,
    MonthGroup,
    MonthlyListing,
    PeriodTotals,
    SavingsAccountStats,
    SnapshotPoint,
    Summary,
    TrendPoint,
)
from household_finance.models.mutation import (
    MutationResult,
    ValidationIssue,
    ValidationResult,
)
from household_finance.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "DEFAULT_CATEGORIES",
    "OTHER_CATEGORY",
    "SAVINGS_CATEGORY",
    "SavingsAccount",
    "SavingsSnapshot",
    "Transaction",
    "TransactionType",
    "TransactionUpdate",
    # Derived views
    "CategoryShare",
    "HouseholdReport",
    "HouseholdSnapshot",
    "MonthCashflow",
    "MonthGroup",
    "MonthlyListing",
    "PeriodTotals",
    "SavingsAccountStats",
    "SnapshotPoint",
    "Summary",
    "TrendPoint",
    # Mutations
    "MutationResult",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
