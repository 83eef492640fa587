"""
Derived View Models

Outputs of the report builders. None of these are stored: every one of
them is recomputed from scratch whenever the household's records
change.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import Transaction


# =============================================================================
# SUMMARIES
# =============================================================================

class PeriodTotals(BaseModel):
    """Income, outflow and net for one period."""

    income: float = 0.0
    expense: float = 0.0
    net: float = 0.0


class Summary(BaseModel):
    """Current calendar month and all-time totals."""

    month: PeriodTotals = Field(default_factory=PeriodTotals)
    all_time: PeriodTotals = Field(default_factory=PeriodTotals)


class MonthCashflow(BaseModel):
    """
    Current month cash flow with expenses and savings kept apart.

    total_out = expense + savings; remaining = income - total_out.
    """

    income: float = 0.0
    expense: float = 0.0
    savings: float = 0.0
    total_out: float = 0.0
    remaining: float = 0.0


class TrendPoint(BaseModel):
    """Running balance right after one transaction."""

    date: datetime
    value: float


class CategoryShare(BaseModel):
    """One bucket of the current month breakdown."""

    name: str
    value: float
    pct: float = Field(
        ...,
        ge=0.0,
        description="Share of the month's total outflow, in percent"
    )


# =============================================================================
# MONTHLY LISTING
# =============================================================================

class MonthGroup(BaseModel):
    """All transactions of one calendar month, newest first."""

    year: int
    month: int = Field(..., ge=1, le=12)
    transactions: list[Transaction] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.year}-{self.month:02d}"


class MonthlyListing(BaseModel):
    """Month groups (possibly year-filtered) and the years to filter by."""

    groups: list[MonthGroup] = Field(default_factory=list)
    years: list[int] = Field(
        default_factory=list,
        description="Distinct years of the unfiltered input, newest first"
    )

    @property
    def transaction_count(self) -> int:
        return sum(len(group.transactions) for group in self.groups)


# =============================================================================
# SAVINGS
# =============================================================================

class SavingsAccountStats(BaseModel):
    """
    A savings account with its derived figures.

    has_asserted_value is False when no market value was ever stored;
    current_value then falls back to capital and profit reads as zero.
    """

    id: Optional[str] = None
    name: str = ""
    base: float = 0.0
    deposits: float = 0.0
    capital: float = 0.0
    current_value: float = 0.0
    profit: float = 0.0
    profit_pct: float = 0.0
    has_asserted_value: bool = False


class SnapshotPoint(BaseModel):
    """One point of an account's value history."""

    date: datetime
    capital: float
    value: float


# =============================================================================
# FULL DELIVERY / FULL REPORT
# =============================================================================

class HouseholdSnapshot(BaseModel):
    """
    One consistent delivery of a household's three record streams.

    CRITICAL: Every view of a HouseholdReport is computed from a single
    HouseholdSnapshot, never from lists of two different deliveries.
    """

    household_id: str
    transactions: list[Transaction] = Field(default_factory=list)
    accounts: list[SavingsAccount] = Field(default_factory=list)
    snapshots: list[SavingsSnapshot] = Field(default_factory=list)
    delivered_at: datetime = Field(default_factory=datetime.now)


class HouseholdReport(BaseModel):
    """Every derived view of one household at one moment."""

    household_id: str
    generated_at: datetime
    summary: Summary
    month_cashflow: MonthCashflow
    trend: list[TrendPoint] = Field(default_factory=list)
    category_breakdown: list[CategoryShare] = Field(default_factory=list)
    monthly: MonthlyListing = Field(default_factory=MonthlyListing)
    savings: list[SavingsAccountStats] = Field(default_factory=list)
    savings_history: dict[str, list[SnapshotPoint]] = Field(default_factory=dict)
