"""
Report Builder

DESIGN DECISION: Report building is DETERMINISTIC and FULL.
Every delivery of a household's records produces a fresh report built
from scratch: no incremental state survives between builds, so a stale
build is simply replaced by the next one.

The only impure input, the current time, comes from an injected clock
and is read once per build so that every view agrees on "this month".
"""

from datetime import datetime
from typing import Callable, Optional, Sequence

import structlog

from household_finance.config import AppSettings
from household_finance.models.transaction import TransactionType
from household_finance.models.views import (
    HouseholdReport,
    HouseholdSnapshot,
    SnapshotPoint,
    TrendPoint,
)
from household_finance.reports.categories import build_category_breakdown
from household_finance.reports.chart import polyline_points, polyline_string
from household_finance.reports.monthly import ALL_YEARS, YearFilter, build_monthly_listing
from household_finance.reports.savings import compute_account_stats, snapshot_history
from household_finance.reports.summary import build_month_cashflow, build_summary
from household_finance.reports.trend import build_trend
from household_finance.utils import normalize_date


logger = structlog.get_logger(__name__)


class ReportBuilder:
    """
    Builds every derived view of a household from one full snapshot.

    GUARANTEES:
    - Never mixes records from two deliveries
    - Never raises on malformed records (they were coerced on load)
    - Same snapshot and same clock reading give the same report
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self._settings = settings or AppSettings()
        self._clock = clock

    def now(self) -> datetime:
        """Current time from the injected clock, normalized to naive local."""
        return normalize_date(self._clock())

    def build(
        self,
        snapshot: HouseholdSnapshot,
        year_filter: YearFilter = ALL_YEARS,
    ) -> HouseholdReport:
        """
        Build the full report for one delivery.

        Args:
            snapshot: One consistent delivery of the household's records
            year_filter: Year shown in the monthly listing, or "all"
        """
        now = self.now()
        transactions = snapshot.transactions

        deposits = [tx for tx in transactions if tx.type is TransactionType.SAVING_DEPOSIT]
        history = {
            account.id: snapshot_history(snapshot.snapshots, account.id)
            for account in snapshot.accounts
            if account.id
        }

        report = HouseholdReport(
            household_id=snapshot.household_id,
            generated_at=now,
            summary=build_summary(transactions, now),
            month_cashflow=build_month_cashflow(transactions, now),
            trend=build_trend(transactions),
            category_breakdown=build_category_breakdown(
                transactions,
                now,
                savings_label=self._settings.savings_category_label,
                other_label=self._settings.other_category_label,
            ),
            monthly=build_monthly_listing(transactions, year_filter),
            savings=compute_account_stats(snapshot.accounts, deposits),
            savings_history=history,
        )

        logger.debug(
            "report_built",
            household_id=snapshot.household_id,
            transaction_count=len(transactions),
            account_count=len(snapshot.accounts),
            snapshot_count=len(snapshot.snapshots),
        )
        return report

    def trend_chart(self, trend: Sequence[TrendPoint]) -> str:
        """Polyline points for the balance trend chart."""
        points = polyline_points(
            [point.value for point in trend],
            width=self._settings.trend_chart_width,
            height=self._settings.trend_chart_height,
            padding=self._settings.chart_padding,
        )
        return polyline_string(points)

    def savings_chart(self, history: Sequence[SnapshotPoint]) -> str:
        """Polyline points for one account's value history chart."""
        points = polyline_points(
            [point.value for point in history],
            width=self._settings.savings_chart_width,
            height=self._settings.savings_chart_height,
            padding=self._settings.chart_padding,
        )
        return polyline_string(points)
