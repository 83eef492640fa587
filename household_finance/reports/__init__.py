"""Derived views over a household's records."""

from household_finance.reports.builder import ReportBuilder
from household_finance.reports.categories import (
    build_category_breakdown,
    format_category_summary,
)
from household_finance.reports.chart import polyline_points, polyline_string
from household_finance.reports.formatting import format_amount
from household_finance.reports.monthly import (
    ALL_YEARS,
    available_years,
    build_monthly_listing,
    filter_groups_by_year,
    group_by_month,
)
from household_finance.reports.savings import (
    account_deposits,
    account_stats,
    compute_account_stats,
    deposits_by_account,
    snapshot_history,
)
from household_finance.reports.summary import build_month_cashflow, build_summary
from household_finance.reports.trend import build_trend

__all__ = [
    "ALL_YEARS",
    "ReportBuilder",
    "account_deposits",
    "account_stats",
    "available_years",
    "build_category_breakdown",
    "build_month_cashflow",
    "build_monthly_listing",
    "build_summary",
    "build_trend",
    "compute_account_stats",
    "deposits_by_account",
    "filter_groups_by_year",
    "format_amount",
    "format_category_summary",
    "group_by_month",
    "polyline_points",
    "polyline_string",
    "snapshot_history",
]
