"""
Month-Grouped Transaction Listing

Every transaction is grouped by its calendar month, independent of the
current date. The year filter only decides which groups are visible;
it never changes what a group contains, and the offered years always
come from the full unfiltered input.
"""

from typing import Iterable, Optional, Union

from household_finance.models.transaction import Transaction
from household_finance.models.views import MonthGroup, MonthlyListing


YearFilter = Optional[Union[int, str]]

ALL_YEARS = "all"


def group_by_month(transactions: Iterable[Transaction]) -> list[MonthGroup]:
    """
    Partition transactions into calendar months.

    Within a group, transactions are newest first (ties keep input
    order). Groups are newest month first.
    """
    buckets: dict[tuple[int, int], list[Transaction]] = {}
    for tx in transactions:
        buckets.setdefault((tx.date.year, tx.date.month), []).append(tx)

    groups = [
        MonthGroup(
            year=year,
            month=month,
            transactions=sorted(txs, key=lambda tx: tx.date, reverse=True),
        )
        for (year, month), txs in buckets.items()
    ]
    groups.sort(key=lambda group: (group.year, group.month), reverse=True)
    return groups


def available_years(transactions: Iterable[Transaction]) -> list[int]:
    """Distinct years present in the transactions, newest first."""
    return sorted({tx.date.year for tx in transactions}, reverse=True)


def _parse_year(year_filter: YearFilter) -> Optional[int]:
    """None means "all years"; -1 means a filter no year can match."""
    if year_filter is None:
        return None
    if isinstance(year_filter, bool):
        return -1
    if isinstance(year_filter, int):
        return year_filter

    text = str(year_filter).strip()
    if text.lower() == ALL_YEARS:
        return None
    if text.isdigit():
        return int(text)
    return -1


def filter_groups_by_year(groups: list[MonthGroup], year_filter: YearFilter = ALL_YEARS) -> list[MonthGroup]:
    """Keep only the groups of one year, or every group for "all"."""
    year = _parse_year(year_filter)
    if year is None:
        return list(groups)
    return [group for group in groups if group.year == year]


def build_monthly_listing(
    transactions: Iterable[Transaction],
    year_filter: YearFilter = ALL_YEARS,
) -> MonthlyListing:
    """Month groups filtered by year, plus every year available to filter by."""
    transactions = list(transactions)
    groups = group_by_month(transactions)
    return MonthlyListing(
        groups=filter_groups_by_year(groups, year_filter),
        years=available_years(transactions),
    )
