"""
Current Month Category Breakdown

DESIGN DECISION: Every saving deposit lands in one fixed savings bucket,
whatever category was stored on it. Savings contributions therefore
never mix with expense categories in the breakdown.
"""

from datetime import datetime
from typing import Iterable

from household_finance.models.transaction import (
    OTHER_CATEGORY,
    SAVINGS_CATEGORY,
    Transaction,
    TransactionType,
)
from household_finance.models.views import CategoryShare
from household_finance.reports.formatting import format_amount
from household_finance.reports.summary import is_same_month


def build_category_breakdown(
    transactions: Iterable[Transaction],
    now: datetime,
    savings_label: str = SAVINGS_CATEGORY,
    other_label: str = OTHER_CATEGORY,
) -> list[CategoryShare]:
    """
    Current month outflow grouped by category, largest first.

    Args:
        transactions: The household's full transaction list
        now: Defines the current calendar month
        savings_label: Bucket for all saving deposits
        other_label: Bucket for expenses without a category

    Returns:
        One CategoryShare per bucket; pct is the bucket's share of the
        month's total outflow (0 when that total is 0).
    """
    # dicts keep insertion order, which breaks value ties below
    totals: dict[str, float] = {}

    for tx in transactions:
        if not tx.is_outflow or not is_same_month(tx.date, now):
            continue

        if tx.type is TransactionType.SAVING_DEPOSIT:
            name = savings_label
        else:
            name = tx.category or other_label

        totals[name] = totals.get(name, 0.0) + tx.amount

    total = sum(totals.values())

    shares = [
        CategoryShare(
            name=name,
            value=value,
            pct=(value / total * 100) if total > 0 else 0.0,
        )
        for name, value in totals.items()
    ]
    shares.sort(key=lambda share: share.value, reverse=True)
    return shares


def format_category_summary(shares: Iterable[CategoryShare], currency: str = "Ft") -> str:
    """Plain-text breakdown, one "name: amount" line per category."""
    return "\n".join(
        f"{share.name}: {format_amount(share.value, currency)}" for share in shares
    )
