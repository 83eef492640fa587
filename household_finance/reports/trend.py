from typing import Iterable

from household_finance.models.transaction import Transaction
from household_finance.models.views import TrendPoint


def build_trend(transactions: Iterable[Transaction]) -> list[TrendPoint]:
    """
    All-time cumulative balance, one point per transaction.

    Transactions are walked oldest first. sorted() is stable, so
    transactions sharing a date keep their input order.
    """
    ordered = sorted(transactions, key=lambda tx: tx.date)

    balance = 0.0
    points = []
    for tx in ordered:
        balance += tx.signed_amount
        points.append(TrendPoint(date=tx.date, value=balance))

    return points
