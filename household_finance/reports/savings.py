"""
Savings Account Figures

capital = starting amount + every saving deposit linked to the account
profit  = current value - capital

DESIGN DECISION: An account without an asserted market value reports
its capital as current value, so its profit reads as zero until someone
sets a value. has_asserted_value lets a caller tell the two cases apart.
"""

from typing import Iterable

from household_finance.models.savings import SavingsAccount, SavingsSnapshot
from household_finance.models.transaction import Transaction, TransactionType
from household_finance.models.views import SavingsAccountStats, SnapshotPoint


def deposits_by_account(transactions: Iterable[Transaction]) -> dict[str, float]:
    """Sum of saving deposits per linked account id."""
    totals: dict[str, float] = {}
    for tx in transactions:
        if tx.type is not TransactionType.SAVING_DEPOSIT or not tx.savings_account_id:
            continue
        totals[tx.savings_account_id] = totals.get(tx.savings_account_id, 0.0) + tx.amount
    return totals


def account_deposits(account_id: str, transactions: Iterable[Transaction]) -> float:
    """Sum of the saving deposits linked to one account."""
    return deposits_by_account(transactions).get(account_id, 0.0)


def account_stats(account: SavingsAccount, deposits: float) -> SavingsAccountStats:
    """Derived figures for one account given its deposit total."""
    base = account.starting_amount
    capital = base + deposits
    has_value = account.current_value is not None
    current_value = account.current_value if has_value else capital
    profit = current_value - capital

    return SavingsAccountStats(
        id=account.id,
        name=account.name,
        base=base,
        deposits=deposits,
        capital=capital,
        current_value=current_value,
        profit=profit,
        profit_pct=(profit / capital * 100) if capital > 0 else 0.0,
        has_asserted_value=has_value,
    )


def compute_account_stats(
    accounts: Iterable[SavingsAccount],
    transactions: Iterable[Transaction],
) -> list[SavingsAccountStats]:
    """
    Capital, current value and profit for every account, in input order.

    Only saving_deposit transactions count towards deposits; any other
    transaction type is ignored even when it carries an account id.
    """
    deposits = deposits_by_account(transactions)
    return [
        account_stats(account, deposits.get(account.id, 0.0) if account.id else 0.0)
        for account in accounts
    ]


def snapshot_history(snapshots: Iterable[SavingsSnapshot], account_id: str) -> list[SnapshotPoint]:
    """One account's logged values, oldest first."""
    own = [s for s in snapshots if s.account_id == account_id]
    own.sort(key=lambda s: s.created_at)
    return [
        SnapshotPoint(date=s.created_at, capital=s.capital, value=s.value)
        for s in own
    ]
