"""
Income / Expense Summaries

Saving deposits count as outflow here, exactly like expenses: money
moved into a savings account is no longer available to spend.
"""

from datetime import datetime
from typing import Iterable

from household_finance.models.transaction import Transaction, TransactionType
from household_finance.models.views import MonthCashflow, PeriodTotals, Summary


def is_same_month(when: datetime, now: datetime) -> bool:
    """True when both datetimes fall into the same calendar year and month."""
    return when.year == now.year and when.month == now.month


def build_summary(transactions: Iterable[Transaction], now: datetime) -> Summary:
    """
    Current month and all-time totals in a single pass.

    Args:
        transactions: The household's full transaction list
        now: Defines the current calendar month

    Returns:
        Summary with month and all_time income, expense and net
    """
    month_income = month_expense = 0.0
    all_income = all_expense = 0.0

    for tx in transactions:
        in_month = is_same_month(tx.date, now)

        if tx.type is TransactionType.INCOME:
            all_income += tx.amount
            if in_month:
                month_income += tx.amount
        elif tx.is_outflow:
            all_expense += tx.amount
            if in_month:
                month_expense += tx.amount

    return Summary(
        month=PeriodTotals(
            income=month_income,
            expense=month_expense,
            net=month_income - month_expense,
        ),
        all_time=PeriodTotals(
            income=all_income,
            expense=all_expense,
            net=all_income - all_expense,
        ),
    )


def build_month_cashflow(transactions: Iterable[Transaction], now: datetime) -> MonthCashflow:
    """Current month income, expense and savings with the remaining balance."""
    income = expense = savings = 0.0

    for tx in transactions:
        if not is_same_month(tx.date, now):
            continue
        if tx.type is TransactionType.INCOME:
            income += tx.amount
        elif tx.type is TransactionType.EXPENSE:
            expense += tx.amount
        elif tx.type is TransactionType.SAVING_DEPOSIT:
            savings += tx.amount

    total_out = expense + savings
    return MonthCashflow(
        income=income,
        expense=expense,
        savings=savings,
        total_out=total_out,
        remaining=income - total_out,
    )
