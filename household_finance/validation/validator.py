"""
Input Validation

DESIGN DECISION: User input is checked BEFORE anything is written.
Records read back from the store are coerced leniently by the models;
input typed by a household member is not. A rejected input produces a
ValidationResult listing every problem, and nothing touches storage.

IMPORTANT: Validation NEVER silently fixes issues.
It reports them so the caller can show them.
"""

import math
from typing import Any, Optional

from household_finance.models.mutation import ValidationIssue, ValidationResult
from household_finance.models.transaction import TransactionType


def parse_amount(value: Any) -> Optional[float]:
    """
    Parse a typed amount strictly.

    Returns None for anything that is not a finite number. Unlike
    coerce_number this never turns bad input into 0.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _household_issues(household_id: Any) -> list[ValidationIssue]:
    if household_id is None or not str(household_id).strip():
        return [ValidationIssue(
            field="household_id",
            issue_type="missing",
            message="Household id is required",
        )]
    return []


def validate_household_id(household_id: Any) -> ValidationResult:
    """An empty or whitespace-only household id is an error."""
    return ValidationResult(issues=_household_issues(household_id))


def validate_new_transaction(
    household_id: Any,
    amount: Any,
    transaction_type: Any,
    savings_account_id: Optional[str] = None,
) -> ValidationResult:
    """
    Validate a transaction a household member is about to record.

    Checks:
    - Household id present
    - Type is one of income / expense / saving_deposit
    - Amount numeric and greater than zero
    - Saving deposits name the account they go into
    """
    issues = _household_issues(household_id)

    try:
        tx_type = TransactionType(transaction_type)
    except ValueError:
        tx_type = None
        issues.append(ValidationIssue(
            field="type",
            issue_type="invalid_value",
            message=f"Unknown transaction type: {transaction_type!r}",
        ))

    parsed = parse_amount(amount)
    if parsed is None:
        issues.append(ValidationIssue(
            field="amount",
            issue_type="invalid_amount",
            message="Amount must be a number",
        ))
    elif parsed <= 0:
        issues.append(ValidationIssue(
            field="amount",
            issue_type="invalid_value",
            message="Amount must be greater than zero",
        ))

    if tx_type is TransactionType.SAVING_DEPOSIT and not (savings_account_id or "").strip():
        issues.append(ValidationIssue(
            field="savings_account_id",
            issue_type="missing",
            message="A saving deposit needs a savings account",
        ))

    return ValidationResult(issues=issues)


def validate_account_name(name: Any) -> ValidationResult:
    """Savings accounts need a non-empty name."""
    if name is None or not str(name).strip():
        return ValidationResult(issues=[ValidationIssue(
            field="name",
            issue_type="missing",
            message="Account name is required",
        )])
    return ValidationResult()
