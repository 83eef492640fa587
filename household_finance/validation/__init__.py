"""Input validation package."""

from household_finance.validation.validator import (
    parse_amount,
    validate_account_name,
    validate_household_id,
    validate_new_transaction,
)

__all__ = [
    "parse_amount",
    "validate_account_name",
    "validate_household_id",
    "validate_new_transaction",
]
