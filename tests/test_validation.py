"""Tests for user input validation."""

import pytest

from household_finance.validation import (
    parse_amount,
    validate_account_name,
    validate_household_id,
    validate_new_transaction,
)


class TestParseAmount:
    """Tests for strict amount parsing."""

    @pytest.mark.parametrize("value, expected", [
        ("12.50", 12.5),
        (" 3 ", 3.0),
        (7, 7.0),
        ("-4", -4.0),
    ])
    def test_numbers(self, value, expected):
        assert parse_amount(value) == expected

    @pytest.mark.parametrize("value", [None, "", "abc", "1,5", True, "nan", float("inf")])
    def test_not_numbers(self, value):
        assert parse_amount(value) is None


class TestTransactionValidation:
    """Tests for validate_new_transaction."""

    def test_valid_expense(self):
        result = validate_new_transaction("home", "250", "expense")
        assert result.is_valid

    def test_amount_must_be_positive(self):
        result = validate_new_transaction("home", "0", "income")
        assert not result.is_valid
        assert result.issues[0].field == "amount"

    def test_amount_must_be_numeric(self):
        result = validate_new_transaction("home", "ten", "income")
        assert result.issues[0].issue_type == "invalid_amount"

    def test_deposit_needs_account(self):
        result = validate_new_transaction("home", 100, "saving_deposit", "  ")
        assert [issue.field for issue in result.issues] == ["savings_account_id"]

    def test_unknown_type(self):
        result = validate_new_transaction("home", 100, "refund")
        assert [issue.field for issue in result.issues] == ["type"]

    def test_collects_every_issue(self):
        result = validate_new_transaction("", "x", "saving_deposit")
        assert result.error_count == 3


class TestOtherValidation:
    """Tests for household id and account name checks."""

    @pytest.mark.parametrize("value", [None, "", "   "])
    def test_empty_household_id(self, value):
        assert not validate_household_id(value).is_valid

    def test_household_id(self):
        assert validate_household_id(" home ").is_valid

    def test_account_name(self):
        assert validate_account_name("Holiday").is_valid
        assert not validate_account_name("  ").is_valid
