"""
Tests for the Household Finance models

Test strategy:
1. Store records coerce instead of failing
2. Derived properties follow the transaction type
3. Audit events serialize to the column layout of the audit sheet
"""

from datetime import datetime
from uuid import uuid4

import pytest
from pydantic import ValidationError

from household_finance.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    MonthGroup,
    MutationResult,
    SavingsAccount,
    SavingsSnapshot,
    Transaction,
    TransactionType,
    TransactionUpdate,
    ValidationIssue,
    ValidationResult,
)


class TestTransactionModel:
    """Tests for Transaction coercion and derived properties."""

    def test_accepts_camel_case_store_keys(self):
        """Test that store records with camelCase keys load."""
        tx = Transaction.model_validate({
            "id": "abc",
            "householdId": "home",
            "type": "saving_deposit",
            "amount": "250",
            "savingsAccountId": "acc-1",
            "date": "2024-03-02T08:00:00",
        })
        assert tx.household_id == "home"
        assert tx.savings_account_id == "acc-1"
        assert tx.amount == 250.0
        assert tx.date == datetime(2024, 3, 2, 8, 0)

    def test_non_numeric_amount_becomes_zero(self):
        """Test that garbage amounts coerce to 0 instead of failing."""
        tx = Transaction(household_id="home", type="expense", amount="lots")
        assert tx.amount == 0.0

    def test_negative_amount_is_made_positive(self):
        """Test that direction comes from the type only."""
        tx = Transaction(household_id="home", type="expense", amount=-40)
        assert tx.amount == 40.0
        assert tx.signed_amount == -40.0

    def test_missing_date_falls_back_to_now(self):
        """Test that an unparseable date reads as the current time."""
        before = datetime.now()
        tx = Transaction(household_id="home", type="income", amount=1, date="not a date")
        assert tx.date >= before

    def test_empty_category_is_none(self):
        """Test that a blank category is treated as missing."""
        tx = Transaction(household_id="home", type="expense", amount=1, category="  ")
        assert tx.category is None

    def test_outflow_types(self):
        """Test that expenses and saving deposits are both outflows."""
        assert TransactionType.EXPENSE.is_outflow
        assert TransactionType.SAVING_DEPOSIT.is_outflow
        assert not TransactionType.INCOME.is_outflow

    def test_unknown_type_is_rejected(self):
        """Test that the type is the one field that never coerces."""
        with pytest.raises(ValidationError):
            Transaction(household_id="home", type="refund", amount=1)


class TestTransactionUpdate:
    """Tests for the editable subset of a transaction."""

    def test_empty_type_means_income(self):
        """Test that an empty type defaults to income."""
        update = TransactionUpdate(amount=10, type="")
        assert update.type is TransactionType.INCOME

    def test_apply_keeps_identity(self):
        """Test that applying an update keeps id, household and account link."""
        tx = Transaction(
            id="t1",
            household_id="home",
            type="saving_deposit",
            amount=100,
            savings_account_id="acc",
            date="2024-01-01",
        )
        update = TransactionUpdate(
            amount=150,
            type="saving_deposit",
            category="Bonus",
            date="2024-02-01",
        )
        updated = update.apply_to(tx)

        assert updated.id == "t1"
        assert updated.household_id == "home"
        assert updated.savings_account_id == "acc"
        assert updated.amount == 150.0
        assert updated.category == "Bonus"
        assert updated.date == datetime(2024, 2, 1)
        assert tx.amount == 100.0  # original untouched


class TestSavingsModels:
    """Tests for savings accounts and snapshots."""

    def test_unset_current_value_stays_none(self):
        """Test that a never-asserted value is distinguishable from zero."""
        account = SavingsAccount(household_id="home", name="Holiday")
        assert account.current_value is None
        assert account.starting_amount == 0.0

    def test_garbage_numbers_coerce_to_zero(self):
        """Test numeric coercion on account fields."""
        account = SavingsAccount.model_validate({
            "householdId": "home",
            "name": "Pension",
            "startingAmount": "abc",
            "currentValue": "xyz",
        })
        assert account.starting_amount == 0.0
        assert account.current_value == 0.0

    def test_snapshot_is_immutable(self):
        """Test that snapshots cannot be modified once created."""
        snapshot = SavingsSnapshot(
            household_id="home",
            account_id="acc",
            capital=100,
            value=120,
        )
        with pytest.raises(ValidationError):
            snapshot.value = 130

    def test_pending_snapshot_timestamp_reads_as_now(self):
        """Test that a missing server timestamp is treated as now."""
        before = datetime.now()
        snapshot = SavingsSnapshot(household_id="home", account_id="acc", created_at=None)
        assert snapshot.created_at >= before


class TestViewModels:
    """Tests for report view models."""

    def test_month_group_key(self):
        """Test the YYYY-MM key of a month group."""
        assert MonthGroup(year=2024, month=3).key == "2024-03"

    def test_month_group_rejects_invalid_month(self):
        """Test month range validation."""
        with pytest.raises(ValidationError):
            MonthGroup(year=2024, month=13)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_CREATED,
            description="Transaction recorded",
        )
        assert event.event_type == AuditEventType.TRANSACTION_CREATED
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_sheets_row(self):
        """Test conversion to sheets row."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            household_id="home",
            entity_type="transaction",
            entity_id="t1",
            description="Transaction deleted",
            is_user_action=True,
        )
        row = event.to_sheets_row()
        assert len(row) == 12
        assert row[2] == "transaction_deleted"
        assert row[4] == "home"
        assert row[6] == "t1"
        assert row[11] == "True"

    def test_value_only_update_is_its_own_event_type(self):
        """Test that a quick value update is audited as a value update."""
        event = AuditEventBuilder.savings_account_updated(
            household_id="home",
            account_id="acc",
            fields={"current_value": 1800},
        )
        assert event.event_type == AuditEventType.SAVINGS_VALUE_UPDATED

        event = AuditEventBuilder.savings_account_updated(
            household_id="home",
            account_id="acc",
            fields={"name": "Pension", "current_value": 1800},
        )
        assert event.event_type == AuditEventType.SAVINGS_ACCOUNT_UPDATED

    def test_transaction_created_builder(self):
        """Test AuditEventBuilder.transaction_created."""
        correlation_id = uuid4()
        event = AuditEventBuilder.transaction_created(
            household_id="home",
            transaction_id="t1",
            transaction_type="expense",
            amount=400,
            correlation_id=correlation_id,
        )
        assert event.entity_id == "t1"
        assert event.correlation_id == correlation_id
        assert event.is_user_action is True
        assert event.details == {"type": "expense", "amount": 400}

    def test_snapshot_failed_is_a_warning(self):
        """Test that a failed snapshot does not read as an error."""
        event = AuditEventBuilder.snapshot_failed("home", "acc", "quota exceeded")
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "quota exceeded"


class TestMutationModels:
    """Tests for ValidationResult and MutationResult."""

    def test_warnings_do_not_invalidate(self):
        """Test that only error-level issues fail validation."""
        result = ValidationResult(issues=[
            ValidationIssue(field="x", issue_type="odd", message="Odd", severity="warning"),
        ])
        assert result.is_valid
        assert result.error_count == 0

    def test_summary_joins_error_messages(self):
        """Test the one-line error summary."""
        result = ValidationResult(issues=[
            ValidationIssue(field="a", issue_type="missing", message="A is required"),
            ValidationIssue(field="b", issue_type="odd", message="B looks odd", severity="warning"),
            ValidationIssue(field="c", issue_type="missing", message="C is required"),
        ])
        assert result.has_errors
        assert result.error_count == 2
        assert result.summary() == "A is required; C is required"

    def test_mutation_result_constructors(self):
        """Test MutationResult.ok and MutationResult.failed."""
        ok = MutationResult.ok("t1")
        assert ok.success and ok.entity_id == "t1" and ok.message == "Saved"

        failed = MutationResult.failed("Nope")
        assert not failed.success
        assert failed.issues == []
