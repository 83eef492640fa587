"""
Integration tests for the mutation flows and report delivery

Flows run end to end on the in-memory backend with a fixed clock.
"""

import pytest

from household_finance.models import (
    DEFAULT_CATEGORIES,
    AuditEventType,
    TransactionType,
    TransactionUpdate,
)
from household_finance.orchestrator import (
    STORAGE_FAILED_MESSAGE,
    HouseholdFeed,
    SavingsFlow,
    TransactionFlow,
    create_app_components,
)
from household_finance.reports import ReportBuilder
from household_finance.services.storage import (
    InMemoryHouseholdStorage,
    StorageError,
)
from tests.factories import HOUSEHOLD, NOW


class FailingWritesStorage(InMemoryHouseholdStorage):
    """Accepts reads, rejects every transaction write."""

    async def create_transaction(self, transaction):
        raise StorageError("quota exceeded")


class FailingSnapshotStorage(InMemoryHouseholdStorage):
    """Accepts everything except snapshot appends."""

    async def append_snapshot(self, snapshot):
        raise StorageError("snapshot sheet locked")


@pytest.fixture
def feed(storage, audit_logger, clock):
    return HouseholdFeed(
        storage,
        report_builder=ReportBuilder(clock=clock),
        audit_logger=audit_logger,
    )


@pytest.fixture
def tx_flow(storage, audit_logger, feed, clock):
    return TransactionFlow(storage, audit_logger=audit_logger, feed=feed, clock=clock)


@pytest.fixture
def savings_flow(storage, audit_logger, feed, clock):
    return SavingsFlow(storage, audit_logger=audit_logger, feed=feed, clock=clock)


async def event_types(audit_storage):
    return [event.event_type for event in await audit_storage.get_recent_events()]


class TestRecordTransaction:
    """Tests for recording new transactions."""

    @pytest.mark.asyncio
    async def test_expense_defaults_to_other(self, tx_flow, storage):
        result = await tx_flow.record_transaction(HOUSEHOLD, "expense", "400", date="2024-01-10")

        assert result.success
        stored = await storage.get_transaction(result.entity_id)
        assert stored.category == "Other"
        assert stored.amount == 400
        assert stored.created_at == NOW

    @pytest.mark.asyncio
    async def test_deposit_defaults_to_savings_and_keeps_account(self, tx_flow, storage):
        result = await tx_flow.record_transaction(
            HOUSEHOLD, TransactionType.SAVING_DEPOSIT, 100, savings_account_id="acc"
        )

        stored = await storage.get_transaction(result.entity_id)
        assert stored.category == "Savings"
        assert stored.savings_account_id == "acc"
        assert stored.date == NOW

    @pytest.mark.asyncio
    async def test_account_link_dropped_for_income(self, tx_flow, storage):
        result = await tx_flow.record_transaction(
            HOUSEHOLD, "income", 100, category="Salary", savings_account_id="acc"
        )
        stored = await storage.get_transaction(result.entity_id)
        assert stored.savings_account_id is None
        assert stored.category == "Salary"

    @pytest.mark.asyncio
    async def test_deposit_without_account_is_rejected(self, tx_flow, storage, audit_storage):
        result = await tx_flow.record_transaction(HOUSEHOLD, "saving_deposit", 100)

        assert not result.success
        assert result.issues[0].field == "savings_account_id"
        assert await storage.list_transactions(HOUSEHOLD) == []
        assert AuditEventType.VALIDATION_FAILED in await event_types(audit_storage)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["abc", "", 0, "-5"])
    async def test_bad_amount_is_rejected(self, tx_flow, storage, amount):
        result = await tx_flow.record_transaction(HOUSEHOLD, "expense", amount)
        assert not result.success
        assert await storage.list_transactions(HOUSEHOLD) == []

    @pytest.mark.asyncio
    async def test_household_id_is_trimmed(self, tx_flow, storage):
        await tx_flow.record_transaction(f"  {HOUSEHOLD} ", "income", 10)
        assert len(await storage.list_transactions(HOUSEHOLD)) == 1

    @pytest.mark.asyncio
    async def test_storage_failure_is_reported_not_raised(self, audit_logger, audit_storage):
        flow = TransactionFlow(FailingWritesStorage(), audit_logger=audit_logger)
        result = await flow.record_transaction(HOUSEHOLD, "income", 10)

        assert not result.success
        assert result.message == STORAGE_FAILED_MESSAGE
        assert AuditEventType.MUTATION_FAILED in await event_types(audit_storage)


class TestEditAndDelete:
    """Tests for editing and deleting transactions."""

    @pytest.mark.asyncio
    async def test_edit_overwrites_fields(self, tx_flow, storage):
        created = await tx_flow.record_transaction(HOUSEHOLD, "expense", 400, date="2024-01-10")

        result = await tx_flow.edit_transaction(created.entity_id, {
            "amount": "450",
            "type": "expense",
            "category": "Food",
            "description": "Market",
            "date": "2024-01-11",
        })

        assert result.success
        stored = await storage.get_transaction(created.entity_id)
        assert (stored.amount, stored.category, stored.description) == (450, "Food", "Market")
        assert stored.date.day == 11

    @pytest.mark.asyncio
    async def test_edit_rejects_zero_amount(self, tx_flow, storage):
        created = await tx_flow.record_transaction(HOUSEHOLD, "expense", 400)
        result = await tx_flow.edit_transaction(created.entity_id, TransactionUpdate(amount=0))

        assert not result.success
        assert (await storage.get_transaction(created.entity_id)).amount == 400

    @pytest.mark.asyncio
    async def test_edit_with_unknown_type_is_rejected(self, tx_flow, storage):
        created = await tx_flow.record_transaction(HOUSEHOLD, "expense", 400)
        result = await tx_flow.edit_transaction(created.entity_id, {"amount": 5, "type": "refund"})

        assert not result.success
        assert result.issues[0].field == "type"
        assert (await storage.get_transaction(created.entity_id)).amount == 400

    @pytest.mark.asyncio
    async def test_edit_missing_transaction(self, tx_flow):
        result = await tx_flow.edit_transaction("nope", TransactionUpdate(amount=5))
        assert not result.success
        assert result.message == "Transaction not found"

    @pytest.mark.asyncio
    async def test_delete_requires_confirmation(self, tx_flow, storage, audit_storage):
        created = await tx_flow.record_transaction(HOUSEHOLD, "expense", 400)

        result = await tx_flow.delete_transaction(created.entity_id)

        assert not result.success
        assert await storage.get_transaction(created.entity_id) is not None
        assert AuditEventType.DELETE_NOT_CONFIRMED in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_confirmed_delete(self, tx_flow, storage, audit_storage):
        created = await tx_flow.record_transaction(HOUSEHOLD, "expense", 400)

        result = await tx_flow.delete_transaction(created.entity_id, confirmed=True)

        assert result.success
        assert await storage.get_transaction(created.entity_id) is None
        events = await audit_storage.get_events_by_entity("transaction", created.entity_id)
        assert events[-1].event_type == AuditEventType.TRANSACTION_DELETED
        assert events[-1].household_id == HOUSEHOLD

    @pytest.mark.asyncio
    async def test_confirmed_delete_of_missing_transaction(self, tx_flow):
        result = await tx_flow.delete_transaction("nope", confirmed=True)
        assert not result.success


class TestCategories:
    """Tests for default and custom categories."""

    @pytest.mark.asyncio
    async def test_defaults_then_custom_without_duplicates(self, tx_flow):
        await tx_flow.add_category(HOUSEHOLD, "Pets")
        await tx_flow.add_category(HOUSEHOLD, "Food")
        await tx_flow.add_category(HOUSEHOLD, "Pets")

        categories = await tx_flow.available_categories(HOUSEHOLD)
        assert categories == [*DEFAULT_CATEGORIES, "Pets"]

    @pytest.mark.asyncio
    async def test_empty_name_is_rejected(self, tx_flow):
        result = await tx_flow.add_category(HOUSEHOLD, "  ")
        assert not result.success

    @pytest.mark.asyncio
    async def test_categories_without_household(self, tx_flow):
        assert await tx_flow.available_categories("") == list(DEFAULT_CATEGORIES)


class TestSavingsFlow:
    """Tests for savings account mutations and their snapshots."""

    @pytest.mark.asyncio
    async def test_create_account_logs_initial_snapshot(self, savings_flow, storage):
        result = await savings_flow.create_account(HOUSEHOLD, " Holiday ", "1000")

        account = await storage.get_account(result.entity_id)
        assert account.name == "Holiday"
        assert account.current_value == 1000

        snapshots = await storage.list_snapshots(HOUSEHOLD, result.entity_id)
        assert [(s.capital, s.value) for s in snapshots] == [(1000, 1000)]
        assert snapshots[0].created_at == NOW

    @pytest.mark.asyncio
    async def test_create_account_needs_name(self, savings_flow, storage):
        result = await savings_flow.create_account(HOUSEHOLD, "")
        assert not result.success
        assert await storage.list_accounts(HOUSEHOLD) == []

    @pytest.mark.asyncio
    async def test_edit_account_rederives_capital(self, savings_flow, tx_flow, storage):
        created = await savings_flow.create_account(HOUSEHOLD, "Holiday", 1000)
        account_id = created.entity_id
        await tx_flow.record_transaction(
            HOUSEHOLD, "saving_deposit", 200, savings_account_id=account_id
        )
        await tx_flow.record_transaction(
            HOUSEHOLD, "saving_deposit", 300, savings_account_id="someone-else"
        )

        result = await savings_flow.edit_account(account_id, "Trip", "1200", "1500")

        assert result.success
        account = await storage.get_account(account_id)
        assert (account.name, account.starting_amount, account.current_value) == ("Trip", 1200, 1500)
        snapshots = await storage.list_snapshots(HOUSEHOLD, account_id)
        assert len(snapshots) == 2
        assert (snapshots[0].capital, snapshots[0].value) == (1000, 1000)
        assert (snapshots[-1].capital, snapshots[-1].value) == (1400, 1500)

    @pytest.mark.asyncio
    async def test_quick_value_update(self, savings_flow, tx_flow, storage, audit_storage):
        created = await savings_flow.create_account(HOUSEHOLD, "Pension", 1000)
        account_id = created.entity_id
        for amount in (200, 300):
            await tx_flow.record_transaction(
                HOUSEHOLD, "saving_deposit", amount, savings_account_id=account_id
            )

        result = await savings_flow.update_current_value(account_id, "1800")

        assert result.success
        snapshots = await storage.list_snapshots(HOUSEHOLD, account_id)
        assert (snapshots[-1].capital, snapshots[-1].value) == (1500, 1800)
        assert AuditEventType.SAVINGS_VALUE_UPDATED in await event_types(audit_storage)

    @pytest.mark.asyncio
    async def test_non_numeric_value_touches_nothing(self, savings_flow, storage):
        created = await savings_flow.create_account(HOUSEHOLD, "Pension", 1000)

        result = await savings_flow.update_current_value(created.entity_id, "lots")

        assert not result.success
        assert len(await storage.list_snapshots(HOUSEHOLD)) == 1
        assert (await storage.get_account(created.entity_id)).current_value == 1000

    @pytest.mark.asyncio
    async def test_missing_account(self, savings_flow):
        result = await savings_flow.update_current_value("nope", 5)
        assert not result.success
        assert result.message == "Savings account not found"

    @pytest.mark.asyncio
    async def test_failed_snapshot_does_not_fail_the_mutation(self, audit_logger, audit_storage):
        storage = FailingSnapshotStorage()
        flow = SavingsFlow(storage, audit_logger=audit_logger)

        result = await flow.create_account(HOUSEHOLD, "Holiday", 100)

        assert result.success
        assert await storage.get_account(result.entity_id) is not None
        assert AuditEventType.SNAPSHOT_FAILED in await event_types(audit_storage)


class TestHouseholdFeed:
    """Tests for push-style report delivery."""

    @pytest.mark.asyncio
    async def test_subscribers_receive_rebuilt_report(self, tx_flow, feed):
        received = []
        feed.subscribe(HOUSEHOLD, received.append)

        await tx_flow.record_transaction(HOUSEHOLD, "income", 1000, date="2024-01-05")
        await tx_flow.record_transaction(HOUSEHOLD, "expense", 400, date="2024-01-10")

        assert len(received) == 2
        assert received[-1].summary.month.net == 600
        assert received[-1].trend[-1].value == 600

    @pytest.mark.asyncio
    async def test_async_handlers_are_awaited(self, tx_flow, feed):
        received = []

        async def handler(report):
            received.append(report.household_id)

        feed.subscribe(HOUSEHOLD, handler)
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10)
        assert received == [HOUSEHOLD]

    @pytest.mark.asyncio
    async def test_other_households_are_not_notified(self, tx_flow, feed):
        received = []
        feed.subscribe("another-home", received.append)
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10)
        assert received == []

    @pytest.mark.asyncio
    async def test_unsubscribe(self, tx_flow, feed):
        received = []
        unsubscribe = feed.subscribe(HOUSEHOLD, received.append)
        unsubscribe()

        await tx_flow.record_transaction(HOUSEHOLD, "income", 10)
        assert received == []
        assert feed.subscriber_count(HOUSEHOLD) == 0

    @pytest.mark.asyncio
    async def test_failing_handler_does_not_starve_others(self, tx_flow, feed):
        received = []

        def broken(report):
            raise RuntimeError("render failed")

        feed.subscribe(HOUSEHOLD, broken)
        feed.subscribe(HOUSEHOLD, received.append)
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10)
        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_year_filter(self, tx_flow, feed):
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10, date="2023-05-01")
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10, date="2024-01-05")

        feed.set_year_filter(HOUSEHOLD, "2023")
        report = await feed.refresh(HOUSEHOLD)

        assert [group.key for group in report.monthly.groups] == ["2023-05"]
        assert report.monthly.years == [2024, 2023]

    @pytest.mark.asyncio
    async def test_mutation_and_rebuild_share_correlation_id(self, tx_flow, audit_storage):
        result = await tx_flow.record_transaction(HOUSEHOLD, "income", 10)

        created = await audit_storage.get_events_by_entity("transaction", result.entity_id)
        related = await audit_storage.get_events_by_correlation_id(created[0].correlation_id)
        assert {e.event_type for e in related} == {
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.REPORT_REBUILT,
        }


class TestAppComponents:
    """Tests for the component factory."""

    @pytest.mark.asyncio
    async def test_in_memory_components(self):
        tx_flow, savings_flow, feed, sheets_client = create_app_components(
            use_storage=False, clock=lambda: NOW
        )
        assert sheets_client is None

        received = []
        feed.subscribe(HOUSEHOLD, received.append)
        await savings_flow.create_account(HOUSEHOLD, "Holiday", 100)
        await tx_flow.record_transaction(HOUSEHOLD, "income", 10)

        assert received[-1].savings[0].capital == 100
        assert received[-1].summary.all_time.income == 10
