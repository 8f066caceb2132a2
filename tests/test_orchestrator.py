"""
End-to-end tests for the flows against the in-memory store.
"""

import pytest
from datetime import date, datetime
from decimal import Decimal

from moneytrack.config import EngineSettings
from moneytrack.models.audit import AuditEventType
from moneytrack.models.finance import AccountType, CategoryType, TransactionType
from moneytrack.models.reports import TransactionFilters
from moneytrack.orchestrator import (
    RecurringFlow,
    create_app_components,
    initialize_defaults,
)
from moneytrack.services.storage import (
    InMemoryLedgerStorage,
    NotFoundError,
    StorageError,
)
from moneytrack.validation import TransactionRejectedError


NOW = datetime(2024, 3, 15, 10, 0)
TODAY = NOW.date()


@pytest.fixture
def app(audit_store):
    return create_app_components(audit_storage=audit_store)


def category_named(app, name):
    return next(c for c in app.storage.list_categories() if c.name == name)


def account_named(app, name):
    return next(a for a in app.storage.list_accounts() if a.name == name)


def event_types(audit_store):
    return [e.event_type for e in reversed(audit_store.get_recent_events(limit=1000))]


class TestDefaults:
    """Tests for seeding an empty ledger."""

    def test_seeded_on_creation(self, app, audit_store):
        """Test default categories, accounts and settings."""
        categories = app.storage.list_categories()
        assert len(categories) == 18
        assert all(c.is_default for c in categories)
        assert len(app.categories.list_by_type(CategoryType.INCOME)) == 6

        assert [a.name for a in app.storage.list_accounts()] == ["Tunai", "Bank", "Kartu"]
        assert account_named(app, "Kartu").is_liability
        assert not account_named(app, "Tunai").is_liability
        assert AuditEventType.DEFAULTS_INITIALIZED in event_types(audit_store)

    def test_second_seed_is_noop(self, app):
        """Test that seeding a populated ledger changes nothing."""
        assert initialize_defaults(app.storage) is False
        assert len(app.storage.list_categories()) == 18

    def test_unseeded_store(self):
        """Test that seeding can be skipped."""
        app = create_app_components(seed_defaults=False)
        assert app.storage.list_categories() == []


class TestAccounts:
    """Tests for account creation and removal."""

    def test_positive_initial_balance(self, app):
        """Test that an opening balance is booked as income."""
        account = app.accounts.create_account({
            "name": "Savings", "type": AccountType.BANK, "initial_balance": Decimal("1000000"),
        })
        assert app.accounts.get_balance(account.id) == Decimal("1000000")

        opening = app.storage.list_transactions()[0]
        assert opening.type == TransactionType.INCOME
        assert opening.note == "Initial balance"
        assert opening.category_id == category_named(app, "Other Income").id

    def test_negative_initial_balance(self, app):
        """Test that a negative opening balance is booked as expense."""
        account = app.accounts.create_account({
            "name": "Card", "type": AccountType.CREDIT_CARD, "initial_balance": Decimal("-200"),
        })
        assert account.is_liability
        assert app.accounts.get_balance(account.id) == Decimal("-200")
        assert app.storage.list_transactions()[0].category_id == category_named(app, "Other").id

    def test_zero_initial_balance_books_nothing(self, app):
        """Test that a zero opening balance creates no transaction."""
        app.accounts.create_account({"name": "Wallet", "type": AccountType.EWALLET})
        assert app.storage.list_transactions() == []

    def test_opening_category_required(self):
        """Test that a missing opening category is reported before anything is saved."""
        app = create_app_components(seed_defaults=False)
        with pytest.raises(NotFoundError):
            app.accounts.create_account({
                "name": "Bank", "type": AccountType.BANK, "initial_balance": Decimal("5"),
            })
        assert app.storage.list_accounts() == []

    def test_explicit_liability_wins(self, app):
        """Test that an explicit is_liability overrides the type default."""
        account = app.accounts.create_account({
            "name": "Friend loan", "type": AccountType.OTHER, "is_liability": True,
        })
        assert account.is_liability

    def test_delete_cascades_and_net_worth(self, app, audit_store):
        """Test cascade delete and net worth around it."""
        cash = account_named(app, "Tunai")
        card = account_named(app, "Kartu")
        food = category_named(app, "Food & Dining")
        salary = category_named(app, "Salary")

        app.transactions.create_transaction({
            "type": "income", "amount": "5000", "account_id": cash.id,
            "category_id": salary.id, "date": NOW,
        }, today=TODAY)
        app.transactions.create_transaction({
            "type": "expense", "amount": "1200", "account_id": card.id,
            "category_id": food.id, "date": NOW,
        }, today=TODAY)

        worth = app.accounts.get_net_worth()
        assert worth.total_assets == Decimal("5000")
        assert worth.total_liabilities == Decimal("1200")
        assert worth.net_worth == Decimal("3800")

        assert app.accounts.delete_account(card.id) == 1
        assert app.accounts.get_net_worth().net_worth == Decimal("5000")
        assert AuditEventType.ACCOUNT_DELETED in event_types(audit_store)


class TestTransactions:
    """Tests for validated transaction entry."""

    def test_rejected_transaction_is_audited(self, app, audit_store):
        """Test that rejections raise, are audited and leave the ledger alone."""
        income_category = category_named(app, "Salary")
        with pytest.raises(TransactionRejectedError, match="is an income category"):
            app.transactions.create_transaction({
                "type": "expense", "amount": "10",
                "account_id": account_named(app, "Tunai").id,
                "category_id": income_category.id,
            }, today=TODAY)

        assert app.storage.list_transactions() == []
        assert event_types(audit_store)[-1] == AuditEventType.TRANSACTION_REJECTED

    def test_transfer_and_listing(self, app):
        """Test a transfer moves value and shows up for either account."""
        cash = account_named(app, "Tunai")
        bank = account_named(app, "Bank")
        app.transactions.create_transaction({
            "type": "transfer", "amount": "300", "account_id": bank.id,
            "to_account_id": cash.id, "date": NOW,
        }, today=TODAY)

        balances = app.accounts.get_all_balances()
        assert balances[cash.id] == Decimal("300")
        assert balances[bank.id] == Decimal("-300")
        assert len(app.transactions.list_transactions(TransactionFilters(account_id=cash.id))) == 1
        assert len(app.transactions.list_grouped_by_date()) == 1

    def test_update_and_delete(self, app, audit_store):
        """Test partial updates are re-validated and deletes are audited."""
        txn = app.transactions.create_transaction({
            "type": "expense", "amount": "10",
            "account_id": account_named(app, "Tunai").id,
            "category_id": category_named(app, "Shopping").id,
            "date": NOW,
        }, today=TODAY)

        updated = app.transactions.update_transaction(txn.id, {"note": "shoes"})
        assert updated.note == "shoes"
        with pytest.raises(ValueError):
            app.transactions.update_transaction(txn.id, {"to_account_id": "other"})

        assert app.transactions.delete_transaction(txn.id) is True
        assert app.transactions.delete_transaction(txn.id) is False
        assert event_types(audit_store).count(AuditEventType.TRANSACTION_DELETED) == 1

    @pytest.mark.parametrize("field,bad_value", [
        ("category_id", "income"),
        ("account_id", "ghost-account"),
        ("category_id", "ghost-category"),
    ])
    def test_update_runs_reference_checks(self, app, audit_store, field, bad_value):
        """Test that an edit cannot point a transaction at a bad account or category."""
        food = category_named(app, "Food & Dining")
        txn = app.transactions.create_transaction({
            "type": "expense", "amount": "75",
            "account_id": account_named(app, "Tunai").id,
            "category_id": food.id, "date": NOW,
        }, today=TODAY)
        if bad_value == "income":
            bad_value = category_named(app, "Salary").id

        with pytest.raises(TransactionRejectedError):
            app.transactions.update_transaction(txn.id, {field: bad_value}, today=TODAY)

        stored = app.storage.get_transaction(txn.id)
        assert stored.category_id == food.id
        assert stored.account_id == txn.account_id
        assert event_types(audit_store)[-1] == AuditEventType.TRANSACTION_REJECTED
        assert AuditEventType.TRANSACTION_UPDATED not in event_types(audit_store)

    def test_update_can_switch_polarity_consistently(self, app):
        """Test that changing type and category together is accepted."""
        txn = app.transactions.create_transaction({
            "type": "expense", "amount": "75",
            "account_id": account_named(app, "Tunai").id,
            "category_id": category_named(app, "Food & Dining").id, "date": NOW,
        }, today=TODAY)
        updated = app.transactions.update_transaction(txn.id, {
            "type": TransactionType.INCOME,
            "category_id": category_named(app, "Refunds").id,
        }, today=TODAY)
        assert updated.type == TransactionType.INCOME

    def test_update_unknown_transaction(self, app):
        """Test that editing a missing transaction raises NotFoundError."""
        with pytest.raises(NotFoundError):
            app.transactions.update_transaction("ghost", {"note": "x"})


class TestCategoriesAndBudgets:
    """Tests for categories and budgets."""

    def test_custom_category_lifecycle(self, app):
        """Test that custom categories can be deleted and defaults cannot."""
        custom = app.categories.create_category({"name": "Pets", "type": "expense"})
        assert app.categories.delete_category(custom.id) is True
        with pytest.raises(StorageError):
            app.categories.delete_category(category_named(app, "Other").id)

    def test_budget_needs_existing_category(self, app):
        """Test that a budget on an unknown category is refused and not stored."""
        with pytest.raises(NotFoundError):
            app.budgets.save_budget({"category_id": "nonexistent", "amount": "100"})
        assert app.storage.list_budgets() == []

    def test_budget_needs_expense_category(self, app):
        """Test that income categories cannot carry a budget."""
        salary = category_named(app, "Salary")
        with pytest.raises(ValueError, match="expense categories"):
            app.budgets.save_budget({"category_id": salary.id, "amount": "100"})
        assert app.storage.list_budgets() == []

    def test_budget_replace_and_progress(self, app, audit_store):
        """Test one budget per category and its progress flags."""
        food = category_named(app, "Food & Dining")
        first = app.budgets.save_budget({"category_id": food.id, "amount": "1000"})
        second = app.budgets.save_budget({"category_id": food.id, "amount": "500"})
        assert first.id == second.id

        app.transactions.create_transaction({
            "type": "expense", "amount": "450",
            "account_id": account_named(app, "Tunai").id,
            "category_id": food.id, "date": NOW,
        }, today=TODAY)

        progress = app.budgets.get_progress(now=NOW)
        assert len(progress) == 1
        assert progress[0].spent == Decimal("450")
        assert progress[0].percentage == 90.0
        assert app.budgets.get_near_limit(now=NOW) == progress
        assert app.budgets.get_over_budget(now=NOW) == []

        types = event_types(audit_store)
        assert AuditEventType.BUDGET_CREATED in types
        assert AuditEventType.BUDGET_REPLACED in types


class TestRecurring:
    """Tests for recurring rules end-to-end."""

    @pytest.fixture
    def rule(self, app):
        return app.recurring.create_rule({
            "type": "expense",
            "amount": "150000",
            "account_id": account_named(app, "Bank").id,
            "category_id": category_named(app, "Bills & Utilities").id,
            "frequency": "monthly",
            "start_date": date(2024, 1, 15),
            "note": "Internet",
        }, today=date(2024, 4, 15))

    def test_process_due_is_idempotent(self, app, audit_store, rule):
        """Test that a second run on the same day adds nothing."""
        first = app.recurring.process_due(today=date(2024, 4, 15))
        second = app.recurring.process_due(today=date(2024, 4, 15))

        assert first.generated_count == 4
        assert second.generated_count == 0
        assert len(app.storage.list_transactions()) == 4
        assert app.storage.get_recurring_rule(rule.id).last_processed == date(2024, 4, 15)
        assert app.accounts.get_balance(rule.account_id) == Decimal("-600000")
        assert event_types(audit_store).count(AuditEventType.RECURRING_PROCESSED) == 2

    def test_disabled_rule_skipped(self, app, rule):
        """Test that toggling a rule off stops processing."""
        assert app.recurring.toggle_rule(rule.id).is_enabled is False
        assert app.recurring.list_disabled()[0].id == rule.id
        assert app.recurring.process_due(today=date(2024, 4, 15)).generated_count == 0

        with pytest.raises(NotFoundError):
            app.recurring.toggle_rule("ghost")

    def test_upcoming_and_estimate(self, app, rule):
        """Test the preview and the estimator through the flow."""
        assert app.recurring.get_upcoming(rule.id, 2) == [date(2024, 1, 15), date(2024, 2, 15)]
        assert app.recurring.get_upcoming(rule.id, 2, today=date(2024, 4, 20)) == [
            date(2024, 5, 15), date(2024, 6, 15),
        ]
        assert app.recurring.estimate_total(
            date(2024, 1, 1), date(2024, 12, 31), TransactionType.EXPENSE
        ) == Decimal("1800000")

    def test_capped_backlog_is_audited(self, app, audit_store, rule):
        """Test that a capped run is audited per rule."""
        flow = RecurringFlow(
            app.storage,
            audit_logger=app.audit_logger,
            engine_settings=EngineSettings(max_recurring_occurrences=2),
        )
        result = flow.process_due(today=date(2024, 4, 15))

        assert result.capped_rule_ids == [rule.id]
        assert app.storage.get_recurring_rule(rule.id).last_processed == date(2024, 2, 15)
        assert AuditEventType.RECURRING_BACKLOG_CAPPED in event_types(audit_store)

    def test_write_failure_is_reported(self, app, audit_store, rule):
        """Test that a failed batch write is audited and re-raised."""

        class FailingStorage(InMemoryLedgerStorage):
            def apply_recurring_result(self, new_transactions, updated_rules):
                raise StorageError("write failed")

        storage = FailingStorage()
        storage.save_recurring_rule(rule)
        flow = RecurringFlow(storage, audit_logger=app.audit_logger)

        with pytest.raises(StorageError):
            flow.process_due(today=date(2024, 4, 15))
        assert event_types(audit_store)[-1] == AuditEventType.SYSTEM_ERROR


class TestStatisticsAndSettings:
    """Tests for reports and settings."""

    def test_statistics(self, app):
        """Test summary, breakdown and insights through the flow."""
        cash = account_named(app, "Tunai")
        food = category_named(app, "Food & Dining")
        salary = category_named(app, "Salary")
        for payload in (
            {"type": "income", "amount": "1000", "category_id": salary.id},
            {"type": "expense", "amount": "250", "category_id": food.id},
        ):
            app.transactions.create_transaction(
                {**payload, "account_id": cash.id, "date": NOW}, today=TODAY,
            )

        summary = app.statistics.get_financial_summary(now=NOW)
        assert summary.month_income == Decimal("1000")
        assert summary.month_expense == Decimal("250")

        top = app.statistics.get_top_categories(date(2024, 3, 1), date(2024, 3, 31))
        assert [b.category.name for b in top] == ["Food & Dining"]
        assert app.statistics.get_income_breakdown(date(2024, 3, 1), date(2024, 3, 31))[0].percentage == 100.0

        assert len(app.statistics.get_monthly_trend(months=3, now=NOW)) == 3
        assert len(app.statistics.get_daily_trend(date(2024, 3, 1), date(2024, 3, 7))) == 7
        assert "You're saving 75% of your income this month 💪" in app.statistics.get_insights(now=NOW)

    def test_update_settings(self, app):
        """Test settings merge and validation."""
        settings = app.settings.update_settings({"currency": "usd", "language": "en"})
        assert settings.currency == "USD"
        assert app.settings.get_settings().language.value == "en"

        with pytest.raises(ValueError):
            app.settings.update_settings({"currency": "dollars"})
        assert app.settings.get_settings().currency == "USD"


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
