"""
Main Orchestrator for MoneyTrack

This module ties together all the components and defines the
end-to-end flows for:
1. Accounts (create with opening balance, update, delete with cascade)
2. Transactions (validate → save, filter, group)
3. Categories and budgets
4. Recurring rules (create, toggle, process due occurrences, preview)
5. Statistics and insights
6. App settings

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing enters the ledger without passing validation
- Calculations only ever see a snapshot read from the store
- Processing results are written back as one batch
- Every change is audited

The calculation core stays pure; this is the "caller" that reads,
computes and persists.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union
from uuid import UUID

import structlog

from moneytrack.audit import AuditLogger, create_correlation_id
from moneytrack.config import EngineSettings, PreferenceSettings, get_settings
from moneytrack.constants import (
    DEFAULT_ACCOUNTS,
    INITIAL_BALANCE_EXPENSE_CATEGORY,
    INITIAL_BALANCE_INCOME_CATEGORY,
    INITIAL_BALANCE_NOTE,
    default_category_specs,
    is_liability_default,
)
from moneytrack.finance import analytics, balances, insights, periods, recurrence
from moneytrack.models.audit import AuditEventBuilder
from moneytrack.models.finance import (
    Account,
    AccountCreate,
    AppSettings,
    Budget,
    BudgetCreate,
    Category,
    CategoryCreate,
    CategoryType,
    Language,
    RecurringTransaction,
    RecurringTransactionCreate,
    Transaction,
    TransactionCreate,
    TransactionType,
)
from moneytrack.models.reports import (
    BudgetProgress,
    CategoryBreakdown,
    FinancialSummary,
    GroupedTransactions,
    NetWorth,
    PeriodSummary,
    RecurringProcessResult,
    TransactionFilters,
    TrendDataPoint,
)
from moneytrack.services.storage import (
    AuditStorageInterface,
    InMemoryLedgerStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)
from moneytrack.validation import LedgerValidator, TransactionRejectedError


logger = structlog.get_logger(__name__)


class _Flow:
    """Shared plumbing: a store, an optional audit logger."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger

    def _audit(self, event) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)


class AccountFlow(_Flow):
    """Account lifecycle. Balances are always derived, never stored."""

    def create_account(
        self,
        data: Union[AccountCreate, dict],
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        """
        Create an account, booking a non-zero initial balance as an
        opening income (positive) or expense (negative) transaction.
        """
        if isinstance(data, dict):
            data = AccountCreate.model_validate(data)

        opening_category = None
        if data.initial_balance != 0:
            wanted_type, wanted_name = (
                (CategoryType.INCOME, INITIAL_BALANCE_INCOME_CATEGORY)
                if data.initial_balance > 0
                else (CategoryType.EXPENSE, INITIAL_BALANCE_EXPENSE_CATEGORY)
            )
            opening_category = next(
                (
                    c for c in self._storage.list_categories()
                    if c.type == wanted_type and c.name == wanted_name
                ),
                None,
            )
            if opening_category is None:
                raise NotFoundError(
                    f"Category '{wanted_name}' is required to book an initial balance"
                )

        is_liability = data.is_liability
        if is_liability is None:
            is_liability = is_liability_default(data.type)

        account = Account(
            name=data.name,
            type=data.type,
            is_liability=is_liability,
            currency=data.currency,
            icon=data.icon,
            color=data.color,
        )
        self._storage.save_account(account)
        self._audit(AuditEventBuilder.account_created(
            account_id=account.id,
            name=account.name,
            is_liability=account.is_liability,
            correlation_id=correlation_id,
        ))

        if opening_category is not None:
            opening = Transaction(
                type=(
                    TransactionType.INCOME
                    if data.initial_balance > 0
                    else TransactionType.EXPENSE
                ),
                amount=abs(data.initial_balance),
                account_id=account.id,
                category_id=opening_category.id,
                note=INITIAL_BALANCE_NOTE,
            )
            self._storage.save_transaction(opening)
            self._audit(AuditEventBuilder.transaction_created(
                transaction_id=opening.id,
                transaction_type=opening.type.value,
                amount=str(opening.amount),
                correlation_id=correlation_id,
            ))

        return account

    def update_account(
        self,
        account_id: str,
        updates: dict,
        correlation_id: Optional[UUID] = None,
    ) -> Account:
        account = self._storage.update_account(account_id, updates)
        self._audit(AuditEventBuilder.account_updated(
            account_id=account_id,
            fields=sorted(updates),
            correlation_id=correlation_id,
        ))
        return account

    def delete_account(
        self,
        account_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """Delete an account and its transactions. Returns how many transactions went with it."""
        removed = self._storage.delete_account(account_id)
        self._audit(AuditEventBuilder.account_deleted(
            account_id=account_id,
            removed_transactions=removed,
            correlation_id=correlation_id,
        ))
        return removed

    def get_balance(self, account_id: str) -> Decimal:
        return balances.calculate_account_balance(
            account_id, self._storage.list_transactions()
        )

    def get_all_balances(self) -> dict[str, Decimal]:
        return balances.calculate_all_balances(
            self._storage.list_accounts(), self._storage.list_transactions()
        )

    def get_net_worth(self) -> NetWorth:
        return balances.calculate_net_worth(
            self._storage.list_accounts(), self._storage.list_transactions()
        )


class TransactionFlow(_Flow):
    """
    Validated entry of transactions plus list views.

    Flow:
    1. Validate → schema, then references against the ledger
    2. Reject → audit the issues and raise TransactionRejectedError
    3. Save → persist and audit
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        super().__init__(storage, audit_logger)
        self._validator = validator or LedgerValidator(storage)

    def create_transaction(
        self,
        data: Union[TransactionCreate, dict],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        parsed, result = self._validator.validate_transaction(data, today=today)

        if not result.is_valid:
            self._audit(AuditEventBuilder.transaction_rejected(
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            ))
            raise TransactionRejectedError(result)

        transaction = self._storage.save_transaction(parsed.to_transaction())
        self._audit(AuditEventBuilder.transaction_created(
            transaction_id=transaction.id,
            transaction_type=transaction.type.value,
            amount=str(transaction.amount),
            correlation_id=correlation_id,
        ))
        return transaction

    def update_transaction(
        self,
        transaction_id: str,
        updates: dict,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Partial update. The merged record goes through the same
        validation as a new transaction before anything is written.
        """
        existing = self._storage.get_transaction(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")

        merged = existing.model_dump(include=set(TransactionCreate.model_fields))
        merged.update(updates)
        _, result = self._validator.validate_transaction(merged, today=today)

        if not result.is_valid:
            self._audit(AuditEventBuilder.transaction_rejected(
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            ))
            raise TransactionRejectedError(result)

        transaction = self._storage.update_transaction(transaction_id, updates)
        self._audit(AuditEventBuilder.transaction_updated(
            transaction_id=transaction_id,
            fields=sorted(updates),
            correlation_id=correlation_id,
        ))
        return transaction

    def delete_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        deleted = self._storage.delete_transaction(transaction_id)
        if deleted:
            self._audit(AuditEventBuilder.transaction_deleted(
                transaction_id=transaction_id,
                correlation_id=correlation_id,
            ))
        return deleted

    def list_transactions(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[Transaction]:
        """Newest first."""
        return analytics.filter_transactions(
            self._storage.list_transactions(), filters or TransactionFilters()
        )

    def list_grouped_by_date(
        self,
        filters: Optional[TransactionFilters] = None,
    ) -> list[GroupedTransactions]:
        return analytics.group_transactions_by_date(self.list_transactions(filters))


class CategoryFlow(_Flow):

    def create_category(
        self,
        data: Union[CategoryCreate, dict],
        correlation_id: Optional[UUID] = None,
    ) -> Category:
        if isinstance(data, dict):
            data = CategoryCreate.model_validate(data)
        category = self._storage.save_category(Category(**data.model_dump()))
        self._audit(AuditEventBuilder.category_created(
            category_id=category.id,
            name=category.name,
            category_type=category.type.value,
            correlation_id=correlation_id,
        ))
        return category

    def delete_category(
        self,
        category_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        """Raises StorageError for default categories."""
        deleted = self._storage.delete_category(category_id)
        if deleted:
            self._audit(AuditEventBuilder.category_deleted(
                category_id=category_id,
                correlation_id=correlation_id,
            ))
        return deleted

    def list_by_type(self, category_type: CategoryType) -> list[Category]:
        return [c for c in self._storage.list_categories() if c.type == category_type]


class BudgetFlow(_Flow):
    """One budget per category; progress is always for the current period."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        engine_settings: Optional[EngineSettings] = None,
    ):
        super().__init__(storage, audit_logger)
        self._settings = engine_settings or get_settings().engine

    def save_budget(
        self,
        data: Union[BudgetCreate, dict],
        correlation_id: Optional[UUID] = None,
    ) -> Budget:
        """
        Create the category's budget, or replace its amount and period.

        Raises NotFoundError for an unknown category and ValueError for
        a category that is not an expense category.
        """
        if isinstance(data, dict):
            data = BudgetCreate.model_validate(data)

        category = self._storage.get_category(data.category_id)
        if category is None:
            raise NotFoundError(f"Category {data.category_id} not found")
        if category.type != CategoryType.EXPENSE:
            raise ValueError(
                f"Budgets apply to expense categories; '{category.name}' is {category.type.value}"
            )

        budget, replaced = self._storage.upsert_budget(data)
        self._audit(AuditEventBuilder.budget_saved(
            budget_id=budget.id,
            category_id=budget.category_id,
            amount=str(budget.amount),
            replaced=replaced,
            correlation_id=correlation_id,
        ))
        return budget

    def delete_budget(
        self,
        budget_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        deleted = self._storage.delete_budget(budget_id)
        if deleted:
            self._audit(AuditEventBuilder.budget_deleted(
                budget_id=budget_id,
                correlation_id=correlation_id,
            ))
        return deleted

    def get_progress(self, now: Optional[datetime] = None) -> list[BudgetProgress]:
        return analytics.all_budget_progress(
            self._storage.list_budgets(),
            self._storage.list_categories(),
            self._storage.list_transactions(),
            now=now,
            near_limit_percentage=self._settings.near_limit_percentage,
        )

    def get_over_budget(self, now: Optional[datetime] = None) -> list[BudgetProgress]:
        return [p for p in self.get_progress(now) if p.is_over_budget]

    def get_near_limit(self, now: Optional[datetime] = None) -> list[BudgetProgress]:
        return [p for p in self.get_progress(now) if p.is_near_limit]


class RecurringFlow(_Flow):
    """
    Recurring rule lifecycle and processing.

    process_due must not run concurrently against the same store;
    the batch write makes a crashed run safe to repeat.
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        validator: Optional[LedgerValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
        engine_settings: Optional[EngineSettings] = None,
    ):
        super().__init__(storage, audit_logger)
        self._validator = validator or LedgerValidator(storage)
        self._settings = engine_settings or get_settings().engine

    def create_rule(
        self,
        data: Union[RecurringTransactionCreate, dict],
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringTransaction:
        parsed, result = self._validator.validate_recurring_rule(data, today=today)

        if not result.is_valid:
            self._audit(AuditEventBuilder.transaction_rejected(
                issues=[issue.model_dump() for issue in result.issues],
                correlation_id=correlation_id,
            ))
            raise TransactionRejectedError(result)

        rule = self._storage.save_recurring_rule(parsed.to_rule())
        self._audit(AuditEventBuilder.recurring_created(
            rule_id=rule.id,
            frequency=rule.frequency.value,
            start_date=rule.start_date,
            correlation_id=correlation_id,
        ))
        return rule

    def toggle_rule(
        self,
        rule_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringTransaction:
        """Flip is_enabled. The watermark is left untouched."""
        rule = self._storage.get_recurring_rule(rule_id)
        if rule is None:
            raise NotFoundError(f"Recurring rule {rule_id} not found")
        updated = self._storage.update_recurring_rule(
            rule_id, {"is_enabled": not rule.is_enabled}
        )
        self._audit(AuditEventBuilder.recurring_toggled(
            rule_id=rule_id,
            is_enabled=updated.is_enabled,
            correlation_id=correlation_id,
        ))
        return updated

    def delete_rule(
        self,
        rule_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> bool:
        deleted = self._storage.delete_recurring_rule(rule_id)
        if deleted:
            self._audit(AuditEventBuilder.recurring_deleted(
                rule_id=rule_id,
                correlation_id=correlation_id,
            ))
        return deleted

    def list_enabled(self) -> list[RecurringTransaction]:
        return [r for r in self._storage.list_recurring_rules() if r.is_enabled]

    def list_disabled(self) -> list[RecurringTransaction]:
        return [r for r in self._storage.list_recurring_rules() if not r.is_enabled]

    def process_due(
        self,
        today: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> RecurringProcessResult:
        """
        Materialize every due occurrence up to today and persist the
        transactions together with the advanced watermarks.
        """
        correlation_id = correlation_id or create_correlation_id()
        today = today or date.today()
        cap = self._settings.max_recurring_occurrences

        result = recurrence.process_recurring(
            self._storage.list_recurring_rules(), today, max_occurrences=cap
        )

        inserted = 0
        if result.updated_rules:
            try:
                inserted = self._storage.apply_recurring_result(
                    result.new_transactions, result.updated_rules
                )
            except StorageError as e:
                if self._audit_logger:
                    self._audit_logger.log_error(
                        error_type="recurring_write_failed",
                        error_message=str(e),
                        details={"processed_on": today.isoformat()},
                        correlation_id=correlation_id,
                    )
                raise

        if inserted != result.generated_count:
            logger.warning(
                "recurring_duplicates_skipped",
                generated=result.generated_count,
                inserted=inserted,
            )

        self._audit(AuditEventBuilder.recurring_processed(
            processed_on=today,
            generated=result.generated_count,
            inserted=inserted,
            rules_advanced=len(result.updated_rules),
            correlation_id=correlation_id,
        ))
        for rule_id in result.capped_rule_ids:
            self._audit(AuditEventBuilder.recurring_backlog_capped(
                rule_id=rule_id,
                cap=cap,
                correlation_id=correlation_id,
            ))

        return result

    def get_upcoming(
        self,
        rule_id: str,
        count: Optional[int] = None,
        today: Optional[date] = None,
    ) -> list[date]:
        rule = self._storage.get_recurring_rule(rule_id)
        if rule is None:
            raise NotFoundError(f"Recurring rule {rule_id} not found")
        return recurrence.upcoming_occurrences(
            rule,
            count if count is not None else self._settings.upcoming_occurrences_count,
            today=today,
        )

    def estimate_total(
        self,
        start: date,
        end: date,
        type_filter: Optional[TransactionType] = None,
    ) -> Decimal:
        return recurrence.estimate_recurring_total(
            self._storage.list_recurring_rules(), start, end, type_filter
        )


class StatisticsFlow(_Flow):
    """Read-only reports over the current ledger snapshot."""

    def __init__(
        self,
        storage: LedgerStorageInterface,
        engine_settings: Optional[EngineSettings] = None,
    ):
        super().__init__(storage)
        self._settings = engine_settings or get_settings().engine

    def get_financial_summary(self, now: Optional[datetime] = None) -> FinancialSummary:
        return analytics.financial_summary(
            self._storage.list_accounts(), self._storage.list_transactions(), now
        )

    def get_period_summary(self, start: date, end: date) -> PeriodSummary:
        return analytics.calculate_period_summary(
            self._storage.list_transactions(), start, end
        )

    def get_week_summary(self, now: Optional[datetime] = None) -> PeriodSummary:
        return analytics.week_summary(self._storage.list_transactions(), now)

    def get_month_summary(self, now: Optional[datetime] = None) -> PeriodSummary:
        return analytics.month_summary(self._storage.list_transactions(), now)

    def get_expense_breakdown(self, start: date, end: date) -> list[CategoryBreakdown]:
        in_range = periods.transactions_in_range(
            self._storage.list_transactions(), start, end
        )
        return analytics.expense_breakdown(in_range, self._storage.list_categories())

    def get_income_breakdown(self, start: date, end: date) -> list[CategoryBreakdown]:
        in_range = periods.transactions_in_range(
            self._storage.list_transactions(), start, end
        )
        return analytics.income_breakdown(in_range, self._storage.list_categories())

    def get_top_categories(
        self,
        start: date,
        end: date,
        limit: Optional[int] = None,
    ) -> list[CategoryBreakdown]:
        limit = limit if limit is not None else self._settings.top_categories_limit
        return self.get_expense_breakdown(start, end)[:max(0, limit)]

    def get_daily_trend(self, start: date, end: date) -> list[TrendDataPoint]:
        return analytics.daily_trend(self._storage.list_transactions(), start, end)

    def get_monthly_trend(
        self,
        months: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> list[TrendDataPoint]:
        return analytics.recent_monthly_trend(
            self._storage.list_transactions(),
            months if months is not None else self._settings.monthly_trend_months,
            now,
        )

    def get_insights(self, now: Optional[datetime] = None) -> list[str]:
        return insights.generate_monthly_insights(
            self._storage.list_transactions(),
            self._storage.list_categories(),
            now=now,
            currency=self._storage.get_settings().currency,
        )


class SettingsFlow(_Flow):

    def get_settings(self) -> AppSettings:
        return self._storage.get_settings()

    def update_settings(
        self,
        updates: dict,
        correlation_id: Optional[UUID] = None,
    ) -> AppSettings:
        current = self._storage.get_settings()
        merged = AppSettings.model_validate({**current.model_dump(), **updates})
        saved = self._storage.save_settings(merged)
        self._audit(AuditEventBuilder.settings_updated(
            fields=sorted(updates),
            correlation_id=correlation_id,
        ))
        return saved


def initialize_defaults(
    storage: LedgerStorageInterface,
    audit_logger: Optional[AuditLogger] = None,
    preferences: Optional[PreferenceSettings] = None,
) -> bool:
    """
    Seed default categories, accounts and the preferred currency and
    language into an empty ledger.

    Returns False (and changes nothing) when categories already exist.
    """
    if storage.list_categories():
        return False

    preferences = preferences or get_settings().preferences
    app_settings = storage.get_settings().model_copy(update={
        "currency": preferences.default_currency,
        "language": Language(preferences.default_language),
    })
    storage.save_settings(app_settings)
    currency = app_settings.currency
    specs = default_category_specs()
    for spec in specs:
        storage.save_category(Category(**spec))

    for spec in DEFAULT_ACCOUNTS:
        storage.save_account(Account(
            **spec,
            is_liability=is_liability_default(spec["type"]),
            currency=currency,
        ))

    if audit_logger:
        audit_logger.log(AuditEventBuilder.defaults_initialized(
            categories=len(specs),
            accounts=len(DEFAULT_ACCOUNTS),
        ))
    return True


@dataclass
class AppComponents:
    """Every flow wired to one store and one audit logger."""
    storage: LedgerStorageInterface
    audit_logger: AuditLogger
    accounts: AccountFlow
    transactions: TransactionFlow
    categories: CategoryFlow
    budgets: BudgetFlow
    recurring: RecurringFlow
    statistics: StatisticsFlow
    settings: SettingsFlow


def create_app_components(
    storage: Optional[LedgerStorageInterface] = None,
    audit_storage: Optional[AuditStorageInterface] = None,
    seed_defaults: bool = True,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Ledger store. Defaults to a fresh in-memory store.
        audit_storage: Audit store. If None, audit events are only logged.
        seed_defaults: Seed default categories and accounts into an empty store.
    """
    storage = storage or InMemoryLedgerStorage()
    audit_logger = AuditLogger(audit_storage)
    engine_settings = get_settings().engine
    validator = LedgerValidator(
        storage,
        future_date_tolerance_days=engine_settings.future_date_tolerance_days,
    )

    if seed_defaults:
        initialize_defaults(storage, audit_logger)

    return AppComponents(
        storage=storage,
        audit_logger=audit_logger,
        accounts=AccountFlow(storage, audit_logger),
        transactions=TransactionFlow(storage, validator, audit_logger),
        categories=CategoryFlow(storage, audit_logger),
        budgets=BudgetFlow(storage, audit_logger, engine_settings),
        recurring=RecurringFlow(storage, validator, audit_logger, engine_settings),
        statistics=StatisticsFlow(storage, engine_settings),
        settings=SettingsFlow(storage, audit_logger),
    )
