"""
In-Memory Storage Implementation

Dict-backed ledger and audit stores. Used for tests and as the default
store when no persistent backend is configured.

Records are copied on the way in and on the way out, so callers only
ever hold snapshots.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from moneytrack.models.audit import AuditEvent
from moneytrack.models.finance import (
    Account,
    AppSettings,
    Budget,
    BudgetCreate,
    Category,
    RecurringTransaction,
    Transaction,
)
from moneytrack.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Ledger store held in process memory. Insertion order is preserved."""

    def __init__(self):
        self._accounts: dict[str, Account] = {}
        self._transactions: dict[str, Transaction] = {}
        self._categories: dict[str, Category] = {}
        self._budgets: dict[str, Budget] = {}
        self._recurring: dict[str, RecurringTransaction] = {}
        self._settings = AppSettings()

    @staticmethod
    def _revalidate(model, updates: dict):
        """Apply updates through the model's validators."""
        data = model.model_dump()
        data.update(updates)
        if "updated_at" in type(model).model_fields:
            data["updated_at"] = datetime.now()
        return type(model).model_validate(data)

    # -------------------------------------------------------------------------
    # Snapshot reads
    # -------------------------------------------------------------------------

    def list_accounts(self) -> list[Account]:
        return [a.model_copy() for a in self._accounts.values()]

    def list_transactions(self) -> list[Transaction]:
        return [t.model_copy() for t in self._transactions.values()]

    def list_categories(self) -> list[Category]:
        return [c.model_copy() for c in self._categories.values()]

    def list_budgets(self) -> list[Budget]:
        return [b.model_copy() for b in self._budgets.values()]

    def list_recurring_rules(self) -> list[RecurringTransaction]:
        return [r.model_copy() for r in self._recurring.values()]

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def get_account(self, account_id: str) -> Optional[Account]:
        account = self._accounts.get(account_id)
        return account.model_copy() if account else None

    def save_account(self, account: Account) -> Account:
        if account.id in self._accounts:
            raise DuplicateError(f"Account {account.id} already exists")
        self._accounts[account.id] = account.model_copy()
        return account

    def update_account(self, account_id: str, updates: dict) -> Account:
        existing = self._accounts.get(account_id)
        if existing is None:
            raise NotFoundError(f"Account {account_id} not found")
        updated = self._revalidate(existing, updates)
        self._accounts[account_id] = updated
        return updated.model_copy()

    def delete_account(self, account_id: str) -> int:
        if account_id not in self._accounts:
            raise NotFoundError(f"Account {account_id} not found")
        del self._accounts[account_id]

        orphaned = [
            t.id for t in self._transactions.values()
            if t.account_id == account_id or t.to_account_id == account_id
        ]
        for transaction_id in orphaned:
            del self._transactions[transaction_id]
        return len(orphaned)

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        return transaction.model_copy() if transaction else None

    def save_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise DuplicateError(f"Transaction {transaction.id} already exists")
        self._transactions[transaction.id] = transaction.model_copy()
        return transaction

    def update_transaction(self, transaction_id: str, updates: dict) -> Transaction:
        existing = self._transactions.get(transaction_id)
        if existing is None:
            raise NotFoundError(f"Transaction {transaction_id} not found")
        updated = self._revalidate(existing, updates)
        self._transactions[transaction_id] = updated
        return updated.model_copy()

    def delete_transaction(self, transaction_id: str) -> bool:
        return self._transactions.pop(transaction_id, None) is not None

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    def get_category(self, category_id: str) -> Optional[Category]:
        category = self._categories.get(category_id)
        return category.model_copy() if category else None

    def save_category(self, category: Category) -> Category:
        if category.id in self._categories:
            raise DuplicateError(f"Category {category.id} already exists")
        self._categories[category.id] = category.model_copy()
        return category

    def delete_category(self, category_id: str) -> bool:
        category = self._categories.get(category_id)
        if category is None:
            return False
        if category.is_default:
            raise StorageError(f"Default category '{category.name}' cannot be deleted")
        del self._categories[category_id]
        return True

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def upsert_budget(self, data: BudgetCreate) -> tuple[Budget, bool]:
        start_date = data.start_date or datetime.now()
        existing = next(
            (b for b in self._budgets.values() if b.category_id == data.category_id),
            None,
        )

        if existing is not None:
            updated = existing.model_copy(update={
                "amount": data.amount,
                "period": data.period,
                "start_date": start_date,
            })
            self._budgets[existing.id] = updated
            return updated.model_copy(), True

        budget = Budget(
            category_id=data.category_id,
            amount=data.amount,
            period=data.period,
            start_date=start_date,
        )
        self._budgets[budget.id] = budget
        return budget.model_copy(), False

    def delete_budget(self, budget_id: str) -> bool:
        return self._budgets.pop(budget_id, None) is not None

    # -------------------------------------------------------------------------
    # Recurring rules
    # -------------------------------------------------------------------------

    def get_recurring_rule(self, rule_id: str) -> Optional[RecurringTransaction]:
        rule = self._recurring.get(rule_id)
        return rule.model_copy() if rule else None

    def save_recurring_rule(self, rule: RecurringTransaction) -> RecurringTransaction:
        if rule.id in self._recurring:
            raise DuplicateError(f"Recurring rule {rule.id} already exists")
        self._recurring[rule.id] = rule.model_copy()
        return rule

    def update_recurring_rule(self, rule_id: str, updates: dict) -> RecurringTransaction:
        existing = self._recurring.get(rule_id)
        if existing is None:
            raise NotFoundError(f"Recurring rule {rule_id} not found")
        updated = self._revalidate(existing, updates)
        self._recurring[rule_id] = updated
        return updated.model_copy()

    def delete_recurring_rule(self, rule_id: str) -> bool:
        return self._recurring.pop(rule_id, None) is not None

    def apply_recurring_result(
        self,
        new_transactions: list[Transaction],
        updated_rules: list[RecurringTransaction],
    ) -> int:
        # Check everything before touching state so the batch is all-or-nothing
        missing = [r.id for r in updated_rules if r.id not in self._recurring]
        if missing:
            raise NotFoundError(f"Recurring rules not found: {', '.join(missing)}")

        inserted = 0
        for transaction in new_transactions:
            if transaction.id in self._transactions:
                continue
            self._transactions[transaction.id] = transaction.model_copy()
            inserted += 1

        for rule in updated_rules:
            current = self._recurring[rule.id]
            if (
                current.last_processed is not None
                and rule.last_processed is not None
                and rule.last_processed <= current.last_processed
            ):
                continue
            self._recurring[rule.id] = current.model_copy(update={
                "last_processed": rule.last_processed,
                "updated_at": rule.updated_at,
            })

        return inserted

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    def get_settings(self) -> AppSettings:
        return self._settings.model_copy()

    def save_settings(self, settings: AppSettings) -> AppSettings:
        self._settings = settings.model_copy()
        return settings


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        return sorted(events, key=lambda e: e.timestamp)

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        events = [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]
        return sorted(events, key=lambda e: e.timestamp)

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]
