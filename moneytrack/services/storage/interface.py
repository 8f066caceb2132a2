"""
Abstract Storage Interface

DESIGN DECISION: The ledger lives behind an explicit store object that
callers pass around. Nothing in the calculation core reaches into
module-level state; it receives snapshots read from a store and returns
results the caller writes back.

This allows us to:
1. Use the in-memory store for tests and single-process use
2. Back the same interface with a file or an embedded database later
3. Keep every calculation a pure function of its inputs

All operations are synchronous. Callers serialize writes; a store
is not expected to guard against concurrent processing runs.
"""

from abc import ABC, abstractmethod
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


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the finance ledger.

    list_* methods return snapshots: mutating the returned lists never
    changes the store.
    """

    # -------------------------------------------------------------------------
    # Snapshot reads
    # -------------------------------------------------------------------------

    @abstractmethod
    def list_accounts(self) -> list[Account]:
        pass

    @abstractmethod
    def list_transactions(self) -> list[Transaction]:
        pass

    @abstractmethod
    def list_categories(self) -> list[Category]:
        pass

    @abstractmethod
    def list_budgets(self) -> list[Budget]:
        pass

    @abstractmethod
    def list_recurring_rules(self) -> list[RecurringTransaction]:
        pass

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_account(self, account_id: str) -> Optional[Account]:
        pass

    @abstractmethod
    def save_account(self, account: Account) -> Account:
        """
        Insert a new account.

        Raises:
            DuplicateError: If an account with the same id exists
        """
        pass

    @abstractmethod
    def update_account(self, account_id: str, updates: dict) -> Account:
        """
        Apply a partial update.

        Raises:
            NotFoundError: If the account doesn't exist
        """
        pass

    @abstractmethod
    def delete_account(self, account_id: str) -> int:
        """
        Delete an account and every transaction referencing it on
        either side.

        Returns:
            Number of transactions removed with the account

        Raises:
            NotFoundError: If the account doesn't exist
        """
        pass

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        pass

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> Transaction:
        """
        Raises:
            DuplicateError: If a transaction with the same id exists
        """
        pass

    @abstractmethod
    def update_transaction(self, transaction_id: str, updates: dict) -> Transaction:
        """
        Raises:
            NotFoundError: If the transaction doesn't exist
        """
        pass

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> bool:
        """Returns False when nothing was deleted."""
        pass

    # -------------------------------------------------------------------------
    # Categories
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_category(self, category_id: str) -> Optional[Category]:
        pass

    @abstractmethod
    def save_category(self, category: Category) -> Category:
        pass

    @abstractmethod
    def delete_category(self, category_id: str) -> bool:
        """
        Delete a user category.

        Raises:
            StorageError: If the category is one of the defaults
        """
        pass

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    @abstractmethod
    def upsert_budget(self, data: BudgetCreate) -> tuple[Budget, bool]:
        """
        Insert or replace the budget for a category.

        There is at most one budget per category. An existing budget keeps
        its id and gets the new amount, period and start date.

        Returns:
            (budget, replaced) where replaced is True when an existing
            budget was updated
        """
        pass

    @abstractmethod
    def delete_budget(self, budget_id: str) -> bool:
        pass

    # -------------------------------------------------------------------------
    # Recurring rules
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_recurring_rule(self, rule_id: str) -> Optional[RecurringTransaction]:
        pass

    @abstractmethod
    def save_recurring_rule(self, rule: RecurringTransaction) -> RecurringTransaction:
        pass

    @abstractmethod
    def update_recurring_rule(self, rule_id: str, updates: dict) -> RecurringTransaction:
        """
        Raises:
            NotFoundError: If the rule doesn't exist
        """
        pass

    @abstractmethod
    def delete_recurring_rule(self, rule_id: str) -> bool:
        """Generated transactions are kept."""
        pass

    @abstractmethod
    def apply_recurring_result(
        self,
        new_transactions: list[Transaction],
        updated_rules: list[RecurringTransaction],
    ) -> int:
        """
        Persist one recurrence processing result as a single batch.

        Transactions whose id already exists are skipped; watermarks only
        move forward. Either everything is applied or nothing is.

        Returns:
            Number of transactions actually inserted
        """
        pass

    # -------------------------------------------------------------------------
    # Settings
    # -------------------------------------------------------------------------

    @abstractmethod
    def get_settings(self) -> AppSettings:
        pass

    @abstractmethod
    def save_settings(self, settings: AppSettings) -> AppSettings:
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one user action in chronological order."""
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: str,
    ) -> list[AuditEvent]:
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass
