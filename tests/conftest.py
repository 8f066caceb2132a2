"""
Shared fixtures.

Factories return plain model instances; nothing here touches real storage.
"""

from datetime import date, datetime
from decimal import Decimal

import pytest

from moneytrack.models.finance import (
    Account,
    AccountType,
    Category,
    CategoryType,
    RecurringFrequency,
    RecurringTransaction,
    Transaction,
    TransactionType,
)
from moneytrack.services.storage import InMemoryAuditStorage, InMemoryLedgerStorage


@pytest.fixture
def make_account():
    def _make(name="Wallet", type=AccountType.CASH, is_liability=False, **kwargs):
        return Account(name=name, type=type, is_liability=is_liability, **kwargs)
    return _make


@pytest.fixture
def make_category():
    def _make(name="Food", type=CategoryType.EXPENSE, **kwargs):
        return Category(name=name, type=type, **kwargs)
    return _make


@pytest.fixture
def make_transaction():
    def _make(
        type=TransactionType.EXPENSE,
        amount="100",
        account_id="acc-1",
        to_account_id=None,
        category_id=None,
        date=datetime(2024, 3, 15, 12, 0),
        **kwargs,
    ):
        if category_id is None and type != TransactionType.TRANSFER:
            category_id = "cat-1"
        return Transaction(
            type=type,
            amount=Decimal(amount),
            account_id=account_id,
            to_account_id=to_account_id,
            category_id=category_id,
            date=date,
            **kwargs,
        )
    return _make


@pytest.fixture
def make_rule():
    def _make(
        frequency=RecurringFrequency.MONTHLY,
        start_date=date(2024, 1, 15),
        type=TransactionType.EXPENSE,
        amount="50000",
        account_id="acc-1",
        category_id="cat-1",
        **kwargs,
    ):
        if type == TransactionType.TRANSFER:
            category_id = None
        return RecurringTransaction(
            type=type,
            amount=Decimal(amount),
            account_id=account_id,
            category_id=category_id,
            frequency=frequency,
            start_date=start_date,
            **kwargs,
        )
    return _make


@pytest.fixture
def store():
    return InMemoryLedgerStorage()


@pytest.fixture
def audit_store():
    return InMemoryAuditStorage()
