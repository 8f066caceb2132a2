"""
Balance & Net-Worth Calculator

Account balances are derived purely from the transaction log:
- Income into an account:     +amount
- Expense from an account:    -amount
- Transfer out of an account: -amount
- Transfer into an account:   +amount

Unknown account ids simply accumulate zero. Nothing here raises.
"""

from decimal import Decimal
from typing import Iterable, Sequence

from moneytrack.models.finance import Account, Transaction, TransactionType
from moneytrack.models.reports import NetWorth


ZERO = Decimal("0")


def calculate_account_balance(
    account_id: str,
    transactions: Iterable[Transaction],
) -> Decimal:
    """Fold the whole transaction log into one account's balance."""
    balance = ZERO
    for t in transactions:
        if t.type == TransactionType.INCOME and t.account_id == account_id:
            balance += t.amount
        elif t.type == TransactionType.EXPENSE and t.account_id == account_id:
            balance -= t.amount
        elif t.type == TransactionType.TRANSFER:
            if t.account_id == account_id:
                balance -= t.amount
            elif t.to_account_id == account_id:
                balance += t.amount
    return balance


def calculate_all_balances(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> dict[str, Decimal]:
    """
    Balances for every account in a single pass over the log.

    Transactions that reference accounts outside `accounts` are ignored.
    """
    balances = {account.id: ZERO for account in accounts}

    for t in transactions:
        if t.type == TransactionType.INCOME:
            if t.account_id in balances:
                balances[t.account_id] += t.amount
        elif t.type == TransactionType.EXPENSE:
            if t.account_id in balances:
                balances[t.account_id] -= t.amount
        elif t.type == TransactionType.TRANSFER:
            if t.account_id in balances:
                balances[t.account_id] -= t.amount
            if t.to_account_id in balances:
                balances[t.to_account_id] += t.amount

    return balances


def _total_assets(accounts: Sequence[Account], balances: dict[str, Decimal]) -> Decimal:
    # Overdrawn asset accounts count as zero, not as a liability
    return sum(
        (max(ZERO, balances.get(a.id, ZERO)) for a in accounts if not a.is_liability),
        ZERO,
    )


def _total_liabilities(accounts: Sequence[Account], balances: dict[str, Decimal]) -> Decimal:
    return sum(
        (abs(balances.get(a.id, ZERO)) for a in accounts if a.is_liability),
        ZERO,
    )


def calculate_total_assets(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> Decimal:
    accounts = list(accounts)
    return _total_assets(accounts, calculate_all_balances(accounts, transactions))


def calculate_total_liabilities(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> Decimal:
    accounts = list(accounts)
    return _total_liabilities(accounts, calculate_all_balances(accounts, transactions))


def calculate_net_worth(
    accounts: Iterable[Account],
    transactions: Iterable[Transaction],
) -> NetWorth:
    """Assets, liabilities and their difference from one balance pass."""
    accounts = list(accounts)
    balances = calculate_all_balances(accounts, transactions)
    assets = _total_assets(accounts, balances)
    liabilities = _total_liabilities(accounts, balances)
    return NetWorth(
        total_assets=assets,
        total_liabilities=liabilities,
        net_worth=assets - liabilities,
    )
