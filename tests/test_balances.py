"""
Tests for the balance and net-worth calculator.
"""

import pytest
from decimal import Decimal

from moneytrack.finance.balances import (
    calculate_account_balance,
    calculate_all_balances,
    calculate_net_worth,
    calculate_total_assets,
    calculate_total_liabilities,
)
from moneytrack.models.finance import AccountType, TransactionType


class TestAccountBalance:
    """Tests for single-account folds."""

    def test_unreferenced_account_is_zero(self, make_transaction):
        """Test that an account no transaction touches has balance 0."""
        txns = [make_transaction(account_id="acc-1"), make_transaction(account_id="acc-2")]
        assert calculate_account_balance("acc-9", txns) == Decimal("0")

    def test_income_expense_and_transfers(self, make_transaction):
        """Test the sign applied by each transaction type."""
        txns = [
            make_transaction(type=TransactionType.INCOME, amount="1000", account_id="acc-1"),
            make_transaction(type=TransactionType.EXPENSE, amount="300", account_id="acc-1"),
            make_transaction(
                type=TransactionType.TRANSFER, amount="200",
                account_id="acc-1", to_account_id="acc-2",
            ),
            make_transaction(
                type=TransactionType.TRANSFER, amount="50",
                account_id="acc-2", to_account_id="acc-1",
            ),
        ]
        assert calculate_account_balance("acc-1", txns) == Decimal("550")
        assert calculate_account_balance("acc-2", txns) == Decimal("150")

    def test_transfer_conserves_value(self, make_transaction):
        """Test that a transfer's effect on source plus destination is zero."""
        transfer = make_transaction(
            type=TransactionType.TRANSFER, amount="123.45",
            account_id="acc-1", to_account_id="acc-2",
        )
        total = (
            calculate_account_balance("acc-1", [transfer])
            + calculate_account_balance("acc-2", [transfer])
        )
        assert total == Decimal("0")


class TestAllBalances:
    """Tests for the single-pass balance map."""

    def test_matches_per_account_fold(self, make_account, make_transaction):
        """Test that the map agrees with the per-account calculation."""
        a = make_account(name="Cash")
        b = make_account(name="Bank", type=AccountType.BANK)
        txns = [
            make_transaction(type=TransactionType.INCOME, amount="500", account_id=a.id),
            make_transaction(
                type=TransactionType.TRANSFER, amount="120",
                account_id=a.id, to_account_id=b.id,
            ),
            make_transaction(type=TransactionType.EXPENSE, amount="20", account_id=b.id),
        ]
        balances = calculate_all_balances([a, b], txns)
        assert balances == {
            a.id: calculate_account_balance(a.id, txns),
            b.id: calculate_account_balance(b.id, txns),
        }
        assert balances[a.id] == Decimal("380")
        assert balances[b.id] == Decimal("100")

    def test_unknown_accounts_ignored(self, make_account, make_transaction):
        """Test that dangling references don't create entries or crash."""
        a = make_account()
        txns = [
            make_transaction(type=TransactionType.INCOME, amount="10", account_id="ghost"),
            make_transaction(
                type=TransactionType.TRANSFER, amount="5",
                account_id="ghost", to_account_id=a.id,
            ),
        ]
        assert calculate_all_balances([a], txns) == {a.id: Decimal("5")}


class TestNetWorth:
    """Tests for assets, liabilities and net worth."""

    @pytest.fixture
    def ledger(self, make_account, make_transaction):
        cash = make_account(name="Cash")
        overdrawn = make_account(name="Bank", type=AccountType.BANK)
        card = make_account(name="Card", type=AccountType.CREDIT_CARD, is_liability=True)
        txns = [
            make_transaction(type=TransactionType.INCOME, amount="1000", account_id=cash.id),
            make_transaction(type=TransactionType.EXPENSE, amount="40", account_id=overdrawn.id),
            make_transaction(type=TransactionType.EXPENSE, amount="250", account_id=card.id),
        ]
        return [cash, overdrawn, card], txns

    def test_overdrawn_asset_counts_as_zero(self, ledger):
        """Test that a negative asset balance doesn't reduce total assets."""
        accounts, txns = ledger
        assert calculate_total_assets(accounts, txns) == Decimal("1000")

    def test_liability_uses_absolute_balance(self, ledger):
        """Test that liability balances count by magnitude."""
        accounts, txns = ledger
        assert calculate_total_liabilities(accounts, txns) == Decimal("250")

    def test_net_worth_is_difference(self, ledger):
        """Test net worth = assets - liabilities exactly."""
        accounts, txns = ledger
        worth = calculate_net_worth(accounts, txns)
        assert worth.total_assets == Decimal("1000")
        assert worth.total_liabilities == Decimal("250")
        assert worth.net_worth == worth.total_assets - worth.total_liabilities
        assert worth.net_worth == Decimal("750")

    def test_empty_ledger(self):
        """Test that no accounts means everything is zero."""
        worth = calculate_net_worth([], [])
        assert worth.net_worth == Decimal("0")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
