"""
Calculated Result Models

Everything the calculation core returns. These are plain data: built
fresh on every call, never persisted, safe to hand straight to a UI.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from moneytrack.models.finance import (
    Budget,
    Category,
    RecurringTransaction,
    Transaction,
    TransactionType,
)


class NetWorth(BaseModel):
    """Asset/liability/net-worth triple derived from the transaction log."""

    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal


class PeriodSummary(BaseModel):
    """Income and expense totals for a period. Transfers are excluded."""

    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")

    @property
    def net(self) -> Decimal:
        return self.income - self.expense


class CategoryBreakdown(BaseModel):
    category: Category
    amount: Decimal
    percentage: float = Field(ge=0.0)
    transaction_count: int = Field(ge=0)


class BudgetProgress(BaseModel):
    """
    Spending against one budget in the current period.

    percentage is the raw ratio and can exceed 100;
    display_percentage is clamped for progress-bar rendering.
    """

    budget: Budget
    category: Category
    period_start: datetime
    period_end: datetime
    spent: Decimal
    remaining: Decimal
    percentage: float
    is_over_budget: bool
    is_near_limit: bool

    @property
    def display_percentage(self) -> float:
        return min(self.percentage, 100.0)


class TrendDataPoint(BaseModel):
    """
    One bucket of a trend series.

    running_balance is the cumulative net flow since the start of the
    window, not an account balance.
    """

    date: str
    income: Decimal
    expense: Decimal
    running_balance: Decimal


class FinancialSummary(BaseModel):
    """Everything the dashboard header shows."""

    total_assets: Decimal
    total_liabilities: Decimal
    net_worth: Decimal
    today_income: Decimal
    today_expense: Decimal
    month_income: Decimal
    month_expense: Decimal


class GroupedTransactions(BaseModel):
    date: str
    transactions: list[Transaction]
    total_income: Decimal
    total_expense: Decimal


class TransactionFilters(BaseModel):
    """Criteria for the transaction list. Unset fields do not filter."""

    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    account_id: Optional[str] = None
    category_id: Optional[str] = None
    type: Optional[TransactionType] = None
    search_query: Optional[str] = None


class RecurringProcessResult(BaseModel):
    """
    Output of one recurrence processing run.

    The caller persists new_transactions and updated_rules together.
    capped_rule_ids lists rules whose backlog hit the occurrence cap
    and still have due occurrences left for the next run.
    """

    processed_on: date
    new_transactions: list[Transaction] = Field(default_factory=list)
    updated_rules: list[RecurringTransaction] = Field(default_factory=list)
    capped_rule_ids: list[str] = Field(default_factory=list)

    @property
    def generated_count(self) -> int:
        return len(self.new_transactions)
