"""
Insight Generator

Short natural-language observations about the current month. Each
insight is independent: missing data simply leaves it out.
"""

from datetime import datetime
from typing import Iterable, Optional, Sequence

from moneytrack.constants import DEFAULT_CURRENCY
from moneytrack.finance.analytics import expense_breakdown, summarize
from moneytrack.finance.formatting import format_currency
from moneytrack.finance.periods import (
    days_in_month,
    month_bounds,
    previous_month_bounds,
    transactions_in_range,
)
from moneytrack.models.finance import Category, Transaction
from moneytrack.models.reports import CategoryBreakdown, PeriodSummary


def generate_insights(
    current: PeriodSummary,
    breakdown: Sequence[CategoryBreakdown],
    previous: Optional[PeriodSummary] = None,
    now: Optional[datetime] = None,
    currency: str = DEFAULT_CURRENCY,
) -> list[str]:
    """
    Build the insight list, in display order:
    1. Top expense category with its share
    2. Savings change against the previous period (when given)
    3. Overspend warning when the month's expense run-rate exceeds income
    4. Savings rate when net is positive
    """
    now = now or datetime.now()
    insights = []

    if breakdown:
        top = breakdown[0]
        insights.append(
            f"Your biggest expense this month is {top.category.name} "
            f"({top.percentage:.0f}% of expenses)"
        )

    if previous is not None:
        diff = current.net - previous.net
        if diff > 0:
            insights.append(
                f"You've saved {format_currency(diff, currency)} more than last month! 🎉"
            )
        elif diff < 0:
            insights.append(
                f"Your savings decreased by {format_currency(abs(diff), currency)} "
                "compared to last month"
            )

    projected_expense = current.expense / now.day * days_in_month(now)
    if current.income > 0 and projected_expense > current.income:
        insights.append("⚠️ At this rate, expenses may exceed income this month")

    if current.net > 0:
        rate = float(current.net / current.income * 100)
        insights.append(f"You're saving {rate:.0f}% of your income this month 💪")

    return insights


def generate_monthly_insights(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    now: Optional[datetime] = None,
    currency: str = DEFAULT_CURRENCY,
) -> list[str]:
    """Insights for the month containing now, compared with the month before."""
    now = now or datetime.now()
    transactions = list(transactions)

    current_txns = transactions_in_range(transactions, *month_bounds(now))
    previous_txns = transactions_in_range(transactions, *previous_month_bounds(now))

    return generate_insights(
        current=summarize(current_txns),
        breakdown=expense_breakdown(current_txns, categories),
        previous=summarize(previous_txns) if previous_txns else None,
        now=now,
        currency=currency,
    )
