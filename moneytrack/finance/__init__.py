"""
Calculation Core

Pure functions over plain data: balances, period analytics,
recurrence expansion and insights. Nothing in this package touches
storage or configuration.
"""

from moneytrack.finance.analytics import (
    all_budget_progress,
    calculate_budget_progress,
    calculate_period_summary,
    daily_trend,
    expense_breakdown,
    filter_transactions,
    financial_summary,
    group_by_category,
    group_transactions_by_date,
    income_breakdown,
    month_summary,
    monthly_trend,
    previous_month_summary,
    recent_monthly_trend,
    summarize,
    today_summary,
    top_categories,
    week_summary,
)
from moneytrack.finance.balances import (
    calculate_account_balance,
    calculate_all_balances,
    calculate_net_worth,
    calculate_total_assets,
    calculate_total_liabilities,
)
from moneytrack.finance.insights import generate_insights, generate_monthly_insights
from moneytrack.finance.recurrence import (
    RecurrenceError,
    estimate_recurring_total,
    next_occurrence,
    occurrence_id,
    process_recurring,
    upcoming_occurrences,
)

__all__ = [
    # Balances
    "calculate_account_balance",
    "calculate_all_balances",
    "calculate_net_worth",
    "calculate_total_assets",
    "calculate_total_liabilities",
    # Analytics
    "all_budget_progress",
    "calculate_budget_progress",
    "calculate_period_summary",
    "daily_trend",
    "expense_breakdown",
    "filter_transactions",
    "financial_summary",
    "group_by_category",
    "group_transactions_by_date",
    "income_breakdown",
    "month_summary",
    "monthly_trend",
    "previous_month_summary",
    "recent_monthly_trend",
    "summarize",
    "today_summary",
    "top_categories",
    "week_summary",
    # Recurrence
    "RecurrenceError",
    "estimate_recurring_total",
    "next_occurrence",
    "occurrence_id",
    "process_recurring",
    "upcoming_occurrences",
    # Insights
    "generate_insights",
    "generate_monthly_insights",
]
