"""
Period & Category Analytics

Deterministic aggregations over a transaction snapshot:
- period summaries (income, expense, net) for any date range
- category breakdowns with percentage shares
- budget progress for the current weekly or monthly period
- daily and monthly trend series
- the dashboard financial summary

Every date restriction goes through periods.transactions_in_range.
Transfers never count as income or expense.
"""

from collections import defaultdict
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from dateutil.rrule import DAILY, MONTHLY, rrule

from moneytrack.finance.balances import calculate_net_worth
from moneytrack.finance.periods import (
    DateLike,
    day_bounds,
    end_of_day,
    month_bounds,
    previous_month_bounds,
    start_of_day,
    transactions_in_range,
    week_bounds,
)
from moneytrack.models.finance import (
    Account,
    Budget,
    BudgetPeriod,
    Category,
    Transaction,
    TransactionType,
)
from moneytrack.models.reports import (
    BudgetProgress,
    CategoryBreakdown,
    FinancialSummary,
    GroupedTransactions,
    PeriodSummary,
    TransactionFilters,
    TrendDataPoint,
)


ZERO = Decimal("0")
HUNDRED = Decimal("100")


# =============================================================================
# PERIOD SUMMARIES
# =============================================================================

def summarize(transactions: Iterable[Transaction]) -> PeriodSummary:
    """Income/expense totals of an already-filtered list."""
    income = ZERO
    expense = ZERO
    for t in transactions:
        if t.type == TransactionType.INCOME:
            income += t.amount
        elif t.type == TransactionType.EXPENSE:
            expense += t.amount
    return PeriodSummary(income=income, expense=expense)


def calculate_period_summary(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
) -> PeriodSummary:
    return summarize(transactions_in_range(transactions, start, end))


def today_summary(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
) -> PeriodSummary:
    return calculate_period_summary(transactions, *day_bounds(now or datetime.now()))


def week_summary(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
) -> PeriodSummary:
    return calculate_period_summary(transactions, *week_bounds(now or datetime.now()))


def month_summary(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
) -> PeriodSummary:
    return calculate_period_summary(transactions, *month_bounds(now or datetime.now()))


def previous_month_summary(
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
) -> PeriodSummary:
    return calculate_period_summary(
        transactions, *previous_month_bounds(now or datetime.now())
    )


# =============================================================================
# CATEGORY ANALYSIS
# =============================================================================

def group_by_category(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategoryBreakdown]:
    """
    Group non-transfer transactions by category, largest amount first.

    Transactions without a resolvable category, or whose category has
    the opposite polarity, are left out of both the groups and the
    total, so the percentages of a non-empty breakdown sum to 100.
    """
    category_map = {c.id: c for c in categories}

    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    total = ZERO

    for t in transactions:
        if t.type == TransactionType.TRANSFER or not t.category_id:
            continue
        category = category_map.get(t.category_id)
        if category is None or category.type.value != t.type.value:
            continue
        amounts[t.category_id] += t.amount
        counts[t.category_id] += 1
        total += t.amount

    result = [
        CategoryBreakdown(
            category=category_map[category_id],
            amount=amount,
            percentage=float(amount / total * HUNDRED) if total > 0 else 0.0,
            transaction_count=counts[category_id],
        )
        for category_id, amount in amounts.items()
    ]
    result.sort(key=lambda b: b.amount, reverse=True)
    return result


def expense_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategoryBreakdown]:
    expenses = [t for t in transactions if t.type == TransactionType.EXPENSE]
    return group_by_category(expenses, categories)


def income_breakdown(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
) -> list[CategoryBreakdown]:
    income = [t for t in transactions if t.type == TransactionType.INCOME]
    return group_by_category(income, categories)


def top_categories(
    transactions: Iterable[Transaction],
    categories: Iterable[Category],
    limit: int = 5,
) -> list[CategoryBreakdown]:
    """Biggest expense categories."""
    return expense_breakdown(transactions, categories)[:max(0, limit)]


# =============================================================================
# BUDGETS
# =============================================================================

def budget_period_bounds(
    period: BudgetPeriod,
    now: DateLike,
) -> tuple[datetime, datetime]:
    """The weekly or monthly window containing now (never the budget's start date)."""
    if period == BudgetPeriod.WEEKLY:
        return week_bounds(now)
    return month_bounds(now)


def calculate_budget_progress(
    budget: Budget,
    category: Category,
    transactions: Iterable[Transaction],
    now: Optional[datetime] = None,
    near_limit_percentage: float = 80.0,
) -> BudgetProgress:
    """
    Spending against a budget in its current period.

    A budget is over once spending reaches its amount; near-limit is the
    band [near_limit_percentage, 100) below that. The two never overlap.
    """
    start, end = budget_period_bounds(budget.period, now or datetime.now())

    spent = sum(
        (
            t.amount
            for t in transactions_in_range(transactions, start, end)
            if t.category_id == budget.category_id
            and t.type == TransactionType.EXPENSE
        ),
        ZERO,
    )

    if budget.amount > 0:
        percentage = float(spent / budget.amount * HUNDRED)
        is_over = spent >= budget.amount
    else:
        percentage = 0.0
        is_over = spent > 0

    return BudgetProgress(
        budget=budget,
        category=category,
        period_start=start,
        period_end=end,
        spent=spent,
        remaining=max(ZERO, budget.amount - spent),
        percentage=percentage,
        is_over_budget=is_over,
        is_near_limit=not is_over and near_limit_percentage <= percentage < 100.0,
    )


def all_budget_progress(
    budgets: Iterable[Budget],
    categories: Iterable[Category],
    transactions: Sequence[Transaction],
    now: Optional[datetime] = None,
    near_limit_percentage: float = 80.0,
) -> list[BudgetProgress]:
    """Progress for every budget whose category still exists."""
    category_map = {c.id: c for c in categories}
    now = now or datetime.now()

    progress = []
    for budget in budgets:
        category = category_map.get(budget.category_id)
        if category is None:
            continue
        progress.append(
            calculate_budget_progress(
                budget, category, transactions, now, near_limit_percentage
            )
        )
    return progress


# =============================================================================
# TRENDS
# =============================================================================

def _trend(
    transactions: Iterable[Transaction],
    buckets: Iterable[datetime],
    key_format: str,
    start: DateLike,
    end: DateLike,
) -> list[TrendDataPoint]:
    income: dict[str, Decimal] = defaultdict(lambda: ZERO)
    expense: dict[str, Decimal] = defaultdict(lambda: ZERO)

    for t in transactions_in_range(transactions, start, end):
        key = t.date.strftime(key_format)
        if t.type == TransactionType.INCOME:
            income[key] += t.amount
        elif t.type == TransactionType.EXPENSE:
            expense[key] += t.amount

    running = ZERO
    points = []
    for bucket in buckets:
        key = bucket.strftime(key_format)
        running += income[key] - expense[key]
        points.append(
            TrendDataPoint(
                date=key,
                income=income[key],
                expense=expense[key],
                running_balance=running,
            )
        )
    return points


def daily_trend(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
) -> list[TrendDataPoint]:
    """One point per day in [start, end]; running balance starts at zero."""
    days = rrule(DAILY, dtstart=start_of_day(start), until=end_of_day(end))
    return _trend(transactions, days, "%Y-%m-%d", start, end)


def monthly_trend(
    transactions: Iterable[Transaction],
    start: DateLike,
    end: DateLike,
) -> list[TrendDataPoint]:
    """One point per calendar month touching [start, end]."""
    first_month = month_bounds(start)[0]
    last_month_end = month_bounds(end)[1]
    months = rrule(MONTHLY, dtstart=first_month, until=last_month_end)
    return _trend(transactions, months, "%Y-%m", first_month, last_month_end)


def recent_monthly_trend(
    transactions: Iterable[Transaction],
    months: int = 6,
    now: Optional[datetime] = None,
) -> list[TrendDataPoint]:
    """The last `months` calendar months, ending with the one containing now."""
    now = now or datetime.now()
    first = month_bounds(now)[0]
    for _ in range(max(1, months) - 1):
        first = previous_month_bounds(first)[0]
    return monthly_trend(transactions, first, now)


# =============================================================================
# DASHBOARD & LISTS
# =============================================================================

def financial_summary(
    accounts: Iterable[Account],
    transactions: Sequence[Transaction],
    now: Optional[datetime] = None,
) -> FinancialSummary:
    now = now or datetime.now()
    worth = calculate_net_worth(accounts, transactions)
    today = today_summary(transactions, now)
    month = month_summary(transactions, now)

    return FinancialSummary(
        total_assets=worth.total_assets,
        total_liabilities=worth.total_liabilities,
        net_worth=worth.net_worth,
        today_income=today.income,
        today_expense=today.expense,
        month_income=month.income,
        month_expense=month.expense,
    )


def group_transactions_by_date(
    transactions: Iterable[Transaction],
) -> list[GroupedTransactions]:
    """Per-day groups, newest day first, newest transaction first within a day."""
    grouped: dict[date, list[Transaction]] = defaultdict(list)
    for t in transactions:
        grouped[t.date.date()].append(t)

    result = []
    for day in sorted(grouped, reverse=True):
        day_transactions = sorted(grouped[day], key=lambda t: t.date, reverse=True)
        totals = summarize(day_transactions)
        result.append(
            GroupedTransactions(
                date=day.isoformat(),
                transactions=day_transactions,
                total_income=totals.income,
                total_expense=totals.expense,
            )
        )
    return result


def filter_transactions(
    transactions: Iterable[Transaction],
    filters: TransactionFilters,
) -> list[Transaction]:
    """Apply list filters and sort newest first."""
    filtered = list(transactions)

    if filters.start_date and filters.end_date:
        filtered = transactions_in_range(filtered, filters.start_date, filters.end_date)

    if filters.account_id:
        filtered = [
            t for t in filtered
            if t.account_id == filters.account_id
            or t.to_account_id == filters.account_id
        ]

    if filters.category_id:
        filtered = [t for t in filtered if t.category_id == filters.category_id]

    if filters.type:
        filtered = [t for t in filtered if t.type == filters.type]

    if filters.search_query:
        query = filters.search_query.lower()
        filtered = [t for t in filtered if t.note and query in t.note.lower()]

    return sorted(filtered, key=lambda t: t.date, reverse=True)
