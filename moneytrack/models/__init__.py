"""
Data Models Package

This package contains all Pydantic models used in MoneyTrack.
All data flowing through the system must conform to these schemas.
"""

from moneytrack.models.finance import (
    Account,
    AccountCreate,
    AccountType,
    AppSettings,
    Budget,
    BudgetCreate,
    BudgetPeriod,
    Category,
    CategoryCreate,
    CategoryType,
    Language,
    RecurringFrequency,
    RecurringTransaction,
    RecurringTransactionCreate,
    ThemeMode,
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
from moneytrack.models.validation import ValidationIssue, ValidationResult
from moneytrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Domain models
    "Account",
    "AccountCreate",
    "AccountType",
    "AppSettings",
    "Budget",
    "BudgetCreate",
    "BudgetPeriod",
    "Category",
    "CategoryCreate",
    "CategoryType",
    "Language",
    "RecurringFrequency",
    "RecurringTransaction",
    "RecurringTransactionCreate",
    "ThemeMode",
    "Transaction",
    "TransactionCreate",
    "TransactionType",
    # Calculated models
    "BudgetProgress",
    "CategoryBreakdown",
    "FinancialSummary",
    "GroupedTransactions",
    "NetWorth",
    "PeriodSummary",
    "RecurringProcessResult",
    "TransactionFilters",
    "TrendDataPoint",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
