"""
Static defaults: seed categories and accounts, per-type account
defaults, supported currencies and frequency labels.
"""

from moneytrack.models.finance import AccountType, CategoryType, RecurringFrequency


# =============================================================================
# CATEGORIES
# =============================================================================

DEFAULT_EXPENSE_CATEGORIES = [
    {"name": "Food & Dining", "icon": "utensils", "color": "#FF6B6B"},
    {"name": "Transportation", "icon": "car", "color": "#4ECDC4"},
    {"name": "Shopping", "icon": "shopping-bag", "color": "#45B7D1"},
    {"name": "Entertainment", "icon": "film", "color": "#96CEB4"},
    {"name": "Bills & Utilities", "icon": "file-text", "color": "#FFEAA7"},
    {"name": "Health", "icon": "heart", "color": "#DDA0DD"},
    {"name": "Education", "icon": "book", "color": "#98D8C8"},
    {"name": "Personal Care", "icon": "smile", "color": "#F7DC6F"},
    {"name": "Home", "icon": "home", "color": "#BB8FCE"},
    {"name": "Travel", "icon": "map", "color": "#85C1E9"},
    {"name": "Gifts", "icon": "gift", "color": "#F8B500"},
    {"name": "Other", "icon": "more-horizontal", "color": "#95A5A6"},
]

DEFAULT_INCOME_CATEGORIES = [
    {"name": "Salary", "icon": "briefcase", "color": "#27AE60"},
    {"name": "Freelance", "icon": "laptop", "color": "#2ECC71"},
    {"name": "Investments", "icon": "trending-up", "color": "#1ABC9C"},
    {"name": "Gifts Received", "icon": "gift", "color": "#16A085"},
    {"name": "Refunds", "icon": "rotate-ccw", "color": "#3498DB"},
    {"name": "Other Income", "icon": "plus-circle", "color": "#2980B9"},
]

# Categories used for the opening-balance transaction of a new account
INITIAL_BALANCE_INCOME_CATEGORY = "Other Income"
INITIAL_BALANCE_EXPENSE_CATEGORY = "Other"
INITIAL_BALANCE_NOTE = "Initial balance"


def default_category_specs() -> list[dict]:
    """Seed category definitions, expense first, each tagged with its type."""
    specs = [
        {**c, "type": CategoryType.EXPENSE, "is_default": True}
        for c in DEFAULT_EXPENSE_CATEGORIES
    ]
    specs.extend(
        {**c, "type": CategoryType.INCOME, "is_default": True}
        for c in DEFAULT_INCOME_CATEGORIES
    )
    return specs


# =============================================================================
# ACCOUNTS
# =============================================================================

ACCOUNT_TYPE_CONFIG = {
    AccountType.CASH: {"label": "Cash", "is_liability_default": False},
    AccountType.BANK: {"label": "Bank", "is_liability_default": False},
    AccountType.EWALLET: {"label": "E-Wallet", "is_liability_default": False},
    AccountType.CRYPTO: {"label": "Crypto", "is_liability_default": False},
    AccountType.CREDIT_CARD: {"label": "Credit Card", "is_liability_default": True},
    AccountType.INVESTMENT: {"label": "Investment", "is_liability_default": False},
    AccountType.LOAN: {"label": "Loan", "is_liability_default": True},
    AccountType.OTHER: {"label": "Other", "is_liability_default": False},
}

DEFAULT_ACCOUNTS = [
    {"name": "Tunai", "type": AccountType.CASH, "icon": "wallet", "color": "#27AE60"},
    {"name": "Bank", "type": AccountType.BANK, "icon": "landmark", "color": "#3498DB"},
    {"name": "Kartu", "type": AccountType.CREDIT_CARD, "icon": "credit-card", "color": "#E74C3C"},
]


def is_liability_default(account_type: AccountType) -> bool:
    return ACCOUNT_TYPE_CONFIG[AccountType(account_type)]["is_liability_default"]


# =============================================================================
# CURRENCIES
# =============================================================================

# thousands/decimal separators follow each currency's home locale
CURRENCY_CONFIG = {
    "IDR": {"symbol": "Rp", "name": "Indonesian Rupiah", "locale": "id-ID",
            "decimals": 0, "thousands": ".", "decimal": ",", "space": True},
    "USD": {"symbol": "$", "name": "US Dollar", "locale": "en-US",
            "decimals": 2, "thousands": ",", "decimal": ".", "space": False},
    "EUR": {"symbol": "€", "name": "Euro", "locale": "de-DE",
            "decimals": 2, "thousands": ".", "decimal": ",", "space": False},
    "GBP": {"symbol": "£", "name": "British Pound", "locale": "en-GB",
            "decimals": 2, "thousands": ",", "decimal": ".", "space": False},
    "JPY": {"symbol": "¥", "name": "Japanese Yen", "locale": "ja-JP",
            "decimals": 0, "thousands": ",", "decimal": ".", "space": False},
    "SGD": {"symbol": "S$", "name": "Singapore Dollar", "locale": "en-SG",
            "decimals": 2, "thousands": ",", "decimal": ".", "space": False},
    "MYR": {"symbol": "RM", "name": "Malaysian Ringgit", "locale": "ms-MY",
            "decimals": 2, "thousands": ",", "decimal": ".", "space": False},
}

DEFAULT_CURRENCY = "IDR"


# =============================================================================
# RECURRENCE
# =============================================================================

FREQUENCY_CONFIG = {
    RecurringFrequency.DAILY: {"en": "Daily", "id": "Harian"},
    RecurringFrequency.WEEKLY: {"en": "Weekly", "id": "Mingguan"},
    RecurringFrequency.BIWEEKLY: {"en": "Bi-weekly", "id": "Dua Mingguan"},
    RecurringFrequency.MONTHLY: {"en": "Monthly", "id": "Bulanan"},
    RecurringFrequency.YEARLY: {"en": "Yearly", "id": "Tahunan"},
}
