"""
Display formatting for amounts, percentages, budget status and
frequency and account-type labels.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

from moneytrack.constants import (
    ACCOUNT_TYPE_CONFIG,
    CURRENCY_CONFIG,
    DEFAULT_CURRENCY,
    FREQUENCY_CONFIG,
)
from moneytrack.models.finance import AccountType, Language, RecurringFrequency


Number = Union[Decimal, int, float]

_BUDGET_STATUS = {
    Language.EN: ("Over Budget", "Near Limit", "Half Used", "On Track"),
    Language.ID: ("Melebihi Anggaran", "Hampir Penuh", "Separuh Terpakai", "Baik"),
}

_BUDGET_COLORS = ("#F44336", "#FF9800", "#FFC107", "#4CAF50")


def currency_config(currency: str) -> dict:
    """Config for a currency code, falling back to the default currency."""
    return CURRENCY_CONFIG.get((currency or "").upper(), CURRENCY_CONFIG[DEFAULT_CURRENCY])


def _group_digits(value: Decimal, decimals: int, thousands: str, decimal_sep: str) -> str:
    quantum = Decimal(1).scaleb(-decimals)
    text = f"{value.quantize(quantum, rounding=ROUND_HALF_UP):,.{decimals}f}"
    # swap separators through a placeholder for comma-decimal locales
    return text.replace(",", "\0").replace(".", decimal_sep).replace("\0", thousands)


def format_currency(
    amount: Number,
    currency: str = DEFAULT_CURRENCY,
    show_sign: bool = False,
    compact: bool = False,
) -> str:
    """
    Format an amount for display.

    Examples (IDR):
        format_currency(1500000)                 -> "Rp 1.500.000"
        format_currency(1500000, compact=True)   -> "Rp1.5M"
        format_currency(-25000, show_sign=True)  -> "-Rp 25.000"
    """
    config = currency_config(currency)
    value = Decimal(str(amount))

    if compact and abs(value) >= 1_000_000:
        return f"{config['symbol']}{value / 1_000_000:.1f}M"
    if compact and abs(value) >= 1_000:
        return f"{config['symbol']}{value / 1_000:.0f}K"

    digits = _group_digits(abs(value), config["decimals"], config["thousands"], config["decimal"])
    separator = " " if config["space"] else ""
    formatted = f"{config['symbol']}{separator}{digits}"

    if value < 0:
        return f"-{formatted}"
    if show_sign and value > 0:
        return f"+{formatted}"
    return formatted


def format_percentage(value: float, decimals: int = 0) -> str:
    return f"{value:.{decimals}f}%"


def _budget_band(percentage: float) -> int:
    if percentage >= 100:
        return 0
    if percentage >= 80:
        return 1
    if percentage >= 50:
        return 2
    return 3


def budget_status_text(percentage: float, language: Language = Language.ID) -> str:
    return _BUDGET_STATUS[Language(language)][_budget_band(percentage)]


def budget_status_color(percentage: float) -> str:
    return _BUDGET_COLORS[_budget_band(percentage)]


def frequency_label(frequency: RecurringFrequency, language: Language = Language.ID) -> str:
    """Display name of a recurring frequency, e.g. "Bulanan" or "Monthly"."""
    return FREQUENCY_CONFIG[RecurringFrequency(frequency)][Language(language).value]


def account_type_label(account_type: AccountType) -> str:
    return ACCOUNT_TYPE_CONFIG[AccountType(account_type)]["label"]
