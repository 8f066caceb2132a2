"""
Core Domain Models for MoneyTrack

These models are the data contracts shared by the store, the calculation
core and the flows. They carry no behaviour beyond their own invariants:
1. Amounts are finite, non-negative Decimals
2. Transaction polarity rules (transfer vs income/expense) hold on construction
3. Timestamps are naive local datetimes so they always compare cleanly

DESIGN DECISION: Balances are never stored. An Account has no balance
field; the balance is always derived from the transaction log.
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)


def new_id() -> str:
    """Generate a new random entity id."""
    return str(uuid4())


def to_naive_local(value: datetime) -> datetime:
    """Convert an aware datetime to naive local time; naive values pass through."""
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


# =============================================================================
# ENUMS
# =============================================================================

class AccountType(str, Enum):
    BANK = "bank"
    CASH = "cash"
    EWALLET = "ewallet"
    CRYPTO = "crypto"
    INVESTMENT = "investment"
    CREDIT_CARD = "credit_card"
    LOAN = "loan"
    OTHER = "other"


class TransactionType(str, Enum):
    """
    Transaction polarity.

    Transfers move value between two accounts and are never
    counted as income or expense.
    """
    INCOME = "income"
    EXPENSE = "expense"
    TRANSFER = "transfer"


class CategoryType(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    MONTHLY = "monthly"
    WEEKLY = "weekly"


class RecurringFrequency(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class ThemeMode(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class Language(str, Enum):
    EN = "en"
    ID = "id"


def check_polarity(
    type: TransactionType,
    account_id: str,
    to_account_id: Optional[str],
    category_id: Optional[str],
) -> None:
    """
    Enforce the account/category rules shared by transactions and recurring rules.

    Raises ValueError on violation.
    """
    if type == TransactionType.TRANSFER:
        if not to_account_id:
            raise ValueError("Transfer requires a destination account")
        if to_account_id == account_id:
            raise ValueError("Transfer source and destination accounts must differ")
        if category_id:
            raise ValueError("Transfer cannot have a category")
    elif to_account_id:
        raise ValueError(f"{type.value.capitalize()} cannot have a destination account")


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A named store of value, tagged as asset or liability.

    Display metadata (icon, color) is carried for the UI and ignored
    by every calculation.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    is_liability: bool = False
    currency: Optional[str] = Field(default=None, max_length=3)
    icon: Optional[str] = None
    color: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)


class AccountCreate(BaseModel):
    """
    Data for a new account.

    is_liability falls back to the account type's default when omitted.
    A non-zero initial_balance is booked as an opening transaction.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: AccountType
    currency: Optional[str] = Field(default=None, max_length=3)
    icon: Optional[str] = None
    color: Optional[str] = None
    is_liability: Optional[bool] = None
    initial_balance: Decimal = Field(default=Decimal("0"))


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single income, expense or transfer event.

    The amount is always non-negative; the type decides the sign
    applied to each account.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    account_id: str = Field(..., min_length=1)
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    date: datetime = Field(default_factory=datetime.now)
    note: Optional[str] = Field(default=None, max_length=500)

    # Provenance for transactions synthesized from a recurring rule
    is_recurring_generated: bool = False
    recurring_id: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator('date', 'created_at', 'updated_at')
    @classmethod
    def naive_local(cls, v: datetime) -> datetime:
        return to_naive_local(v)

    @model_validator(mode='after')
    def validate_polarity(self) -> 'Transaction':
        check_polarity(self.type, self.account_id, self.to_account_id, self.category_id)
        return self


class TransactionCreate(BaseModel):
    """
    Data for a new transaction, as submitted by the user.

    Stricter than Transaction: income and expense must name a category.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    account_id: str = Field(..., min_length=1)
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    date: Optional[datetime] = None
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator('date')
    @classmethod
    def naive_local(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_local(v) if v is not None else None

    @model_validator(mode='after')
    def validate_polarity(self) -> 'TransactionCreate':
        check_polarity(self.type, self.account_id, self.to_account_id, self.category_id)
        if self.type != TransactionType.TRANSFER and not self.category_id:
            raise ValueError(f"{self.type.value.capitalize()} requires a category")
        return self

    def to_transaction(self) -> Transaction:
        """Materialize the stored record, dating it now when no date was given."""
        data = self.model_dump(exclude={"date"})
        if self.date is not None:
            data["date"] = self.date
        return Transaction(**data)


# =============================================================================
# CATEGORY
# =============================================================================

class Category(BaseModel):
    """A transaction category. Belongs to exactly one polarity."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType
    icon: str = ""
    color: str = ""
    is_default: bool = False


class CategoryCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType
    icon: str = ""
    color: str = ""


# =============================================================================
# BUDGET
# =============================================================================

class Budget(BaseModel):
    """
    A spending ceiling for one expense category.

    INVARIANT: at most one budget per category_id. The store's
    upsert_budget is the only way budgets are created.
    """

    id: str = Field(default_factory=new_id)
    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: datetime = Field(default_factory=datetime.now)

    @field_validator('start_date')
    @classmethod
    def naive_local(cls, v: datetime) -> datetime:
        return to_naive_local(v)


class BudgetCreate(BaseModel):
    category_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., ge=0)
    period: BudgetPeriod = BudgetPeriod.MONTHLY
    start_date: Optional[datetime] = None


# =============================================================================
# RECURRING TRANSACTION
# =============================================================================

def _as_date(v):
    if isinstance(v, datetime):
        return to_naive_local(v).date()
    return v


class RecurringTransaction(BaseModel):
    """
    A template that generates transactions on a schedule.

    last_processed is the watermark: the date of the last occurrence
    actually materialized. It is None until the rule first fires and
    only ever moves forward.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: str = Field(default_factory=new_id)
    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    account_id: str = Field(..., min_length=1)
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    frequency: RecurringFrequency
    start_date: date
    end_date: Optional[date] = None
    last_processed: Optional[date] = None
    is_enabled: bool = True
    note: Optional[str] = Field(default=None, max_length=500)
    created_at: datetime = Field(default_factory=datetime.now)
    updated_at: datetime = Field(default_factory=datetime.now)

    @field_validator('start_date', 'end_date', 'last_processed', mode='before')
    @classmethod
    def coerce_date(cls, v):
        return _as_date(v)

    @model_validator(mode='after')
    def validate_rule(self) -> 'RecurringTransaction':
        check_polarity(self.type, self.account_id, self.to_account_id, self.category_id)
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    @property
    def is_pending(self) -> bool:
        """True until the rule has materialized its first occurrence."""
        return self.last_processed is None


class RecurringTransactionCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    type: TransactionType
    amount: Decimal = Field(..., ge=0)
    account_id: str = Field(..., min_length=1)
    to_account_id: Optional[str] = None
    category_id: Optional[str] = None
    frequency: RecurringFrequency
    start_date: date
    end_date: Optional[date] = None
    note: Optional[str] = Field(default=None, max_length=500)

    @field_validator('start_date', 'end_date', mode='before')
    @classmethod
    def coerce_date(cls, v):
        return _as_date(v)

    @model_validator(mode='after')
    def validate_rule(self) -> 'RecurringTransactionCreate':
        check_polarity(self.type, self.account_id, self.to_account_id, self.category_id)
        if self.type != TransactionType.TRANSFER and not self.category_id:
            raise ValueError(f"{self.type.value.capitalize()} requires a category")
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("End date cannot be before start date")
        return self

    def to_rule(self) -> RecurringTransaction:
        return RecurringTransaction(**self.model_dump())


# =============================================================================
# APP SETTINGS
# =============================================================================

class AppSettings(BaseModel):
    """
    Process-wide user preferences stored alongside the ledger.

    Only currency is consumed by the calculation core (as a display label).
    """

    theme: ThemeMode = ThemeMode.SYSTEM
    currency: str = Field(default="IDR", min_length=3, max_length=3)
    language: Language = Language.ID
    pin_enabled: bool = False
    pin_hash: Optional[str] = None
    biometric_enabled: bool = False
    onboarding_completed: bool = False
    last_opened_at: Optional[datetime] = None

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()
