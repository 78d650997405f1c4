"""
Core Ledger Models

These models define the strict schemas for every record the engine reads:
Accounts, Categories, Transactions and Budgets.

They are designed to:
1. Be the ONE place where raw storage rows become typed values
2. Accept both snake_case (SQL rows) and camelCase (ORM/API payloads) keys
3. Serialize back to camelCase JSON with string identifiers
4. Never carry a sign on a transaction amount

DESIGN DECISION: Identifiers are opaque strings. Database integers are
coerced once, here, instead of at every call site.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Annotated, Any, Optional

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# SHARED FIELD TYPES
# =============================================================================

def _coerce_entity_id(value: Any) -> Any:
    """Integers (BigInt primary keys) become strings; bools are left to fail."""
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    return value


def coerce_timestamp(value: Any) -> Any:
    """
    Normalize dates and timestamps to naive datetimes.

    Plain dates become midnight. Aware datetimes are converted to UTC
    and made naive so every comparison in the engine is like-for-like.
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            return value.astimezone(timezone.utc).replace(tzinfo=None)
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            return coerce_timestamp(datetime.fromisoformat(text))
        except ValueError:
            return value
    return value


def _coerce_amount(value: Any) -> Any:
    """Parse amounts from strings/floats into Decimal without float drift."""
    if isinstance(value, str):
        text = value.strip().replace(" ", "")
        if "," in text and "." not in text:
            text = text.replace(",", ".")
        try:
            return Decimal(text)
        except InvalidOperation:
            raise ValueError(f"Unparseable amount: {value!r}")
    if isinstance(value, float):
        return Decimal(str(value))
    return value


EntityId = Annotated[str, BeforeValidator(_coerce_entity_id), Field(min_length=1)]

Timestamp = Annotated[datetime, BeforeValidator(coerce_timestamp)]

Money = Annotated[Decimal, BeforeValidator(_coerce_amount)]


class LedgerModel(BaseModel):
    """
    Base for every ledger and report model.

    Input may use field names or camelCase aliases; unknown keys
    (joined columns, ORM extras) are ignored.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    def to_api_dict(self) -> dict:
        """Serialize for an API response: camelCase keys, JSON-safe values."""
        return self.model_dump(mode="json", by_alias=True)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Supported account types."""
    CHECKING = "CHECKING"
    SAVINGS = "SAVINGS"
    CREDIT_CARD = "CREDIT_CARD"
    INVESTMENT = "INVESTMENT"
    CASH = "CASH"
    OTHER = "OTHER"


class TransactionType(str, Enum):
    """
    Direction of money for a category.

    CRITICAL: The type lives on the Category, not on the Transaction.
    A transaction's sign is always derived from its category.
    """
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


# =============================================================================
# LEDGER RECORDS
# =============================================================================

class Account(LedgerModel):
    """
    A named money container owned by one user.

    initial_balance is fixed at creation (or by an explicit administrative
    edit). It is never derived from transaction activity.
    """

    id: EntityId
    owner_id: EntityId = Field(
        ...,
        description="Owning user; every engine read is scoped by it"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    type: AccountType = Field(
        default=AccountType.CHECKING,
        description="Account type"
    )
    initial_balance: Money = Field(
        default=Decimal("0"),
        description="Opening balance"
    )
    is_active: bool = True
    note: Optional[str] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None

    @field_validator('type', mode='before')
    @classmethod
    def normalize_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class Category(LedgerModel):
    """
    A classification fixed to INCOME or EXPENSE, scoped to one Account.

    account_id is optional only so that rows whose account was deleted can
    still be represented (and then ignored) instead of failing to load.
    """

    id: EntityId
    account_id: Optional[EntityId] = None
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
    )
    transaction_type: TransactionType
    emoji: Optional[str] = None
    color: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None

    @field_validator('transaction_type', mode='before')
    @classmethod
    def normalize_transaction_type(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.strip().upper()
        return v


class Transaction(LedgerModel):
    """
    A dated monetary event attributed to a Category.

    amount is a magnitude. Non-finite values are let through so the
    engine can report them as integrity problems instead of the whole
    read failing.
    """

    id: EntityId
    account_id: EntityId
    category_id: Optional[EntityId] = Field(
        default=None,
        description="None until the transaction is categorized"
    )
    date: Timestamp
    amount: Annotated[Decimal, Field(allow_inf_nan=True), BeforeValidator(_coerce_amount)]
    note: Optional[str] = Field(
        default=None,
        max_length=1000,
    )
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None


class Budget(LedgerModel):
    """
    A spending cap for one Category in one calendar month.

    Budgets are keyed by (category_id, year, month). The store attaches
    the owning Category when it can resolve it.
    """

    id: EntityId
    category_id: EntityId
    year: int = Field(
        ...,
        ge=1,
        le=9999,
    )
    month: int = Field(
        ...,
        ge=1,
        le=12,
    )
    total_amount: Money = Field(
        ...,
        ge=0,
        description="Cap for the category in this month"
    )
    category: Optional[Category] = None
    created_at: Optional[Timestamp] = None
    updated_at: Optional[Timestamp] = None

    @property
    def key(self) -> tuple[str, int, int]:
        """Identity of the budgeted slot."""
        return (self.category_id, self.year, self.month)
