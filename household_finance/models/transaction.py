"""
Transaction Models

A transaction is one money movement recorded by a household member:
income, an expense, or a deposit into one of the household's savings
accounts.

DESIGN DECISION: Amounts are always stored non-negative.
Direction comes solely from the transaction type, and a saving deposit
is an outflow for every balance and summary purpose, exactly like an
expense.

Records come from a shared external store that several clients write
to, so the models coerce instead of rejecting: a missing or malformed
amount becomes 0 and a missing or malformed date becomes "now".
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from household_finance.utils import coerce_amount, normalize_date


OTHER_CATEGORY = "Other"
SAVINGS_CATEGORY = "Savings"

DEFAULT_CATEGORIES = (
    "Food",
    "Housing",
    "Travel",
    "Household",
    "Entertainment",
    "Beauty",
    "Clothing",
    "Gifts",
    "Health",
    "Sport",
    OTHER_CATEGORY,
)


class TransactionType(str, Enum):
    """Supported transaction types."""
    INCOME = "income"
    EXPENSE = "expense"
    SAVING_DEPOSIT = "saving_deposit"

    @property
    def is_outflow(self) -> bool:
        """Expenses and saving deposits both reduce the balance."""
        return self is not TransactionType.INCOME


class Transaction(BaseModel):
    """
    A recorded transaction.

    Accepts store records with camelCase keys (householdId,
    savingsAccountId, createdAt) as well as snake_case field names.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    # Identity (assigned by the store)
    id: Optional[str] = None
    household_id: str = Field(
        ...,
        description="Household this transaction belongs to"
    )

    type: TransactionType
    amount: float = Field(
        default=0.0,
        ge=0,
        description="Non-negative amount in the household currency"
    )
    category: Optional[str] = None
    description: str = ""
    date: datetime = Field(default_factory=datetime.now)

    # Only meaningful for saving deposits
    savings_account_id: Optional[str] = None

    # Server-assigned, advisory only
    created_at: Optional[datetime] = None

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount_value(cls, v: Any) -> float:
        return coerce_amount(v)

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date_value(cls, v: Any) -> datetime:
        return normalize_date(v)

    @field_validator('created_at', mode='before')
    @classmethod
    def normalize_created_at(cls, v: Any) -> Optional[datetime]:
        if v is None or v == "":
            return None
        return normalize_date(v)

    @field_validator('category', 'savings_account_id', mode='before')
    @classmethod
    def empty_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator('description', mode='before')
    @classmethod
    def description_default(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @property
    def is_outflow(self) -> bool:
        return self.type.is_outflow

    @property
    def signed_amount(self) -> float:
        """Amount with the sign implied by the type."""
        return -self.amount if self.is_outflow else self.amount


class TransactionUpdate(BaseModel):
    """
    The editable fields of an existing transaction.

    Mirrors the edit form: an empty date means "now", an empty type
    means income, an empty category clears the category.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    amount: float = Field(default=0.0, ge=0)
    date: datetime = Field(default_factory=datetime.now)
    type: TransactionType = TransactionType.INCOME
    category: Optional[str] = None
    description: str = ""

    @field_validator('amount', mode='before')
    @classmethod
    def coerce_amount_value(cls, v: Any) -> float:
        return coerce_amount(v)

    @field_validator('date', mode='before')
    @classmethod
    def normalize_date_value(cls, v: Any) -> datetime:
        return normalize_date(v)

    @field_validator('type', mode='before')
    @classmethod
    def type_default(cls, v: Any) -> Any:
        return v or TransactionType.INCOME

    @field_validator('category', mode='before')
    @classmethod
    def empty_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator('description', mode='before')
    @classmethod
    def description_default(cls, v: Any) -> str:
        return "" if v is None else str(v)

    def apply_to(self, transaction: Transaction) -> Transaction:
        """Return a copy of the transaction with these fields applied."""
        return transaction.model_copy(update=self.model_dump())
