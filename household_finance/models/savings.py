"""
Savings Models

A savings account is a named pot (e.g. "Retirement", "Holiday") that
saving-deposit transactions flow into. Its market value is asserted
manually from time to time.

DESIGN DECISION: Capital and profit are never stored.
They are derived on every read from the starting amount plus the
linked deposit transactions, so editing or deleting a deposit is
reflected immediately.

Snapshots are the audit trail of an account's value. Like the audit
log, they are append-only: we never modify or delete them.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from household_finance.utils import coerce_number, normalize_date


class SavingsAccount(BaseModel):
    """A household savings account as stored."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    id: Optional[str] = None
    household_id: str
    name: str = ""
    starting_amount: float = 0.0
    current_value: Optional[float] = Field(
        default=None,
        description="Latest asserted market value; None when never set"
    )
    created_at: Optional[datetime] = None

    @field_validator('starting_amount', mode='before')
    @classmethod
    def coerce_starting_amount(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator('current_value', mode='before')
    @classmethod
    def coerce_current_value(cls, v: Any) -> Optional[float]:
        if v is None:
            return None
        return coerce_number(v)

    @field_validator('name', mode='before')
    @classmethod
    def name_default(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator('created_at', mode='before')
    @classmethod
    def normalize_created_at(cls, v: Any) -> Optional[datetime]:
        if v is None or v == "":
            return None
        return normalize_date(v)


class SavingsSnapshot(BaseModel):
    """
    One immutable entry of an account's value history.

    Written every time an account's value or capital basis changes.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )

    id: Optional[str] = None
    household_id: str
    account_id: str
    capital: float = 0.0
    value: float = 0.0
    created_at: datetime = Field(default_factory=datetime.now)

    @field_validator('capital', 'value', mode='before')
    @classmethod
    def coerce_numbers(cls, v: Any) -> float:
        return coerce_number(v)

    @field_validator('created_at', mode='before')
    @classmethod
    def normalize_created_at(cls, v: Any) -> datetime:
        # A pending server timestamp reads as "now"
        return normalize_date(v)
