"""
Pydantic schemas for transaction operations.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ledger_core.models.enums import TransactionType, PaymentMode


def _clean_account_id(v: str | None) -> str | None:
    """Trim an account id; a blank one marks an orphan transaction."""
    if v is None:
        return None
    return v.strip() or None


class TransactionCreate(BaseModel):
    owner_id: str = Field(min_length=1, max_length=128)
    ledger_id: int
    account_id: str | None = Field(default=None, max_length=64)
    transaction_type: TransactionType
    amount: Decimal = Field(gt=0, decimal_places=4)
    currency: str = Field(default="INR", min_length=3, max_length=10)
    expense_head: str | None = Field(default=None, max_length=100)
    payment_mode: PaymentMode = PaymentMode.UPI
    description: str = Field(default="", max_length=255)
    occurred_at: datetime | None = None

    @field_validator("account_id")
    @classmethod
    def blank_account_is_orphan(cls, v: str | None) -> str | None:
        return _clean_account_id(v)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str) -> str:
        return v.strip().upper()


class TransactionUpdate(BaseModel):
    """Partial edit. Unset fields keep their current value."""
    ledger_id: int | None = None
    account_id: str | None = Field(default=None, max_length=64)
    transaction_type: TransactionType | None = None
    amount: Decimal | None = Field(default=None, gt=0, decimal_places=4)
    currency: str | None = Field(default=None, min_length=3, max_length=10)
    expense_head: str | None = Field(default=None, max_length=100)
    payment_mode: PaymentMode | None = None
    description: str | None = Field(default=None, max_length=255)
    occurred_at: datetime | None = None

    @field_validator("account_id")
    @classmethod
    def blank_account_is_orphan(cls, v: str | None) -> str | None:
        return _clean_account_id(v)

    @field_validator("currency")
    @classmethod
    def upper_currency(cls, v: str | None) -> str | None:
        return v.strip().upper() if v is not None else v


class TransactionResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    owner_id: str
    ledger_id: int
    account_id: str | None
    transaction_type: TransactionType
    amount: Decimal
    currency: str
    expense_head: str | None
    payment_mode: PaymentMode
    description: str
    occurred_at: datetime
    created_at: datetime

    model_config = {"from_attributes": True}
