"""
Pydantic schemas for ledger operations.

These define the API contract. They are separate from the
database models because the API shape and the storage shape
differ: a ledger's AccountBalance list is a child table in
storage but an embedded list on the wire.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator

from ledger_core.models.enums import AccountKind, LedgerStatus


# --- Request Schemas ---

class AccountBalanceInput(BaseModel):
    """
    One row of a ledger's opening configuration.

    Rows with an empty account_id or no opening_balance are
    ignored, the way a half-filled form row would be. Name and
    kind are looked up in the account directory when omitted.
    """
    account_id: str = Field(default="", max_length=64)
    account_name: str | None = Field(default=None, max_length=100)
    account_kind: AccountKind | None = None
    opening_balance: Decimal | None = Field(default=None, decimal_places=4)

    @property
    def is_valid(self) -> bool:
        return bool(self.account_id.strip()) and self.opening_balance is not None


class LedgerStart(BaseModel):
    """Request to start a new ledger."""
    owner_id: str = Field(min_length=1, max_length=128)
    name: str = Field(min_length=1, max_length=100)
    start_date: date
    account_balances: list[AccountBalanceInput] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("ledger name must not be blank")
        return v


class OpeningDetailsUpdate(BaseModel):
    """Replacement opening configuration for an open ledger."""
    start_date: date
    account_balances: list[AccountBalanceInput] = Field(default_factory=list)


class LedgerClose(BaseModel):
    """
    Request to close a ledger.

    closing_balance is an optional manual override of the
    aggregate, e.g. reconciled against a bank statement.
    """
    closing_date: date
    closing_balance: Decimal | None = Field(default=None, decimal_places=4)


# --- Response Schemas ---

class AccountBalanceResponse(BaseModel):
    account_id: str
    account_name: str
    account_kind: AccountKind
    opening_balance: Decimal
    closing_balance: Decimal

    model_config = {"from_attributes": True}


class LedgerResponse(BaseModel):
    id: int
    external_id: uuid.UUID
    owner_id: str
    name: str
    status: LedgerStatus
    start_date: date
    end_date: date | None
    opening_balance: Decimal
    closing_balance: Decimal | None
    computed_closing_balance: Decimal | None
    has_closing_override: bool
    rates_as_of: datetime | None
    version: int
    account_balances: list[AccountBalanceResponse]
    created_at: datetime

    model_config = {"from_attributes": True}


class LedgerMetrics(BaseModel):
    """
    Aggregates recomputed from a ledger's transaction log.

    All amounts are in the reporting currency. Investment is a
    subset of expenses, not an addition to them.
    """
    ledger_id: int | None = None
    reporting_currency: str
    opening_balance: Decimal
    total_income: Decimal
    total_expenses: Decimal
    total_investment: Decimal
    expenses_by_channel: dict[str, Decimal]
    card_expenses: Decimal
    bank_outflow: Decimal
    indicative_closing_with_card: Decimal
    indicative_closing_without_card: Decimal
    account_closing_balances: dict[str, Decimal]
    computed_closing_balance: Decimal
    transaction_count: int
    orphan_transaction_count: int
    missing_rates: list[str] = Field(default_factory=list)


class RolloverSuggestion(BaseModel):
    """Pre-filled values for starting the next ledger."""
    name: str
    start_date: date
    previous_ledger_id: int | None
    opening_balance: Decimal
    account_balances: list[AccountBalanceInput]
