"""
Pydantic schemas for the exchange rate table.
"""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field, field_validator


class ExchangeRateUpdate(BaseModel):
    """Replacement rate table: currency code -> reporting units per unit."""
    rates: dict[str, Decimal] = Field(min_length=1)

    @field_validator("rates")
    @classmethod
    def rates_must_be_positive(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        cleaned = {}
        for code, rate in v.items():
            if rate <= 0:
                raise ValueError(f"rate for {code} must be positive")
            cleaned[code.strip().upper()] = rate
        return cleaned


class ExchangeRateTableResponse(BaseModel):
    reporting_currency: str
    rates: dict[str, Decimal]
    last_updated: datetime | None
    is_default: bool
