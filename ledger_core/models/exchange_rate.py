"""
Exchange rate table.

One row per currency: how many units of the reporting currency
one unit of that currency is worth. The whole table is replaced
out-of-band; readers treat it as a point-in-time snapshot.
"""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import String, DateTime, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from ledger_core.models.base import Base


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    currency_code: Mapped[str] = mapped_column(String(10), primary_key=True)
    rate: Mapped[Decimal] = mapped_column(Numeric(19, 6), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ExchangeRate {self.currency_code} = {self.rate}>"
