"""
Currency normalization into the reporting currency.

CurrencyNormalizer is a pure converter over a point-in-time
rate snapshot. ExchangeRateService loads that snapshot from
the exchange_rates table through a process-wide cache that
expires after RATE_CACHE_TTL_SECONDS and is cleared whenever
the table is replaced.

Amounts are Decimal throughout. Nothing is rounded here:
rounding is a presentation concern.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, Mapping

import structlog
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ledger_core.config import get_settings
from ledger_core.exceptions import RateUnavailable
from ledger_core.models.exchange_rate import ExchangeRate

logger = structlog.get_logger(__name__)


# Used when the rate table has never been populated
DEFAULT_RATES: dict[str, Decimal] = {
    "INR": Decimal("1"),
    "USD": Decimal("84.50"),
    "EUR": Decimal("92.00"),
    "GBP": Decimal("107.00"),
    "JPY": Decimal("0.54"),
    "AUD": Decimal("56.50"),
    "CAD": Decimal("62.00"),
    "CHF": Decimal("95.00"),
    "CNY": Decimal("12.00"),
    "SGD": Decimal("63.00"),
}


@dataclass(frozen=True)
class RateTable:
    """Snapshot of the exchange rate table."""
    rates: Mapping[str, Decimal]
    last_updated: datetime | None = None
    is_default: bool = False


class CurrencyNormalizer:
    """
    Convert amounts into the reporting currency.

    A missing rate is not fatal: the amount is returned
    unconverted, the code is remembered in missing_rates, and a
    rate_unavailable warning is logged.
    """

    def __init__(
        self,
        table: RateTable,
        reporting_currency: str | None = None,
        aliases: tuple[str, ...] | None = None,
    ):
        settings = get_settings()
        self.table = table
        self.reporting_currency = (
            reporting_currency or settings.REPORTING_CURRENCY
        ).upper()
        self._identity_codes = {self.reporting_currency}
        self._identity_codes.update(
            a.upper() for a in (
                aliases if aliases is not None
                else settings.REPORTING_CURRENCY_ALIASES
            )
        )
        self._rates = {code.upper(): Decimal(rate) for code, rate in table.rates.items()}
        self.missing_rates: set[str] = set()

    def rate_for(self, currency_code: str | None) -> Decimal:
        """Return the rate for a currency, or raise RateUnavailable."""
        code = (currency_code or self.reporting_currency).strip().upper()
        if code in self._identity_codes:
            return Decimal("1")
        rate = self._rates.get(code)
        if rate is None:
            raise RateUnavailable(
                f"No exchange rate for {code}",
                currency=code,
                reporting_currency=self.reporting_currency,
            )
        return rate

    def to_reporting_currency(
        self, amount: Decimal, currency_code: str | None
    ) -> Decimal:
        amount = Decimal(amount)
        try:
            rate = self.rate_for(currency_code)
        except RateUnavailable as e:
            self.missing_rates.add(e.context["currency"])
            logger.warning(
                "rate_unavailable",
                currency=e.context["currency"],
                reporting_currency=self.reporting_currency,
                amount=str(amount),
            )
            return amount
        if rate == 1:
            return amount
        return amount * rate


class RateTableCache:
    """Thread-safe holder for the most recently loaded RateTable."""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._table: RateTable | None = None
        self._loaded_at: float | None = None

    def get(self, loader: Callable[[], RateTable]) -> RateTable:
        with self._lock:
            now = self._clock()
            if (
                self._table is not None
                and self._loaded_at is not None
                and now - self._loaded_at < self.ttl_seconds
            ):
                return self._table
            self._table = loader()
            self._loaded_at = now
            return self._table

    def clear(self) -> None:
        with self._lock:
            self._table = None
            self._loaded_at = None


rate_cache = RateTableCache(get_settings().RATE_CACHE_TTL_SECONDS)


class ExchangeRateService:

    def __init__(self, db: Session, cache: RateTableCache | None = None):
        self.db = db
        self.cache = cache or rate_cache
        self.settings = get_settings()

    def _load(self) -> RateTable:
        rows = self.db.execute(select(ExchangeRate)).scalars().all()
        if not rows:
            logger.info("exchange_rates_defaulted", currencies=len(DEFAULT_RATES))
            return RateTable(rates=dict(DEFAULT_RATES), is_default=True)
        return RateTable(
            rates={row.currency_code: Decimal(row.rate) for row in rows},
            last_updated=max(row.updated_at for row in rows),
        )

    def get_rate_table(self) -> RateTable:
        return self.cache.get(self._load)

    def normalizer(self) -> CurrencyNormalizer:
        """A fresh normalizer over the current snapshot, one per computation."""
        return CurrencyNormalizer(self.get_rate_table())

    def store_rates(self, rates: Mapping[str, Decimal]) -> RateTable:
        """
        Replace the whole rate table.

        The reporting currency is always stored with rate 1.
        """
        now = datetime.utcnow()
        table = {code.upper(): Decimal(rate) for code, rate in rates.items()}
        table[self.settings.REPORTING_CURRENCY] = Decimal("1")

        self.db.execute(delete(ExchangeRate))
        for code, rate in sorted(table.items()):
            self.db.add(ExchangeRate(currency_code=code, rate=rate, updated_at=now))
        self.db.flush()
        self.cache.clear()

        logger.info("exchange_rates_stored", currencies=len(table))
        return RateTable(rates=table, last_updated=now)
