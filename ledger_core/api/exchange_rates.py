"""
Exchange rate table endpoints.

Rates are refreshed out-of-band (an admin or a scheduled job
fetching from a rate provider) and written here wholesale.
"""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ledger_core.exceptions import LedgerError
from ledger_core.models.base import get_db
from ledger_core.services.currency import ExchangeRateService, rate_cache
from ledger_core.schemas.exchange_rate import (
    ExchangeRateTableResponse,
    ExchangeRateUpdate,
)

router = APIRouter(prefix="/exchange-rates", tags=["Exchange Rates"])


@router.get("", response_model=ExchangeRateTableResponse)
def get_exchange_rates(db: Session = Depends(get_db)):
    service = ExchangeRateService(db)
    table = service.get_rate_table()
    return ExchangeRateTableResponse(
        reporting_currency=service.settings.REPORTING_CURRENCY,
        rates=dict(table.rates),
        last_updated=table.last_updated,
        is_default=table.is_default,
    )


@router.put("", response_model=ExchangeRateTableResponse)
def store_exchange_rates(
    request: ExchangeRateUpdate,
    db: Session = Depends(get_db),
):
    """Replace the whole rate table."""
    service = ExchangeRateService(db)
    try:
        table = service.store_rates(request.rates)
        db.commit()
    except LedgerError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
    # A request may have reloaded the old table before our commit
    rate_cache.clear()
    return ExchangeRateTableResponse(
        reporting_currency=service.settings.REPORTING_CURRENCY,
        rates=dict(table.rates),
        last_updated=table.last_updated,
        is_default=False,
    )
