"""
Health check endpoint.

Reports whether the database answers and which exchange rate
table the engine is converting with. A deployment running on the
built-in default rates is healthy but worth flagging.
"""

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ledger_core.config import get_settings
from ledger_core.models.base import get_db
from ledger_core.services.currency import ExchangeRateService

router = APIRouter(tags=["Health"])

SERVICE_NAME = "ledger-reconciliation-engine"


@router.get("/health")
def health_check(db: Session = Depends(get_db)):
    settings = get_settings()
    report = {
        "status": "healthy",
        "service": SERVICE_NAME,
        "version": settings.APP_VERSION,
        "database": "healthy",
        "reporting_currency": settings.REPORTING_CURRENCY,
        "exchange_rates": "unknown",
    }
    try:
        db.execute(text("SELECT 1"))
        table = ExchangeRateService(db).get_rate_table()
    except SQLAlchemyError:
        db.rollback()
        report["status"] = "degraded"
        report["database"] = "unhealthy"
        return report

    report["exchange_rates"] = "default" if table.is_default else "stored"
    return report
