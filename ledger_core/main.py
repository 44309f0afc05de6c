"""
Ledger Reconciliation Engine — FastAPI Application.

This is the entry point for the application.
All routers are registered here.
"""

from fastapi import FastAPI

from ledger_core.config import get_settings
from ledger_core.logging_config import configure_logging
from ledger_core.api.health import router as health_router
from ledger_core.api.ledgers import router as ledgers_router
from ledger_core.api.transactions import router as transactions_router
from ledger_core.api.exchange_rates import router as exchange_rates_router

settings = get_settings()
configure_logging(settings)

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Ledger lifecycle and multi-account balance reconciliation",
)

# Register routers
app.include_router(health_router)
app.include_router(ledgers_router)
app.include_router(transactions_router)
app.include_router(exchange_rates_router)


def run() -> None:
    """Serve the API with uvicorn on the configured host and port."""
    import uvicorn

    uvicorn.run(
        "ledger_core.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_config=None,
    )


if __name__ == "__main__":
    run()
