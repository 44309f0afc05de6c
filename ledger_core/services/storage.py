"""
Storage helpers: ledger row locks and translation of low-level
database failures.

Every operation that reads or writes a ledger's figures first
locks its row with lock_ledger, so a close, an opening edit and a
transaction write on the same ledger run one after another.

An OperationalError (lost connection, statement timeout, lock
timeout) becomes a retryable StorageUnavailable. Services compute
their full new state before writing, so a failure here never
leaves half of an operation applied once the caller rolls back.
"""

import functools

import structlog
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ledger_core.exceptions import LedgerNotFound, StorageUnavailable
from ledger_core.models.ledger import Ledger

logger = structlog.get_logger(__name__)


def translate_storage_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except OperationalError as e:
            logger.error(
                "storage_unavailable",
                operation=func.__qualname__,
                error=str(e.orig),
            )
            raise StorageUnavailable(
                "The database is unavailable or timed out; retry the request",
                operation=func.__qualname__,
            ) from e
    return wrapper


def lock_ledger(db: Session, ledger_id: int) -> Ledger:
    """
    Load a ledger with SELECT ... FOR UPDATE.

    The row is re-read even if the session already holds it, so
    status and version reflect whatever the previous lock holder
    committed.
    """
    ledger = db.execute(
        select(Ledger)
        .where(Ledger.id == ledger_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    if not ledger:
        raise LedgerNotFound(f"Ledger {ledger_id} not found", ledger_id=ledger_id)
    return ledger
