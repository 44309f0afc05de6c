"""
Ledger API endpoints.

The API layer is thin: it maps requests onto LedgerService,
commits on success, and turns LedgerError into an HTTP error
whose detail says why the operation was refused.
"""

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ledger_core.exceptions import LedgerError
from ledger_core.models.base import get_db
from ledger_core.services.ledger_service import LedgerService
from ledger_core.schemas.ledger import (
    LedgerClose,
    LedgerMetrics,
    LedgerResponse,
    LedgerStart,
    OpeningDetailsUpdate,
    RolloverSuggestion,
)

router = APIRouter(prefix="/ledgers", tags=["Ledgers"])


def _error(db: Session, e: LedgerError) -> HTTPException:
    db.rollback()
    return HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.post("", response_model=LedgerResponse, status_code=201)
def start_ledger(
    request: LedgerStart,
    db: Session = Depends(get_db),
):
    """
    Start a new ledger.

    Returns 409 if the owner already has an open ledger.
    """
    service = LedgerService(db)
    try:
        ledger = service.start_ledger(request)
        db.commit()
        return ledger
    except LedgerError as e:
        raise _error(db, e)


@router.get("", response_model=list[LedgerResponse])
def list_ledgers(
    owner_id: str = Query(min_length=1),
    db: Session = Depends(get_db),
):
    """All ledgers for an owner, newest first."""
    return LedgerService(db).list_ledgers(owner_id)


@router.get("/open", response_model=LedgerResponse)
def get_open_ledger(
    owner_id: str = Query(min_length=1),
    db: Session = Depends(get_db),
):
    ledger = LedgerService(db).get_open_ledger(owner_id)
    if not ledger:
        raise HTTPException(
            status_code=404,
            detail={
                "code": "NO_OPEN_LEDGER",
                "message": "No open ledger found; start a new ledger first",
                "context": {"owner_id": owner_id},
            },
        )
    return ledger


@router.get("/rollover", response_model=RolloverSuggestion)
def suggest_rollover(
    owner_id: str = Query(min_length=1),
    today: date | None = None,
    db: Session = Depends(get_db),
):
    """
    Suggested name and opening balances for the next ledger,
    carried forward from the last closed one.
    """
    service = LedgerService(db)
    try:
        return service.suggest_rollover(owner_id, today or date.today())
    except LedgerError as e:
        raise _error(db, e)


@router.get("/{ledger_id}", response_model=LedgerResponse)
def get_ledger(
    ledger_id: int,
    db: Session = Depends(get_db),
):
    try:
        return LedgerService(db).get_ledger(ledger_id)
    except LedgerError as e:
        raise _error(db, e)


@router.put("/{ledger_id}/opening", response_model=LedgerResponse)
def update_opening_details(
    ledger_id: int,
    request: OpeningDetailsUpdate,
    db: Session = Depends(get_db),
):
    """
    Replace the opening configuration of an open ledger.

    Closing balances are reset to the new opening balances.
    """
    service = LedgerService(db)
    try:
        ledger = service.update_opening_details(ledger_id, request)
        db.commit()
        return ledger
    except LedgerError as e:
        raise _error(db, e)


@router.get("/{ledger_id}/metrics", response_model=LedgerMetrics)
def get_metrics(
    ledger_id: int,
    db: Session = Depends(get_db),
):
    """Figures recomputed from the ledger's transactions."""
    service = LedgerService(db)
    try:
        return service.compute_metrics(ledger_id)
    except LedgerError as e:
        raise _error(db, e)


@router.post("/{ledger_id}/close", response_model=LedgerResponse)
def close_ledger(
    ledger_id: int,
    request: LedgerClose,
    db: Session = Depends(get_db),
):
    """
    Close a ledger.

    Closing an already closed ledger returns 409, so a retried
    close never closes twice.
    """
    service = LedgerService(db)
    try:
        ledger = service.close_ledger(ledger_id, request)
        db.commit()
        return ledger
    except LedgerError as e:
        raise _error(db, e)
