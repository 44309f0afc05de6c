"""
Transaction API endpoints.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.orm import Session

from ledger_core.exceptions import LedgerError
from ledger_core.models.base import get_db
from ledger_core.services.transaction_service import TransactionService
from ledger_core.schemas.transaction import (
    TransactionCreate,
    TransactionUpdate,
    TransactionResponse,
)

router = APIRouter(prefix="/transactions", tags=["Transactions"])


@router.post("", response_model=TransactionResponse, status_code=201)
def record_transaction(
    request: TransactionCreate,
    db: Session = Depends(get_db),
):
    """Record a transaction and move its account's running balance."""
    service = TransactionService(db)
    try:
        txn = service.record_transaction(request)
        db.commit()
        return txn
    except LedgerError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.get("", response_model=list[TransactionResponse])
def list_transactions(
    ledger_id: int = Query(),
    db: Session = Depends(get_db),
):
    """Transactions of a ledger, newest first."""
    return TransactionService(db).list_for_ledger(ledger_id)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    service = TransactionService(db)
    try:
        return service.get_transaction(transaction_id)
    except LedgerError as e:
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: int,
    request: TransactionUpdate,
    db: Session = Depends(get_db),
):
    """Edit a transaction; balances are re-applied from the new values."""
    service = TransactionService(db)
    try:
        txn = service.update_transaction(transaction_id, request)
        db.commit()
        return txn
    except LedgerError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())


@router.delete("/{transaction_id}", status_code=204)
def delete_transaction(
    transaction_id: int,
    db: Session = Depends(get_db),
):
    """Delete a transaction and reverse its balance effect."""
    service = TransactionService(db)
    try:
        service.delete_transaction(transaction_id)
        db.commit()
        return Response(status_code=204)
    except LedgerError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.to_detail())
