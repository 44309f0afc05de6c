"""
Transaction service — the income/expense log of a ledger.

Each operation:
1. Validates the ledger (exists, same owner, still open)
2. Writes the transaction record
3. Hands the before/after values to the TransactionApplier,
   which moves the cached account balances

Transactions of a closed ledger are frozen: its closing figures
have already been computed from them. The caller controls the
commit.
"""

from datetime import datetime

import structlog
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from ledger_core.exceptions import (
    InvalidLedgerState,
    LedgerNotFound,
    TransactionNotFound,
)
from ledger_core.models.enums import LedgerStatus
from ledger_core.models.ledger import Ledger
from ledger_core.models.transaction import Transaction
from ledger_core.schemas.transaction import TransactionCreate, TransactionUpdate
from ledger_core.services.storage import lock_ledger, translate_storage_errors
from ledger_core.services.transaction_applier import (
    TransactionApplier,
    TransactionSnapshot,
)

logger = structlog.get_logger(__name__)


class TransactionService:

    def __init__(self, db: Session, applier: TransactionApplier | None = None):
        self.db = db
        self.applier = applier or TransactionApplier(db)

    def _writable_ledger(self, ledger_id: int, owner_id: str) -> Ledger:
        """Lock the ledger and return it if it belongs to owner_id and is open."""
        ledger = lock_ledger(self.db, ledger_id)
        if ledger.owner_id != owner_id:
            raise LedgerNotFound(f"Ledger {ledger_id} not found", ledger_id=ledger_id)
        if not ledger.is_open:
            raise InvalidLedgerState(
                f"Ledger {ledger.name} is closed; its transactions cannot change",
                ledger_id=ledger.id,
                ledger_name=ledger.name,
                status=ledger.status.value,
            )
        return ledger

    def _touch(self, ledger: Ledger) -> None:
        """
        Bump the ledger version after its log changed.

        A close or opening edit that read the ledger before this
        write then fails its version check instead of storing
        figures computed without it.
        """
        result = self.db.execute(
            update(Ledger)
            .where(Ledger.id == ledger.id, Ledger.status == LedgerStatus.OPEN)
            .values(version=Ledger.version + 1, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise InvalidLedgerState(
                f"Ledger {ledger.name} was closed while its transactions changed",
                ledger_id=ledger.id,
                ledger_name=ledger.name,
            )

    @translate_storage_errors
    def record_transaction(self, request: TransactionCreate) -> Transaction:
        ledger = self._writable_ledger(request.ledger_id, request.owner_id)

        txn = Transaction(
            owner_id=request.owner_id,
            ledger_id=ledger.id,
            account_id=request.account_id,
            transaction_type=request.transaction_type,
            amount=request.amount,
            currency=request.currency,
            expense_head=request.expense_head,
            payment_mode=request.payment_mode,
            description=request.description,
            occurred_at=request.occurred_at or datetime.utcnow(),
        )
        self.db.add(txn)
        self.db.flush()

        self.applier.on_created(TransactionSnapshot.from_record(txn))
        self._touch(ledger)

        logger.info(
            "transaction_recorded",
            transaction_id=txn.id,
            ledger_id=ledger.id,
            account_id=txn.account_id,
            transaction_type=txn.transaction_type.value,
            amount=str(txn.amount),
            currency=txn.currency,
        )
        return txn

    @translate_storage_errors
    def update_transaction(
        self, transaction_id: int, request: TransactionUpdate
    ) -> Transaction:
        """
        Edit a transaction.

        Moving it to another ledger is allowed when both ledgers
        are open and belong to the same owner.
        """
        txn = self.get_transaction(transaction_id)
        ledgers = [self._writable_ledger(txn.ledger_id, txn.owner_id)]
        before = TransactionSnapshot.from_record(txn)

        changes = request.model_dump(exclude_unset=True)
        if "ledger_id" in changes and changes["ledger_id"] is None:
            del changes["ledger_id"]
        if "ledger_id" in changes and changes["ledger_id"] != txn.ledger_id:
            ledgers.append(self._writable_ledger(changes["ledger_id"], txn.owner_id))
        for field in ("transaction_type", "amount", "currency", "payment_mode",
                      "description", "occurred_at"):
            if field in changes and changes[field] is None:
                del changes[field]

        for field, value in changes.items():
            setattr(txn, field, value)
        self.db.flush()

        after = TransactionSnapshot.from_record(txn)
        self.applier.on_edited(before, after)
        for ledger in ledgers:
            self._touch(ledger)

        logger.info(
            "transaction_updated",
            transaction_id=txn.id,
            ledger_id=txn.ledger_id,
            fields=sorted(changes),
        )
        return txn

    @translate_storage_errors
    def delete_transaction(self, transaction_id: int) -> None:
        txn = self.get_transaction(transaction_id)
        ledger = self._writable_ledger(txn.ledger_id, txn.owner_id)
        before = TransactionSnapshot.from_record(txn)

        self.db.delete(txn)
        self.db.flush()
        self.applier.on_deleted(before)
        self._touch(ledger)

        logger.info(
            "transaction_deleted",
            transaction_id=transaction_id,
            ledger_id=before.ledger_id,
            account_id=before.account_id,
        )

    def get_transaction(self, transaction_id: int) -> Transaction:
        txn = self.db.get(Transaction, transaction_id)
        if not txn:
            raise TransactionNotFound(
                f"Transaction {transaction_id} not found",
                transaction_id=transaction_id,
            )
        return txn

    def list_for_ledger(self, ledger_id: int) -> list[Transaction]:
        """Transactions of a ledger, newest first."""
        transactions = self.db.execute(
            select(Transaction)
            .where(Transaction.ledger_id == ledger_id)
            .order_by(Transaction.occurred_at.desc(), Transaction.id.desc())
        ).scalars().all()
        return list(transactions)
