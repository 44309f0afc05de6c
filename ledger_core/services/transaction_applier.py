"""
Transaction applier — keeps the balance cache in step with the log.

Called after a transaction is created, edited or deleted. It
converts the amount into the reporting currency and hands the
delta to the AccountBalanceTracker. It holds no state of its own.

An edit is always modelled as "remove the old transaction, add
the new one", so changing amount, type, account or ledger can
never count a transaction twice.
"""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy.orm import Session

from ledger_core.models.enums import TransactionType
from ledger_core.models.ledger import LedgerAccountBalance
from ledger_core.services.balance_tracker import AccountBalanceTracker
from ledger_core.services.currency import CurrencyNormalizer, ExchangeRateService


@dataclass(frozen=True)
class TransactionSnapshot:
    """The fields of a transaction that affect account balances."""
    ledger_id: int
    account_id: str | None
    amount: Decimal
    currency: str
    transaction_type: TransactionType

    @classmethod
    def from_record(cls, txn) -> "TransactionSnapshot":
        return cls(
            ledger_id=txn.ledger_id,
            account_id=txn.account_id or None,
            amount=Decimal(txn.amount),
            currency=txn.currency,
            transaction_type=txn.transaction_type,
        )


class TransactionApplier:

    def __init__(
        self,
        db: Session,
        normalizer: CurrencyNormalizer | None = None,
        tracker: AccountBalanceTracker | None = None,
    ):
        self.db = db
        self._normalizer = normalizer
        self.tracker = tracker or AccountBalanceTracker(db)

    @property
    def normalizer(self) -> CurrencyNormalizer:
        if self._normalizer is None:
            self._normalizer = ExchangeRateService(self.db).normalizer()
        return self._normalizer

    def _apply(
        self, snapshot: TransactionSnapshot, reverse: bool
    ) -> LedgerAccountBalance | None:
        if not snapshot.account_id:
            return None
        amount = self.normalizer.to_reporting_currency(
            snapshot.amount, snapshot.currency
        )
        return self.tracker.apply_transaction_delta(
            snapshot.ledger_id,
            snapshot.account_id,
            amount,
            snapshot.transaction_type,
            reverse=reverse,
        )

    def on_created(self, snapshot: TransactionSnapshot) -> LedgerAccountBalance | None:
        return self._apply(snapshot, reverse=False)

    def on_deleted(self, snapshot: TransactionSnapshot) -> LedgerAccountBalance | None:
        return self._apply(snapshot, reverse=True)

    def on_edited(
        self, before: TransactionSnapshot, after: TransactionSnapshot
    ) -> None:
        if before == after:
            return
        self.on_deleted(before)
        self.on_created(after)
