"""
Account balance tracker — the incremental per-account balance cache.

Each transaction moves the running closing balance of the account
it names, inside the ledger it belongs to. Income adds, expense
subtracts; deleting a transaction applies the same delta reversed.

This is a cache, not the source of truth. Closing a ledger
recomputes every closing balance from the transaction log, so a
lost or skipped update here corrects itself at period close.
"""

from decimal import Decimal

import structlog
from sqlalchemy.orm import Session

from ledger_core.exceptions import BalanceCacheMiss, InvalidLedgerState
from ledger_core.models.enums import TransactionType
from ledger_core.models.ledger import Ledger, LedgerAccountBalance
from ledger_core.services.storage import lock_ledger, translate_storage_errors

logger = structlog.get_logger(__name__)


class AccountBalanceTracker:

    def __init__(self, db: Session):
        self.db = db

    def _find_balance(self, ledger: Ledger, account_id: str) -> LedgerAccountBalance:
        balance = ledger.find_balance(account_id)
        if balance is None:
            raise BalanceCacheMiss(
                f"Account {account_id} is not part of ledger {ledger.name}",
                ledger_id=ledger.id,
                account_id=account_id,
            )
        return balance

    @staticmethod
    def signed_delta(
        amount: Decimal, transaction_type: TransactionType, reverse: bool = False
    ) -> Decimal:
        delta = Decimal(amount)
        if transaction_type == TransactionType.EXPENSE:
            delta = -delta
        return -delta if reverse else delta

    @translate_storage_errors
    def apply_transaction_delta(
        self,
        ledger_id: int,
        account_id: str | None,
        amount: Decimal,
        transaction_type: TransactionType,
        reverse: bool = False,
    ) -> LedgerAccountBalance | None:
        """
        Move one account's running closing balance.

        amount is an unsigned reporting-currency magnitude. Returns
        the updated balance row, or None when nothing was tracked:
        orphan transactions (no account) and accounts the ledger was
        not opened with are no-ops. The ledger must be open; closed
        figures are immutable.
        """
        if not account_id:
            logger.debug("orphan_transaction_skipped", ledger_id=ledger_id)
            return None

        ledger = lock_ledger(self.db, ledger_id)
        if not ledger.is_open:
            raise InvalidLedgerState(
                f"Ledger {ledger.name} is {ledger.status.value}; "
                f"its balances can no longer change",
                ledger_id=ledger.id,
                status=ledger.status.value,
            )

        try:
            balance = self._find_balance(ledger, account_id)
        except BalanceCacheMiss as e:
            logger.warning("balance_cache_miss", **e.context)
            return None

        delta = self.signed_delta(amount, transaction_type, reverse)
        balance.closing_balance = Decimal(balance.closing_balance) + delta
        self.db.flush()

        logger.debug(
            "account_balance_updated",
            ledger_id=ledger.id,
            account_id=account_id,
            delta=str(delta),
            closing_balance=str(balance.closing_balance),
        )
        return balance
