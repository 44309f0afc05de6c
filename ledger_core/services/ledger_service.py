"""
Ledger service — the ledger lifecycle and period reconciliation.

This service enforces the rules of an accounting period:
1. An owner has at most one OPEN ledger at a time
2. A ledger goes OPEN -> CLOSED exactly once, and never back
3. Opening configuration can only change while the ledger is open
4. Closing figures are recomputed from the transaction log, never
   taken from the incremental balance cache

State changes lock the ledger row before reading anything, and
the final UPDATE is conditioned on the ledger still being OPEN at
the version read under that lock. Recording, editing or deleting a
transaction bumps the version too, so a close never stores figures
that miss a transaction written while it was computing; it fails
with InvalidLedgerState and can be retried.

The caller controls the transaction boundary and commits.
"""

import json
from datetime import date, datetime
from decimal import Decimal

import structlog
from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ledger_core.exceptions import (
    InvalidAccountConfiguration,
    InvalidLedgerState,
    LedgerAlreadyOpen,
    LedgerNotFound,
)
from ledger_core.models.audit_log import AuditLog
from ledger_core.models.enums import LedgerStatus
from ledger_core.models.ledger import Ledger, LedgerAccountBalance
from ledger_core.models.transaction import Transaction
from ledger_core.schemas.ledger import (
    AccountBalanceInput,
    LedgerClose,
    LedgerMetrics,
    LedgerStart,
    OpeningDetailsUpdate,
    RolloverSuggestion,
)
from ledger_core.services.account_directory import AccountDirectory
from ledger_core.services.currency import CurrencyNormalizer, ExchangeRateService
from ledger_core.services.reconciliation import (
    compute_ledger_metrics,
    opening_aggregate,
)
from ledger_core.services.storage import lock_ledger, translate_storage_errors

logger = structlog.get_logger(__name__)


MONTH_ABBREVIATIONS = (
    "JAN", "FEB", "MAR", "APR", "MAY", "JUN",
    "JUL", "AUG", "SEP", "OCT", "NOV", "DEC",
)


def ledger_name_for(day: date) -> str:
    """Default ledger name for the period containing day, e.g. JAN-25."""
    return f"{MONTH_ABBREVIATIONS[day.month - 1]}-{day.year % 100:02d}"


class LedgerService:
    """
    All ledger lifecycle operations pass through this service.

    The service takes a database session as a constructor
    argument; it flushes but never commits.
    """

    def __init__(self, db: Session, rates: ExchangeRateService | None = None):
        self.db = db
        self.rates = rates or ExchangeRateService(db)
        self.directory = AccountDirectory(db)

    # --- Queries ---

    def get_ledger(self, ledger_id: int) -> Ledger:
        ledger = self.db.get(Ledger, ledger_id)
        if not ledger:
            raise LedgerNotFound(f"Ledger {ledger_id} not found", ledger_id=ledger_id)
        return ledger

    def get_open_ledger(self, owner_id: str) -> Ledger | None:
        return self.db.execute(
            select(Ledger).where(
                Ledger.owner_id == owner_id,
                Ledger.status == LedgerStatus.OPEN,
            )
        ).scalar_one_or_none()

    def list_ledgers(self, owner_id: str) -> list[Ledger]:
        """All ledgers for an owner, newest first."""
        ledgers = self.db.execute(
            select(Ledger)
            .where(Ledger.owner_id == owner_id)
            .order_by(Ledger.start_date.desc(), Ledger.id.desc())
        ).scalars().all()
        return list(ledgers)

    def get_last_closed_ledger(self, owner_id: str) -> Ledger | None:
        return self.db.execute(
            select(Ledger)
            .where(
                Ledger.owner_id == owner_id,
                Ledger.status == LedgerStatus.CLOSED,
            )
            .order_by(Ledger.end_date.desc(), Ledger.id.desc())
            .limit(1)
        ).scalar_one_or_none()

    def get_ledger_transactions(self, ledger: Ledger) -> list[Transaction]:
        """The ledger's transaction log, restricted to the ledger's owner."""
        transactions = self.db.execute(
            select(Transaction)
            .where(
                Transaction.ledger_id == ledger.id,
                Transaction.owner_id == ledger.owner_id,
            )
            .order_by(Transaction.occurred_at, Transaction.id)
        ).scalars().all()
        return list(transactions)

    # --- Helpers ---

    def _require_open(self, ledger: Ledger, action: str) -> None:
        if not ledger.can_transition_to(LedgerStatus.CLOSED):
            raise InvalidLedgerState(
                f"Cannot {action} ledger {ledger.name}: it is "
                f"{ledger.status.value}",
                ledger_id=ledger.id,
                ledger_name=ledger.name,
                status=ledger.status.value,
            )

    def _already_open_error(self, ledger: Ledger) -> LedgerAlreadyOpen:
        return LedgerAlreadyOpen(
            f"A ledger is already open named {ledger.name}; "
            f"close it before starting a new one",
            ledger_id=ledger.id,
            ledger_name=ledger.name,
        )

    def _prepare_balances(
        self, owner_id: str, rows: list[AccountBalanceInput]
    ) -> list[LedgerAccountBalance]:
        """
        Validate an opening configuration and build its rows.

        Incomplete rows are skipped. Closing balances start equal
        to opening balances. Nothing is attached to the session.
        """
        valid = [row for row in rows if row.is_valid]
        if not valid:
            raise InvalidAccountConfiguration(
                "Add at least one account with an opening balance",
                rows_supplied=len(rows),
            )

        seen: set[str] = set()
        duplicates: set[str] = set()
        for row in valid:
            account_id = row.account_id.strip()
            if account_id in seen:
                duplicates.add(account_id)
            seen.add(account_id)
        if duplicates:
            raise InvalidAccountConfiguration(
                f"Accounts listed more than once: {', '.join(sorted(duplicates))}",
                account_ids=sorted(duplicates),
            )

        directory = self.directory.lookup(owner_id, seen)

        balances = []
        for position, row in enumerate(valid):
            account_id = row.account_id.strip()
            known = directory.get(account_id)
            kind = row.account_kind or (known.kind if known else None)
            if kind is None:
                raise InvalidAccountConfiguration(
                    f"Account {account_id} is not a known bank account or "
                    f"credit card; supply its kind",
                    account_id=account_id,
                )
            name = row.account_name or (known.display_name if known else account_id)
            opening = Decimal(row.opening_balance)
            balances.append(LedgerAccountBalance(
                position=position,
                account_id=account_id,
                account_name=name,
                account_kind=kind,
                opening_balance=opening,
                closing_balance=opening,
            ))
        return balances

    def _record_event(self, event_type: str, ledger: Ledger, **details) -> None:
        self.db.add(AuditLog(
            event_type=event_type,
            owner_id=ledger.owner_id,
            ledger_id=ledger.id,
            details=json.dumps(details, default=str, sort_keys=True),
        ))

    def _metrics(self, ledger: Ledger) -> tuple[LedgerMetrics, CurrencyNormalizer]:
        normalizer = self.rates.normalizer()
        metrics = compute_ledger_metrics(
            ledger.account_balances,
            self.get_ledger_transactions(ledger),
            normalizer,
            legacy_opening_balance=ledger.opening_balance,
            ledger_id=ledger.id,
        )
        return metrics, normalizer

    def _transition(self, ledger: Ledger, expected_version: int, **values) -> None:
        """
        Apply an UPDATE only if the ledger is still OPEN at
        expected_version. Raises InvalidLedgerState otherwise.
        """
        result = self.db.execute(
            update(Ledger)
            .where(
                Ledger.id == ledger.id,
                Ledger.status == LedgerStatus.OPEN,
                Ledger.version == expected_version,
            )
            .values(
                version=Ledger.version + 1,
                updated_at=datetime.utcnow(),
                **values,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            self.db.expire(ledger)
            raise InvalidLedgerState(
                f"Ledger {ledger.name} was closed or modified concurrently",
                ledger_id=ledger.id,
                ledger_name=ledger.name,
            )

    # --- Lifecycle ---

    @translate_storage_errors
    def start_ledger(self, request: LedgerStart) -> Ledger:
        """
        Open a new ledger for an owner.

        Fails with LedgerAlreadyOpen if the owner has an open
        ledger. The check here gives a friendly error; the partial
        unique index is what actually closes the race between two
        concurrent starts.
        """
        existing = self.get_open_ledger(request.owner_id)
        if existing:
            raise self._already_open_error(existing)

        balances = self._prepare_balances(request.owner_id, request.account_balances)

        ledger = Ledger(
            owner_id=request.owner_id,
            name=request.name.strip(),
            status=LedgerStatus.OPEN,
            start_date=request.start_date,
            opening_balance=opening_aggregate(balances),
            account_balances=balances,
        )
        self.db.add(ledger)
        try:
            self.db.flush()
        except IntegrityError:
            # Another start for this owner committed between our check and insert
            self.db.rollback()
            logger.warning("ledger_start_conflict", owner_id=request.owner_id)
            existing = self.get_open_ledger(request.owner_id)
            if existing is None:
                raise
            raise self._already_open_error(existing)

        self._record_event(
            "LEDGER_STARTED",
            ledger,
            name=ledger.name,
            opening_balance=ledger.opening_balance,
            accounts=[b.account_id for b in balances],
        )
        self.db.flush()

        logger.info(
            "ledger_started",
            ledger_id=ledger.id,
            owner_id=ledger.owner_id,
            name=ledger.name,
            opening_balance=str(ledger.opening_balance),
            accounts=len(balances),
        )
        return ledger

    @translate_storage_errors
    def update_opening_details(
        self, ledger_id: int, request: OpeningDetailsUpdate
    ) -> Ledger:
        """
        Replace an open ledger's opening configuration.

        This edits the starting point, not the running figures:
        every closing balance is reset to its new opening balance,
        discarding whatever the balance cache had accumulated.
        """
        ledger = lock_ledger(self.db, ledger_id)
        expected_version = ledger.version
        self._require_open(ledger, "update opening details of")

        balances = self._prepare_balances(ledger.owner_id, request.account_balances)
        opening = opening_aggregate(balances)

        self._transition(
            ledger,
            expected_version,
            opening_balance=opening,
            start_date=request.start_date,
        )

        # Delete the old rows before inserting the new ones, so a
        # re-listed account does not trip the (ledger, account) unique key
        ledger.account_balances.clear()
        self.db.flush()
        ledger.account_balances.extend(balances)
        self._record_event(
            "LEDGER_OPENING_UPDATED",
            ledger,
            opening_balance=opening,
            start_date=request.start_date,
            accounts=[b.account_id for b in balances],
        )
        self.db.flush()
        self.db.refresh(ledger)

        logger.info(
            "ledger_opening_updated",
            ledger_id=ledger.id,
            owner_id=ledger.owner_id,
            opening_balance=str(opening),
            accounts=len(balances),
        )
        return ledger

    @translate_storage_errors
    def compute_metrics(self, ledger_id: int) -> LedgerMetrics:
        """
        Recompute a ledger's figures from its transaction log.

        Read-only. Uses the current exchange rate table, so the
        figures of a closed ledger can move if rates change; the
        closing figures stored at close time do not.
        """
        ledger = self.get_ledger(ledger_id)
        metrics, _ = self._metrics(ledger)
        return metrics

    @translate_storage_errors
    def close_ledger(self, ledger_id: int, request: LedgerClose) -> Ledger:
        """
        Close an open ledger.

        Per-account closing balances are recomputed from the
        transaction log and overwrite the incremental cache. The
        aggregate is stored twice: computed_closing_balance is the
        signed sum of the per-account figures, closing_balance is
        what the user reported (the computed value unless they
        overrode it). The two may differ; that is recorded, not
        corrected.
        """
        ledger = lock_ledger(self.db, ledger_id)
        expected_version = ledger.version
        self._require_open(ledger, "close")
        if request.closing_date < ledger.start_date:
            raise InvalidLedgerState(
                f"Ledger {ledger.name} cannot close on {request.closing_date}, "
                f"before it started on {ledger.start_date}",
                ledger_id=ledger.id,
                start_date=ledger.start_date,
                closing_date=request.closing_date,
            )

        # Compute the complete new state before writing any of it
        metrics, normalizer = self._metrics(ledger)
        computed = metrics.computed_closing_balance
        reported = (
            request.closing_balance
            if request.closing_balance is not None
            else computed
        )

        self._transition(
            ledger,
            expected_version,
            status=LedgerStatus.CLOSED,
            end_date=request.closing_date,
            closing_balance=reported,
            computed_closing_balance=computed,
            rates_as_of=normalizer.table.last_updated or datetime.utcnow(),
        )
        drifted = []
        for balance in ledger.account_balances:
            authoritative = metrics.account_closing_balances[balance.account_id]
            if Decimal(balance.closing_balance) != authoritative:
                drifted.append(balance.account_id)
            balance.closing_balance = authoritative

        self._record_event(
            "LEDGER_CLOSED",
            ledger,
            closing_date=request.closing_date,
            computed_closing_balance=computed,
            reported_closing_balance=reported,
            overridden=reported != computed,
            corrected_accounts=drifted,
            missing_rates=metrics.missing_rates,
        )
        self.db.flush()
        self.db.refresh(ledger)

        if drifted:
            logger.warning(
                "balance_cache_corrected",
                ledger_id=ledger.id,
                account_ids=drifted,
            )
        logger.info(
            "ledger_closed",
            ledger_id=ledger.id,
            owner_id=ledger.owner_id,
            computed_closing_balance=str(computed),
            reported_closing_balance=str(reported),
            overridden=reported != computed,
        )
        return ledger

    # --- Rollover ---

    @translate_storage_errors
    def suggest_rollover(self, owner_id: str, today: date) -> RolloverSuggestion:
        """
        Pre-fill the next ledger from the last closed one.

        Each account's closing balance becomes its opening
        balance. Nothing is written; the caller passes the result
        (possibly edited) to start_ledger.
        """
        previous = self.get_last_closed_ledger(owner_id)
        rows = []
        if previous:
            rows = [
                AccountBalanceInput(
                    account_id=b.account_id,
                    account_name=b.account_name,
                    account_kind=b.account_kind,
                    opening_balance=Decimal(b.closing_balance),
                )
                for b in previous.account_balances
            ]
        return RolloverSuggestion(
            name=ledger_name_for(today),
            start_date=today,
            previous_ledger_id=previous.id if previous else None,
            opening_balance=(
                Decimal(previous.closing_balance)
                if previous and previous.closing_balance is not None
                else Decimal("0")
            ),
            account_balances=rows,
        )
