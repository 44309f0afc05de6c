"""
Comprehensive tests for the LedgerService.

Tests cover:
- Starting a ledger and the one-open-ledger-per-owner rule
- Opening configuration validation and directory labelling
- Editing the opening configuration
- Metrics recomputed from the transaction log
- Closing: authoritative recompute, overrides, retry safety
- Rollover suggestions
"""

import json
from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import Select, select, update
from sqlalchemy.dialects import postgresql
from sqlalchemy.exc import IntegrityError

from ledger_core.exceptions import (
    InvalidAccountConfiguration,
    InvalidLedgerState,
    LedgerAlreadyOpen,
    LedgerNotFound,
)
from ledger_core.models.audit_log import AuditLog
from ledger_core.models.enums import (
    AccountKind,
    LedgerStatus,
    PaymentMode,
    TransactionType,
)
from ledger_core.models.financial_account import FinancialAccount
from ledger_core.models.ledger import Ledger, LedgerAccountBalance
from ledger_core.models.transaction import Transaction
from ledger_core.schemas.ledger import (
    AccountBalanceInput,
    LedgerClose,
    LedgerStart,
    OpeningDetailsUpdate,
)
from ledger_core.schemas.transaction import TransactionCreate
from ledger_core.services.ledger_service import LedgerService, ledger_name_for
from ledger_core.services.transaction_service import TransactionService


# --- Helpers to reduce repetition ---

def bank(account_id, opening):
    return AccountBalanceInput(
        account_id=account_id,
        account_kind=AccountKind.BANK,
        opening_balance=Decimal(opening),
    )


def card(account_id, opening):
    return AccountBalanceInput(
        account_id=account_id,
        account_kind=AccountKind.CREDIT_CARD,
        opening_balance=Decimal(opening),
    )


def start(service, owner="u1", name="FEB-25", accounts=None,
          start_date=date(2025, 2, 1)):
    return service.start_ledger(LedgerStart(
        owner_id=owner,
        name=name,
        start_date=start_date,
        account_balances=(
            accounts if accounts is not None
            else [bank("b1", "1000"), card("c1", "-200")]
        ),
    ))


def close(service, ledger_id, closing_date=date(2025, 2, 28), override=None):
    return service.close_ledger(ledger_id, LedgerClose(
        closing_date=closing_date,
        closing_balance=override,
    ))


def record(db_session, ledger_id, kind, amount, account_id="b1", owner="u1", **extra):
    return TransactionService(db_session).record_transaction(TransactionCreate(
        owner_id=owner,
        ledger_id=ledger_id,
        account_id=account_id,
        transaction_type=kind,
        amount=Decimal(amount),
        **extra,
    ))


def insert_unapplied(db_session, ledger_id, kind, amount, account_id="b1", owner="u1"):
    """Write a transaction without touching the balance cache."""
    txn = Transaction(
        owner_id=owner,
        ledger_id=ledger_id,
        account_id=account_id,
        transaction_type=kind,
        amount=Decimal(amount),
        currency="INR",
    )
    db_session.add(txn)
    db_session.flush()
    return txn


def bump_version(db_session, ledger_id):
    """Commit a change to the ledger row the way another request would."""
    db_session.execute(
        update(Ledger)
        .where(Ledger.id == ledger_id)
        .values(version=Ledger.version + 1)
        .execution_options(synchronize_session=False)
    )
    db_session.commit()


def stored_closings(db_session, ledger_id):
    rows = db_session.execute(
        select(LedgerAccountBalance.account_id, LedgerAccountBalance.closing_balance)
        .where(LedgerAccountBalance.ledger_id == ledger_id)
        .order_by(LedgerAccountBalance.position)
    ).all()
    return [(account_id, closing) for account_id, closing in rows]


def audit_events(db_session, ledger_id):
    return db_session.execute(
        select(AuditLog.event_type)
        .where(AuditLog.ledger_id == ledger_id)
        .order_by(AuditLog.id)
    ).scalars().all()


def ledger_locks(db_session, monkeypatch):
    """Record every SELECT on ledgers, rendered for PostgreSQL."""
    seen = []
    real_execute = db_session.execute

    def spy(statement, *args, **kwargs):
        if isinstance(statement, Select) and Ledger.__table__ in statement.get_final_froms():
            seen.append(str(statement.compile(dialect=postgresql.dialect())))
        return real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", spy)
    return seen


def open_count(db_session, owner):
    return len(db_session.execute(
        select(Ledger).where(
            Ledger.owner_id == owner, Ledger.status == LedgerStatus.OPEN
        )
    ).scalars().all())


# --- Start Ledger Tests ---

class TestStartLedger:

    def test_start_computes_signed_opening_aggregate(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()

        assert ledger.id is not None
        assert ledger.status == LedgerStatus.OPEN
        assert ledger.opening_balance == Decimal("800")
        assert ledger.closing_balance is None
        assert ledger.end_date is None

    def test_closing_balances_start_equal_to_opening(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()

        assert [
            (b.account_id, b.opening_balance, b.closing_balance)
            for b in ledger.account_balances
        ] == [
            ("b1", Decimal("1000"), Decimal("1000")),
            ("c1", Decimal("-200"), Decimal("-200")),
        ]

    def test_second_open_ledger_rejected(self, db_session):
        service = LedgerService(db_session)
        start(service, name="JAN-25")
        db_session.commit()

        with pytest.raises(LedgerAlreadyOpen, match="JAN-25") as exc_info:
            start(service, name="FEB-25")

        assert exc_info.value.context["ledger_name"] == "JAN-25"

    def test_other_owners_are_independent(self, db_session):
        service = LedgerService(db_session)
        start(service, owner="u1")
        start(service, owner="u2")
        db_session.commit()

        assert open_count(db_session, "u1") == 1
        assert open_count(db_session, "u2") == 1

    def test_concurrent_start_caught_by_unique_index(self, db_session, monkeypatch):
        """A start that passed the check before a rival committed still fails."""
        service = LedgerService(db_session)
        start(service, name="JAN-25")
        db_session.commit()

        real_lookup = service.get_open_ledger
        calls = []

        def stale_lookup(owner_id):
            calls.append(owner_id)
            return None if len(calls) == 1 else real_lookup(owner_id)

        monkeypatch.setattr(service, "get_open_ledger", stale_lookup)

        with pytest.raises(LedgerAlreadyOpen, match="JAN-25"):
            start(service, name="FEB-25")

        assert open_count(db_session, "u1") == 1

    def test_unique_index_rejects_second_open_row(self, db_session):
        db_session.add(Ledger(owner_id="u1", name="A", start_date=date(2025, 1, 1)))
        db_session.flush()
        db_session.add(Ledger(owner_id="u1", name="B", start_date=date(2025, 2, 1)))

        with pytest.raises(IntegrityError):
            db_session.flush()

    def test_unique_index_allows_closed_ledgers(self, db_session):
        db_session.add(Ledger(
            owner_id="u1", name="A", start_date=date(2025, 1, 1),
            status=LedgerStatus.CLOSED,
        ))
        db_session.add(Ledger(
            owner_id="u1", name="B", start_date=date(2025, 2, 1),
            status=LedgerStatus.CLOSED,
        ))
        db_session.add(Ledger(owner_id="u1", name="C", start_date=date(2025, 3, 1)))
        db_session.flush()

        assert open_count(db_session, "u1") == 1

    def test_no_valid_account_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(InvalidAccountConfiguration, match="at least one account"):
            start(service, accounts=[
                AccountBalanceInput(account_id="", opening_balance=Decimal("10")),
                AccountBalanceInput(account_id="b1", account_kind=AccountKind.BANK),
            ])

        assert open_count(db_session, "u1") == 0

    def test_empty_account_list_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(InvalidAccountConfiguration):
            start(service, accounts=[])

    def test_incomplete_rows_are_skipped(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service, accounts=[
            bank("b1", "1000"),
            AccountBalanceInput(account_id="", opening_balance=Decimal("99")),
        ])

        assert [b.account_id for b in ledger.account_balances] == ["b1"]
        assert ledger.opening_balance == Decimal("1000")

    def test_duplicate_account_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(InvalidAccountConfiguration, match="more than once"):
            start(service, accounts=[bank("b1", "10"), bank("b1", "20")])

    def test_labels_filled_from_directory(self, db_session):
        db_session.add(FinancialAccount(
            id="hdfc-1", owner_id="u1", display_name="HDFC Savings",
            kind=AccountKind.BANK, is_default=True,
        ))
        db_session.add(FinancialAccount(
            id="amex-1", owner_id="u1", display_name="Amex Gold",
            kind=AccountKind.CREDIT_CARD,
        ))
        db_session.commit()
        service = LedgerService(db_session)

        ledger = start(service, accounts=[
            AccountBalanceInput(account_id="hdfc-1", opening_balance=Decimal("5000")),
            AccountBalanceInput(account_id="amex-1", opening_balance=Decimal("700")),
        ])

        assert [(b.account_name, b.account_kind) for b in ledger.account_balances] == [
            ("HDFC Savings", AccountKind.BANK),
            ("Amex Gold", AccountKind.CREDIT_CARD),
        ]
        # A card entered as a positive debt still subtracts
        assert ledger.opening_balance == Decimal("4300")

    def test_unknown_account_without_kind_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(InvalidAccountConfiguration, match="ghost"):
            start(service, accounts=[
                AccountBalanceInput(account_id="ghost", opening_balance=Decimal("1")),
            ])

    def test_start_is_audited(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()

        events = db_session.execute(
            select(AuditLog).where(AuditLog.ledger_id == ledger.id)
        ).scalars().all()
        assert [e.event_type for e in events] == ["LEDGER_STARTED"]
        assert json.loads(events[0].details)["accounts"] == ["b1", "c1"]

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError, match="must not be blank"):
            LedgerStart(owner_id="u1", name="   ", start_date=date(2025, 2, 1))

    def test_name_is_trimmed(self, db_session):
        ledger = start(LedgerService(db_session), name="  MAR-25 ")

        assert ledger.name == "MAR-25"


# --- Update Opening Details Tests ---

class TestUpdateOpeningDetails:

    def test_replaces_accounts_and_recomputes_aggregate(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()

        updated = service.update_opening_details(ledger.id, OpeningDetailsUpdate(
            start_date=date(2025, 2, 3),
            account_balances=[bank("b1", "2000"), bank("b2", "500"), card("c1", "-300")],
        ))
        db_session.commit()

        assert updated.opening_balance == Decimal("2200")
        assert updated.start_date == date(2025, 2, 3)
        assert [b.account_id for b in updated.account_balances] == ["b1", "b2", "c1"]
        assert updated.version == 2

    def test_resets_accumulated_drift(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        db_session.commit()
        assert ledger.find_balance("b1").closing_balance == Decimal("1500")

        service.update_opening_details(ledger.id, OpeningDetailsUpdate(
            start_date=date(2025, 2, 1),
            account_balances=[bank("b1", "1100"), card("c1", "-200")],
        ))
        db_session.commit()

        assert ledger.find_balance("b1").closing_balance == Decimal("1100")

    def test_invalid_configuration_leaves_ledger_unchanged(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()

        with pytest.raises(InvalidAccountConfiguration):
            service.update_opening_details(ledger.id, OpeningDetailsUpdate(
                start_date=date(2025, 2, 1),
                account_balances=[AccountBalanceInput(account_id="b1")],
            ))
        db_session.rollback()

        assert ledger.opening_balance == Decimal("800")
        assert ledger.version == 1
        assert len(ledger.account_balances) == 2

    def test_closed_ledger_rejected(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        close(service, ledger.id)
        db_session.commit()

        with pytest.raises(InvalidLedgerState, match="CLOSED"):
            service.update_opening_details(ledger.id, OpeningDetailsUpdate(
                start_date=date(2025, 2, 1),
                account_balances=[bank("b1", "1")],
            ))

    def test_missing_ledger_rejected(self, db_session):
        service = LedgerService(db_session)

        with pytest.raises(LedgerNotFound):
            service.update_opening_details(999, OpeningDetailsUpdate(
                start_date=date(2025, 2, 1),
                account_balances=[bank("b1", "1")],
            ))


# --- Metrics Tests ---

class TestComputeMetrics:

    def test_metrics_follow_transactions(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        record(db_session, ledger.id, TransactionType.EXPENSE, "150")
        record(
            db_session, ledger.id, TransactionType.EXPENSE, "80", account_id=None,
            payment_mode=PaymentMode.CASH,
        )
        db_session.commit()

        metrics = service.compute_metrics(ledger.id)

        assert metrics.account_closing_balances["b1"] == Decimal("1350")
        assert metrics.total_income == Decimal("500")
        assert metrics.total_expenses == Decimal("230")
        assert metrics.orphan_transaction_count == 1
        assert metrics.reporting_currency == "INR"

    def test_other_owners_transactions_are_excluded(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        insert_unapplied(db_session, ledger.id, TransactionType.INCOME, "999", owner="intruder")
        db_session.commit()

        metrics = service.compute_metrics(ledger.id)

        assert metrics.total_income == Decimal("0")
        assert metrics.account_closing_balances["b1"] == Decimal("1000")

    def test_missing_ledger_rejected(self, db_session):
        with pytest.raises(LedgerNotFound):
            LedgerService(db_session).compute_metrics(42)


# --- Close Ledger Tests ---

class TestCloseLedger:

    def test_start_apply_close(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        assert ledger.opening_balance == Decimal("800")
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        record(db_session, ledger.id, TransactionType.EXPENSE, "150")
        db_session.commit()

        closed = close(service, ledger.id)
        db_session.commit()

        assert closed.status == LedgerStatus.CLOSED
        assert closed.end_date == date(2025, 2, 28)
        assert closed.find_balance("b1").closing_balance == Decimal("1350")
        assert closed.find_balance("c1").closing_balance == Decimal("-200")
        assert closed.closing_balance == Decimal("1150")
        assert closed.computed_closing_balance == Decimal("1150")
        assert closed.has_closing_override is False
        assert closed.rates_as_of is not None

    def test_second_close_rejected_and_figures_unchanged(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        close(service, ledger.id)
        db_session.commit()
        before = (ledger.closing_balance, ledger.end_date, ledger.version)

        with pytest.raises(InvalidLedgerState):
            close(service, ledger.id, closing_date=date(2025, 3, 5), override=Decimal("1"))
        db_session.rollback()

        assert (ledger.closing_balance, ledger.end_date, ledger.version) == before

    def test_recompute_overrides_drifted_cache(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        insert_unapplied(db_session, ledger.id, TransactionType.EXPENSE, "150")
        insert_unapplied(db_session, ledger.id, TransactionType.EXPENSE, "25", account_id="c1")
        db_session.commit()
        assert ledger.find_balance("b1").closing_balance == Decimal("1500")

        closed = close(service, ledger.id)
        db_session.commit()

        assert closed.find_balance("b1").closing_balance == Decimal("1350")
        assert closed.find_balance("c1").closing_balance == Decimal("-225")
        assert closed.computed_closing_balance == Decimal("1125")

    def test_orphans_never_reach_account_balances(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "700", account_id=None)
        db_session.commit()

        closed = close(service, ledger.id)

        assert closed.find_balance("b1").closing_balance == Decimal("1000")
        assert closed.closing_balance == Decimal("800")

    def test_override_is_kept_separately_from_computed_figure(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        db_session.commit()

        closed = close(service, ledger.id, override=Decimal("1275.50"))
        db_session.commit()

        assert closed.closing_balance == Decimal("1275.50")
        assert closed.computed_closing_balance == Decimal("1300")
        assert closed.has_closing_override is True
        assert closed.find_balance("b1").closing_balance == Decimal("1500")

    def test_close_before_start_rejected(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)

        with pytest.raises(InvalidLedgerState, match="before it started"):
            close(service, ledger.id, closing_date=date(2025, 1, 31))

        assert ledger.status == LedgerStatus.OPEN

    def test_missing_ledger_rejected(self, db_session):
        with pytest.raises(LedgerNotFound):
            close(LedgerService(db_session), 404)

    def test_close_is_audited_with_override_flag(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        close(service, ledger.id, override=Decimal("10"))
        db_session.commit()

        event = db_session.execute(
            select(AuditLog).where(AuditLog.event_type == "LEDGER_CLOSED")
        ).scalar_one()
        details = json.loads(event.details)
        assert details["overridden"] is True
        assert Decimal(details["computed_closing_balance"]) == Decimal("800")

    def test_at_most_one_open_ledger_across_periods(self, db_session):
        service = LedgerService(db_session)
        for month in range(1, 5):
            ledger = start(service, name=f"M{month}", start_date=date(2025, month, 1))
            db_session.commit()
            assert open_count(db_session, "u1") == 1
            with pytest.raises(LedgerAlreadyOpen):
                start(service, name="extra", start_date=date(2025, month, 2))
            close(service, ledger.id, closing_date=date(2025, month, 28))
            db_session.commit()
            assert open_count(db_session, "u1") == 0


# --- Concurrent Change Tests ---

class TestConcurrentChanges:
    """
    A close or opening edit that loses a race fails and writes
    nothing; the ledger keeps the winner's state.
    """

    def test_close_and_opening_edit_take_row_lock(self, db_session, monkeypatch):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()
        seen = ledger_locks(db_session, monkeypatch)

        service.update_opening_details(ledger.id, OpeningDetailsUpdate(
            start_date=date(2025, 2, 1),
            account_balances=[bank("b1", "1000")],
        ))
        edit_locks = [s for s in seen if "FOR UPDATE" in s]
        close(service, ledger.id)
        close_locks = [s for s in seen if "FOR UPDATE" in s]

        assert len(edit_locks) == 1
        assert len(close_locks) == 2

    def test_close_fails_when_ledger_changed_while_computing(self, db_session, monkeypatch):
        service = LedgerService(db_session)
        ledger = start(service)
        insert_unapplied(db_session, ledger.id, TransactionType.EXPENSE, "150")
        db_session.commit()
        real_metrics = service._metrics

        def metrics_then_concurrent_edit(target):
            result = real_metrics(target)
            bump_version(db_session, ledger.id)
            return result

        monkeypatch.setattr(service, "_metrics", metrics_then_concurrent_edit)

        with pytest.raises(InvalidLedgerState, match="concurrently"):
            close(service, ledger.id)
        db_session.rollback()

        refreshed = db_session.get(Ledger, ledger.id)
        assert refreshed.status == LedgerStatus.OPEN
        assert refreshed.closing_balance is None
        assert stored_closings(db_session, ledger.id) == [
            ("b1", Decimal("1000")),
            ("c1", Decimal("-200")),
        ]
        assert audit_events(db_session, ledger.id) == ["LEDGER_STARTED"]

    def test_opening_edit_fails_when_ledger_changed_meanwhile(self, db_session, monkeypatch):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()
        real_prepare = service._prepare_balances

        def prepare_then_concurrent_edit(owner_id, rows):
            balances = real_prepare(owner_id, rows)
            bump_version(db_session, ledger.id)
            return balances

        monkeypatch.setattr(service, "_prepare_balances", prepare_then_concurrent_edit)

        with pytest.raises(InvalidLedgerState):
            service.update_opening_details(ledger.id, OpeningDetailsUpdate(
                start_date=date(2025, 2, 10),
                account_balances=[bank("b9", "5")],
            ))
        db_session.rollback()

        refreshed = db_session.get(Ledger, ledger.id)
        assert refreshed.opening_balance == Decimal("800")
        assert refreshed.start_date == date(2025, 2, 1)
        assert stored_closings(db_session, ledger.id) == [
            ("b1", Decimal("1000")),
            ("c1", Decimal("-200")),
        ]
        assert audit_events(db_session, ledger.id) == ["LEDGER_STARTED"]

    def test_transaction_recorded_mid_close_is_not_lost(self, db_session, monkeypatch):
        service = LedgerService(db_session)
        ledger = start(service)
        db_session.commit()
        real_metrics = service._metrics
        interleaved = []

        def metrics_then_record(target):
            result = real_metrics(target)
            if not interleaved:
                interleaved.append(
                    record(db_session, ledger.id, TransactionType.EXPENSE, "300")
                )
                db_session.commit()
            return result

        monkeypatch.setattr(service, "_metrics", metrics_then_record)

        with pytest.raises(InvalidLedgerState):
            close(service, ledger.id)
        db_session.rollback()

        closed = close(service, ledger.id)
        db_session.commit()

        assert closed.find_balance("b1").closing_balance == Decimal("700")
        assert closed.computed_closing_balance == Decimal("500")
        assert closed.closing_balance == Decimal("500")


# --- Queries and Rollover Tests ---

class TestQueries:

    def test_get_open_ledger(self, db_session):
        service = LedgerService(db_session)
        assert service.get_open_ledger("u1") is None
        ledger = start(service)
        db_session.commit()

        assert service.get_open_ledger("u1").id == ledger.id

    def test_list_ledgers_newest_first(self, db_session):
        service = LedgerService(db_session)
        first = start(service, name="JAN-25", start_date=date(2025, 1, 1))
        close(service, first.id, closing_date=date(2025, 1, 31))
        start(service, name="FEB-25", start_date=date(2025, 2, 1))
        db_session.commit()

        assert [ledger.name for ledger in service.list_ledgers("u1")] == ["FEB-25", "JAN-25"]
        assert service.list_ledgers("nobody") == []


class TestRollover:

    def test_ledger_name_for(self):
        assert ledger_name_for(date(2025, 1, 15)) == "JAN-25"
        assert ledger_name_for(date(2030, 12, 1)) == "DEC-30"

    def test_without_history_suggests_empty_configuration(self, db_session):
        suggestion = LedgerService(db_session).suggest_rollover("u1", date(2025, 3, 1))

        assert suggestion.name == "MAR-25"
        assert suggestion.previous_ledger_id is None
        assert suggestion.account_balances == []
        assert suggestion.opening_balance == Decimal("0")

    def test_closing_balances_become_opening_balances(self, db_session):
        service = LedgerService(db_session)
        ledger = start(service)
        record(db_session, ledger.id, TransactionType.INCOME, "500")
        record(db_session, ledger.id, TransactionType.EXPENSE, "150")
        close(service, ledger.id)
        db_session.commit()

        suggestion = service.suggest_rollover("u1", date(2025, 3, 1))

        assert suggestion.previous_ledger_id == ledger.id
        assert suggestion.opening_balance == Decimal("1150")
        assert [(r.account_id, r.opening_balance) for r in suggestion.account_balances] == [
            ("b1", Decimal("1350")),
            ("c1", Decimal("-200")),
        ]

        next_ledger = service.start_ledger(LedgerStart(
            owner_id="u1",
            name=suggestion.name,
            start_date=suggestion.start_date,
            account_balances=suggestion.account_balances,
        ))
        assert next_ledger.opening_balance == Decimal("1150")
