"""
Ledger (accounting period) and its per-account balance snapshots.

A ledger is created OPEN and closed exactly once. The
single-open-ledger-per-owner rule is enforced by a partial
unique index, not only by application code: two concurrent
starts for the same owner cannot both commit.
"""

import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    String, Date, DateTime, Integer, Numeric, ForeignKey,
    Index, UniqueConstraint, Enum as SAEnum, Uuid, text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from ledger_core.models.base import Base
from ledger_core.models.enums import AccountKind, LedgerStatus


# Valid state transitions. CLOSED has no way out; there is no reopen.
VALID_TRANSITIONS: dict[LedgerStatus, set[LedgerStatus]] = {
    LedgerStatus.OPEN: {LedgerStatus.CLOSED},
    LedgerStatus.CLOSED: set(),
}


class Ledger(Base):
    __tablename__ = "ledgers"
    __table_args__ = (
        Index(
            "ux_ledgers_one_open_per_owner",
            "owner_id",
            unique=True,
            postgresql_where=text("status = 'OPEN'"),
            sqlite_where=text("status = 'OPEN'"),
        ),
        Index("ix_ledgers_owner_status", "owner_id", "status"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    external_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, unique=True, nullable=False, default=uuid.uuid4
    )
    owner_id: Mapped[str] = mapped_column(String(128), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    status: Mapped[LedgerStatus] = mapped_column(
        SAEnum(LedgerStatus, name="ledger_status_enum", create_constraint=True),
        nullable=False,
        default=LedgerStatus.OPEN,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Legacy single-number aggregate, kept alongside the per-account list
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False, default=Decimal("0")
    )
    # Reported aggregate: the computed figure, or the user's override
    closing_balance: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    # Signed sum of the per-account closing balances at close time
    computed_closing_balance: Mapped[Decimal | None] = mapped_column(
        Numeric(19, 4), nullable=True
    )
    # When the rate table used for the closing figures was last refreshed
    rates_as_of: Mapped[datetime | None] = mapped_column(
        DateTime, nullable=True
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow
    )

    account_balances: Mapped[list["LedgerAccountBalance"]] = relationship(
        back_populates="ledger",
        order_by="LedgerAccountBalance.position",
        cascade="all, delete-orphan",
    )

    @property
    def is_open(self) -> bool:
        return self.status == LedgerStatus.OPEN

    @property
    def has_closing_override(self) -> bool:
        """True when the reported closing aggregate differs from the computed one."""
        if self.closing_balance is None or self.computed_closing_balance is None:
            return False
        return self.closing_balance != self.computed_closing_balance

    def can_transition_to(self, new_status: LedgerStatus) -> bool:
        return new_status in VALID_TRANSITIONS.get(self.status, set())

    def find_balance(self, account_id: str) -> "LedgerAccountBalance | None":
        for balance in self.account_balances:
            if balance.account_id == account_id:
                return balance
        return None

    def __repr__(self) -> str:
        return f"<Ledger {self.name} owner={self.owner_id} ({self.status.value})>"


class LedgerAccountBalance(Base):
    """
    Opening and running closing balance of one financial account
    within one ledger.

    closing_balance is a cache maintained by the balance tracker;
    closing a ledger overwrites it with the figure recomputed from
    the transaction log.
    """

    __tablename__ = "ledger_account_balances"
    __table_args__ = (
        UniqueConstraint(
            "ledger_id", "account_id", name="ux_ledger_account_balances_account"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    ledger_id: Mapped[int] = mapped_column(
        ForeignKey("ledgers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    account_id: Mapped[str] = mapped_column(String(64), nullable=False)
    account_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    account_kind: Mapped[AccountKind] = mapped_column(
        SAEnum(AccountKind, name="account_kind_enum", create_constraint=True),
        nullable=False,
    )
    opening_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )
    closing_balance: Mapped[Decimal] = mapped_column(
        Numeric(19, 4), nullable=False
    )

    ledger: Mapped["Ledger"] = relationship(back_populates="account_balances")

    def __repr__(self) -> str:
        return (
            f"<LedgerAccountBalance {self.account_id} {self.account_kind.value} "
            f"{self.opening_balance} -> {self.closing_balance}>"
        )
