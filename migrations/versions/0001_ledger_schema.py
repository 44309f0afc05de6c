"""Ledger lifecycle schema.

Revision ID: 0001_ledger_schema
Revises:
Create Date: 2026-10-18

"""

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = "0001_ledger_schema"
down_revision = None
branch_labels = None
depends_on = None


LEDGER_STATUS = sa.Enum("OPEN", "CLOSED", name="ledger_status_enum", create_constraint=True)
ACCOUNT_KIND = sa.Enum("BANK", "CREDIT_CARD", name="account_kind_enum", create_constraint=True)
TRANSACTION_TYPE = sa.Enum("INCOME", "EXPENSE", name="transaction_type_enum", create_constraint=True)
PAYMENT_MODE = sa.Enum(
    "UPI", "CASH", "CREDIT_CARD", "CHEQUE", "BANK_TRANSFER",
    name="payment_mode_enum",
    create_constraint=True,
)


def _existing_account_kind():
    """account_kind_enum again, without re-creating the PostgreSQL type."""
    if op.get_bind().dialect.name == "postgresql":
        return postgresql.ENUM(
            "BANK", "CREDIT_CARD", name="account_kind_enum", create_type=False
        )
    return ACCOUNT_KIND


def upgrade() -> None:
    op.create_table(
        "ledgers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("external_id", sa.Uuid(), nullable=False, unique=True),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("status", LEDGER_STATUS, nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("opening_balance", sa.Numeric(19, 4), nullable=False),
        sa.Column("closing_balance", sa.Numeric(19, 4), nullable=True),
        sa.Column("computed_closing_balance", sa.Numeric(19, 4), nullable=True),
        sa.Column("rates_as_of", sa.DateTime(), nullable=True),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_ledgers_owner_status", "ledgers", ["owner_id", "status"])
    # At most one OPEN ledger per owner, enforced by the database
    op.create_index(
        "ux_ledgers_one_open_per_owner",
        "ledgers",
        ["owner_id"],
        unique=True,
        postgresql_where=sa.text("status = 'OPEN'"),
        sqlite_where=sa.text("status = 'OPEN'"),
    )

    op.create_table(
        "ledger_account_balances",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "ledger_id",
            sa.Integer(),
            sa.ForeignKey("ledgers.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("account_id", sa.String(64), nullable=False),
        sa.Column("account_name", sa.String(100), nullable=False),
        sa.Column("account_kind", ACCOUNT_KIND, nullable=False),
        sa.Column("opening_balance", sa.Numeric(19, 4), nullable=False),
        sa.Column("closing_balance", sa.Numeric(19, 4), nullable=False),
        sa.UniqueConstraint(
            "ledger_id", "account_id", name="ux_ledger_account_balances_account"
        ),
    )
    op.create_index(
        "ix_ledger_account_balances_ledger_id", "ledger_account_balances", ["ledger_id"]
    )

    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("external_id", sa.Uuid(), nullable=False, unique=True),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("ledger_id", sa.Integer(), sa.ForeignKey("ledgers.id"), nullable=False),
        sa.Column("account_id", sa.String(64), nullable=True),
        sa.Column("transaction_type", TRANSACTION_TYPE, nullable=False),
        sa.Column("amount", sa.Numeric(19, 4), nullable=False),
        sa.Column("currency", sa.String(10), nullable=False),
        sa.Column("expense_head", sa.String(100), nullable=True),
        sa.Column("payment_mode", PAYMENT_MODE, nullable=False),
        sa.Column("description", sa.String(255), nullable=False),
        sa.Column("occurred_at", sa.DateTime(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_transactions_owner_id", "transactions", ["owner_id"])
    op.create_index("ix_transactions_ledger_id", "transactions", ["ledger_id"])
    op.create_index("ix_transactions_account_id", "transactions", ["account_id"])

    op.create_table(
        "financial_accounts",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column(
            "kind",
            _existing_account_kind(),
            nullable=False,
        ),
        sa.Column("is_default", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_financial_accounts_owner_id", "financial_accounts", ["owner_id"])

    op.create_table(
        "exchange_rates",
        sa.Column("currency_code", sa.String(10), primary_key=True),
        sa.Column("rate", sa.Numeric(19, 6), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
    )

    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("event_type", sa.String(100), nullable=False),
        sa.Column("owner_id", sa.String(128), nullable=False),
        sa.Column("ledger_id", sa.Integer(), nullable=True),
        sa.Column("details", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
    )
    op.create_index("ix_audit_log_owner_id", "audit_log", ["owner_id"])
    op.create_index("ix_audit_log_ledger_id", "audit_log", ["ledger_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("exchange_rates")
    op.drop_table("financial_accounts")
    op.drop_table("transactions")
    op.drop_table("ledger_account_balances")
    op.drop_index("ux_ledgers_one_open_per_owner", table_name="ledgers")
    op.drop_table("ledgers")
    bind = op.get_bind()
    if bind.dialect.name == "postgresql":
        for enum in (PAYMENT_MODE, TRANSACTION_TYPE, ACCOUNT_KIND, LEDGER_STATUS):
            enum.drop(bind, checkfirst=True)
