"""
Database models package.

All models must be imported here so that Alembic can discover
them through Base.metadata when generating migrations.
"""

from ledger_core.models.base import Base
from ledger_core.models.enums import (
    LedgerStatus,
    AccountKind,
    TransactionType,
    PaymentMode,
)
from ledger_core.models.audit_log import AuditLog
from ledger_core.models.ledger import Ledger, LedgerAccountBalance
from ledger_core.models.transaction import Transaction
from ledger_core.models.financial_account import FinancialAccount
from ledger_core.models.exchange_rate import ExchangeRate

__all__ = [
    "Base",
    "LedgerStatus",
    "AccountKind",
    "TransactionType",
    "PaymentMode",
    "AuditLog",
    "Ledger",
    "LedgerAccountBalance",
    "Transaction",
    "FinancialAccount",
    "ExchangeRate",
]
