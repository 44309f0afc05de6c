"""Business logic services."""

from ledger_core.services.currency import CurrencyNormalizer, ExchangeRateService
from ledger_core.services.balance_tracker import AccountBalanceTracker
from ledger_core.services.ledger_service import LedgerService
from ledger_core.services.transaction_applier import TransactionApplier
from ledger_core.services.transaction_service import TransactionService
from ledger_core.services.account_directory import AccountDirectory

__all__ = [
    "CurrencyNormalizer",
    "ExchangeRateService",
    "AccountBalanceTracker",
    "LedgerService",
    "TransactionApplier",
    "TransactionService",
    "AccountDirectory",
]
