"""
Shared enumerations for database models.

Python enums mapped to database enums, so an invalid status
or account kind is rejected by the database as well as by
request validation.
"""

import enum


class LedgerStatus(str, enum.Enum):
    """Ledger lifecycle. CLOSED is terminal."""
    OPEN = "OPEN"
    CLOSED = "CLOSED"


class AccountKind(str, enum.Enum):
    """Kind of financial account an AccountBalance refers to."""
    BANK = "bank"
    CREDIT_CARD = "creditCard"


class TransactionType(str, enum.Enum):
    INCOME = "income"
    EXPENSE = "expense"


class PaymentMode(str, enum.Enum):
    """Payment channel a transaction was made through."""
    UPI = "UPI"
    CASH = "Cash"
    CREDIT_CARD = "Credit Card"
    CHEQUE = "Cheque"
    BANK_TRANSFER = "Bank Transfer"


# Spend on these channels is a deferred liability, not a cash outflow
CARD_CHANNELS = frozenset({PaymentMode.CREDIT_CARD})

# Channels that draw directly on a bank account
BANK_CHANNELS = frozenset({PaymentMode.UPI, PaymentMode.BANK_TRANSFER})
