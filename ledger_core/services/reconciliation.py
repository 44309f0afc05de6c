"""
Authoritative recomputation of ledger figures from the transaction log.

These are pure functions: they take the ledger's AccountBalance
rows and its transactions as input and never touch the session.
The incremental balance tracker keeps a cache of the same numbers;
closing a ledger uses this module instead, so a drifted cache never
reaches the closed figures.

Inputs are duck-typed. Anything with account_id / account_kind /
opening_balance works as a balance row, and anything with amount /
currency / transaction_type / account_id / expense_head /
payment_mode works as a transaction, so ORM rows and plain
records are interchangeable here.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterable, Sequence

from ledger_core.models.enums import (
    AccountKind,
    TransactionType,
    CARD_CHANNELS,
    BANK_CHANNELS,
)
from ledger_core.schemas.ledger import LedgerMetrics
from ledger_core.services.currency import CurrencyNormalizer


INVESTMENT_EXPENSE_HEAD = "Investment"

ZERO = Decimal("0")


def signed_balance(kind: AccountKind, amount: Decimal) -> Decimal:
    """
    Contribution of one account to a ledger aggregate.

    Credit card balances are debt and always subtract, whether
    they were entered as -200 or 200.
    """
    amount = Decimal(amount)
    if kind == AccountKind.CREDIT_CARD:
        return -abs(amount)
    return amount


def signed_aggregate(pairs: Iterable[tuple[AccountKind, Decimal]]) -> Decimal:
    """Σ(bank balances) − Σ(|credit card balances|)."""
    return sum((signed_balance(kind, amount) for kind, amount in pairs), ZERO)


def opening_aggregate(balances: Iterable) -> Decimal:
    return signed_aggregate((b.account_kind, b.opening_balance) for b in balances)


def closing_aggregate(balances: Iterable) -> Decimal:
    return signed_aggregate((b.account_kind, b.closing_balance) for b in balances)


def _channel_key(payment_mode) -> str:
    return getattr(payment_mode, "value", payment_mode) or "Unknown"


def compute_ledger_metrics(
    account_balances: Sequence,
    transactions: Iterable,
    normalizer: CurrencyNormalizer,
    legacy_opening_balance: Decimal | None = None,
    ledger_id: int | None = None,
) -> LedgerMetrics:
    """
    Recompute every ledger figure from scratch.

    Ledger-wide totals include orphan transactions (no account
    id). Per-account closing balances only see transactions
    tagged with that account id. Each amount is converted once.
    """
    total_income = ZERO
    total_expenses = ZERO
    total_investment = ZERO
    by_channel: dict[str, Decimal] = defaultdict(lambda: ZERO)
    income_by_account: dict[str, Decimal] = defaultdict(lambda: ZERO)
    expense_by_account: dict[str, Decimal] = defaultdict(lambda: ZERO)
    count = 0
    orphans = 0

    for txn in transactions:
        count += 1
        amount = normalizer.to_reporting_currency(txn.amount, txn.currency)
        account_id = txn.account_id or None
        if account_id is None:
            orphans += 1

        if txn.transaction_type == TransactionType.INCOME:
            total_income += amount
            if account_id:
                income_by_account[account_id] += amount
        else:
            total_expenses += amount
            by_channel[_channel_key(txn.payment_mode)] += amount
            if txn.expense_head == INVESTMENT_EXPENSE_HEAD:
                total_investment += amount
            if account_id:
                expense_by_account[account_id] += amount

    if account_balances:
        opening = opening_aggregate(account_balances)
    else:
        opening = Decimal(legacy_opening_balance or ZERO)

    account_closing: dict[str, Decimal] = {}
    closing_pairs = []
    for balance in account_balances:
        closing = (
            Decimal(balance.opening_balance)
            + income_by_account[balance.account_id]
            - expense_by_account[balance.account_id]
        )
        account_closing[balance.account_id] = closing
        closing_pairs.append((balance.account_kind, closing))

    card_expenses = sum(
        (v for k, v in by_channel.items() if k in {c.value for c in CARD_CHANNELS}),
        ZERO,
    )
    bank_outflow = sum(
        (v for k, v in by_channel.items() if k in {c.value for c in BANK_CHANNELS}),
        ZERO,
    )

    return LedgerMetrics(
        ledger_id=ledger_id,
        reporting_currency=normalizer.reporting_currency,
        opening_balance=opening,
        total_income=total_income,
        total_expenses=total_expenses,
        total_investment=total_investment,
        expenses_by_channel=dict(by_channel),
        card_expenses=card_expenses,
        bank_outflow=bank_outflow,
        indicative_closing_with_card=opening + total_income - total_expenses,
        indicative_closing_without_card=(
            opening + total_income - (total_expenses - card_expenses)
        ),
        account_closing_balances=account_closing,
        computed_closing_balance=signed_aggregate(closing_pairs),
        transaction_count=count,
        orphan_transaction_count=orphans,
        missing_rates=sorted(normalizer.missing_rates),
    )
