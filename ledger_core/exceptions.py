"""
Error taxonomy for the ledger engine.

Every error subclasses LedgerError, which is itself a ValueError,
so callers that only care about "the request was wrong" can keep
catching ValueError. Each error carries a machine-readable code,
the HTTP status the API layer should answer with, and a context
dict with enough detail for a UI to explain what went wrong.

RateUnavailable and BalanceCacheMiss are non-fatal: they are
raised inside the service that detects them and caught at the
point where the fallback is applied, then logged.
"""

from typing import Any


class LedgerError(ValueError):
    """Base class for all ledger engine errors."""

    code: str = "LEDGER_ERROR"
    status_code: int = 400
    retryable: bool = False

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context = context

    def to_detail(self) -> dict[str, Any]:
        """Return a JSON-friendly description of the error."""
        return {
            "code": self.code,
            "message": self.message,
            "context": {k: _jsonable(v) for k, v in self.context.items()},
        }


class LedgerAlreadyOpen(LedgerError):
    """startLedger was called while the owner already has an open ledger."""

    code = "LEDGER_ALREADY_OPEN"
    status_code = 409


class InvalidLedgerState(LedgerError):
    """The ledger is not in the state the operation requires."""

    code = "INVALID_LEDGER_STATE"
    status_code = 409


class LedgerNotFound(InvalidLedgerState):
    code = "LEDGER_NOT_FOUND"
    status_code = 404


class InvalidAccountConfiguration(LedgerError):
    """The opening AccountBalance list has no usable entry, or is inconsistent."""

    code = "INVALID_ACCOUNT_CONFIGURATION"
    status_code = 422


class RateUnavailable(LedgerError):
    """No exchange rate is known for a currency code."""

    code = "RATE_UNAVAILABLE"


class BalanceCacheMiss(LedgerError):
    """A transaction referenced an account the ledger does not track."""

    code = "BALANCE_CACHE_MISS"


class TransactionNotFound(LedgerError):
    code = "TRANSACTION_NOT_FOUND"
    status_code = 404


class StorageUnavailable(LedgerError):
    """The database failed or timed out; the whole operation may be retried."""

    code = "STORAGE_UNAVAILABLE"
    status_code = 503
    retryable = True


def _jsonable(value: Any) -> Any:
    if isinstance(value, (str, int, float, bool)) or value is None:
        return value
    if isinstance(value, (list, tuple, set)):
        return [_jsonable(v) for v in value]
    return str(value)
