from __future__ import annotations

from enum import Enum

_RATE_LIMIT_MARKERS = ("429", "too many requests")
_NOT_FOUND_MARKERS = ("account does not exist", "could not find account")


class ErrorKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    OTHER = "other"


class LedgerError(RuntimeError):
    """Base class for failures reading ledger state."""


class NotFoundError(LedgerError):
    """Raised when the requested ledger entry does not exist."""


class RateLimitedError(LedgerError):
    """Raised by transports when the endpoint rejects a request as too frequent."""


class TransientFailure(LedgerError):
    """Raised when rate limiting persists after all retries."""


class LedgerReadError(LedgerError):
    """Raised for unclassified transport or decode failures."""


def classify_error(exc: BaseException) -> ErrorKind:
    if isinstance(exc, NotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, (RateLimitedError, TransientFailure)):
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, LedgerError):
        return ErrorKind.OTHER
    for attr in ("code", "status"):
        if getattr(exc, attr, None) == 429:
            return ErrorKind.RATE_LIMITED
    return classify_message(str(exc))


def classify_message(message: str) -> ErrorKind:
    lowered = message.lower()
    if any(marker in lowered for marker in _NOT_FOUND_MARKERS):
        return ErrorKind.NOT_FOUND
    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return ErrorKind.RATE_LIMITED
    return ErrorKind.OTHER


def error_for_kind(kind: ErrorKind, message: str) -> LedgerError:
    if kind is ErrorKind.NOT_FOUND:
        return NotFoundError(message)
    if kind is ErrorKind.RATE_LIMITED:
        return RateLimitedError(message)
    return LedgerReadError(message)
