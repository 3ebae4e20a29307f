from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TypeVar

from ledger_data.config import BackoffPolicy
from ledger_data.errors import (
    ErrorKind,
    LedgerError,
    LedgerReadError,
    NotFoundError,
    TransientFailure,
    classify_error,
)
from ledger_data.observability import Observability, null_observability

T = TypeVar("T")

Sleeper = Callable[[float], Awaitable[None]]


class ResilientFetcher:
    """Runs a single remote read, retrying only when the endpoint rate limits.

    Not-found is surfaced at once as ``NotFoundError``; unclassified failures
    surface at once as ``LedgerReadError``. Rate limiting is retried on the
    policy's doubling schedule and becomes ``TransientFailure`` when the
    schedule is exhausted.
    """

    def __init__(
        self,
        policy: BackoffPolicy | None = None,
        *,
        sleeper: Sleeper | None = None,
        observability: Observability | None = None,
    ) -> None:
        self.policy = policy or BackoffPolicy()
        self._sleeper = sleeper or asyncio.sleep
        self._observability = observability or null_observability()

    async def fetch(self, operation: Callable[[], Awaitable[T]], *, label: str = "read") -> T:
        delays = self.policy.delays()
        attempt = 0
        while True:
            started = time.monotonic()
            try:
                result = await operation()
            except Exception as exc:
                kind = classify_error(exc)
                self._observability.log_read_failure(
                    label=label, error_kind=kind.value, error=str(exc)
                )
                if kind is ErrorKind.RATE_LIMITED and attempt < len(delays):
                    delay_ms = delays[attempt]
                    attempt += 1
                    self._observability.log_retry(
                        label=label,
                        attempt=attempt,
                        delay_ms=delay_ms,
                        retries_left=len(delays) - attempt,
                        error=str(exc),
                    )
                    await self._sleeper(delay_ms / 1000)
                    continue
                terminal = _terminal_error(kind, exc)
                if terminal is exc:
                    raise
                raise terminal from exc
            self._observability.record_read_latency(
                label=label, elapsed_ms=(time.monotonic() - started) * 1000
            )
            return result


def _terminal_error(kind: ErrorKind, exc: Exception) -> LedgerError:
    if kind is ErrorKind.NOT_FOUND:
        return exc if isinstance(exc, NotFoundError) else NotFoundError(str(exc))
    if kind is ErrorKind.RATE_LIMITED:
        return exc if isinstance(exc, TransientFailure) else TransientFailure(str(exc))
    return exc if isinstance(exc, LedgerError) else LedgerReadError(str(exc))
