from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol


class StructuredLogger(Protocol):
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None: ...


class MetricsRecorder(Protocol):
    def increment(
        self, name: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None: ...

    def observe(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None: ...


@dataclass(frozen=True)
class StdlibLogger:
    logger: logging.Logger

    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        self.logger.log(level, message, extra={"fields": dict(fields)})


@dataclass(frozen=True)
class NullLogger:
    def log(self, level: int, message: str, fields: Mapping[str, object]) -> None:
        return None


@dataclass(frozen=True)
class NullMetrics:
    def increment(
        self, name: str, value: int = 1, tags: Mapping[str, str] | None = None
    ) -> None:
        return None

    def observe(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        return None


@dataclass(frozen=True)
class Observability:
    logger: StructuredLogger
    metrics: MetricsRecorder

    def log_retry(
        self, *, label: str, attempt: int, delay_ms: int, retries_left: int, error: str
    ) -> None:
        self.logger.log(
            logging.WARNING,
            "ledger_data.retry",
            {
                "label": label,
                "attempt": attempt,
                "delay_ms": delay_ms,
                "retries_left": retries_left,
                "error_detail": error,
            },
        )
        self.metrics.increment("ledger_data.retries.count", tags={"label": label})

    def log_read_failure(self, *, label: str, error_kind: str, error: str) -> None:
        self.logger.log(
            logging.DEBUG,
            "ledger_data.read_failure",
            {"label": label, "error_kind": error_kind, "error_detail": error},
        )
        self.metrics.increment(
            "ledger_data.read_failures.count",
            tags={"label": label, "error_kind": error_kind},
        )

    def log_decode_failure(self, *, label: str, error_kind: str, error: str) -> None:
        self.logger.log(
            logging.WARNING,
            "ledger_data.decode_failure",
            {"label": label, "error_kind": error_kind, "error_detail": error},
        )
        self.metrics.increment(
            "ledger_data.decode_failures.count",
            tags={"label": label, "error_kind": error_kind},
        )

    def log_hint(self, *, contest_id: int) -> None:
        self.logger.log(logging.DEBUG, "ledger_data.hint", {"contest_id": contest_id})

    def log_hint_unavailable(self, *, url: str, error: str) -> None:
        self.logger.log(
            logging.INFO,
            "ledger_data.hint_unavailable",
            {"url": url, "error_detail": error},
        )
        self.metrics.increment("ledger_data.hint_unavailable.count")

    def record_read_latency(self, *, label: str, elapsed_ms: float) -> None:
        self.metrics.observe("ledger_data.read.latency_ms", elapsed_ms, tags={"label": label})


def null_observability() -> Observability:
    return Observability(logger=NullLogger(), metrics=NullMetrics())
