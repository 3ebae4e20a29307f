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

    def gauge(
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

    def gauge(
        self, name: str, value: float, tags: Mapping[str, str] | None = None
    ) -> None:
        return None


@dataclass(frozen=True)
class Observability:
    logger: StructuredLogger
    metrics: MetricsRecorder

    def log_discovered(self, *, contest_id: int, via: str) -> None:
        self.logger.log(
            logging.INFO,
            "battle_tracker.discovered",
            {"contest_id": contest_id, "via": via},
        )

    def log_discovery_pending(self, *, contest_id: int | None, reason: str) -> None:
        self.logger.log(
            logging.DEBUG,
            "battle_tracker.discovery_pending",
            {"contest_id": contest_id, "reason": reason},
        )

    def log_advanced(self, *, from_contest_id: int, to_contest_id: int) -> None:
        self.logger.log(
            logging.INFO,
            "battle_tracker.advanced",
            {"from_contest_id": from_contest_id, "to_contest_id": to_contest_id},
        )
        self.metrics.increment("battle_tracker.advances.count")

    def log_waiting_for_successor(self, *, contest_id: int) -> None:
        self.logger.log(
            logging.DEBUG,
            "battle_tracker.waiting_for_successor",
            {"contest_id": contest_id},
        )

    def log_not_found(self, *, contest_id: int, stream: str) -> None:
        self.logger.log(
            logging.DEBUG,
            "battle_tracker.not_found",
            {"contest_id": contest_id, "stream": stream},
        )

    def log_fetch_failed(self, *, contest_id: int | None, stream: str, error: str) -> None:
        self.logger.log(
            logging.WARNING,
            "battle_tracker.fetch_failed",
            {"contest_id": contest_id, "stream": stream, "error_detail": error},
        )
        self.metrics.increment("battle_tracker.fetch_failures.count", tags={"stream": stream})

    def log_stale_snapshot(self, *, contest_id: int, turn: int, last_turn: int, reason: str) -> None:
        self.logger.log(
            logging.INFO,
            "battle_tracker.stale_snapshot",
            {"contest_id": contest_id, "turn": turn, "last_turn": last_turn, "reason": reason},
        )

    def log_events_derived(self, *, contest_id: int, turn: int, count: int) -> None:
        self.logger.log(
            logging.DEBUG,
            "battle_tracker.events_derived",
            {"contest_id": contest_id, "turn": turn, "count": count},
        )
        self.metrics.increment("battle_tracker.events.count", value=count)

    def log_pruned(self, *, dropped: int, retained: int) -> None:
        self.logger.log(
            logging.DEBUG,
            "battle_tracker.log_pruned",
            {"dropped": dropped, "retained": retained},
        )
        self.metrics.gauge("battle_tracker.log.retained", float(retained))

    def log_poller_state(self, *, name: str, state: str) -> None:
        self.logger.log(logging.INFO, "battle_tracker.poller_state", {"name": name, "state": state})

    def log_tick_failed(self, *, name: str, error: str) -> None:
        self.logger.log(
            logging.ERROR,
            "battle_tracker.tick_failed",
            {"name": name, "error_detail": error},
        )
        self.metrics.increment("battle_tracker.tick_failures.count", tags={"name": name})


def null_observability() -> Observability:
    return Observability(logger=NullLogger(), metrics=NullMetrics())
