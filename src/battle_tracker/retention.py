from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass

from battle_events.contracts import DerivedEvent

DEFAULT_MAX_RECORDS = 50
DEFAULT_MAX_AGE_MS = 15_000


@dataclass(frozen=True)
class LogRecord:
    log_seq: int
    logged_at_ms: int
    event: DerivedEvent


@dataclass
class RetainedLog:
    max_records: int
    max_age_ms: int | None
    entries: list[LogRecord]
    _next_seq: int = 1

    def __init__(
        self, *, max_records: int = DEFAULT_MAX_RECORDS, max_age_ms: int | None = DEFAULT_MAX_AGE_MS
    ) -> None:
        if max_records <= 0:
            raise ValueError("max_records must be > 0")
        if max_age_ms is not None and max_age_ms <= 0:
            raise ValueError("max_age_ms must be > 0")
        self.max_records = max_records
        self.max_age_ms = max_age_ms
        self.entries = []
        self._next_seq = 1

    def append(
        self, events: Iterable[DerivedEvent], *, now_ms: int | None = None
    ) -> tuple[LogRecord, ...]:
        timestamp = now_ms if now_ms is not None else _now_ms()
        added: list[LogRecord] = []
        for event in events:
            added.append(LogRecord(log_seq=self._next_seq, logged_at_ms=timestamp, event=event))
            self._next_seq += 1
        if not added:
            return ()
        # newest first; within one batch the last derived event is the newest
        self.entries = list(reversed(added)) + self.entries
        del self.entries[self.max_records :]
        return tuple(added)

    def prune(self, now_ms: int | None = None) -> int:
        if self.max_age_ms is None or not self.entries:
            return 0
        timestamp = now_ms if now_ms is not None else _now_ms()
        cutoff = timestamp - self.max_age_ms
        kept = [record for record in self.entries if record.logged_at_ms >= cutoff]
        dropped = len(self.entries) - len(kept)
        self.entries = kept
        return dropped

    def clear(self) -> None:
        self.entries = []

    def records(self) -> tuple[LogRecord, ...]:
        return tuple(self.entries)

    def events(self) -> tuple[DerivedEvent, ...]:
        return tuple(record.event for record in self.entries)

    def __len__(self) -> int:
        return len(self.entries)


def _now_ms() -> int:
    return int(time.time() * 1000)
