from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from battle_tracker.retention import LogRecord
from ledger_data.contracts import ContestSnapshot


class TrackerPhase(str, Enum):
    UNINITIALIZED = "uninitialized"
    DISCOVERING = "discovering"
    TRACKING = "tracking"
    IDLE = "idle"


@dataclass
class LifecycleState:
    phase: TrackerPhase = TrackerPhase.UNINITIALIZED
    active_contest_id: int | None = None
    last_snapshot: ContestSnapshot | None = None
    error: str | None = None

    def begin_discovery(self) -> None:
        if self.active_contest_id is not None:
            raise RuntimeError(f"cannot discover while tracking contest {self.active_contest_id}")
        self.phase = TrackerPhase.DISCOVERING

    def track(self, contest_id: int) -> None:
        if self.active_contest_id is not None and contest_id < self.active_contest_id:
            raise RuntimeError(
                f"contest id must not decrease: {contest_id} < {self.active_contest_id}"
            )
        self.active_contest_id = contest_id
        self.phase = TrackerPhase.TRACKING

    def idle(self) -> None:
        if self.active_contest_id is None:
            raise RuntimeError("cannot idle without an active contest")
        self.phase = TrackerPhase.IDLE


@dataclass(frozen=True)
class TrackerView:
    phase: TrackerPhase
    active_contest_id: int | None
    last_snapshot: ContestSnapshot | None
    records: tuple[LogRecord, ...]
    error: str | None

    @property
    def messages(self) -> tuple[str, ...]:
        return tuple(record.event.message for record in self.records)
