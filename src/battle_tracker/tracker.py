from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from typing import Protocol

from battle_events.derive import derive_events
from battle_events.messages import DEFAULT_ACTION_NAMES, DEFAULT_PARTICIPANT_NAMES
from battle_tracker.discovery import ContestLocator, DiscoveryResult
from battle_tracker.lifecycle import LifecycleState, TrackerPhase, TrackerView
from battle_tracker.observability import Observability, null_observability
from battle_tracker.retention import LogRecord, RetainedLog
from ledger_data.contracts import ContestSnapshot
from ledger_data.errors import LedgerError, NotFoundError
from ledger_data.source import SnapshotSource


class EventSink(Protocol):
    def write(self, records: Sequence[LogRecord]) -> None: ...


class BattleTracker:
    """Owns the lifecycle state for the contest being followed.

    ``poll_once`` is the only mutator. Every read it awaits may finish after
    ``close``; results are dropped in that case, and also when the active
    contest changed while the read was in flight.
    """

    def __init__(
        self,
        *,
        source: SnapshotSource,
        locator: ContestLocator,
        log: RetainedLog | None = None,
        sink: EventSink | None = None,
        names: Sequence[str] = DEFAULT_PARTICIPANT_NAMES,
        actions: Sequence[str] = DEFAULT_ACTION_NAMES,
        observability: Observability | None = None,
        clock_ms: Callable[[], int] | None = None,
    ) -> None:
        self._source = source
        self._locator = locator
        self._log = log or RetainedLog()
        self._sink = sink
        self._names = tuple(names)
        self._actions = tuple(actions)
        self._observability = observability or null_observability()
        self._clock_ms = clock_ms or _now_ms
        self._state = LifecycleState()
        self._alive = True

    @property
    def alive(self) -> bool:
        return self._alive

    @property
    def active_contest_id(self) -> int | None:
        return self._state.active_contest_id

    def close(self) -> None:
        self._alive = False

    def view(self) -> TrackerView:
        return TrackerView(
            phase=self._state.phase,
            active_contest_id=self._state.active_contest_id,
            last_snapshot=self._state.last_snapshot,
            records=self._log.records(),
            error=self._state.error,
        )

    async def poll_once(self) -> None:
        if not self._alive:
            return
        contest_id = self._state.active_contest_id
        if contest_id is None:
            await self._discover()
        else:
            await self._refresh(contest_id)

    def prune_log(self, now_ms: int | None = None) -> int:
        if not self._alive:
            return 0
        dropped = self._log.prune(now_ms if now_ms is not None else self._clock_ms())
        if dropped:
            self._observability.log_pruned(dropped=dropped, retained=len(self._log))
        return dropped

    async def _discover(self) -> None:
        self._state.begin_discovery()
        found: DiscoveryResult | None = None
        try:
            found = await self._locator.locate()
            if found is None:
                if self._alive:
                    self._observability.log_discovery_pending(
                        contest_id=None, reason="no_candidate"
                    )
                return
            snapshot = found.snapshot
            if snapshot is None:
                snapshot = await self._source.fetch_snapshot(found.contest_id)
        except NotFoundError:
            if self._alive:
                self._observability.log_discovery_pending(
                    contest_id=found.contest_id if found is not None else None,
                    reason="not_materialized",
                )
            return
        except LedgerError as exc:
            if self._alive:
                self._fail(contest_id=found.contest_id if found else None, exc=exc)
            return
        if not self._alive or self._state.active_contest_id is not None:
            return
        self._state.track(found.contest_id)
        self._locator.raise_floor(found.contest_id)
        self._observability.log_discovered(contest_id=found.contest_id, via=found.via)
        await self._absorb(snapshot)

    async def _refresh(self, contest_id: int) -> None:
        try:
            snapshot = await self._source.fetch_snapshot(contest_id)
        except NotFoundError:
            if self._alive:
                self._observability.log_not_found(contest_id=contest_id, stream="battle")
            return
        except LedgerError as exc:
            if self._alive:
                self._fail(contest_id=contest_id, exc=exc)
            return
        if not self._alive or self._state.active_contest_id != contest_id:
            return
        await self._absorb(snapshot)

    async def _absorb(self, snapshot: ContestSnapshot) -> None:
        self._state.error = None
        last = self._state.last_snapshot
        if last is not None:
            reason = _stale_reason(last, snapshot)
            if reason is not None:
                self._observability.log_stale_snapshot(
                    contest_id=snapshot.contest_id,
                    turn=snapshot.turn_counter,
                    last_turn=last.turn_counter,
                    reason=reason,
                )
                await self._maybe_advance(last)
                return
        events = derive_events(last, snapshot, names=self._names, actions=self._actions)
        self._state.last_snapshot = snapshot
        if events:
            records = self._log.append(events, now_ms=self._clock_ms())
            self._observability.log_events_derived(
                contest_id=snapshot.contest_id, turn=snapshot.turn_counter, count=len(events)
            )
            if self._sink is not None:
                self._sink.write(records)
        await self._maybe_advance(snapshot)

    async def _maybe_advance(self, snapshot: ContestSnapshot) -> None:
        contest_id = snapshot.contest_id
        if not snapshot.is_finished:
            self._state.track(contest_id)
            return
        try:
            successor = await self._locator.successor_of(contest_id)
        except LedgerError as exc:
            if self._alive and self._state.active_contest_id == contest_id:
                self._fail(contest_id=contest_id, exc=exc)
                self._state.idle()
            return
        if not self._alive or self._state.active_contest_id != contest_id:
            return
        if successor is not None and successor > contest_id:
            self._advance(from_contest_id=contest_id, to_contest_id=successor)
            return
        if self._state.phase is not TrackerPhase.IDLE:
            self._observability.log_waiting_for_successor(contest_id=contest_id)
        self._state.idle()

    def _advance(self, *, from_contest_id: int, to_contest_id: int) -> None:
        self._state.last_snapshot = None
        self._log.clear()
        self._state.track(to_contest_id)
        self._locator.raise_floor(to_contest_id)
        self._observability.log_advanced(
            from_contest_id=from_contest_id, to_contest_id=to_contest_id
        )

    def _fail(self, *, contest_id: int | None, exc: LedgerError) -> None:
        self._state.error = str(exc) or type(exc).__name__
        self._observability.log_fetch_failed(
            contest_id=contest_id, stream="battle", error=self._state.error
        )


def _stale_reason(last: ContestSnapshot, current: ContestSnapshot) -> str | None:
    if last.is_finished and not current.is_finished:
        return "finished_regressed"
    if current.turn_counter < last.turn_counter:
        return "turn_regressed"
    return None


def _now_ms() -> int:
    return int(time.time() * 1000)
