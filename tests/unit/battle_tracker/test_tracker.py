import asyncio
import unittest
from collections.abc import Sequence

from battle_tracker.discovery import ContestLocator
from battle_tracker.lifecycle import TrackerPhase
from battle_tracker.retention import LogRecord, RetainedLog
from battle_tracker.tracker import BattleTracker
from ledger_data.contracts import ContestSnapshot, ParticipantState
from ledger_data.errors import LedgerReadError, NotFoundError, TransientFailure


def _snapshot(
    contest_id: int,
    *,
    turn: int,
    hp: Sequence[int] = (100, 100, 100, 100),
    alive: Sequence[bool] = (True, True, True, True),
    finished: bool = False,
    winner: int | None = None,
) -> ContestSnapshot:
    return ContestSnapshot(
        contest_id=contest_id,
        turn_counter=turn,
        participants=tuple(
            ParticipantState(hp=hp[i], max_hp=100, is_alive=alive[i], speed=(10, 20, 5, 1)[i])
            for i in range(4)
        ),
        is_finished=finished,
        winner_index=winner,
    )


FINISHED_5 = _snapshot(
    5,
    turn=3,
    hp=(100, 0, 0, 0),
    alive=(True, False, False, False),
    finished=True,
    winner=0,
)


class _ScriptedLedger:
    """Serves queued outcomes per contest id; the last outcome repeats."""

    def __init__(self) -> None:
        self.outcomes: dict[int, list[object]] = {}

    def queue(self, contest_id: int, *outcomes: object) -> None:
        self.outcomes.setdefault(contest_id, []).extend(outcomes)

    async def fetch_snapshot(self, contest_id: int) -> ContestSnapshot:
        queued = self.outcomes.get(contest_id)
        if not queued:
            raise NotFoundError("could not find account")
        outcome = queued.pop(0) if len(queued) > 1 else queued[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class _Hint:
    def __init__(self, *values: int | None) -> None:
        self.values = list(values)

    async def current_contest_id(self) -> int | None:
        return self.values.pop(0) if len(self.values) > 1 else self.values[0]


class _Sink:
    def __init__(self) -> None:
        self.records: list[LogRecord] = []

    def write(self, records: Sequence[LogRecord]) -> None:
        self.records.extend(records)


def _tracker(ledger: _ScriptedLedger, hint: _Hint | None, sink: _Sink | None = None) -> BattleTracker:
    return BattleTracker(
        source=ledger,
        locator=ContestLocator(source=ledger, hint=hint),
        log=RetainedLog(max_records=50, max_age_ms=15_000),
        sink=sink,
        clock_ms=lambda: 1_000,
    )


class TestDiscovery(unittest.IsolatedAsyncioTestCase):
    async def test_discovers_from_hint(self) -> None:
        ledger = _ScriptedLedger()
        ledger.queue(5, _snapshot(5, turn=1))
        tracker = _tracker(ledger, _Hint(5))

        await tracker.poll_once()

        view = tracker.view()
        self.assertIs(view.phase, TrackerPhase.TRACKING)
        self.assertEqual(view.active_contest_id, 5)
        self.assertEqual(view.last_snapshot.turn_counter, 1)
        self.assertEqual(view.records, ())

    async def test_unmaterialized_contest_keeps_discovering(self) -> None:
        tracker = _tracker(_ScriptedLedger(), _Hint(9))

        await tracker.poll_once()

        view = tracker.view()
        self.assertIs(view.phase, TrackerPhase.DISCOVERING)
        self.assertIsNone(view.active_contest_id)
        self.assertIsNone(view.error)

    async def test_hint_failure_keeps_discovering(self) -> None:
        tracker = _tracker(_ScriptedLedger(), _Hint(None))
        await tracker.poll_once()
        self.assertIs(tracker.view().phase, TrackerPhase.DISCOVERING)


class TestTracking(unittest.IsolatedAsyncioTestCase):
    async def _tracking(self, *outcomes: object, hint: _Hint | None = None, sink: _Sink | None = None):
        ledger = _ScriptedLedger()
        ledger.queue(5, _snapshot(5, turn=1), *outcomes)
        tracker = _tracker(ledger, hint or _Hint(5), sink)
        await tracker.poll_once()
        return ledger, tracker

    async def test_events_are_logged_and_published(self) -> None:
        sink = _Sink()
        _, tracker = await self._tracking(_snapshot(5, turn=2, hp=(100, 80, 100, 100)), sink=sink)

        await tracker.poll_once()

        view = tracker.view()
        self.assertEqual(view.messages, ("YETI tail-whips MAPINGUARI for 20 damage",))
        self.assertEqual([r.event.message for r in sink.records], list(view.messages))
        self.assertEqual(view.records[0].logged_at_ms, 1_000)

    async def test_repeated_poll_adds_nothing(self) -> None:
        _, tracker = await self._tracking(_snapshot(5, turn=2, hp=(100, 80, 100, 100)))
        await tracker.poll_once()
        await tracker.poll_once()
        self.assertEqual(len(tracker.view().records), 1)

    async def test_advances_to_successor(self) -> None:
        _, tracker = await self._tracking(FINISHED_5, hint=_Hint(5, 6))

        await tracker.poll_once()

        view = tracker.view()
        self.assertEqual(view.active_contest_id, 6)
        self.assertIs(view.phase, TrackerPhase.TRACKING)
        self.assertIsNone(view.last_snapshot)
        self.assertEqual(view.records, ())

    async def test_same_successor_stays(self) -> None:
        _, tracker = await self._tracking(FINISHED_5, hint=_Hint(5))

        await tracker.poll_once()

        view = tracker.view()
        self.assertEqual(view.active_contest_id, 5)
        self.assertIs(view.phase, TrackerPhase.IDLE)
        self.assertIn("YETI wins the battle", view.messages)

    async def test_failed_successor_lookup_stays(self) -> None:
        _, tracker = await self._tracking(FINISHED_5, hint=_Hint(5, None))

        await tracker.poll_once()

        self.assertEqual(tracker.view().active_contest_id, 5)
        self.assertIs(tracker.view().phase, TrackerPhase.IDLE)

    async def test_lower_successor_is_ignored(self) -> None:
        _, tracker = await self._tracking(FINISHED_5, hint=_Hint(5, 4))
        await tracker.poll_once()
        self.assertEqual(tracker.view().active_contest_id, 5)

    async def test_idle_contest_advances_later(self) -> None:
        _, tracker = await self._tracking(FINISHED_5, hint=_Hint(5, 5, 7))
        await tracker.poll_once()
        self.assertEqual(tracker.view().active_contest_id, 5)

        await tracker.poll_once()

        self.assertEqual(tracker.view().active_contest_id, 7)

    async def test_advances_by_probing_without_hint(self) -> None:
        ledger = _ScriptedLedger()
        ledger.queue(
            102,
            _snapshot(102, turn=1),
            _snapshot(
                102,
                turn=2,
                hp=(100, 0, 0, 0),
                alive=(True, False, False, False),
                finished=True,
                winner=0,
            ),
        )
        tracker = BattleTracker(
            source=ledger,
            locator=ContestLocator(source=ledger, baseline_contest_id=102),
            clock_ms=lambda: 0,
        )
        await tracker.poll_once()
        self.assertEqual(tracker.view().active_contest_id, 102)

        await tracker.poll_once()
        self.assertIs(tracker.view().phase, TrackerPhase.IDLE)

        ledger.queue(103, _snapshot(103, turn=1))
        await tracker.poll_once()
        self.assertEqual(tracker.view().active_contest_id, 103)

    async def test_not_found_is_swallowed(self) -> None:
        _, tracker = await self._tracking(NotFoundError("Account does not exist"))
        await tracker.poll_once()
        view = tracker.view()
        self.assertIsNone(view.error)
        self.assertEqual(view.last_snapshot.turn_counter, 1)

    async def test_failures_set_and_clear_error(self) -> None:
        _, tracker = await self._tracking(
            TransientFailure("429"),
            LedgerReadError("boom"),
            _snapshot(5, turn=2),
        )

        await tracker.poll_once()
        self.assertEqual(tracker.view().error, "429")
        await tracker.poll_once()
        self.assertEqual(tracker.view().error, "boom")
        await tracker.poll_once()
        self.assertIsNone(tracker.view().error)

    async def test_stale_snapshot_is_discarded(self) -> None:
        _, tracker = await self._tracking(
            _snapshot(5, turn=3, hp=(100, 80, 100, 100)),
            _snapshot(5, turn=2),
        )
        await tracker.poll_once()
        await tracker.poll_once()

        view = tracker.view()
        self.assertEqual(view.last_snapshot.turn_counter, 3)
        self.assertEqual(len(view.records), 1)

    async def test_view_is_a_copy(self) -> None:
        _, tracker = await self._tracking(_snapshot(5, turn=2, hp=(100, 80, 100, 100)))
        before = tracker.view()
        await tracker.poll_once()
        self.assertEqual(before.records, ())

    async def test_prune_log(self) -> None:
        _, tracker = await self._tracking(_snapshot(5, turn=2, hp=(100, 80, 100, 100)))
        await tracker.poll_once()
        self.assertEqual(tracker.prune_log(now_ms=1_000 + 15_001), 1)
        self.assertEqual(tracker.view().records, ())


class _GatedLedger(_ScriptedLedger):
    def __init__(self) -> None:
        super().__init__()
        self.gate = asyncio.Event()

    async def fetch_snapshot(self, contest_id: int) -> ContestSnapshot:
        await self.gate.wait()
        return await super().fetch_snapshot(contest_id)


class TestLiveness(unittest.IsolatedAsyncioTestCase):
    async def test_results_after_close_are_discarded(self) -> None:
        ledger = _GatedLedger()
        ledger.queue(5, _snapshot(5, turn=1))
        tracker = _tracker(ledger, _Hint(5))

        pending = asyncio.create_task(tracker.poll_once())
        await asyncio.sleep(0)
        tracker.close()
        ledger.gate.set()
        await pending

        self.assertIsNone(tracker.view().active_contest_id)
        self.assertFalse(tracker.alive)

    async def test_poll_after_close_is_noop(self) -> None:
        ledger = _ScriptedLedger()
        ledger.queue(5, _snapshot(5, turn=1))
        tracker = _tracker(ledger, _Hint(5))
        tracker.close()
        await tracker.poll_once()
        self.assertIs(tracker.view().phase, TrackerPhase.UNINITIALIZED)
        self.assertEqual(tracker.prune_log(now_ms=0), 0)
