import unittest

from battle_tracker.market import MarketWatcher
from battle_tracker.positions import PositionsWatcher, fetch_user_positions, scan_unclaimed_winnings
from ledger_data.contracts import (
    DEFAULT_OWNER,
    ContestSnapshot,
    MarketState,
    ParticipantState,
    UserPosition,
)
from ledger_data.errors import LedgerReadError, NotFoundError

OWNER = bytes(range(32))


def _snapshot(contest_id: int, *, finished: bool, winner: int | None) -> ContestSnapshot:
    return ContestSnapshot(
        contest_id=contest_id,
        turn_counter=4,
        participants=tuple(ParticipantState(hp=10, max_hp=100, is_alive=True) for _ in range(4)),
        is_finished=finished,
        winner_index=winner,
    )


def _market(contest_id: int) -> MarketState:
    return MarketState(
        contest_id=contest_id,
        pools=(100, 200, 300, 400),
        shares=(1, 2, 3, 4),
        total_pool=1000,
        k_constant=7,
    )


class _Ledger:
    def __init__(self) -> None:
        self.snapshots: dict[int, ContestSnapshot] = {}
        self.markets: dict[int, MarketState] = {}
        self.positions: dict[tuple[int, int], UserPosition] = {}
        self.failure: Exception | None = None

    async def fetch_snapshot(self, contest_id: int) -> ContestSnapshot:
        return self._lookup(self.snapshots, contest_id)

    async def fetch_market(self, contest_id: int) -> MarketState:
        return self._lookup(self.markets, contest_id)

    async def fetch_position(self, contest_id: int, owner: bytes, creature_index: int) -> UserPosition:
        assert owner == OWNER
        return self._lookup(self.positions, (contest_id, creature_index))

    def _lookup(self, table: dict, key: object):
        if self.failure is not None:
            raise self.failure
        if key not in table:
            raise NotFoundError("Account does not exist")
        return table[key]

    def position(self, contest_id: int, creature: int, *, amount: int = 5, claimed: bool = False, owner: str = "Owner") -> None:
        self.positions[(contest_id, creature)] = UserPosition(
            contest_id=contest_id, creature_index=creature, owner=owner, amount=amount, claimed=claimed
        )


class TestFetchUserPositions(unittest.IsolatedAsyncioTestCase):
    async def test_skips_missing_and_default_owner(self) -> None:
        ledger = _Ledger()
        ledger.position(9, 0)
        ledger.position(9, 2, owner=DEFAULT_OWNER)
        ledger.position(9, 3, amount=8)

        positions = await fetch_user_positions(ledger, 9, OWNER)

        self.assertEqual([p.creature_index for p in positions], [0, 3])

    async def test_other_errors_propagate(self) -> None:
        ledger = _Ledger()
        ledger.failure = LedgerReadError("boom")
        with self.assertRaises(LedgerReadError):
            await fetch_user_positions(ledger, 9, OWNER)


class TestScanUnclaimedWinnings(unittest.IsolatedAsyncioTestCase):
    async def test_collects_unclaimed_winning_positions(self) -> None:
        ledger = _Ledger()
        ledger.snapshots[10] = _snapshot(10, finished=False, winner=None)
        ledger.snapshots[9] = _snapshot(9, finished=True, winner=1)
        ledger.snapshots[8] = _snapshot(8, finished=True, winner=2)
        ledger.snapshots[7] = _snapshot(7, finished=True, winner=None)
        ledger.snapshots[6] = _snapshot(6, finished=True, winner=3)
        ledger.markets[9] = _market(9)
        ledger.markets[6] = _market(6)
        ledger.position(9, 1, amount=50)
        ledger.position(8, 2, claimed=True)
        ledger.position(6, 3, amount=20)
        ledger.position(6, 0, amount=99)

        winnings = await scan_unclaimed_winnings(ledger, 10, OWNER)

        self.assertEqual(
            [(w.contest_id, w.creature_index, w.shares, w.winning_pool) for w in winnings],
            [(9, 1, 50, 200), (6, 3, 20, 400)],
        )
        self.assertTrue(all(w.total_pool == 1000 for w in winnings))

    async def test_lookback_limits_scan(self) -> None:
        ledger = _Ledger()
        ledger.snapshots[3] = _snapshot(3, finished=True, winner=0)
        ledger.markets[3] = _market(3)
        ledger.position(3, 0)

        self.assertEqual(await scan_unclaimed_winnings(ledger, 5, OWNER, lookback=2), ())
        self.assertEqual(len(await scan_unclaimed_winnings(ledger, 5, OWNER, lookback=3)), 1)

    async def test_invalid_lookback(self) -> None:
        with self.assertRaises(ValueError):
            await scan_unclaimed_winnings(_Ledger(), 5, OWNER, lookback=0)


class TestWatchers(unittest.IsolatedAsyncioTestCase):
    async def test_positions_watcher_records_error_and_keeps_last_view(self) -> None:
        ledger = _Ledger()
        ledger.position(2, 1)
        watcher = PositionsWatcher(source=ledger, owner=OWNER, contest_id_provider=lambda: 2)

        await watcher.poll_once()
        self.assertEqual(len(watcher.view().positions), 1)

        ledger.failure = LedgerReadError("boom")
        await watcher.poll_once()
        view = watcher.view()
        self.assertEqual(view.error, "boom")
        self.assertEqual(len(view.positions), 1)

    async def test_positions_watcher_waits_for_contest(self) -> None:
        watcher = PositionsWatcher(source=_Ledger(), owner=OWNER, contest_id_provider=lambda: None)
        await watcher.poll_once()
        self.assertIsNone(watcher.view().contest_id)

    async def test_market_watcher(self) -> None:
        ledger = _Ledger()
        active = {"id": 4}
        watcher = MarketWatcher(source=ledger, contest_id_provider=lambda: active["id"])

        self.assertIsNone(await watcher.poll_once())
        self.assertIsNone(watcher.view().error)

        ledger.markets[4] = _market(4)
        await watcher.poll_once()
        self.assertEqual(watcher.view().market.total_pool, 1000)

        ledger.failure = LedgerReadError("down")
        await watcher.poll_once()
        self.assertEqual(watcher.view().error, "down")
        self.assertEqual(watcher.view().contest_id, 4)

    async def test_market_watcher_after_close(self) -> None:
        ledger = _Ledger()
        ledger.markets[4] = _market(4)
        watcher = MarketWatcher(source=ledger, contest_id_provider=lambda: 4)
        watcher.close()
        self.assertIsNone(await watcher.poll_once())
        self.assertIsNone(watcher.view().market)
