from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from battle_tracker.observability import Observability, null_observability
from ledger_data.contracts import PARTICIPANT_COUNT, UnclaimedWinning, UserPosition
from ledger_data.errors import LedgerError, NotFoundError
from ledger_data.source import SnapshotSource

DEFAULT_WINNINGS_LOOKBACK = 10


async def fetch_user_positions(
    source: SnapshotSource, contest_id: int, owner: bytes
) -> tuple[UserPosition, ...]:
    """Positions ``owner`` holds in ``contest_id``, one per creature at most.

    Slots that were never opened (not found, or still carrying the default
    owner) are skipped. Any other read failure propagates.
    """
    positions: list[UserPosition] = []
    for creature_index in range(PARTICIPANT_COUNT):
        try:
            position = await source.fetch_position(contest_id, owner, creature_index)
        except NotFoundError:
            continue
        if position.is_owned:
            positions.append(position)
    return tuple(positions)


async def scan_unclaimed_winnings(
    source: SnapshotSource,
    current_contest_id: int,
    owner: bytes,
    *,
    lookback: int = DEFAULT_WINNINGS_LOOKBACK,
) -> tuple[UnclaimedWinning, ...]:
    """Winning, unclaimed positions in the most recent ``lookback`` contests.

    Contests are scanned newest first, starting at ``current_contest_id``.
    Unfinished contests and draws contribute nothing.
    """
    if lookback <= 0:
        raise ValueError("lookback must be > 0")
    winnings: list[UnclaimedWinning] = []
    oldest = max(0, current_contest_id - lookback + 1)
    for contest_id in range(current_contest_id, oldest - 1, -1):
        try:
            snapshot = await source.fetch_snapshot(contest_id)
        except NotFoundError:
            continue
        if not snapshot.is_finished or snapshot.winner_index is None:
            continue
        winner = snapshot.winner_index
        try:
            position = await source.fetch_position(contest_id, owner, winner)
            if not position.is_owned or position.claimed or position.amount <= 0:
                continue
            market = await source.fetch_market(contest_id)
        except NotFoundError:
            continue
        winnings.append(
            UnclaimedWinning(
                contest_id=contest_id,
                creature_index=winner,
                shares=position.amount,
                total_pool=market.total_pool,
                winning_pool=market.pools[winner],
            )
        )
    return tuple(winnings)


@dataclass(frozen=True)
class PositionsView:
    contest_id: int | None
    positions: tuple[UserPosition, ...]
    winnings: tuple[UnclaimedWinning, ...]
    error: str | None


class PositionsWatcher:
    def __init__(
        self,
        *,
        source: SnapshotSource,
        owner: bytes,
        contest_id_provider: Callable[[], int | None],
        lookback: int = DEFAULT_WINNINGS_LOOKBACK,
        observability: Observability | None = None,
    ) -> None:
        self._source = source
        self._owner = owner
        self._contest_id_provider = contest_id_provider
        self._lookback = lookback
        self._observability = observability or null_observability()
        self._view = PositionsView(contest_id=None, positions=(), winnings=(), error=None)
        self._alive = True

    def close(self) -> None:
        self._alive = False

    def view(self) -> PositionsView:
        return self._view

    async def poll_once(self) -> None:
        if not self._alive:
            return
        contest_id = self._contest_id_provider()
        if contest_id is None:
            return
        try:
            positions = await fetch_user_positions(self._source, contest_id, self._owner)
            winnings = await scan_unclaimed_winnings(
                self._source, contest_id, self._owner, lookback=self._lookback
            )
        except LedgerError as exc:
            if self._alive:
                error = str(exc) or type(exc).__name__
                self._view = PositionsView(
                    contest_id=self._view.contest_id,
                    positions=self._view.positions,
                    winnings=self._view.winnings,
                    error=error,
                )
                self._observability.log_fetch_failed(
                    contest_id=contest_id, stream="positions", error=error
                )
            return
        if not self._alive:
            return
        self._view = PositionsView(
            contest_id=contest_id, positions=positions, winnings=winnings, error=None
        )
