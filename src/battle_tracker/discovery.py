from __future__ import annotations

from dataclasses import dataclass

from ledger_data.contracts import ContestSnapshot
from ledger_data.errors import NotFoundError
from ledger_data.hint import HintSource
from ledger_data.source import SnapshotSource

DEFAULT_BASELINE_CONTEST_ID = 102
DEFAULT_PROBE_WINDOW = 10


@dataclass(frozen=True)
class DiscoveryResult:
    contest_id: int
    via: str
    snapshot: ContestSnapshot | None = None


class ContestLocator:
    """Finds the contest to follow and, once it finishes, its successor.

    With a hint source configured the hint is authoritative: a failed lookup
    yields nothing and the caller asks again on its next tick. Without one the
    ledger itself is probed upward from a floor that only ever rises.
    """

    def __init__(
        self,
        *,
        source: SnapshotSource,
        hint: HintSource | None = None,
        baseline_contest_id: int = DEFAULT_BASELINE_CONTEST_ID,
        probe_window: int = DEFAULT_PROBE_WINDOW,
    ) -> None:
        if probe_window <= 0:
            raise ValueError("probe_window must be > 0")
        self._source = source
        self._hint = hint
        self._floor = baseline_contest_id
        self._probe_window = probe_window

    @property
    def floor(self) -> int:
        return self._floor

    def raise_floor(self, contest_id: int) -> None:
        if contest_id > self._floor:
            self._floor = contest_id

    async def locate(self) -> DiscoveryResult | None:
        if self._hint is not None:
            contest_id = await self._hint.current_contest_id()
            if contest_id is None:
                return None
            return DiscoveryResult(contest_id=contest_id, via="hint")
        return await self._probe()

    async def successor_of(self, contest_id: int) -> int | None:
        if self._hint is not None:
            return await self._hint.current_contest_id()
        candidate = contest_id + 1
        try:
            await self._source.fetch_snapshot(candidate)
        except NotFoundError:
            return None
        return candidate

    async def _probe(self) -> DiscoveryResult | None:
        latest: tuple[int, ContestSnapshot] | None = None
        latest_open: tuple[int, ContestSnapshot] | None = None
        start = self._floor
        exhausted = False
        # a window where every id exists means newer contests may lie beyond it
        while not exhausted:
            for contest_id in range(start, start + self._probe_window):
                try:
                    snapshot = await self._source.fetch_snapshot(contest_id)
                except NotFoundError:
                    exhausted = True
                    break
                latest = (contest_id, snapshot)
                if not snapshot.is_finished:
                    latest_open = (contest_id, snapshot)
            start += self._probe_window
        chosen = latest_open or latest
        if chosen is None:
            return None
        return DiscoveryResult(contest_id=chosen[0], via="probe", snapshot=chosen[1])
