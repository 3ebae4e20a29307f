from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from battle_tracker.observability import Observability, null_observability
from ledger_data.contracts import MarketState
from ledger_data.errors import LedgerError, NotFoundError
from ledger_data.source import SnapshotSource


@dataclass(frozen=True)
class MarketView:
    contest_id: int | None
    market: MarketState | None
    error: str | None


class MarketWatcher:
    def __init__(
        self,
        *,
        source: SnapshotSource,
        contest_id_provider: Callable[[], int | None],
        observability: Observability | None = None,
    ) -> None:
        self._source = source
        self._contest_id_provider = contest_id_provider
        self._observability = observability or null_observability()
        self._market: MarketState | None = None
        self._error: str | None = None
        self._alive = True

    def close(self) -> None:
        self._alive = False

    def view(self) -> MarketView:
        market = self._market
        return MarketView(
            contest_id=market.contest_id if market is not None else None,
            market=market,
            error=self._error,
        )

    async def poll_once(self) -> MarketState | None:
        if not self._alive:
            return None
        contest_id = self._contest_id_provider()
        if contest_id is None:
            return None
        try:
            market = await self._source.fetch_market(contest_id)
        except NotFoundError:
            if self._alive:
                self._observability.log_not_found(contest_id=contest_id, stream="market")
            return None
        except LedgerError as exc:
            if self._alive:
                self._error = str(exc) or type(exc).__name__
                self._observability.log_fetch_failed(
                    contest_id=contest_id, stream="market", error=self._error
                )
            return None
        # the active contest may have moved on while the read was in flight
        if not self._alive or self._contest_id_provider() != contest_id:
            return None
        self._market = market
        self._error = None
        return market
