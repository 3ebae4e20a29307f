from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from battle_tracker.config import ArenaConfig
from battle_tracker.discovery import ContestLocator
from battle_tracker.market import MarketWatcher
from battle_tracker.observability import Observability as TrackerObservability
from battle_tracker.observability import null_observability as null_tracker_observability
from battle_tracker.poller import IntervalPoller
from battle_tracker.positions import PositionsWatcher
from battle_tracker.retention import LogRecord, RetainedLog
from battle_tracker.tracker import BattleTracker
from ledger_data.fetcher import ResilientFetcher
from ledger_data.hint import HintClient
from ledger_data.observability import Observability as LedgerObservability
from ledger_data.observability import null_observability as null_ledger_observability
from ledger_data.source import SnapshotSource
from ledger_data.transport import LedgerReader, build_reader
from runtime.bus import EventBus


class BusEventSink:
    def __init__(self, bus: EventBus) -> None:
        self._bus = bus

    def write(self, records: Sequence[LogRecord]) -> None:
        for record in records:
            self._bus.publish(record)


@dataclass
class ArenaRuntime:
    tracker: BattleTracker
    market: MarketWatcher | None
    positions: PositionsWatcher | None
    pollers: tuple[IntervalPoller, ...]

    def start(self) -> None:
        for poller in self.pollers:
            poller.start()

    async def stop(self) -> None:
        self.tracker.close()
        if self.market is not None:
            self.market.close()
        if self.positions is not None:
            self.positions.close()
        for poller in self.pollers:
            await poller.stop()


def build_runtime(
    config: ArenaConfig,
    bus: EventBus,
    *,
    reader: LedgerReader | None = None,
    ledger_observability: LedgerObservability | None = None,
    tracker_observability: TrackerObservability | None = None,
) -> ArenaRuntime:
    ledger_obs = ledger_observability or null_ledger_observability()
    tracker_obs = tracker_observability or null_tracker_observability()
    source = SnapshotSource(
        reader=reader
        or build_reader(config.ledger.endpoint, config.ledger.request_timeout_ms),
        fetcher=ResilientFetcher(config.ledger.retry, observability=ledger_obs),
        observability=ledger_obs,
    )
    hint = None
    if config.hint.base_url is not None:
        hint = HintClient(
            base_url=config.hint.base_url,
            timeout_ms=config.hint.timeout_ms,
            observability=ledger_obs,
        )
    locator = ContestLocator(
        source=source,
        hint=hint,
        baseline_contest_id=config.tracker.baseline_contest_id,
        probe_window=config.tracker.probe_window,
    )
    tracker = BattleTracker(
        source=source,
        locator=locator,
        log=RetainedLog(
            max_records=config.retention.max_records,
            max_age_ms=config.retention.max_age_ms,
        ),
        sink=BusEventSink(bus),
        observability=tracker_obs,
    )

    async def prune() -> None:
        tracker.prune_log()

    pollers = [
        IntervalPoller(
            name="battle",
            interval_ms=config.tracker.poll_interval_ms,
            tick=tracker.poll_once,
            observability=tracker_obs,
        ),
        IntervalPoller(
            name="retention",
            interval_ms=config.retention.prune_interval_ms,
            tick=prune,
            observability=tracker_obs,
        ),
    ]

    def active_contest_id() -> int | None:
        return tracker.active_contest_id

    market = None
    if config.market.enabled:
        market = MarketWatcher(
            source=source, contest_id_provider=active_contest_id, observability=tracker_obs
        )
        pollers.append(
            IntervalPoller(
                name="market",
                interval_ms=config.market.poll_interval_ms,
                tick=market.poll_once,
                observability=tracker_obs,
            )
        )

    positions = None
    owner = config.positions.owner_bytes()
    if owner is not None:
        positions = PositionsWatcher(
            source=source,
            owner=owner,
            contest_id_provider=active_contest_id,
            lookback=config.positions.winnings_lookback,
            observability=tracker_obs,
        )
        pollers.append(
            IntervalPoller(
                name="positions",
                interval_ms=config.positions.poll_interval_ms,
                tick=positions.poll_once,
                observability=tracker_obs,
            )
        )

    return ArenaRuntime(
        tracker=tracker, market=market, positions=positions, pollers=tuple(pollers)
    )
