"""battle_tracker lifecycle, discovery and polling streams."""

from battle_tracker.discovery import (
    DEFAULT_BASELINE_CONTEST_ID,
    DEFAULT_PROBE_WINDOW,
    ContestLocator,
    DiscoveryResult,
)
from battle_tracker.lifecycle import LifecycleState, TrackerPhase, TrackerView
from battle_tracker.market import MarketView, MarketWatcher
from battle_tracker.poller import IntervalPoller
from battle_tracker.positions import (
    PositionsView,
    PositionsWatcher,
    fetch_user_positions,
    scan_unclaimed_winnings,
)
from battle_tracker.retention import LogRecord, RetainedLog
from battle_tracker.tracker import BattleTracker, EventSink

__all__ = [
    "DEFAULT_BASELINE_CONTEST_ID",
    "DEFAULT_PROBE_WINDOW",
    "ContestLocator",
    "DiscoveryResult",
    "LifecycleState",
    "TrackerPhase",
    "TrackerView",
    "MarketView",
    "MarketWatcher",
    "IntervalPoller",
    "PositionsView",
    "PositionsWatcher",
    "fetch_user_positions",
    "scan_unclaimed_winnings",
    "LogRecord",
    "RetainedLog",
    "BattleTracker",
    "EventSink",
]
