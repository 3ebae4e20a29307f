from __future__ import annotations

from dataclasses import dataclass

from ledger_data.config import HintConfig, LedgerConfig, validate_hint, validate_ledger
from ledger_data.keys import OWNER_KEY_LENGTH


@dataclass(frozen=True)
class TrackerConfig:
    baseline_contest_id: int
    probe_window: int
    poll_interval_ms: int


@dataclass(frozen=True)
class RetentionConfig:
    max_records: int
    max_age_ms: int | None
    prune_interval_ms: int


@dataclass(frozen=True)
class MarketConfig:
    enabled: bool
    poll_interval_ms: int


@dataclass(frozen=True)
class PositionsConfig:
    owner: str | None
    poll_interval_ms: int
    winnings_lookback: int

    def owner_bytes(self) -> bytes | None:
        if self.owner is None:
            return None
        return bytes.fromhex(self.owner)


@dataclass(frozen=True)
class ArenaConfig:
    ledger: LedgerConfig
    hint: HintConfig
    tracker: TrackerConfig
    retention: RetentionConfig
    market: MarketConfig
    positions: PositionsConfig


def validate_config(config: ArenaConfig) -> None:
    validate_ledger(config.ledger)
    validate_hint(config.hint)

    if config.tracker.baseline_contest_id < 0:
        raise ValueError("tracker.baseline_contest_id must be >= 0")
    _require_positive(config.tracker.probe_window, "tracker.probe_window")
    _require_positive(config.tracker.poll_interval_ms, "tracker.poll_interval_ms")

    _require_positive(config.retention.max_records, "retention.max_records")
    if config.retention.max_age_ms is not None:
        _require_positive(config.retention.max_age_ms, "retention.max_age_ms")
    _require_positive(config.retention.prune_interval_ms, "retention.prune_interval_ms")

    _require_positive(config.market.poll_interval_ms, "market.poll_interval_ms")

    _require_positive(config.positions.poll_interval_ms, "positions.poll_interval_ms")
    _require_positive(config.positions.winnings_lookback, "positions.winnings_lookback")
    if config.positions.owner is not None:
        try:
            owner = config.positions.owner_bytes()
        except ValueError as exc:
            raise ValueError("positions.owner must be a hex string") from exc
        if owner is None or len(owner) != OWNER_KEY_LENGTH:
            raise ValueError(f"positions.owner must encode {OWNER_KEY_LENGTH} bytes")


def _require_positive(value: int, label: str) -> None:
    if value <= 0:
        raise ValueError(f"{label} must be > 0")
