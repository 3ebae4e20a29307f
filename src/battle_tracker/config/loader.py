from __future__ import annotations

import importlib
from collections.abc import Mapping
from importlib import resources

from battle_tracker.config.schema import (
    ArenaConfig,
    MarketConfig,
    PositionsConfig,
    RetentionConfig,
    TrackerConfig,
    validate_config,
)
from ledger_data.config import BackoffPolicy, HintConfig, LedgerConfig

_ROOT_KEYS = {"ledger", "hint", "tracker", "retention", "market", "positions"}
_LEDGER_KEYS = {"endpoint", "request_timeout_ms", "retry"}
_RETRY_KEYS = {"max_retries", "initial_delay_ms", "max_delay_ms"}
_HINT_KEYS = {"base_url", "timeout_ms"}
_TRACKER_KEYS = {"baseline_contest_id", "probe_window", "poll_interval_ms"}
_RETENTION_KEYS = {"max_records", "max_age_ms", "prune_interval_ms"}
_MARKET_KEYS = {"enabled", "poll_interval_ms"}
_POSITIONS_KEYS = {"owner", "poll_interval_ms", "winnings_lookback"}


def load_default_config() -> ArenaConfig:
    return load_config()


def load_config(overrides: Mapping[str, object] | None = None) -> ArenaConfig:
    payload = _load_default_payload()
    if overrides:
        payload = _merge(payload, overrides)
    config = parse_config(payload)
    validate_config(config)
    return config


def parse_config(payload: Mapping[str, object]) -> ArenaConfig:
    _reject_unknown(payload, _ROOT_KEYS, "arena config")
    return ArenaConfig(
        ledger=_parse_ledger(payload.get("ledger")),
        hint=_parse_hint(payload.get("hint")),
        tracker=_parse_tracker(payload.get("tracker")),
        retention=_parse_retention(payload.get("retention")),
        market=_parse_market(payload.get("market")),
        positions=_parse_positions(payload.get("positions")),
    )


def _load_default_payload() -> Mapping[str, object]:
    text = (
        resources.files("battle_tracker.config")
        .joinpath("default.yaml")
        .read_text(encoding="utf-8")
    )
    yaml = importlib.import_module("yaml")
    data = yaml.safe_load(text)
    if not isinstance(data, Mapping):
        raise ValueError("arena default config must be a mapping")
    return data


def _merge(base: Mapping[str, object], overrides: Mapping[str, object]) -> dict[str, object]:
    merged = dict(base)
    for key, value in overrides.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = _merge(current, value)
        else:
            merged[key] = value
    return merged


def _parse_ledger(data: object) -> LedgerConfig:
    section = _require_mapping(data, "ledger")
    _reject_unknown(section, _LEDGER_KEYS, "ledger")
    endpoint = section.get("endpoint")
    if not isinstance(endpoint, str) or not endpoint:
        raise ValueError("ledger.endpoint must be set")
    retry = _require_mapping(section.get("retry"), "ledger.retry")
    _reject_unknown(retry, _RETRY_KEYS, "ledger.retry")
    return LedgerConfig(
        endpoint=endpoint,
        request_timeout_ms=_require_int(section, "request_timeout_ms", "ledger"),
        retry=BackoffPolicy(
            max_retries=_require_int(retry, "max_retries", "ledger.retry"),
            initial_delay_ms=_require_int(retry, "initial_delay_ms", "ledger.retry"),
            max_delay_ms=_optional_int(retry, "max_delay_ms", "ledger.retry"),
        ),
    )


def _parse_hint(data: object) -> HintConfig:
    section = _require_mapping(data, "hint")
    _reject_unknown(section, _HINT_KEYS, "hint")
    return HintConfig(
        base_url=_optional_str(section, "base_url", "hint"),
        timeout_ms=_require_int(section, "timeout_ms", "hint"),
    )


def _parse_tracker(data: object) -> TrackerConfig:
    section = _require_mapping(data, "tracker")
    _reject_unknown(section, _TRACKER_KEYS, "tracker")
    return TrackerConfig(
        baseline_contest_id=_require_int(section, "baseline_contest_id", "tracker"),
        probe_window=_require_int(section, "probe_window", "tracker"),
        poll_interval_ms=_require_int(section, "poll_interval_ms", "tracker"),
    )


def _parse_retention(data: object) -> RetentionConfig:
    section = _require_mapping(data, "retention")
    _reject_unknown(section, _RETENTION_KEYS, "retention")
    return RetentionConfig(
        max_records=_require_int(section, "max_records", "retention"),
        max_age_ms=_optional_int(section, "max_age_ms", "retention"),
        prune_interval_ms=_require_int(section, "prune_interval_ms", "retention"),
    )


def _parse_market(data: object) -> MarketConfig:
    section = _require_mapping(data, "market")
    _reject_unknown(section, _MARKET_KEYS, "market")
    enabled = section.get("enabled")
    if not isinstance(enabled, bool):
        raise ValueError("market.enabled must be a bool")
    return MarketConfig(
        enabled=enabled,
        poll_interval_ms=_require_int(section, "poll_interval_ms", "market"),
    )


def _parse_positions(data: object) -> PositionsConfig:
    section = _require_mapping(data, "positions")
    _reject_unknown(section, _POSITIONS_KEYS, "positions")
    return PositionsConfig(
        owner=_optional_str(section, "owner", "positions"),
        poll_interval_ms=_require_int(section, "poll_interval_ms", "positions"),
        winnings_lookback=_require_int(section, "winnings_lookback", "positions"),
    )


def _require_mapping(data: object, label: str) -> Mapping[str, object]:
    if not isinstance(data, Mapping):
        raise ValueError(f"{label} must be a mapping")
    return data


def _require_int(section: Mapping[str, object], key: str, label: str) -> int:
    value = section.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label}.{key} must be an int")
    return value


def _optional_int(section: Mapping[str, object], key: str, label: str) -> int | None:
    if section.get(key) is None:
        return None
    return _require_int(section, key, label)


def _optional_str(section: Mapping[str, object], key: str, label: str) -> str | None:
    value = section.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or not value:
        raise ValueError(f"{label}.{key} must be a non-empty string")
    return value


def _reject_unknown(payload: Mapping[str, object], allowed: set[str], label: str) -> None:
    unknown = set(payload.keys()) - allowed
    if unknown:
        unknown_list = ", ".join(sorted(str(item) for item in unknown))
        raise ValueError(f"unknown {label} keys: {unknown_list}")
