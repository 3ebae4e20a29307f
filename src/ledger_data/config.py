from __future__ import annotations

from dataclasses import dataclass

DEFAULT_MAX_RETRIES = 2
DEFAULT_INITIAL_DELAY_MS = 2000
DEFAULT_HINT_TIMEOUT_MS = 5000


@dataclass(frozen=True)
class BackoffPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    initial_delay_ms: int = DEFAULT_INITIAL_DELAY_MS
    max_delay_ms: int | None = None

    def delays(self) -> tuple[int, ...]:
        delays: list[int] = []
        delay = self.initial_delay_ms
        for _ in range(self.max_retries):
            if self.max_delay_ms is not None:
                delay = min(delay, self.max_delay_ms)
            delays.append(delay)
            delay *= 2
        return tuple(delays)


@dataclass(frozen=True)
class LedgerConfig:
    endpoint: str
    request_timeout_ms: int
    retry: BackoffPolicy


@dataclass(frozen=True)
class HintConfig:
    base_url: str | None = None
    timeout_ms: int = DEFAULT_HINT_TIMEOUT_MS


def validate_backoff(policy: BackoffPolicy, label: str) -> None:
    if policy.max_retries < 0:
        raise ValueError(f"{label}.max_retries must be >= 0")
    if policy.initial_delay_ms < 0:
        raise ValueError(f"{label}.initial_delay_ms must be >= 0")
    if policy.max_delay_ms is not None and policy.max_delay_ms < policy.initial_delay_ms:
        raise ValueError(f"{label}.max_delay_ms must be >= initial_delay_ms")


def validate_ledger(config: LedgerConfig) -> None:
    if not config.endpoint:
        raise ValueError("ledger.endpoint must be set")
    if not config.endpoint.startswith(("http://", "https://", "ws://", "wss://")):
        raise ValueError("ledger.endpoint must be an http(s) or ws(s) url")
    if config.request_timeout_ms <= 0:
        raise ValueError("ledger.request_timeout_ms must be > 0")
    validate_backoff(config.retry, "ledger.retry")


def validate_hint(config: HintConfig) -> None:
    if config.base_url is not None and not config.base_url.startswith(("http://", "https://")):
        raise ValueError("hint.base_url must be an http(s) url")
    if config.timeout_ms <= 0:
        raise ValueError("hint.timeout_ms must be > 0")
