from __future__ import annotations

import asyncio
import os
from collections.abc import Mapping

from battle_tracker.config import ArenaConfig, load_config
from battle_tracker.retention import LogRecord
from runtime.bus import EventBus
from runtime.observability import bootstrap_observability
from runtime.wiring import build_runtime

LOG_DIR = "logs"

RPC_URL_ENV = "ARENA_RPC_URL"
HINT_URL_ENV = "ARENA_HINT_URL"


def env_overrides(environ: Mapping[str, str]) -> dict[str, object]:
    overrides: dict[str, object] = {}
    rpc_url = environ.get(RPC_URL_ENV)
    if rpc_url:
        overrides["ledger"] = {"endpoint": rpc_url}
    hint_url = environ.get(HINT_URL_ENV)
    if hint_url:
        overrides["hint"] = {"base_url": hint_url}
    return overrides


async def run(config: ArenaConfig) -> None:
    observability = bootstrap_observability(log_dir=LOG_DIR)
    bus = EventBus()
    bus.subscribe(LogRecord, observability.runtime.log_battle_event)
    runtime = build_runtime(
        config,
        bus,
        ledger_observability=observability.ledger_data,
        tracker_observability=observability.battle_tracker,
    )
    runtime.start()
    observability.runtime.log_runtime_started(
        endpoint=config.ledger.endpoint,
        hint_url=config.hint.base_url,
        streams=len(runtime.pollers),
    )
    try:
        await asyncio.Event().wait()
    finally:
        await runtime.stop()
        observability.runtime.log_runtime_stopped()


def main() -> None:
    config = load_config(env_overrides(os.environ))
    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
