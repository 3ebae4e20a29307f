from __future__ import annotations

import asyncio
import time
from collections.abc import Awaitable, Callable

from battle_tracker.observability import Observability, null_observability


class IntervalPoller:
    """Runs ``tick`` every ``interval_ms`` on the current event loop.

    Ticks never overlap: the next one is scheduled ``interval_ms`` after the
    previous one started, or immediately if it overran. ``stop`` wakes the
    pending wait and lets an in-flight tick settle.
    """

    def __init__(
        self,
        *,
        name: str,
        interval_ms: int,
        tick: Callable[[], Awaitable[object]],
        observability: Observability | None = None,
        clock: Callable[[], float] | None = None,
    ) -> None:
        if interval_ms <= 0:
            raise ValueError("interval_ms must be > 0")
        self._name = name
        self._interval_s = interval_ms / 1000
        self._tick = tick
        self._observability = observability or null_observability()
        self._clock = clock or time.monotonic
        self._stopped = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._tick_count = 0

    @property
    def name(self) -> str:
        return self._name

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def start(self) -> None:
        if self.running:
            return
        self._stopped.clear()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self._name)
        self._observability.log_poller_state(name=self._name, state="started")

    async def stop(self) -> None:
        self._stopped.set()
        task = self._task
        if task is None:
            return
        await task
        self._task = None
        self._observability.log_poller_state(name=self._name, state="stopped")

    async def _run(self) -> None:
        while not self._stopped.is_set():
            started = self._clock()
            await self._run_tick()
            remaining = self._interval_s - (self._clock() - started)
            if remaining <= 0:
                await asyncio.sleep(0)
                continue
            try:
                await asyncio.wait_for(self._stopped.wait(), timeout=remaining)
            except asyncio.TimeoutError:
                pass

    async def _run_tick(self) -> None:
        try:
            await self._tick()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._observability.log_tick_failed(name=self._name, error=repr(exc))
        finally:
            self._tick_count += 1
