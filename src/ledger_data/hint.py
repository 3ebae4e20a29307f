from __future__ import annotations

import asyncio
import json
import urllib.request
from collections.abc import Mapping
from http.client import HTTPException
from typing import Protocol

from ledger_data.config import DEFAULT_HINT_TIMEOUT_MS
from ledger_data.observability import Observability, null_observability

HINT_PATH = "/current-battle"


class HintSource(Protocol):
    async def current_contest_id(self) -> int | None: ...


class HintUnavailable(Exception):
    """Internal signal for a hint lookup that produced no usable id."""


class HintClient:
    """Best-effort lookup of the current contest id from the companion backend.

    Every failure (timeout, non-2xx status, malformed body) is reported as
    ``None``; callers treat that as "no hint" and try again later.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_ms: int = DEFAULT_HINT_TIMEOUT_MS,
        observability: Observability | None = None,
    ) -> None:
        self._url = base_url.rstrip("/") + HINT_PATH
        self._timeout_ms = timeout_ms
        self._observability = observability or null_observability()

    @property
    def url(self) -> str:
        return self._url

    async def current_contest_id(self) -> int | None:
        try:
            contest_id = await asyncio.to_thread(self._fetch_blocking)
        except (HintUnavailable, HTTPException, OSError, ValueError) as exc:
            self._observability.log_hint_unavailable(url=self._url, error=str(exc))
            return None
        self._observability.log_hint(contest_id=contest_id)
        return contest_id

    def _fetch_blocking(self) -> int:
        request = urllib.request.Request(
            self._url, method="GET", headers={"Content-Type": "application/json"}
        )
        with urllib.request.urlopen(request, timeout=self._timeout_ms / 1000) as response:
            status = getattr(response, "status", 200)
            if not 200 <= status < 300:
                raise HintUnavailable(f"hint endpoint returned {status}")
            raw_payload = response.read()
        return parse_hint(raw_payload)


def parse_hint(raw_payload: bytes | str) -> int:
    text = raw_payload if isinstance(raw_payload, str) else raw_payload.decode("utf-8")
    data = json.loads(text)
    if not isinstance(data, Mapping):
        raise HintUnavailable("hint payload is not an object")
    contest_id = data.get("battleId")
    if isinstance(contest_id, bool) or not isinstance(contest_id, int):
        raise HintUnavailable("hint payload has no integer battleId")
    if contest_id < 0:
        raise HintUnavailable("hint battleId is negative")
    return contest_id
