from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any, TypeVar

from ledger_data.contracts import ContestSnapshot, MarketState, UserPosition
from ledger_data.decoder import (
    DecodeError,
    decode_contest_snapshot,
    decode_market_state,
    decode_user_position,
)
from ledger_data.errors import LedgerReadError
from ledger_data.fetcher import ResilientFetcher
from ledger_data.keys import battle_key, market_key, position_key
from ledger_data.observability import Observability, null_observability
from ledger_data.transport import LedgerReader

T = TypeVar("T")


class SnapshotSource:
    def __init__(
        self,
        *,
        reader: LedgerReader,
        fetcher: ResilientFetcher | None = None,
        observability: Observability | None = None,
    ) -> None:
        self._reader = reader
        self._observability = observability or null_observability()
        self._fetcher = fetcher or ResilientFetcher(observability=self._observability)

    async def fetch_snapshot(self, contest_id: int) -> ContestSnapshot:
        payload = await self._read(battle_key(contest_id), label="battle")
        return self._decode(
            lambda: decode_contest_snapshot(contest_id, payload), label="battle"
        )

    async def fetch_market(self, contest_id: int) -> MarketState:
        payload = await self._read(market_key(contest_id), label="market")
        return self._decode(lambda: decode_market_state(contest_id, payload), label="market")

    async def fetch_position(
        self, contest_id: int, owner: bytes, creature_index: int
    ) -> UserPosition:
        key = position_key(contest_id, owner, creature_index)
        payload = await self._read(key, label="position")
        return self._decode(
            lambda: decode_user_position(contest_id, creature_index, payload),
            label="position",
        )

    async def _read(self, key: bytes, *, label: str) -> Mapping[str, Any]:
        return await self._fetcher.fetch(lambda: self._reader.read(key), label=label)

    def _decode(self, decode: Callable[[], T], *, label: str) -> T:
        try:
            return decode()
        except DecodeError as exc:
            self._observability.log_decode_failure(
                label=label,
                error_kind=exc.detail.error_kind,
                error=exc.detail.error_detail,
            )
            raise LedgerReadError(f"{label} decode failed: {exc.detail.error_detail}") from exc
