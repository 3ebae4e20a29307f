from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ledger_data.contracts import (
    PARTICIPANT_COUNT,
    ContestSnapshot,
    MarketState,
    ParticipantState,
    UserPosition,
)


@dataclass(frozen=True)
class DecodeFailureDetail:
    error_kind: str
    error_detail: str


class DecodeError(Exception):
    def __init__(self, detail: DecodeFailureDetail) -> None:
        super().__init__(detail.error_detail)
        self.detail = detail


def decode_contest_snapshot(contest_id: int, payload: Any) -> ContestSnapshot:
    data = _require_mapping(payload)
    hp = _parse_int_list(_require_field(data, "creatureHp"), "creatureHp")
    max_hp = _parse_int_list(_require_field(data, "creatureMaxHp"), "creatureMaxHp")
    alive = _parse_bool_list(_require_field(data, "isAlive"), "isAlive")
    speed_raw = data.get("creatureSpeed")
    speed = (
        _parse_int_list(speed_raw, "creatureSpeed")
        if speed_raw is not None
        else (0,) * PARTICIPANT_COUNT
    )
    is_finished = _parse_bool(_require_field(data, "isBattleOver"), "isBattleOver")
    winner_raw = data.get("winner")
    winner = _parse_int(winner_raw, "winner") if winner_raw is not None else None
    if not is_finished:
        winner = None
    elif winner is not None and not 0 <= winner < PARTICIPANT_COUNT:
        raise DecodeError(DecodeFailureDetail("parse_error", "winner out of range"))
    try:
        participants = tuple(
            ParticipantState(
                hp=hp[index], max_hp=max_hp[index], is_alive=alive[index], speed=speed[index]
            )
            for index in range(PARTICIPANT_COUNT)
        )
        return ContestSnapshot(
            contest_id=contest_id,
            turn_counter=_parse_int(_require_field(data, "currentTurn"), "currentTurn"),
            participants=participants,
            is_finished=is_finished,
            winner_index=winner,
        )
    except ValueError as exc:
        raise DecodeError(DecodeFailureDetail("invariant_violation", str(exc))) from exc


def decode_market_state(contest_id: int, payload: Any) -> MarketState:
    data = _require_mapping(payload)
    pools = tuple(
        _parse_int(_require_field(data, f"creature{index}Pool"), f"creature{index}Pool")
        for index in range(PARTICIPANT_COUNT)
    )
    shares = tuple(
        _parse_int(_require_field(data, f"creature{index}Shares"), f"creature{index}Shares")
        for index in range(PARTICIPANT_COUNT)
    )
    return MarketState(
        contest_id=contest_id,
        pools=pools,
        shares=shares,
        total_pool=_parse_int(_require_field(data, "totalPool"), "totalPool"),
        k_constant=_parse_int(_require_field(data, "kConstant"), "kConstant"),
    )


def decode_user_position(contest_id: int, creature_index: int, payload: Any) -> UserPosition:
    data = _require_mapping(payload)
    owner = _require_field(data, "user")
    if not isinstance(owner, str) or not owner:
        raise DecodeError(DecodeFailureDetail("parse_error", "invalid user"))
    return UserPosition(
        contest_id=contest_id,
        creature_index=creature_index,
        owner=owner,
        amount=_parse_int(_require_field(data, "amount"), "amount"),
        claimed=_parse_bool(_require_field(data, "claimed"), "claimed"),
    )


def _require_mapping(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise DecodeError(DecodeFailureDetail("schema_mismatch", "payload must be an object"))
    return payload


def _require_field(payload: Mapping[str, Any], key: str) -> Any:
    if key not in payload:
        raise DecodeError(DecodeFailureDetail("missing_required_field", f"missing {key}"))
    return payload[key]


def _parse_int(value: Any, field: str) -> int:
    if isinstance(value, bool):
        raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        try:
            if text.lower().startswith(("0x", "-0x")):
                return int(text, 16)
            return int(text)
        except ValueError as exc:
            raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}")) from exc
    if isinstance(value, Mapping):
        # big numbers may arrive wrapped, e.g. {"value": "123"} or {"hex": "7b"}
        if "value" in value:
            return _parse_int(value["value"], field)
        if "hex" in value:
            hex_text = value["hex"]
            if isinstance(hex_text, str):
                prefixed = hex_text if hex_text.lower().startswith("0x") else f"0x{hex_text}"
                return _parse_int(prefixed, field)
    raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))


def _parse_bool(value: Any, field: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.lower()
        if lowered in {"true", "false"}:
            return lowered == "true"
    raise DecodeError(DecodeFailureDetail("parse_error", f"invalid {field}"))


def _require_sequence(value: Any, field: str) -> Sequence[Any]:
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise DecodeError(DecodeFailureDetail("schema_mismatch", f"{field} must be a list"))
    if len(value) != PARTICIPANT_COUNT:
        raise DecodeError(
            DecodeFailureDetail(
                "schema_mismatch", f"{field} must have {PARTICIPANT_COUNT} entries"
            )
        )
    return value


def _parse_int_list(value: Any, field: str) -> tuple[int, ...]:
    return tuple(_parse_int(item, field) for item in _require_sequence(value, field))


def _parse_bool_list(value: Any, field: str) -> tuple[bool, ...]:
    return tuple(_parse_bool(item, field) for item in _require_sequence(value, field))
