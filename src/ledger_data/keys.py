from __future__ import annotations

import struct

NAMESPACE_BATTLE = b"battle"
NAMESPACE_MARKET = b"market"
NAMESPACE_POSITION = b"position"
NAMESPACE_GLOBAL = b"global"

OWNER_KEY_LENGTH = 32


def contest_id_bytes(contest_id: int) -> bytes:
    try:
        return struct.pack("<q", contest_id)
    except struct.error as exc:
        raise ValueError(f"contest_id out of range: {contest_id}") from exc


def battle_key(contest_id: int) -> bytes:
    return NAMESPACE_BATTLE + contest_id_bytes(contest_id)


def market_key(contest_id: int) -> bytes:
    return NAMESPACE_MARKET + contest_id_bytes(contest_id)


def position_key(contest_id: int, owner: bytes, creature_index: int) -> bytes:
    if len(owner) != OWNER_KEY_LENGTH:
        raise ValueError(f"owner must be {OWNER_KEY_LENGTH} bytes")
    if not 0 <= creature_index <= 0xFF:
        raise ValueError("creature_index must fit in one byte")
    return NAMESPACE_POSITION + contest_id_bytes(contest_id) + owner + bytes([creature_index])


def global_key() -> bytes:
    return NAMESPACE_GLOBAL
