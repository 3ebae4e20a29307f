from __future__ import annotations

from collections.abc import Sequence

DEFAULT_PARTICIPANT_NAMES: tuple[str, ...] = ("YETI", "MAPINGUARI", "ZMEY", "NAGA")

DEFAULT_ACTION_NAMES: tuple[str, ...] = (
    "slashes",
    "bites",
    "tail-whips",
    "charges",
    "claws",
    "headbutts",
)


def participant_name(names: Sequence[str], index: int) -> str:
    if 0 <= index < len(names):
        return names[index]
    return f"CREATURE #{index}"


def action_name(actions: Sequence[str], *, attacker: int, turn: int) -> str:
    return actions[(attacker + turn) % len(actions)]


def format_hit(
    names: Sequence[str],
    actions: Sequence[str],
    *,
    attacker: int | None,
    target: int,
    damage: int,
    turn: int,
) -> str:
    target_name = participant_name(names, target)
    if attacker is None:
        return f"{target_name} takes {damage} damage"
    verb = action_name(actions, attacker=attacker, turn=turn)
    return f"{participant_name(names, attacker)} {verb} {target_name} for {damage} damage"


def format_miss(
    names: Sequence[str], actions: Sequence[str], *, attacker: int, target: int, turn: int
) -> str:
    verb = action_name(actions, attacker=attacker, turn=turn)
    return f"{participant_name(names, attacker)} {verb} at {participant_name(names, target)} but misses"


def format_elimination(names: Sequence[str], *, index: int) -> str:
    return f"{participant_name(names, index)} has been eliminated"


def format_conclusion(names: Sequence[str], *, winner: int | None) -> str:
    if winner is None:
        return "The battle ends in a draw"
    return f"{participant_name(names, winner)} wins the battle"
