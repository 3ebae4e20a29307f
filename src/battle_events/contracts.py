from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class EventKind(str, Enum):
    ACTION = "action"
    ELIMINATION = "elimination"
    CONCLUSION = "conclusion"


@dataclass(frozen=True)
class DerivedEvent:
    turn: int
    kind: EventKind
    subjects: tuple[int, ...]
    message: str
    sequence: int
    attacker: int | None = None
    target: int | None = None
    damage: int | None = None
    missed: bool = False
    winner: int | None = None
