from __future__ import annotations

from dataclasses import dataclass

PARTICIPANT_COUNT = 4

DEFAULT_OWNER = "11111111111111111111111111111111"


@dataclass(frozen=True)
class ParticipantState:
    hp: int
    max_hp: int
    is_alive: bool
    speed: int = 0

    def __post_init__(self) -> None:
        if self.hp < 0:
            raise ValueError("hp must be >= 0")
        if self.max_hp <= 0:
            raise ValueError("max_hp must be > 0")


@dataclass(frozen=True)
class ContestSnapshot:
    contest_id: int
    turn_counter: int
    participants: tuple[ParticipantState, ...]
    is_finished: bool
    winner_index: int | None = None

    def __post_init__(self) -> None:
        if len(self.participants) != PARTICIPANT_COUNT:
            raise ValueError(f"participants must have {PARTICIPANT_COUNT} entries")
        if self.winner_index is not None:
            if not self.is_finished:
                raise ValueError("winner_index is only set on finished contests")
            if not 0 <= self.winner_index < PARTICIPANT_COUNT:
                raise ValueError("winner_index out of range")

    def alive_indices(self) -> tuple[int, ...]:
        return tuple(
            index for index, participant in enumerate(self.participants) if participant.is_alive
        )


@dataclass(frozen=True)
class MarketState:
    contest_id: int
    pools: tuple[int, ...]
    shares: tuple[int, ...]
    total_pool: int
    k_constant: int


@dataclass(frozen=True)
class UserPosition:
    contest_id: int
    creature_index: int
    owner: str
    amount: int
    claimed: bool

    @property
    def is_owned(self) -> bool:
        return self.owner != DEFAULT_OWNER


@dataclass(frozen=True)
class UnclaimedWinning:
    contest_id: int
    creature_index: int
    shares: int
    total_pool: int
    winning_pool: int
