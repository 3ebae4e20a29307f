"""Infer the probable actions between two consecutive contest snapshots.

The ledger keeps no event log and never records who attacked whom, so the
events produced here are a deterministic reconstruction rather than ground
truth. Attribution follows one fixed rule: participants alive in the previous
snapshot are ranked by descending speed (ties by ascending index), and the
k-th damage event of a turn is attributed to the k-th entry (cycling) of that
ranking with the target removed.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from battle_events.contracts import DerivedEvent, EventKind
from battle_events.messages import (
    DEFAULT_ACTION_NAMES,
    DEFAULT_PARTICIPANT_NAMES,
    format_conclusion,
    format_elimination,
    format_hit,
    format_miss,
)
from ledger_data.contracts import ContestSnapshot


@dataclass(frozen=True)
class DamageObservation:
    target: int
    damage: int


def derive_events(
    previous: ContestSnapshot | None,
    current: ContestSnapshot,
    *,
    names: Sequence[str] = DEFAULT_PARTICIPANT_NAMES,
    actions: Sequence[str] = DEFAULT_ACTION_NAMES,
) -> list[DerivedEvent]:
    if previous is None:
        return []
    if not actions:
        raise ValueError("actions must not be empty")

    turn = current.turn_counter
    events: list[DerivedEvent] = []

    if current.turn_counter > previous.turn_counter:
        events.extend(_infer_actions(previous, current, names=names, actions=actions))

    for index in _eliminated(previous, current):
        events.append(
            DerivedEvent(
                turn=turn,
                kind=EventKind.ELIMINATION,
                subjects=(index,),
                message=format_elimination(names, index=index),
                sequence=len(events),
                target=index,
            )
        )

    if not previous.is_finished and current.is_finished:
        winner = current.winner_index
        events.append(
            DerivedEvent(
                turn=turn,
                kind=EventKind.CONCLUSION,
                subjects=() if winner is None else (winner,),
                message=format_conclusion(names, winner=winner),
                sequence=len(events),
                winner=winner,
            )
        )
    return events


def attack_order(snapshot: ContestSnapshot) -> tuple[int, ...]:
    alive = snapshot.alive_indices()
    return tuple(
        sorted(alive, key=lambda index: (-snapshot.participants[index].speed, index))
    )


def damage_observations(
    previous: ContestSnapshot, current: ContestSnapshot
) -> tuple[DamageObservation, ...]:
    observations: list[DamageObservation] = []
    for index, before in enumerate(previous.participants):
        if not before.is_alive:
            continue
        after = current.participants[index]
        if after.hp < before.hp:
            observations.append(DamageObservation(target=index, damage=before.hp - after.hp))
    return tuple(observations)


def _infer_actions(
    previous: ContestSnapshot,
    current: ContestSnapshot,
    *,
    names: Sequence[str],
    actions: Sequence[str],
) -> list[DerivedEvent]:
    turn = current.turn_counter
    eligible = attack_order(previous)
    observations = damage_observations(previous, current)
    inferred: list[DerivedEvent] = []

    for position, observation in enumerate(observations):
        candidates = [index for index in eligible if index != observation.target]
        attacker = candidates[position % len(candidates)] if candidates else None
        subjects = (observation.target,) if attacker is None else (attacker, observation.target)
        inferred.append(
            DerivedEvent(
                turn=turn,
                kind=EventKind.ACTION,
                subjects=subjects,
                message=format_hit(
                    names,
                    actions,
                    attacker=attacker,
                    target=observation.target,
                    damage=observation.damage,
                    turn=turn,
                ),
                sequence=position,
                attacker=attacker,
                target=observation.target,
                damage=observation.damage,
            )
        )

    if not observations and len(eligible) >= 2:
        attacker, target = eligible[0], eligible[1]
        inferred.append(
            DerivedEvent(
                turn=turn,
                kind=EventKind.ACTION,
                subjects=(attacker, target),
                message=format_miss(names, actions, attacker=attacker, target=target, turn=turn),
                sequence=0,
                attacker=attacker,
                target=target,
                damage=0,
                missed=True,
            )
        )
    return inferred


def _eliminated(previous: ContestSnapshot, current: ContestSnapshot) -> list[int]:
    return [
        index
        for index, before in enumerate(previous.participants)
        if before.is_alive and not current.participants[index].is_alive
    ]

