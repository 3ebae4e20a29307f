"""battle_events derivation engine."""

from battle_events.contracts import DerivedEvent, EventKind
from battle_events.derive import (
    DamageObservation,
    attack_order,
    damage_observations,
    derive_events,
)
from battle_events.messages import DEFAULT_ACTION_NAMES, DEFAULT_PARTICIPANT_NAMES

__all__ = [
    "DerivedEvent",
    "EventKind",
    "DamageObservation",
    "attack_order",
    "damage_observations",
    "derive_events",
    "DEFAULT_ACTION_NAMES",
    "DEFAULT_PARTICIPANT_NAMES",
]
