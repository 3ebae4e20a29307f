from battle_tracker.config.loader import load_config, load_default_config, parse_config
from battle_tracker.config.schema import (
    ArenaConfig,
    MarketConfig,
    PositionsConfig,
    RetentionConfig,
    TrackerConfig,
    validate_config,
)

__all__ = [
    "ArenaConfig",
    "MarketConfig",
    "PositionsConfig",
    "RetentionConfig",
    "TrackerConfig",
    "load_config",
    "load_default_config",
    "parse_config",
    "validate_config",
]
