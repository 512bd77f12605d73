"""Game configuration — loads tunable constants from config/game.yaml.

Provides a single ``GameConfig`` dataclass that is loaded once at startup
and then passed (or injected) wherever constants are needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict

import yaml

from neotactics.util.constants import MIN_MAP_SIZE, RECOGNIZED_MAP_SIZES

log = logging.getLogger(__name__)

DEFAULT_GAME_CONFIG_PATH = "config/game.yaml"


@dataclass
class DepositClass:
    """Capacity and per-turn yield of one tiberium deposit size."""
    capacity: int
    yield_per_turn: int


@dataclass
class Pacing:
    """Presentation delays (ms) attached to sequence pauses.

    The simulation never sleeps; only ``Sequencer.run_async`` honours these.
    """
    move_step_ms: float = 200.0
    attack_ms: float = 250.0
    overwatch_ms: float = 200.0
    ai_action_ms: float = 400.0
    end_turn_ms: float = 800.0


@dataclass
class GameConfig:
    """All tunable gameplay constants.

    Loaded from ``config/game.yaml``.  Every field has a sensible default
    so a match can start even without the file.
    """

    # -- Map ---------------------------------------------------------
    map_size: int = 15
    obstacle_chance: float = 0.15
    tiberium_chance: float = 0.10
    large_deposit_chance: float = 0.3
    small_deposit: DepositClass = field(default_factory=lambda: DepositClass(200, 25))
    large_deposit: DepositClass = field(default_factory=lambda: DepositClass(500, 50))
    start_zone: int = 3

    # -- Economy -----------------------------------------------------
    starting_resources: Dict[str, int] = field(default_factory=lambda: {
        "player": 150, "enemy": 150,
    })
    base_income: int = 20
    deep_drill_income: int = 30

    # -- Builder & transforms ----------------------------------------
    wall_cost: int = 5
    wall_build_turns: int = 1
    transform_turns: int = 2
    missile_turret_transform_turns: int = 3
    deep_drill_transform_turns: int = 5
    deep_drill_cost: int = 400
    buildable_units: list[str] = field(default_factory=lambda: [
        "scout", "tank", "harvester", "builder", "artillery",
    ])

    # -- Combat ------------------------------------------------------
    damage_variance_min: int = -2
    damage_variance_max: int = 1

    # -- AI ----------------------------------------------------------
    ai: Dict[str, Any] = field(default_factory=dict)

    # -- Presentation pacing -----------------------------------------
    pacing: Pacing = field(default_factory=Pacing)

    # -- Network -----------------------------------------------------
    rest_host: str = "127.0.0.1"
    rest_port: int = 8080

    def __post_init__(self) -> None:
        validate_map_size(self.map_size)


def validate_map_size(size: int) -> int:
    """Reject boards too small for four separate start zones."""
    if size < MIN_MAP_SIZE:
        raise ValueError(f"map size {size} is below the minimum of {MIN_MAP_SIZE}")
    if size not in RECOGNIZED_MAP_SIZES:
        log.info("Map size %d is not one of the standard sizes %s", size, RECOGNIZED_MAP_SIZES)
    return size


_NESTED = {
    "small_deposit": DepositClass,
    "large_deposit": DepositClass,
    "pacing": Pacing,
}


def load_game_config(path: str | Path = DEFAULT_GAME_CONFIG_PATH) -> GameConfig:
    """Load game configuration from a YAML file.

    Missing keys fall back to dataclass defaults.  If the file does not
    exist, a warning is logged and pure defaults are returned.
    """
    p = Path(path)
    if not p.exists():
        log.warning("Game config not found at %s, using defaults", p)
        return GameConfig()

    with p.open() as f:
        raw = yaml.safe_load(f) or {}

    log.info("Loaded game config from %s (%d keys)", p, len(raw))

    known = {f.name for f in fields(GameConfig)}
    for key in sorted(set(raw) - known):
        log.warning("Ignoring unknown game config key %r", key)

    kwargs: dict[str, Any] = {}
    for key, value in raw.items():
        if key not in known:
            continue
        nested = _NESTED.get(key)
        if nested is not None:
            if not isinstance(value, dict):
                raise ValueError(f"game config key {key!r} must be a mapping")
            value = nested(**value)
        kwargs[key] = value
    return GameConfig(**kwargs)
