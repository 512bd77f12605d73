"""Game session — wires the engine services and owns the current match.

One session serves one local player.  ``new_match`` throws away the old
``GameState`` and builds a fresh one:

- map generated from the session's (optionally seeded) random source
- both factions start with ``starting_resources``
- player base on tile 0 with a scout next to it on tile 1
- enemy base on a random passable tile of the south-east quadrant,
  enemy scout on the first free tile around it
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from neotactics.engine.ai_service import AIService
from neotactics.engine.combat_service import CombatService
from neotactics.engine.command_service import CommandService
from neotactics.engine.map_generator import generate_map
from neotactics.engine.movement_service import MovementService
from neotactics.engine.sequencer import Sequencer
from neotactics.engine.statistics import StatisticsService
from neotactics.engine.turn_service import TurnService
from neotactics.engine.unit_registry import UnitRegistry
from neotactics.loaders.game_config_loader import GameConfig, validate_map_size
from neotactics.models.game_state import GameState
from neotactics.models.grid import GridMap
from neotactics.models.unit import DEFAULT_UNIT_STATS, Archetype, Faction, UnitStats
from neotactics.util.constants import ENEMY_BASE_PLACEMENT_ATTEMPTS
from neotactics.util.events import (
    EventBus,
    ResourcesChanged,
    TilesChanged,
    TurnChanged,
    UnitsChanged,
)

log = logging.getLogger(__name__)


class GameSession:
    """Engine services plus the match they operate on.

    Args:
        game_config: Tunables (defaults if omitted).
        unit_types: Stat block per archetype (built-ins if omitted).
        event_bus: Shared bus; a new one is created if omitted.
    """

    def __init__(
        self,
        game_config: GameConfig | None = None,
        unit_types: dict[Archetype, UnitStats] | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.config = game_config or GameConfig()
        self.unit_types = dict(unit_types or DEFAULT_UNIT_STATS)
        self.event_bus = event_bus or EventBus()

        self.sequencer = Sequencer()
        self.statistics = StatisticsService(self.event_bus)
        self.combat = CombatService(self.event_bus, self.config)
        self.movement = MovementService(self.combat, self.event_bus, self.config)
        self.ai = AIService(self.combat, self.movement, self.event_bus, self.config)
        self.turns = TurnService(self.event_bus, self.config, ai_service=self.ai)
        self.commands = CommandService(
            self.combat, self.movement, self.turns, self.sequencer, self.event_bus, self.config,
        )
        self.state: Optional[GameState] = None

    # -- Match lifecycle -------------------------------------------------

    def new_match(self, size: int | None = None, seed: int | None = None) -> GameState:
        """Generate a map, place the starting units and make it current."""
        if not self.sequencer.idle:
            raise RuntimeError("cannot start a new match while a sequence is running")

        size = validate_map_size(size or self.config.map_size)
        rng = random.Random(seed)
        grid = generate_map(size, rng, self.config)
        state = self.create_state(grid, rng)
        self.place_starting_units(state)
        self.state = state

        log.info("New %dx%d match (seed=%s)", size, size, seed)
        self.event_bus.emit(TilesChanged(tuple(range(len(grid)))))
        self.event_bus.emit(UnitsChanged("new match"))
        for owner in Faction:
            self.event_bus.emit(ResourcesChanged(owner.value, state.resources[owner], state.turn_number))
        self.event_bus.emit(TurnChanged(state.turn_number, state.active_faction.value))
        return state

    def create_state(self, grid: GridMap, rng: random.Random | None = None) -> GameState:
        """Empty match state on ``grid`` with starting resources."""
        start = self.config.starting_resources
        return GameState(
            grid=grid,
            units=UnitRegistry(grid, self.unit_types),
            rng=rng or random.Random(),
            resources={f: int(start.get(f.value, 0)) for f in Faction},
            stats=self.statistics.reset(),
        )

    def place_starting_units(self, state: GameState) -> None:
        units = state.units
        units.spawn(Archetype.BASE, 0, Faction.PLAYER)
        units.spawn(Archetype.SCOUT, 1, Faction.PLAYER)

        enemy_base = units.spawn(Archetype.BASE, self.pick_enemy_base_tile(state), Faction.ENEMY)
        assert enemy_base is not None, "enemy base could not be placed"
        spot = units.find_spawn_spot(enemy_base.position)
        if spot is not None:
            units.spawn(Archetype.SCOUT, spot, Faction.ENEMY)

    def pick_enemy_base_tile(self, state: GameState) -> int:
        """Random passable tile with ``x, y >= size // 2``."""
        grid = state.grid
        lo = grid.size // 2
        for _ in range(ENEMY_BASE_PLACEMENT_ATTEMPTS):
            idx = grid.index(state.rng.randrange(lo, grid.size), state.rng.randrange(lo, grid.size))
            if state.units.is_free(idx):
                return idx
        return len(grid) - 1

    # -- Driving ---------------------------------------------------------

    def run_until_idle(self) -> int:
        """Play out every queued sequence instantly."""
        return self.sequencer.run_until_idle()
