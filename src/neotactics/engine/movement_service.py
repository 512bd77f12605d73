"""Movement service — reachable tiles and step-by-step moves.

A move walks the cheapest path one tile at a time.  Each step pays its
cost (1 orthogonal, 2 diagonal), turns the unit toward the new tile and
then gives the opposing static defenders their overwatch shot.  The move
ends at the destination, when the budget runs short, when the next tile
is occupied, or when the mover dies.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from neotactics.engine.combat_service import CombatService
from neotactics.engine.pathfinding import find_path, reachable_set
from neotactics.engine.sequencer import Pause, Sequence
from neotactics.loaders.game_config_loader import GameConfig
from neotactics.models.unit import Unit
from neotactics.util.events import EventBus, UnitMoved, UnitsChanged

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)


class MovementService:
    """Moves units across the grid."""

    def __init__(
        self,
        combat: CombatService,
        event_bus: EventBus,
        game_config: GameConfig | None = None,
    ) -> None:
        self._combat = combat
        self._bus = event_bus
        self._cfg = game_config or GameConfig()

    def valid_moves(self, state: GameState, unit: Unit) -> set[int]:
        """Tiles the unit can end its move on with its remaining points."""
        if unit.move_points <= 0 or unit.under_construction:
            return set()
        return reachable_set(state.grid, unit.position, unit.move_points, state.units.occupied())

    def path_to(self, state: GameState, unit: Unit, dest: int) -> list[int] | None:
        occupied = state.units.occupied() - {unit.position}
        return find_path(state.grid, unit.position, dest, occupied)

    def move_unit(self, state: GameState, unit: Unit, dest: int) -> Sequence[int]:
        """Walk ``unit`` toward ``dest``.

        ``dest`` may be occupied (moving toward a target); the walk stops
        on the last free tile before it.

        Returns:
            Number of steps taken.
        """
        path = self.path_to(state, unit, dest)
        if not path or len(path) < 2:
            return 0

        steps = 0
        for nxt in path[1:]:
            cost = state.grid.step_cost(unit.position, nxt)
            if unit.move_points < cost:
                break
            if state.units.unit_at(nxt) is not None:
                break

            prev = unit.position
            unit.facing = state.grid.facing(prev, nxt)
            state.units.move(unit, nxt)
            unit.move_points -= cost
            steps += 1
            self._bus.emit(UnitMoved(unit.uid, prev, nxt, unit.facing))
            yield Pause("move", self._cfg.pacing.move_step_ms)

            died = yield from self._combat.check_overwatch(state, unit)
            if died or state.game_over:
                break

        log.debug("unit #%d moved %d step(s) toward %d", unit.uid, steps, dest)
        self._bus.emit(UnitsChanged("moved"))
        return steps
