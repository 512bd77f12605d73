"""Command service — the player's input surface.

Every command validates turn, ownership, cost and range first.  A
rejected command changes nothing: it returns a short reason string
(``"NO FUNDS"``, ``"NO ACTIONS"`` ...) and shows the same text as a
floating message.  An accepted command returns None.

Commands that play out over several steps (move, attack, end turn) are
queued on the :class:`Sequencer`; the match stays busy, and rejects
further input, until the caller has drained it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from neotactics.engine.combat_service import CombatService
from neotactics.engine.movement_service import MovementService
from neotactics.engine.sequencer import Sequencer
from neotactics.engine.turn_service import TurnService
from neotactics.loaders.game_config_loader import GameConfig
from neotactics.models.unit import BUILDER_TRANSFORMS, Archetype, Faction, Unit
from neotactics.util.constants import COLOR_DAMAGE, COLOR_DRILL, COLOR_REPAIR, COLOR_SUCCESS, COLOR_WARNING
from neotactics.util.events import (
    EventBus,
    FloatingText,
    ResourcesChanged,
    UnitDeselected,
    UnitSelected,
    UnitsChanged,
)

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)

PLAYER = Faction.PLAYER
BUILDER_MODES = ("wall", "repair")
NO_TILE = -1


class CommandService:
    """Validates and executes player commands.

    Args:
        combat: Attack resolution.
        movement: Reachability and moves.
        turns: End-of-turn sequence.
        sequencer: Queue for multi-step commands.
        event_bus: Bus for feedback events.
        game_config: Costs and timers.
    """

    def __init__(
        self,
        combat: CombatService,
        movement: MovementService,
        turns: TurnService,
        sequencer: Sequencer,
        event_bus: EventBus,
        game_config: GameConfig | None = None,
    ) -> None:
        self._combat = combat
        self._movement = movement
        self._turns = turns
        self._sequencer = sequencer
        self._bus = event_bus
        self._cfg = game_config or GameConfig()

    # -- Queries used for highlighting -----------------------------------

    def valid_moves(self, state: GameState, unit: Unit) -> set[int]:
        return self._movement.valid_moves(state, unit)

    def valid_attacks(self, state: GameState, unit: Unit) -> list[Unit]:
        return self._combat.valid_attacks(state, unit)

    def build_targets(self, state: GameState, unit: Unit) -> list[int]:
        """Free, passable tiles next to ``unit``."""
        return [n for n in state.grid.neighbors(unit.position) if state.units.is_free(n)]

    def repair_targets(self, state: GameState, unit: Unit) -> list[Unit]:
        """Friendly units next to ``unit``."""
        result = []
        for n in state.grid.neighbors(unit.position):
            target = state.units.unit_at(n)
            if target is not None and target.owner is unit.owner:
                result.append(target)
        return result

    # -- Tile click dispatcher -------------------------------------------

    def select_tile(self, state: GameState, idx: int) -> Optional[str]:
        """Handle a click on tile ``idx``.

        Depending on the current selection and builder mode this builds,
        repairs, attacks, moves, selects or deselects.
        """
        reason = self._guard(state)
        if reason:
            return self._reject(state, NO_TILE, reason)
        if not 0 <= idx < len(state.grid):
            return self._reject(state, NO_TILE, "OUT OF BOUNDS")

        sel = state.selection
        if sel is not None and sel.archetype is Archetype.BUILDER:
            if state.builder_mode == "wall":
                if idx in self.build_targets(state, sel):
                    return self.execute_build_wall(state, idx)
                state.builder_mode = None
            elif state.builder_mode == "repair":
                target = state.units.unit_at(idx)
                if target is not None and target in self.repair_targets(state, sel):
                    return self.execute_repair(state, target)
                state.builder_mode = None

        clicked = state.units.unit_at(idx)
        if sel is not None and sel.owner is PLAYER:
            if clicked is not None and clicked.owner is not PLAYER:
                if clicked in self._combat.valid_attacks(state, sel):
                    return self.issue_attack(state, sel, clicked)
            elif clicked is None and idx in self._movement.valid_moves(state, sel):
                return self.issue_move(state, sel, idx)

        if clicked is not None:
            if sel is not clicked:
                state.select(clicked)
                self._bus.emit(UnitSelected(clicked.uid))
            return None

        if sel is not None:
            state.clear_selection()
            self._bus.emit(UnitDeselected())
        return None

    # -- Movement & attacks ----------------------------------------------

    def issue_move(self, state: GameState, unit: Unit, dest: int) -> Optional[str]:
        reason = self._guard(state) or self._check_own(state, unit)
        if reason:
            return self._reject(state, unit.position, reason)
        if unit.move_points <= 0:
            return self._reject(state, unit.position, "NO MOVES")
        if not state.units.is_free(dest) or dest not in self._movement.valid_moves(state, unit):
            return self._reject(state, unit.position, "OUT OF RANGE")

        log.debug("player moves #%d %d -> %d", unit.uid, unit.position, dest)
        self._sequencer.submit(state, self._movement.move_unit(state, unit, dest), "move")
        return None

    def issue_attack(self, state: GameState, attacker: Unit, defender: Unit) -> Optional[str]:
        reason = self._guard(state) or self._check_own(state, attacker)
        if reason:
            return self._reject(state, attacker.position, reason)
        if attacker.attacks_remaining <= 0:
            return self._reject(state, attacker.position, "NO ACTIONS")
        if defender not in self._combat.valid_attacks(state, attacker):
            return self._reject(state, defender.position, "OUT OF RANGE")

        self._sequencer.submit(state, self._combat.resolve_attack(state, attacker, defender), "attack")
        return None

    # -- Builder ---------------------------------------------------------

    def activate_builder_mode(self, state: GameState, mode: str) -> Optional[str]:
        builder, reason = self._selected(state, Archetype.BUILDER)
        if reason:
            return self._reject(state, NO_TILE, reason)
        if mode not in BUILDER_MODES:
            return self._reject(state, builder.position, "UNKNOWN MODE")
        if builder.attacks_remaining <= 0:
            return self._reject(state, builder.position, "NO ACTIONS")
        if mode == "wall" and not state.can_afford(PLAYER, self._cfg.wall_cost):
            return self._reject(state, builder.position, f"NEED {self._cfg.wall_cost} RES")
        state.builder_mode = mode
        return None

    def execute_build_wall(self, state: GameState, idx: int) -> Optional[str]:
        builder, reason = self._selected(state, Archetype.BUILDER)
        if reason:
            return self._reject(state, idx, reason)
        if builder.attacks_remaining <= 0:
            return self._reject(state, builder.position, "NO ACTIONS")
        if not state.can_afford(PLAYER, self._cfg.wall_cost):
            return self._reject(state, builder.position, f"NEED {self._cfg.wall_cost} RES")
        if idx not in self.build_targets(state, builder):
            return self._reject(state, idx, "INVALID TARGET")

        state.spend(PLAYER, self._cfg.wall_cost)
        state.units.start_wall(idx, PLAYER, self._cfg.wall_build_turns)
        builder.spend_all()
        state.builder_mode = None
        self._bus.emit(FloatingText(idx, "BUILDING...", COLOR_WARNING))
        self._changed(state, "wall site")
        return None

    def execute_repair(self, state: GameState, target: Unit) -> Optional[str]:
        builder, reason = self._selected(state, Archetype.BUILDER)
        if reason:
            return self._reject(state, target.position, reason)
        if builder.attacks_remaining <= 0:
            return self._reject(state, builder.position, "NO ACTIONS")
        if target.owner is not builder.owner:
            return self._reject(state, target.position, "CAN'T REPAIR ENEMY")
        if target.position not in state.grid.neighbors(builder.position):
            return self._reject(state, target.position, "OUT OF RANGE")

        amount = min(state.resources[PLAYER], target.missing_hp)
        if amount <= 0:
            return self._reject(state, target.position, "FULL HP", COLOR_SUCCESS)

        state.spend(PLAYER, amount)
        target.hp += amount
        builder.attacks_remaining = 0
        state.builder_mode = None
        self._bus.emit(FloatingText(target.position, f"+{amount} HP", COLOR_REPAIR))
        self._changed(state, "repaired")
        return None

    # -- Transformations -------------------------------------------------

    def transform_builder(self, state: GameState, target: Archetype | str) -> Optional[str]:
        builder, reason = self._selected(state, Archetype.BUILDER)
        if reason:
            return self._reject(state, NO_TILE, reason)
        target = _archetype(target)
        if target not in BUILDER_TRANSFORMS:
            return self._reject(state, builder.position, "CANNOT BUILD")

        cost = state.units.stats(target).cost
        if not state.can_afford(PLAYER, cost):
            return self._reject(state, builder.position, f"NEED {cost} RES")
        if builder.attacks_remaining <= 0:
            return self._reject(state, builder.position, "NO ACTIONS")

        turns = (self._cfg.missile_turret_transform_turns
                 if target is Archetype.MISSILE_TURRET else self._cfg.transform_turns)
        state.spend(PLAYER, cost)
        morph = state.units.begin_transform(builder, target, turns)
        self._bus.emit(FloatingText(morph.position, "TRANSFORMING...", COLOR_DAMAGE))
        self._changed(state, "transforming")
        return None

    def transform_harvester(self, state: GameState) -> Optional[str]:
        harvester, reason = self._selected(state, Archetype.HARVESTER)
        if reason:
            return self._reject(state, NO_TILE, reason)
        cost = self._cfg.deep_drill_cost
        if not state.can_afford(PLAYER, cost):
            return self._reject(state, harvester.position, f"NEED {cost} RES")

        state.spend(PLAYER, cost)
        morph = state.units.begin_transform(
            harvester, Archetype.DEEP_DRILL, self._cfg.deep_drill_transform_turns,
        )
        self._bus.emit(FloatingText(morph.position, "DRILLING...", COLOR_DRILL))
        self._changed(state, "transforming")
        return None

    # -- Production ------------------------------------------------------

    def build_unit(self, state: GameState, archetype: Archetype | str) -> Optional[str]:
        base, reason = self._selected(state, Archetype.BASE)
        if reason:
            return self._reject(state, NO_TILE, reason)
        archetype = _archetype(archetype)
        if archetype is None or archetype.value not in self._cfg.buildable_units:
            return self._reject(state, base.position, "CANNOT BUILD")

        cost = state.units.stats(archetype).cost
        if not state.can_afford(PLAYER, cost):
            return self._reject(state, base.position, "NO FUNDS")
        spot = state.units.find_spawn_spot(base.position)
        if spot is None:
            return self._reject(state, base.position, "BLOCKED")

        state.spend(PLAYER, cost)
        unit = state.units.spawn(archetype, spot, PLAYER)
        unit.spend_all()
        log.info("player built %s at %d", archetype.value, spot)
        self._changed(state, "produced")
        return None

    # -- Turn ------------------------------------------------------------

    def end_turn(self, state: GameState) -> Optional[str]:
        reason = self._guard(state)
        if reason:
            return self._reject(state, NO_TILE, reason)
        self._sequencer.submit(state, self._turns.end_turn(state), "end_turn")
        return None

    # -- Helpers ---------------------------------------------------------

    def _guard(self, state: GameState) -> Optional[str]:
        if state.game_over:
            return "GAME OVER"
        if state.busy:
            return "BUSY"
        if not state.player_turn:
            return "NOT YOUR TURN"
        return None

    def _check_own(self, state: GameState, unit: Unit) -> Optional[str]:
        if not state.units.is_alive(unit):
            return "NO UNIT"
        if unit.owner is not PLAYER:
            return "NOT YOUR UNIT"
        return None

    def _selected(self, state: GameState, archetype: Archetype) -> tuple[Unit | None, Optional[str]]:
        reason = self._guard(state)
        if reason:
            return None, reason
        sel = state.selection
        if sel is None or sel.owner is not PLAYER or sel.archetype is not archetype:
            return None, f"SELECT {archetype.value.upper()}"
        return sel, None

    def _reject(self, state: GameState, tile: int, reason: str, color: str = COLOR_DAMAGE) -> str:
        log.debug("command rejected: %s", reason)
        self._bus.emit(FloatingText(tile, reason, color))
        return reason

    def _changed(self, state: GameState, reason: str) -> None:
        self._bus.emit(UnitsChanged(reason))
        self._bus.emit(ResourcesChanged(PLAYER.value, state.resources[PLAYER], state.turn_number))


def _archetype(value: Archetype | str) -> Archetype | None:
    if isinstance(value, Archetype):
        return value
    try:
        return Archetype(value)
    except ValueError:
        return None
