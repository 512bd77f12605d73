"""Turn service — the PlayerTurn → EnemyTurn cycle and the economy.

``end_turn`` is one step sequence covering the whole enemy turn:

1. clear the player's selection and hand control to the enemy
2. enemy income pass, refresh enemy action pools
3. AI turn
4. refresh player action pools, ``turn_number += 1``
5. player income pass
6. tick every construction timer once

Income for a faction: +base_income while its base stands,
+deep_drill_income per deep drill, and per harvester whatever it can pull
from the deposit under it (``min(yield, current)``).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from neotactics.engine.sequencer import Pause, Sequence
from neotactics.loaders.game_config_loader import GameConfig
from neotactics.models.unit import Archetype, Faction
from neotactics.util.constants import COLOR_INCOME_ENEMY, COLOR_INCOME_PLAYER, COLOR_SUCCESS
from neotactics.util.events import (
    ConstructionCompleted,
    EventBus,
    FloatingText,
    HarvestCollected,
    IncomeCollected,
    ResourcesChanged,
    TilesChanged,
    TurnChanged,
    UnitDeselected,
    UnitsChanged,
)

if TYPE_CHECKING:
    from neotactics.engine.ai_service import AIService
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)

INCOME_COLORS = {Faction.PLAYER: COLOR_INCOME_PLAYER, Faction.ENEMY: COLOR_INCOME_ENEMY}


class TurnService:
    """Advances turns and runs the income pass.

    Args:
        event_bus: Bus for income, turn and construction events.
        game_config: Income values and pacing.
        ai_service: Plays the enemy turn; None leaves the enemy idle.
    """

    def __init__(
        self,
        event_bus: EventBus,
        game_config: GameConfig | None = None,
        ai_service: AIService | None = None,
    ) -> None:
        self._bus = event_bus
        self._cfg = game_config or GameConfig()
        self._ai = ai_service

    def end_turn(self, state: GameState) -> Sequence[None]:
        """Play out the enemy turn and start the next player turn."""
        log.info("[TURN] player ends turn %d", state.turn_number)
        state.clear_selection()
        self._bus.emit(UnitDeselected())
        state.active_faction = Faction.ENEMY
        self._bus.emit(TurnChanged(state.turn_number, Faction.ENEMY.value))
        yield Pause("end_turn", self._cfg.pacing.end_turn_ms)

        self.collect_income(state, Faction.ENEMY)
        self.refresh_units(state, Faction.ENEMY)

        if self._ai is not None:
            yield from self._ai.run_turn(state)
        if state.game_over:
            return

        self.refresh_units(state, Faction.PLAYER)
        state.turn_number += 1
        self.collect_income(state, Faction.PLAYER)
        self.advance_construction(state)

        state.active_faction = Faction.PLAYER
        self._bus.emit(TurnChanged(state.turn_number, Faction.PLAYER.value))
        log.info("[TURN] turn %d begins (player %d, enemy %d)", state.turn_number,
                 state.resources[Faction.PLAYER], state.resources[Faction.ENEMY])

    # -- Refresh ---------------------------------------------------------

    def refresh_units(self, state: GameState, owner: Faction) -> None:
        for unit in state.units.owned_by(owner):
            unit.refresh()

    # -- Income ----------------------------------------------------------

    def collect_income(self, state: GameState, owner: Faction) -> int:
        """Run the income pass for one faction.

        Returns:
            Total amount earned.
        """
        color = INCOME_COLORS[owner]
        total = 0

        base = state.units.base_of(owner)
        if base is not None:
            state.earn(owner, self._cfg.base_income)
            total += self._cfg.base_income
            self._bus.emit(FloatingText(base.position, f"+{self._cfg.base_income}", color))

        for drill in state.units.owned_by(owner, Archetype.DEEP_DRILL):
            state.earn(owner, self._cfg.deep_drill_income)
            total += self._cfg.deep_drill_income
            self._bus.emit(FloatingText(drill.position, f"+{self._cfg.deep_drill_income}", color))

        depleted = []
        for harvester in state.units.owned_by(owner, Archetype.HARVESTER):
            tile = state.grid[harvester.position]
            if not tile.has_tiberium:
                continue
            amount = tile.harvest()
            if amount <= 0:
                continue
            state.earn(owner, amount)
            total += amount
            self._bus.emit(FloatingText(harvester.position, f"+{amount}", color))
            self._bus.emit(HarvestCollected(owner.value, harvester.position, amount))
            if not tile.has_tiberium:
                depleted.append(tile.index)

        if depleted:
            self._bus.emit(TilesChanged(tuple(depleted)))
        log.debug("[INCOME] %s +%d -> %d", owner.value, total, state.resources[owner])
        self._bus.emit(IncomeCollected(owner.value, total, state.turn_number))
        self._bus.emit(ResourcesChanged(owner.value, state.resources[owner], state.turn_number))
        return total

    # -- Construction ----------------------------------------------------

    def advance_construction(self, state: GameState) -> None:
        completed = state.units.advance_construction()
        for unit in completed:
            text = "WALL READY" if unit.archetype is Archetype.WALL else "READY"
            log.debug("unit #%d finished as %s", unit.uid, unit.archetype.value)
            self._bus.emit(FloatingText(unit.position, text, COLOR_SUCCESS))
            self._bus.emit(ConstructionCompleted(unit.uid, unit.archetype.value))
        if completed:
            self._bus.emit(UnitsChanged("construction"))
