"""Statistics service — match counters for the game-over summary.

Listens on the event bus:
- ``CombatOccurred`` with ``died``: enemy deaths count as units
  destroyed, player deaths as units lost.
- ``IncomeCollected`` for the player: tiberium mined.  Every income
  source counts (base, deep drills, harvesters).
"""

from __future__ import annotations

from neotactics.models.game_state import MatchStats
from neotactics.models.unit import Faction
from neotactics.util.events import CombatOccurred, EventBus, IncomeCollected


class StatisticsService:
    """Keeps the current match's ``MatchStats`` up to date."""

    def __init__(self, event_bus: EventBus) -> None:
        self.stats = MatchStats()
        event_bus.on(CombatOccurred, self.on_combat)
        event_bus.on(IncomeCollected, self.on_income)

    def reset(self) -> MatchStats:
        """Start counting for a new match and return the fresh counters."""
        self.stats = MatchStats()
        return self.stats

    def on_combat(self, event: CombatOccurred) -> None:
        if not event.died:
            return
        if event.defender_owner == Faction.ENEMY.value:
            self.stats.units_destroyed += 1
        elif event.defender_owner == Faction.PLAYER.value:
            self.stats.units_lost += 1

    def on_income(self, event: IncomeCollected) -> None:
        if event.owner == Faction.PLAYER.value:
            self.stats.tiberium_mined += event.amount
