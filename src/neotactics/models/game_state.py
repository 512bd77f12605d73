"""Game state — everything one match consists of.

A single ``GameState`` is created per match and handed to every service
call; nothing in the engine keeps match data in module globals.
"""

from __future__ import annotations

import random
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from neotactics.models.unit import Faction, Unit

if TYPE_CHECKING:
    from neotactics.engine.unit_registry import UnitRegistry
    from neotactics.models.grid import GridMap


@dataclass
class MatchStats:
    """Running totals shown on the game-over summary."""

    tiberium_mined: int = 0
    units_destroyed: int = 0
    units_lost: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def summary(self, turns: int) -> dict[str, Any]:
        return {
            "tiberium_mined": self.tiberium_mined,
            "units_destroyed": self.units_destroyed,
            "units_lost": self.units_lost,
            "turns": turns,
            "duration_seconds": round(time.monotonic() - self.started_at, 1),
        }


@dataclass
class GameState:
    """One match.

    Attributes:
        grid: The battlefield.
        units: Registry of live units.
        rng: Injectable random source (map, damage rolls, AI coin flips).
        turn_number: Starts at 1, +1 per full player/enemy cycle.
        active_faction: Whose turn it is.
        resources: Resource total per faction.  Never clamped.
        selected_id: Id of the player-selected unit, if any.
        builder_mode: ``"wall"``, ``"repair"`` or None.
        game_over: Set once a base is destroyed.
        winner: Winning faction once the game is over.
        busy: True while a move/combat/turn sequence is in flight.
        stats: Game-over summary counters.
    """

    grid: GridMap
    units: UnitRegistry
    rng: random.Random = field(default_factory=random.Random)
    turn_number: int = 1
    active_faction: Faction = Faction.PLAYER
    resources: dict[Faction, int] = field(default_factory=lambda: {
        Faction.PLAYER: 0, Faction.ENEMY: 0,
    })
    selected_id: int | None = None
    builder_mode: str | None = None
    game_over: bool = False
    winner: Faction | None = None
    busy: bool = False
    stats: MatchStats = field(default_factory=MatchStats)

    # -- Resources -------------------------------------------------------

    def can_afford(self, owner: Faction, amount: int) -> bool:
        return self.resources[owner] >= amount

    def spend(self, owner: Faction, amount: int) -> None:
        assert amount >= 0, f"negative spend {amount}"
        self.resources[owner] -= amount
        assert self.resources[owner] >= 0, f"{owner.value} resources went negative"

    def earn(self, owner: Faction, amount: int) -> None:
        self.resources[owner] += amount

    # -- Turn helpers ----------------------------------------------------

    @property
    def player_turn(self) -> bool:
        return self.active_faction is Faction.PLAYER

    # -- Selection -------------------------------------------------------

    @property
    def selection(self) -> Unit | None:
        """The selected unit's current record (follows transformations)."""
        if self.selected_id is None:
            return None
        return self.units.get(self.selected_id)

    def select(self, unit: Unit) -> None:
        self.selected_id = unit.uid
        self.builder_mode = None

    def clear_selection(self) -> None:
        self.selected_id = None
        self.builder_mode = None
