"""AI service — scripted decisions for the enemy faction.

Runs once per enemy turn as a step sequence, using the same combat and
movement code paths (and therefore the same overwatch and retaliation
side effects) as player actions.

=== Production =============================================================

At most one unit per turn, from the base, chosen by the first rule that
holds (each coin flip is a fresh draw, only made once the resource
threshold is met):

    1. no harvester yet and resources >= 100      → harvester
    2. resources >= 150 and coin > 0.5            → tank
    3. resources >= 120 and coin > 0.6            → artillery
    4. resources >= 50  and coin > 0.6            → scout
    5. resources >= 25  and coin > 0.7            → builder

Skipped when the pick is unaffordable or the base is boxed in.  A fresh
unit acts this same turn and is immediately exposed to overwatch.

=== Per-unit turn ==========================================================

Every non-base enemy unit alive at loop entry, in registry order:

- **Builder**: repair one adjacent damaged friendly unit if possible.
  Otherwise look at the nearest player unit (walls ignored) by Manhattan
  distance ``d``: ``d >= 4`` with 100 resources and coin > 0.4 starts a
  missile turret; ``2 <= d <= 5`` with 30 resources starts a turret.
  A builder that did neither fights like any other unit.
- **Harvester**: walks toward the nearest free tiberium field unless it
  already stands on one.
- **Everything else**: attack the weakest unit in range while attacks
  last; otherwise advance along the path to the nearest player unit.
  Stops as soon as an iteration achieves nothing.

=== Logging ================================================================

    [AI] BUILD tank at 187 (resources 20)
    [AI] REPAIR #12 +40 hp
    [AI] TRANSFORM #9 -> turret
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any

from neotactics.engine.combat_service import CombatService
from neotactics.engine.movement_service import MovementService
from neotactics.engine.sequencer import Pause, Sequence
from neotactics.loaders.game_config_loader import GameConfig
from neotactics.models.unit import Archetype, Faction, Unit
from neotactics.util.constants import COLOR_DAMAGE, COLOR_SUCCESS
from neotactics.util.events import EventBus, FloatingText, ResourcesChanged, UnitsChanged

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)

AI_FACTION = Faction.ENEMY


# ── Parameter dataclass ──────────────────────────────────────────────────────

@dataclass
class AIParams:
    """Thresholds of the scripted AI.

    Attributes:
        harvester_min_resources: First harvester once this much is banked.
        tank_min_resources / tank_chance: Tank rule.
        artillery_min_resources / artillery_chance: Artillery rule.
        scout_min_resources / scout_chance: Scout rule.
        builder_min_resources / builder_chance: Builder rule.

        missile_turret_min_distance: Builder starts a missile turret only
            when the nearest player unit is at least this far.
        missile_turret_min_resources / missile_turret_chance: Missile rule.
        turret_min_distance / turret_max_distance: Distance band for turrets.
        turret_min_resources: Turret rule.
    """

    harvester_min_resources: int = 100
    tank_min_resources: int = 150
    tank_chance: float = 0.5
    artillery_min_resources: int = 120
    artillery_chance: float = 0.6
    scout_min_resources: int = 50
    scout_chance: float = 0.6
    builder_min_resources: int = 25
    builder_chance: float = 0.7

    missile_turret_min_distance: int = 4
    missile_turret_min_resources: int = 100
    missile_turret_chance: float = 0.4
    turret_min_distance: int = 2
    turret_max_distance: int = 5
    turret_min_resources: int = 30

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> AIParams:
        known = {f.name for f in fields(cls)}
        unknown = set(raw) - known
        if unknown:
            raise ValueError(f"unknown AI parameter(s): {sorted(unknown)}")
        return cls(**raw)


# ── AIService ────────────────────────────────────────────────────────────────

class AIService:
    """Plays the enemy faction.

    Args:
        combat: Attack resolution (shared with the player).
        movement: Pathing and step-by-step moves.
        event_bus: Bus for floating text and resource events.
        game_config: Transform timers, pacing and the ``ai`` section.
    """

    def __init__(
        self,
        combat: CombatService,
        movement: MovementService,
        event_bus: EventBus,
        game_config: GameConfig | None = None,
    ) -> None:
        self._combat = combat
        self._movement = movement
        self._bus = event_bus
        self._cfg = game_config or GameConfig()
        self.params = AIParams.from_dict(self._cfg.ai)

    def run_turn(self, state: GameState) -> Sequence[None]:
        """Production, then every unit in turn."""
        yield from self._produce(state)

        roster = [u for u in state.units.owned_by(AI_FACTION) if u.archetype is not Archetype.BASE]
        for unit in roster:
            if state.game_over:
                return
            if not state.units.is_alive(unit):
                continue

            if unit.archetype is Archetype.BUILDER:
                acted = yield from self._builder_turn(state, unit)
                if acted:
                    continue
            if unit.archetype is Archetype.HARVESTER:
                yield from self._harvester_turn(state, unit)
                continue
            yield from self._combat_turn(state, unit)

    # -- Production ------------------------------------------------------

    def choose_production(self, state: GameState) -> Archetype | None:
        """Pick what the base should build this turn, if anything."""
        p = self.params
        res = state.resources[AI_FACTION]
        rng = state.rng
        has_harvester = bool(state.units.owned_by(AI_FACTION, Archetype.HARVESTER))

        if not has_harvester and res >= p.harvester_min_resources:
            return Archetype.HARVESTER
        if res >= p.tank_min_resources and rng.random() > p.tank_chance:
            return Archetype.TANK
        if res >= p.artillery_min_resources and rng.random() > p.artillery_chance:
            return Archetype.ARTILLERY
        if res >= p.scout_min_resources and rng.random() > p.scout_chance:
            return Archetype.SCOUT
        if res >= p.builder_min_resources and rng.random() > p.builder_chance:
            return Archetype.BUILDER
        return None

    def _produce(self, state: GameState) -> Sequence[None]:
        base = state.units.base_of(AI_FACTION)
        if base is None:
            return
        choice = self.choose_production(state)
        if choice is None:
            return
        cost = state.units.stats(choice).cost
        if not state.can_afford(AI_FACTION, cost):
            return
        spot = state.units.find_spawn_spot(base.position)
        if spot is None:
            log.debug("[AI] base boxed in, skipping %s", choice.value)
            return

        state.spend(AI_FACTION, cost)
        unit = state.units.spawn(choice, spot, AI_FACTION)
        log.info("[AI] BUILD %s at %d (resources %d)", choice.value, spot, state.resources[AI_FACTION])
        self._bus.emit(UnitsChanged("produced"))
        self._emit_resources(state)
        yield from self._combat.check_overwatch(state, unit)
        yield Pause("ai_build", self._cfg.pacing.ai_action_ms)

    # -- Builders --------------------------------------------------------

    def _builder_turn(self, state: GameState, unit: Unit) -> Sequence[bool]:
        """Repair or start a transform.  Returns whether the builder acted."""
        for n in state.grid.neighbors(unit.position):
            target = state.units.unit_at(n)
            if target is None or target.owner is not AI_FACTION or target.hp >= target.max_hp:
                continue
            amount = min(state.resources[AI_FACTION], target.missing_hp)
            if amount <= 0:
                continue
            state.spend(AI_FACTION, amount)
            target.hp += amount
            unit.attacks_remaining = 0
            log.info("[AI] REPAIR #%d +%d hp", target.uid, amount)
            self._bus.emit(FloatingText(target.position, f"+{amount} HP", COLOR_SUCCESS))
            self._bus.emit(FloatingText(unit.position, "REPAIRING", COLOR_SUCCESS))
            self._bus.emit(UnitsChanged("repaired"))
            self._emit_resources(state)
            yield Pause("ai_repair", self._cfg.pacing.ai_action_ms)
            return True

        nearest = self.nearest_player_unit(state, unit.position)
        if nearest is None:
            return False

        p = self.params
        d = state.grid.manhattan(unit.position, nearest.position)
        res = state.resources[AI_FACTION]
        if (
            d >= p.missile_turret_min_distance
            and res >= p.missile_turret_min_resources
            and state.rng.random() > p.missile_turret_chance
        ):
            target, turns, text = Archetype.MISSILE_TURRET, self._cfg.missile_turret_transform_turns, "MISSILE SYS..."
        elif p.turret_min_distance <= d <= p.turret_max_distance and res >= p.turret_min_resources:
            target, turns, text = Archetype.TURRET, self._cfg.transform_turns, "BUILDING..."
        else:
            return False

        cost = state.units.stats(target).cost
        if not state.can_afford(AI_FACTION, cost):
            return False
        state.spend(AI_FACTION, cost)
        morph = state.units.begin_transform(unit, target, turns)
        log.info("[AI] TRANSFORM #%d -> %s", morph.uid, target.value)
        self._bus.emit(FloatingText(morph.position, text, COLOR_DAMAGE))
        self._bus.emit(UnitsChanged("transforming"))
        self._emit_resources(state)
        yield Pause("ai_transform", self._cfg.pacing.ai_action_ms)
        return True

    # -- Harvesters ------------------------------------------------------

    def _harvester_turn(self, state: GameState, unit: Unit) -> Sequence[None]:
        if state.grid[unit.position].has_tiberium:
            return
        target = self.nearest_free_tiberium(state, unit.position)
        if target is not None:
            yield from self._movement.move_unit(state, unit, target)

    # -- Combat units ----------------------------------------------------

    def _combat_turn(self, state: GameState, unit: Unit) -> Sequence[None]:
        units = state.units
        while units.is_alive(unit) and not state.game_over and (
            unit.move_points > 0 or unit.attacks_remaining > 0
        ):
            if unit.attacks_remaining > 0:
                targets = self._combat.valid_attacks(state, unit)
                if targets:
                    target = min(targets, key=lambda u: u.hp)
                    yield from self._combat.resolve_attack(state, unit, target)
                    yield Pause("ai_attack", self._cfg.pacing.ai_action_ms)
                    continue

            if unit.move_points <= 0:
                break
            nearest = self.nearest_player_unit(state, unit.position)
            if nearest is None:
                break
            if state.grid.manhattan(unit.position, nearest.position) <= unit.range:
                break
            steps = yield from self._movement.move_unit(state, unit, nearest.position)
            if steps == 0:
                break

    # -- Queries ---------------------------------------------------------

    def nearest_player_unit(self, state: GameState, origin: int) -> Unit | None:
        """Closest player unit by Manhattan distance, walls ignored."""
        best, best_d = None, None
        for u in state.units.owned_by(Faction.PLAYER):
            if u.archetype is Archetype.WALL:
                continue
            d = state.grid.manhattan(origin, u.position)
            if best_d is None or d < best_d:
                best, best_d = u, d
        return best

    def nearest_free_tiberium(self, state: GameState, origin: int) -> int | None:
        occupied = state.units.occupied()
        best, best_d = None, None
        for idx in state.grid.tiberium_tiles():
            if idx in occupied:
                continue
            d = state.grid.manhattan(origin, idx)
            if best_d is None or d < best_d:
                best, best_d = idx, d
        return best

    def _emit_resources(self, state: GameState) -> None:
        self._bus.emit(ResourcesChanged(AI_FACTION.value, state.resources[AI_FACTION], state.turn_number))
