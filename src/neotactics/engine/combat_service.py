"""Combat service — attack resolution and reactive fire.

Three entry points, all step sequences (see :mod:`neotactics.engine.sequencer`):

- ``resolve_attack``: one attack.  The attack is consumed before the
  damage roll; damage is ``max(1, attack + U)`` with ``U`` uniform over
  ``{-2, -1, 0, 1}``.  Deaths are resolved immediately: the unit is
  removed, a deep drill leaves a large tiberium deposit behind and a dead
  base ends the match.
- ``check_overwatch``: after every single step of a move, the opposing
  faction's turrets and deep drills that can reach the mover empty their
  attack budget into the weakest unit of the mover's faction in range.
- ``trigger_retaliation``: after an enemy unit hits a player turret or
  deep drill, every player turret and deep drill that can reach the
  attacker fires back once.

Range is Euclidean between tile centres, ``min_range <= d <= range``.

Logging uses the ``[COMBAT]``, ``[OVERWATCH]`` and ``[RETALIATION]`` tags.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from neotactics.engine.map_generator import make_deposit
from neotactics.engine.sequencer import Pause, Sequence
from neotactics.loaders.game_config_loader import GameConfig
from neotactics.models.unit import REACTIVE_DEFENDERS, Archetype, Faction, Unit
from neotactics.util.constants import COLOR_DAMAGE, COLOR_SUCCESS, COLOR_WARNING
from neotactics.util.events import (
    CombatOccurred,
    EventBus,
    FloatingText,
    GameEnded,
    TilesChanged,
    UnitDeselected,
    UnitsChanged,
)

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)


class CombatService:
    """Resolves attacks and the reactive-fire sub-protocols.

    Args:
        event_bus: Bus for combat, death and game-end events.
        game_config: Damage variance, debris deposit and pacing.
    """

    def __init__(self, event_bus: EventBus, game_config: GameConfig | None = None) -> None:
        self._bus = event_bus
        self._cfg = game_config or GameConfig()

    # -- Predicates ------------------------------------------------------

    def in_range(self, state: GameState, shooter: Unit, target: Unit) -> bool:
        return state.grid.in_range(shooter.position, target.position, shooter.range, shooter.min_range)

    def valid_attacks(self, state: GameState, unit: Unit) -> list[Unit]:
        """Opposing units ``unit`` could attack right now, in registry order."""
        if unit.attacks_remaining <= 0 or unit.under_construction:
            return []
        return [
            u for u in state.units
            if u.owner is not unit.owner and self.in_range(state, unit, u)
        ]

    def roll_damage(self, state: GameState, attacker: Unit) -> int:
        variance = state.rng.randint(self._cfg.damage_variance_min, self._cfg.damage_variance_max)
        return max(1, attacker.attack + variance)

    # -- Attack ----------------------------------------------------------

    def resolve_attack(
        self,
        state: GameState,
        attacker: Unit,
        defender: Unit,
        reactive: bool = False,
    ) -> Sequence[bool]:
        """Resolve one attack.

        Args:
            state: The match.
            attacker: Unit spending an attack.
            defender: Unit taking the damage.
            reactive: True for overwatch/retaliation shots, which do not
                re-orient the attacker here.

        Returns:
            Whether the defender died.  Attacking with no attacks left
            changes nothing and returns False.
        """
        if attacker.attacks_remaining <= 0:
            return False
        if not state.units.is_alive(attacker) or not state.units.is_alive(defender):
            return False

        attacker.attacks_remaining -= 1
        if not reactive:
            attacker.facing = state.grid.facing(attacker.position, defender.position)

        damage = self.roll_damage(state, attacker)
        defender.hp -= damage
        died = defender.hp <= 0
        log.debug("[COMBAT] %s #%d -> %s #%d dmg=%d hp=%d%s",
                  attacker.archetype.value, attacker.uid,
                  defender.archetype.value, defender.uid,
                  damage, defender.hp, " DESTROYED" if died else "")

        self._bus.emit(FloatingText(defender.position, f"-{damage}", COLOR_DAMAGE))
        if died:
            self._destroy(state, defender)
        self._bus.emit(CombatOccurred(
            attacker_id=attacker.uid,
            defender_id=defender.uid,
            damage=damage,
            died=died,
            attacker_owner=attacker.owner.value,
            defender_owner=defender.owner.value,
            reactive=reactive,
        ))
        if died and defender.archetype is Archetype.BASE:
            self.end_game(state, winner=attacker.owner)

        yield Pause("attack", self._cfg.pacing.attack_ms)

        if (
            attacker.owner is Faction.ENEMY
            and state.units.is_alive(attacker)
            and defender.archetype in REACTIVE_DEFENDERS
            and not state.game_over
        ):
            yield from self.trigger_retaliation(state, attacker)

        return died

    def _destroy(self, state: GameState, unit: Unit) -> None:
        state.units.remove(unit)
        if unit.archetype is Archetype.DEEP_DRILL:
            tile = state.grid[unit.position]
            tile.set_deposit(make_deposit(self._cfg.large_deposit, "large"))
            self._bus.emit(TilesChanged((unit.position,)))
            self._bus.emit(FloatingText(unit.position, "DEBRIS FIELD", COLOR_SUCCESS))
        if state.selected_id == unit.uid:
            state.clear_selection()
            self._bus.emit(UnitDeselected())
        self._bus.emit(UnitsChanged("destroyed"))

    def end_game(self, state: GameState, winner: Faction) -> None:
        """Mark the match as over and publish the summary."""
        if state.game_over:
            return
        state.game_over = True
        state.winner = winner
        summary = state.stats.summary(state.turn_number)
        log.info("Game over on turn %d: %s wins %s", state.turn_number, winner.value, summary)
        self._bus.emit(GameEnded(winner.value, summary))

    # -- Reactive fire ---------------------------------------------------

    def check_overwatch(self, state: GameState, mover: Unit) -> Sequence[bool]:
        """Let the mover's opponents' static defenders fire on it.

        Returns:
            Whether the mover died.
        """
        units = state.units
        shooters = [
            u for u in units
            if u.owner is mover.owner.opponent
            and u.archetype in REACTIVE_DEFENDERS
            and u.attacks_remaining > 0
        ]
        for shooter in shooters:
            if not units.is_alive(mover) or state.game_over:
                break
            if not units.is_alive(shooter) or not self.in_range(state, shooter, mover):
                continue

            log.debug("[OVERWATCH] %s #%d engages mover #%d",
                      shooter.archetype.value, shooter.uid, mover.uid)
            self._bus.emit(FloatingText(shooter.position, "OVERWATCH!", COLOR_WARNING))
            yield Pause("overwatch", self._cfg.pacing.overwatch_ms)

            while shooter.attacks_remaining > 0 and units.is_alive(shooter):
                targets = [u for u in units.owned_by(mover.owner) if self.in_range(state, shooter, u)]
                if not targets:
                    break
                target = min(targets, key=lambda u: u.hp)
                shooter.facing = state.grid.facing(shooter.position, target.position)
                yield from self.resolve_attack(state, shooter, target, reactive=True)
                if not units.is_alive(mover) or state.game_over:
                    break

        return not units.is_alive(mover)

    def trigger_retaliation(self, state: GameState, attacker: Unit) -> Sequence[None]:
        """Player turrets and deep drills in range fire back once each."""
        units = state.units
        defenders = [
            u for u in units.owned_by(Faction.PLAYER)
            if u.archetype in REACTIVE_DEFENDERS
            and u.attacks_remaining > 0
            and self.in_range(state, u, attacker)
        ]
        for defender in defenders:
            if not units.is_alive(attacker) or state.game_over:
                break
            if not units.is_alive(defender) or defender.attacks_remaining <= 0:
                continue
            log.debug("[RETALIATION] %s #%d fires back at #%d",
                      defender.archetype.value, defender.uid, attacker.uid)
            self._bus.emit(FloatingText(defender.position, "RETALIATION!", COLOR_WARNING))
            defender.facing = state.grid.facing(defender.position, attacker.position)
            yield from self.resolve_attack(state, defender, attacker, reactive=True)
