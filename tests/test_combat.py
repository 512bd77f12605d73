"""Tests for attack resolution, death handling and retaliation."""

from __future__ import annotations

import random

import pytest

from neotactics.engine.combat_service import CombatService
from neotactics.engine.unit_registry import UnitRegistry
from neotactics.models.game_state import GameState
from neotactics.models.grid import GridMap
from neotactics.models.tile import TileKind
from neotactics.models.unit import Archetype, Faction
from neotactics.util.events import (
    CombatOccurred,
    EventBus,
    FloatingText,
    GameEnded,
    UnitDeselected,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FixedRoll(random.Random):
    """Random source with a fixed damage variance and coin."""

    def __init__(self, variance: int = 0, coin: float = 0.5) -> None:
        super().__init__(0)
        self.variance = variance
        self.coin = coin

    def randint(self, a: int, b: int) -> int:
        return self.variance

    def random(self) -> float:
        return self.coin


def _make_state(size: int = 10, variance: int = 0) -> GameState:
    grid = GridMap(size=size)
    return GameState(grid=grid, units=UnitRegistry(grid), rng=FixedRoll(variance))


def _run(gen):
    """Drain a step sequence and return its result."""
    try:
        while True:
            next(gen)
    except StopIteration as stop:
        return stop.value


def _record(bus: EventBus) -> list:
    events: list = []
    bus.on_any(events.append)
    return events


# ---------------------------------------------------------------------------
# Tests — single attacks
# ---------------------------------------------------------------------------

class TestResolveAttack:
    def test_scout_hits_tank_twice_then_stops(self):
        state = _make_state()
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 1, Faction.ENEMY)

        assert _run(combat.resolve_attack(state, scout, tank)) is False
        assert tank.hp == 242
        _run(combat.resolve_attack(state, scout, tank))
        assert tank.hp == 234
        assert scout.attacks_remaining == 0

        # Out of attacks: nothing happens
        assert _run(combat.resolve_attack(state, scout, tank)) is False
        assert tank.hp == 234

    def test_damage_range_for_attack_eight(self):
        state = _make_state()
        state.rng = random.Random(3)
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        rolls = {combat.roll_damage(state, scout) for _ in range(200)}
        assert rolls == {6, 7, 8, 9}

    def test_damage_never_below_one(self):
        state = _make_state(variance=-2)
        combat = CombatService(EventBus())
        builder = state.units.spawn(Archetype.BUILDER, 0, Faction.PLAYER)
        assert combat.roll_damage(state, builder) == 1

    def test_attack_turns_attacker(self):
        state = _make_state()
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 10, Faction.ENEMY)
        _run(combat.resolve_attack(state, scout, tank))
        assert scout.facing == pytest.approx(90.0)

    def test_reactive_attack_keeps_facing(self):
        state = _make_state()
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 10, Faction.ENEMY)
        _run(combat.resolve_attack(state, scout, tank, reactive=True))
        assert scout.facing == 0.0

    def test_emits_floating_text_and_combat_event(self):
        state = _make_state()
        bus = EventBus()
        events = _record(bus)
        combat = CombatService(bus)
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 1, Faction.ENEMY)
        _run(combat.resolve_attack(state, scout, tank))

        texts = [e for e in events if isinstance(e, FloatingText)]
        assert texts[0].text == "-8" and texts[0].tile == 1
        [hit] = [e for e in events if isinstance(e, CombatOccurred)]
        assert hit.attacker_id == scout.uid and hit.defender_id == tank.uid
        assert hit.damage == 8 and not hit.died

    def test_dead_defender_is_noop(self):
        state = _make_state()
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 1, Faction.ENEMY)
        state.units.remove(tank)
        assert _run(combat.resolve_attack(state, scout, tank)) is False
        assert scout.attacks_remaining == 2


# ---------------------------------------------------------------------------
# Tests — deaths
# ---------------------------------------------------------------------------

class TestDeath:
    def test_killed_unit_is_removed(self):
        state = _make_state()
        combat = CombatService(EventBus())
        tank = state.units.spawn(Archetype.TANK, 0, Faction.PLAYER)
        scout = state.units.spawn(Archetype.SCOUT, 1, Faction.ENEMY)
        assert _run(combat.resolve_attack(state, tank, scout)) is True
        assert state.units.unit_at(1) is None
        assert not state.units.is_alive(scout)

    def test_deep_drill_leaves_large_deposit(self):
        state = _make_state()
        combat = CombatService(EventBus())
        drill = state.units.spawn(Archetype.DEEP_DRILL, 0, Faction.PLAYER)
        drill.hp = 10
        tank = state.units.spawn(Archetype.TANK, 1, Faction.ENEMY)
        _run(combat.resolve_attack(state, tank, drill))

        tile = state.grid[0]
        assert tile.kind == TileKind.TIBERIUM
        assert tile.deposit.capacity_max == 500
        assert tile.deposit.current == 500
        assert tile.deposit.yield_per_turn == 50
        assert tile.deposit.size_class == "large"

    def test_selected_unit_death_clears_selection(self):
        state = _make_state()
        bus = EventBus()
        events = _record(bus)
        combat = CombatService(bus)
        scout = state.units.spawn(Archetype.SCOUT, 0, Faction.PLAYER)
        tank = state.units.spawn(Archetype.TANK, 1, Faction.ENEMY)
        state.select(scout)
        _run(combat.resolve_attack(state, tank, scout))
        assert state.selected_id is None
        assert any(isinstance(e, UnitDeselected) for e in events)

    def test_base_death_ends_game(self):
        state = _make_state()
        bus = EventBus()
        events = _record(bus)
        combat = CombatService(bus)
        tank = state.units.spawn(Archetype.TANK, 0, Faction.PLAYER)
        base = state.units.spawn(Archetype.BASE, 1, Faction.ENEMY)
        base.hp = 5
        _run(combat.resolve_attack(state, tank, base))

        assert state.game_over
        assert state.winner is Faction.PLAYER
        [ended] = [e for e in events if isinstance(e, GameEnded)]
        assert ended.winner == "player"
        assert set(ended.summary) == {
            "tiberium_mined", "units_destroyed", "units_lost", "turns", "duration_seconds",
        }

    def test_end_game_only_once(self):
        state = _make_state()
        bus = EventBus()
        events = _record(bus)
        combat = CombatService(bus)
        combat.end_game(state, Faction.ENEMY)
        combat.end_game(state, Faction.PLAYER)
        assert state.winner is Faction.ENEMY
        assert len([e for e in events if isinstance(e, GameEnded)]) == 1


# ---------------------------------------------------------------------------
# Tests — retaliation
# ---------------------------------------------------------------------------

class TestRetaliation:
    def _setup(self):
        state = _make_state()
        bus = EventBus()
        events = _record(bus)
        combat = CombatService(bus)
        scout = state.units.spawn(Archetype.SCOUT, 55, Faction.ENEMY)
        a = state.units.spawn(Archetype.TURRET, 56, Faction.PLAYER)
        b = state.units.spawn(Archetype.TURRET, 65, Faction.PLAYER)
        c = state.units.spawn(Archetype.TURRET, 54, Faction.PLAYER)
        return state, combat, events, scout, (a, b, c)

    def test_turrets_fire_back_until_attacker_dies(self):
        state, combat, events, scout, (a, b, c) = self._setup()
        _run(combat.resolve_attack(state, scout, a))

        assert a.hp == 172
        assert not state.units.is_alive(scout)
        assert a.attacks_remaining == 1
        assert b.attacks_remaining == 1
        assert c.attacks_remaining == 2
        shouts = [e.tile for e in events if isinstance(e, FloatingText) and e.text == "RETALIATION!"]
        assert shouts == [56, 65]

    def test_retaliation_shots_are_reactive(self):
        state, combat, events, scout, (a, b, c) = self._setup()
        _run(combat.resolve_attack(state, scout, a))
        hits = [e for e in events if isinstance(e, CombatOccurred)]
        assert [h.reactive for h in hits] == [False, True, True]

    def test_no_retaliation_for_non_defender_target(self):
        state = _make_state()
        combat = CombatService(EventBus())
        scout = state.units.spawn(Archetype.SCOUT, 55, Faction.ENEMY)
        tank = state.units.spawn(Archetype.TANK, 56, Faction.PLAYER)
        turret = state.units.spawn(Archetype.TURRET, 65, Faction.PLAYER)
        _run(combat.resolve_attack(state, scout, tank))
        assert turret.attacks_remaining == 2
        assert scout.hp == 50

    def test_player_attacks_never_trigger_retaliation(self):
        state = _make_state()
        combat = CombatService(EventBus())
        tank = state.units.spawn(Archetype.TANK, 55, Faction.PLAYER)
        enemy_turret = state.units.spawn(Archetype.TURRET, 56, Faction.ENEMY)
        other = state.units.spawn(Archetype.TURRET, 65, Faction.ENEMY)
        _run(combat.resolve_attack(state, tank, enemy_turret))
        assert other.attacks_remaining == 2
        assert tank.hp == 250
