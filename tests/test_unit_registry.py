"""Tests for the unit registry: spawning, lookup and lifecycle transitions."""

from neotactics.engine.unit_registry import UnitRegistry
from neotactics.models.grid import GridMap
from neotactics.models.tile import TileKind
from neotactics.models.unit import Archetype, Faction


def _make_registry(size: int = 10, obstacles: tuple[int, ...] = ()) -> UnitRegistry:
    grid = GridMap(size=size)
    for idx in obstacles:
        grid[idx].kind = TileKind.OBSTACLE
    return UnitRegistry(grid)


class TestSpawn:
    def test_spawn_has_full_pools(self):
        reg = _make_registry()
        scout = reg.spawn(Archetype.SCOUT, 5, Faction.PLAYER)
        assert scout.hp == scout.max_hp == 50
        assert scout.move_points == 8
        assert scout.attacks_remaining == 2
        assert scout.construction_timer == 0
        assert scout.transform_target is None

    def test_spawn_facing_by_owner(self):
        reg = _make_registry()
        assert reg.spawn(Archetype.TANK, 1, Faction.PLAYER).facing == 0.0
        assert reg.spawn(Archetype.TANK, 2, Faction.ENEMY).facing == 180.0

    def test_missile_turret_min_range(self):
        reg = _make_registry()
        mt = reg.spawn(Archetype.MISSILE_TURRET, 5, Faction.ENEMY)
        assert mt.min_range == 2 and mt.range == 5

    def test_spawn_on_occupied_tile_does_nothing(self):
        reg = _make_registry()
        reg.spawn(Archetype.SCOUT, 5, Faction.PLAYER)
        assert reg.spawn(Archetype.TANK, 5, Faction.ENEMY) is None
        assert len(reg) == 1

    def test_spawn_on_obstacle_does_nothing(self):
        reg = _make_registry(obstacles=(5,))
        assert reg.spawn(Archetype.SCOUT, 5, Faction.PLAYER) is None
        assert len(reg) == 0

    def test_unique_ids(self):
        reg = _make_registry()
        ids = {reg.spawn(Archetype.WALL, i, Faction.PLAYER).uid for i in range(5)}
        assert len(ids) == 5


class TestLookup:
    def test_unit_at(self):
        reg = _make_registry()
        tank = reg.spawn(Archetype.TANK, 33, Faction.ENEMY)
        assert reg.unit_at(33) is tank
        assert reg.unit_at(34) is None

    def test_owned_by_keeps_spawn_order(self):
        reg = _make_registry()
        a = reg.spawn(Archetype.SCOUT, 1, Faction.PLAYER)
        reg.spawn(Archetype.SCOUT, 2, Faction.ENEMY)
        b = reg.spawn(Archetype.TANK, 3, Faction.PLAYER)
        assert reg.owned_by(Faction.PLAYER) == [a, b]
        assert reg.owned_by(Faction.PLAYER, Archetype.TANK) == [b]

    def test_remove(self):
        reg = _make_registry()
        scout = reg.spawn(Archetype.SCOUT, 1, Faction.PLAYER)
        reg.remove(scout)
        assert not reg.is_alive(scout)
        assert reg.unit_at(1) is None

    def test_base_of(self):
        reg = _make_registry()
        base = reg.spawn(Archetype.BASE, 0, Faction.PLAYER)
        assert reg.base_of(Faction.PLAYER) is base
        assert reg.base_of(Faction.ENEMY) is None


class TestFindSpawnSpot:
    def test_first_free_in_ring_one(self):
        reg = _make_registry()
        reg.spawn(Archetype.BASE, 0, Faction.PLAYER)
        assert reg.find_spawn_spot(0) == 1

    def test_scan_order_top_left_first(self):
        reg = _make_registry()
        reg.spawn(Archetype.BASE, 55, Faction.ENEMY)
        assert reg.find_spawn_spot(55) == 44

    def test_falls_back_to_ring_two(self):
        reg = _make_registry(obstacles=(1, 10, 11))
        reg.spawn(Archetype.BASE, 0, Faction.PLAYER)
        assert reg.find_spawn_spot(0) == 2

    def test_none_when_boxed_in(self):
        ring = tuple(i for i in (1, 2, 10, 11, 12, 20, 21, 22))
        reg = _make_registry(obstacles=ring)
        reg.spawn(Archetype.BASE, 0, Faction.PLAYER)
        assert reg.find_spawn_spot(0) is None


class TestTransitions:
    def test_begin_transform_allocates_new_record(self):
        reg = _make_registry()
        builder = reg.spawn(Archetype.BUILDER, 5, Faction.PLAYER)
        morph = reg.begin_transform(builder, Archetype.TURRET, 2)
        assert morph is not builder
        assert morph.uid == builder.uid
        assert not reg.is_alive(builder)
        assert reg.get(builder.uid) is morph
        assert morph.archetype is Archetype.TRANSFORMER
        assert morph.transform_target is Archetype.TURRET
        assert morph.hp == morph.max_hp == 180
        assert morph.move_points == 0 and morph.attacks_remaining == 0
        assert morph.construction_timer == 2

    def test_transformer_drops_old_stats(self):
        reg = _make_registry()
        builder = reg.spawn(Archetype.BUILDER, 5, Faction.PLAYER)
        morph = reg.begin_transform(builder, Archetype.MISSILE_TURRET, 3)
        assert morph.range == 0 and morph.max_move_points == 0

    def test_transform_completes_with_target_stats(self):
        reg = _make_registry()
        builder = reg.spawn(Archetype.BUILDER, 5, Faction.PLAYER)
        reg.begin_transform(builder, Archetype.MISSILE_TURRET, 3)
        assert reg.advance_construction() == []
        assert reg.advance_construction() == []
        [done] = reg.advance_construction()
        assert done.archetype is Archetype.MISSILE_TURRET
        assert done.range == 5 and done.min_range == 2 and done.attack == 55
        assert done.attacks_remaining == done.max_attacks == 1
        assert done.construction_timer == 0
        assert done.transform_target is None
        assert done.position == 5

    def test_damage_during_transform_carries_over(self):
        reg = _make_registry()
        harvester = reg.spawn(Archetype.HARVESTER, 5, Faction.PLAYER)
        morph = reg.begin_transform(harvester, Archetype.DEEP_DRILL, 1)
        morph.hp -= 100
        [drill] = reg.advance_construction()
        assert drill.max_hp == 800
        assert drill.hp == 700

    def test_wall_site_completes(self):
        reg = _make_registry()
        site = reg.start_wall(5, Faction.PLAYER, turns=1)
        assert site.archetype is Archetype.PENDING_WALL
        assert site.hp == 50 and site.construction_timer == 1
        [wall] = reg.advance_construction()
        assert wall.archetype is Archetype.WALL
        assert wall.hp == wall.max_hp == 180

    def test_finished_wall_never_ticks_again(self):
        reg = _make_registry()
        reg.start_wall(5, Faction.PLAYER, turns=1)
        reg.advance_construction()
        for _ in range(3):
            assert reg.advance_construction() == []
        wall = reg.unit_at(5)
        assert wall.archetype is Archetype.WALL
        assert wall.construction_timer == 0

    def test_iteration_order_survives_transition(self):
        reg = _make_registry()
        a = reg.spawn(Archetype.BUILDER, 1, Faction.PLAYER)
        b = reg.spawn(Archetype.SCOUT, 2, Faction.PLAYER)
        reg.begin_transform(a, Archetype.TURRET, 2)
        assert [u.uid for u in reg] == [a.uid, b.uid]
