"""Tests for random map generation."""

import random

import pytest

from neotactics.engine.map_generator import generate_map, start_zone_tiles
from neotactics.models.tile import TileKind


class ConstantRandom(random.Random):
    """Random source returning the same value from every ``random()`` call."""

    def __init__(self, value: float) -> None:
        super().__init__(0)
        self.value = value

    def random(self) -> float:
        return self.value


class TestStartZones:
    def test_zone_size(self):
        assert len(start_zone_tiles(15)) == 36

    def test_zone_covers_corner_neighborhoods(self):
        tiles = start_zone_tiles(10)
        for corner in (0, 9, 90, 99):
            assert corner in tiles
        assert {1, 10, 11} <= tiles
        assert {88, 89, 98} <= tiles

    @pytest.mark.parametrize("size", [10, 15, 20])
    @pytest.mark.parametrize("seed", [1, 2, 3, 42])
    def test_corners_are_clear_ground(self, size, seed):
        grid = generate_map(size, random.Random(seed))
        for idx in start_zone_tiles(size):
            assert grid[idx].kind == TileKind.GROUND
            assert grid[idx].deposit is None


class TestTileDraws:
    def test_low_draw_is_obstacle(self):
        grid = generate_map(10, ConstantRandom(0.05))
        zone = start_zone_tiles(10)
        assert all(grid[i].is_obstacle for i in range(100) if i not in zone)

    def test_middle_draw_small_deposit(self):
        # 0.2 < 0.25 → tiberium; second draw 0.2 is not > 0.7 → small
        grid = generate_map(10, ConstantRandom(0.2))
        tile = grid[55]
        assert tile.kind == TileKind.TIBERIUM
        assert tile.deposit.capacity_max == 200
        assert tile.deposit.current == 200
        assert tile.deposit.yield_per_turn == 25
        assert tile.deposit.size_class == "small"

    def test_high_draw_is_ground(self):
        grid = generate_map(10, ConstantRandom(0.8))
        assert all(t.kind == TileKind.GROUND for t in grid)

    def test_large_deposit(self):
        class Draws(random.Random):
            def __init__(self):
                super().__init__(0)
                self._toggle = False

            def random(self):
                # alternate tile draw (tiberium) and size draw (large)
                self._toggle = not self._toggle
                return 0.2 if self._toggle else 0.9

        grid = generate_map(10, Draws())
        tile = grid[55]
        assert tile.deposit.capacity_max == 500
        assert tile.deposit.yield_per_turn == 50
        assert tile.deposit.size_class == "large"


class TestInvariants:
    @pytest.mark.parametrize("seed", range(5))
    def test_deposits_within_capacity(self, seed):
        grid = generate_map(15, random.Random(seed))
        for tile in grid:
            if tile.kind == TileKind.TIBERIUM:
                assert 0 < tile.deposit.current <= tile.deposit.capacity_max
            else:
                assert tile.deposit is None

    def test_same_seed_same_map(self):
        a = generate_map(15, random.Random(7))
        b = generate_map(15, random.Random(7))
        assert [t.kind for t in a] == [t.kind for t in b]

    def test_rejects_tiny_map(self):
        with pytest.raises(ValueError):
            generate_map(4, random.Random(0))
