"""Random map generation.

Each tile draws once: obstacle, tiberium (small or large deposit) or
ground.  The corners are then cleared so both factions start on open
ground whatever the board size.
"""

from __future__ import annotations

import logging
import random

from neotactics.loaders.game_config_loader import DepositClass, GameConfig, validate_map_size
from neotactics.models.grid import GridMap
from neotactics.models.tile import Deposit, Tile, TileKind

log = logging.getLogger(__name__)


def make_deposit(deposit_class: DepositClass, size_class: str) -> Deposit:
    return Deposit(
        capacity_max=deposit_class.capacity,
        current=deposit_class.capacity,
        yield_per_turn=deposit_class.yield_per_turn,
        size_class=size_class,
    )


def generate_map(size: int, rng: random.Random, config: GameConfig | None = None) -> GridMap:
    """Generate a fresh ``size × size`` battlefield.

    Args:
        size: Edge length (fixed for the match).
        rng: Random source; the only randomness used.
        config: Chances and deposit classes (defaults if omitted).

    Returns:
        The new map.
    """
    validate_map_size(size)
    cfg = config or GameConfig()
    tiberium_cutoff = cfg.obstacle_chance + cfg.tiberium_chance

    tiles = []
    for i in range(size * size):
        r = rng.random()
        tile = Tile(index=i)
        if r < cfg.obstacle_chance:
            tile.kind = TileKind.OBSTACLE
        elif r < tiberium_cutoff:
            if rng.random() > 1.0 - cfg.large_deposit_chance:
                tile.set_deposit(make_deposit(cfg.large_deposit, "large"))
            else:
                tile.set_deposit(make_deposit(cfg.small_deposit, "small"))
        tiles.append(tile)

    grid = GridMap(size=size, tiles=tiles)
    for idx in start_zone_tiles(size, cfg.start_zone):
        grid[idx].clear()

    log.info("Generated %dx%d map: %d obstacles, %d tiberium fields",
             size, size,
             sum(1 for t in grid if t.is_obstacle),
             sum(1 for t in grid if t.has_tiberium))
    return grid


def start_zone_tiles(size: int, extent: int = 3) -> set[int]:
    """Indices of the ``extent × extent`` blocks in all four corners."""
    edges = list(range(min(extent, size))) + list(range(max(size - extent, 0), size))
    return {y * size + x for y in edges for x in edges}
