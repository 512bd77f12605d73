"""Square grid map model.

Holds the ``size × size`` tiles in row-major order and answers the
geometric questions (coordinates, adjacency, step cost, distances).
Pathfinding lives in :mod:`neotactics.engine.pathfinding`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Iterator

from neotactics.models.tile import Tile, TileKind

# 8-neighborhood offsets, rows top to bottom
NEIGHBOR_OFFSETS: tuple[tuple[int, int], ...] = (
    (-1, -1), (0, -1), (1, -1),
    (-1, 0), (1, 0),
    (-1, 1), (0, 1), (1, 1),
)


@dataclass
class GridMap:
    """The battlefield as a square grid.

    Attributes:
        size: Edge length; fixed for the whole match.
        tiles: ``size * size`` tiles, index ``y * size + x``.
    """

    size: int
    tiles: list[Tile] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.tiles:
            self.tiles = [Tile(index=i) for i in range(self.size * self.size)]
        assert len(self.tiles) == self.size * self.size

    def __len__(self) -> int:
        return len(self.tiles)

    def __iter__(self) -> Iterator[Tile]:
        return iter(self.tiles)

    def __getitem__(self, idx: int) -> Tile:
        return self.tiles[idx]

    # -- Coordinates -----------------------------------------------------

    def coords(self, idx: int) -> tuple[int, int]:
        """Return ``(x, y)`` for a tile index."""
        return idx % self.size, idx // self.size

    def index(self, x: int, y: int) -> int:
        return y * self.size + x

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.size and 0 <= y < self.size

    # -- Topology --------------------------------------------------------

    def neighbors(self, idx: int) -> list[int]:
        """The up-to-8 adjacent tile indices inside the grid."""
        x, y = self.coords(idx)
        result = []
        for dx, dy in NEIGHBOR_OFFSETS:
            nx, ny = x + dx, y + dy
            if self.in_bounds(nx, ny):
                result.append(self.index(nx, ny))
        return result

    def step_cost(self, a: int, b: int) -> int:
        """1 for an orthogonal step, 2 for a diagonal one."""
        ax, ay = self.coords(a)
        bx, by = self.coords(b)
        return 2 if ax != bx and ay != by else 1

    def is_obstacle(self, idx: int) -> bool:
        return self.tiles[idx].kind == TileKind.OBSTACLE

    # -- Distances -------------------------------------------------------

    def euclidean(self, a: int, b: int) -> float:
        ax, ay = self.coords(a)
        bx, by = self.coords(b)
        return math.hypot(ax - bx, ay - by)

    def manhattan(self, a: int, b: int) -> int:
        ax, ay = self.coords(a)
        bx, by = self.coords(b)
        return abs(ax - bx) + abs(ay - by)

    def facing(self, a: int, b: int) -> float:
        """Heading in degrees from tile ``a`` toward tile ``b``."""
        ax, ay = self.coords(a)
        bx, by = self.coords(b)
        return math.degrees(math.atan2(by - ay, bx - ax))

    def in_range(self, a: int, b: int, max_range: float, min_range: float = 0.0) -> bool:
        """Euclidean range test, inclusive on both ends."""
        d = self.euclidean(a, b)
        return min_range <= d <= max_range

    # -- Resources -------------------------------------------------------

    def tiberium_tiles(self) -> list[int]:
        return [t.index for t in self.tiles if t.has_tiberium]
