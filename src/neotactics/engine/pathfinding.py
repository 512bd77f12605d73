"""Pathfinding on the square grid.

Dijkstra over the 8-neighborhood with the map's step cost (orthogonal 1,
diagonal 2).  Obstacles and occupied tiles block movement.  Used for:
- Player movement (reachable set for a unit's move budget)
- AI movement (path toward the nearest enemy or tiberium field)
- Executing a move step by step
"""

from __future__ import annotations

import heapq
from typing import AbstractSet, Optional

from neotactics.models.grid import GridMap


def find_path(
    grid: GridMap,
    start: int,
    end: int,
    occupied: AbstractSet[int] = frozenset(),
) -> Optional[list[int]]:
    """Find the cheapest path from ``start`` to ``end``.

    The destination may itself be occupied, so callers can path toward a
    unit and stop short of it.

    Args:
        grid: The map.
        start: Start tile index.
        end: Destination tile index.
        occupied: Tiles holding a unit.

    Returns:
        Tile indices from start to end inclusive, or None if unreachable.
    """
    if start == end:
        return [start]

    dist: dict[int, int] = {start: 0}
    prev: dict[int, int] = {}
    frontier: list[tuple[int, int]] = [(0, start)]

    while frontier:
        cost, current = heapq.heappop(frontier)
        if current == end:
            break
        if cost > dist.get(current, cost):
            continue
        for n in grid.neighbors(current):
            if grid.is_obstacle(n):
                continue
            if n in occupied and n != end:
                continue
            new_cost = cost + grid.step_cost(current, n)
            if new_cost < dist.get(n, new_cost + 1):
                dist[n] = new_cost
                prev[n] = current
                heapq.heappush(frontier, (new_cost, n))

    if end not in prev:
        return None

    path = [end]
    while path[-1] != start:
        path.append(prev[path[-1]])
    path.reverse()
    return path


def reachable_set(
    grid: GridMap,
    start: int,
    budget: int,
    occupied: AbstractSet[int] = frozenset(),
) -> set[int]:
    """All tiles reachable from ``start`` with total cost ``<= budget``.

    Occupied tiles are never entered, so the result only holds tiles a
    unit can actually stop on.  The start tile is not included.
    """
    dist: dict[int, int] = {start: 0}
    frontier: list[tuple[int, int]] = [(0, start)]

    while frontier:
        cost, current = heapq.heappop(frontier)
        if cost > dist.get(current, cost):
            continue
        for n in grid.neighbors(current):
            if grid.is_obstacle(n) or n in occupied:
                continue
            new_cost = cost + grid.step_cost(current, n)
            if new_cost > budget:
                continue
            if new_cost < dist.get(n, new_cost + 1):
                dist[n] = new_cost
                heapq.heappush(frontier, (new_cost, n))

    dist.pop(start)
    return set(dist)


def path_cost(grid: GridMap, path: list[int]) -> int:
    """Sum of step costs along a path."""
    return sum(grid.step_cost(path[i], path[i + 1]) for i in range(len(path) - 1))
