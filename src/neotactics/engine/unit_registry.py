"""Unit registry — the live units of a match and their lifecycle.

Owns spawning, removal, unit-at-tile lookup and the construction /
transformation state machine:

    Active ──build wall──▶ pending_wall (timer) ──▶ wall
    Active ──transform──▶ transformer (timer, target) ──▶ target archetype
    any ──hp ≤ 0──▶ removed

Every transition allocates a new record via :func:`transition`; the
registry swaps it in under the same id, keeping iteration order.
"""

from __future__ import annotations

import itertools
import logging
from typing import Iterator

from neotactics.models.grid import GridMap
from neotactics.models.unit import (
    DEFAULT_UNIT_STATS,
    Archetype,
    Faction,
    Unit,
    UnitStats,
    transition,
)
from neotactics.util.constants import SPAWN_SEARCH_RADII

log = logging.getLogger(__name__)

SPAWN_FACING: dict[Faction, float] = {Faction.PLAYER: 0.0, Faction.ENEMY: 180.0}


class UnitRegistry:
    """All live units, in spawn order.

    Args:
        grid: Map used for obstacle and bounds checks.
        unit_types: Stat block per archetype.
    """

    def __init__(self, grid: GridMap, unit_types: dict[Archetype, UnitStats] | None = None) -> None:
        self._grid = grid
        self._types = dict(unit_types or DEFAULT_UNIT_STATS)
        self._units: dict[int, Unit] = {}
        self._ids = itertools.count(1)

    # -- Queries ---------------------------------------------------------

    def __iter__(self) -> Iterator[Unit]:
        return iter(list(self._units.values()))

    def __len__(self) -> int:
        return len(self._units)

    def stats(self, archetype: Archetype) -> UnitStats:
        return self._types[archetype]

    def get(self, uid: int) -> Unit | None:
        return self._units.get(uid)

    def is_alive(self, unit: Unit) -> bool:
        """True while ``unit`` is the registered record for its id."""
        return self._units.get(unit.uid) is unit

    def unit_at(self, idx: int) -> Unit | None:
        for unit in self._units.values():
            if unit.position == idx:
                return unit
        return None

    def owned_by(self, owner: Faction, archetype: Archetype | None = None) -> list[Unit]:
        return [
            u for u in self._units.values()
            if u.owner is owner and (archetype is None or u.archetype is archetype)
        ]

    def base_of(self, owner: Faction) -> Unit | None:
        bases = self.owned_by(owner, Archetype.BASE)
        return bases[0] if bases else None

    def occupied(self) -> set[int]:
        return {u.position for u in self._units.values()}

    def is_free(self, idx: int) -> bool:
        """In bounds, not an obstacle and not holding a unit."""
        return (
            0 <= idx < len(self._grid)
            and not self._grid.is_obstacle(idx)
            and self.unit_at(idx) is None
        )

    def find_spawn_spot(self, center: int) -> int | None:
        """First free tile in Chebyshev rings 1 then 2 around ``center``."""
        cx, cy = self._grid.coords(center)
        for r in SPAWN_SEARCH_RADII:
            for dy in range(-r, r + 1):
                for dx in range(-r, r + 1):
                    x, y = cx + dx, cy + dy
                    if not self._grid.in_bounds(x, y):
                        continue
                    idx = self._grid.index(x, y)
                    if self.is_free(idx):
                        return idx
        return None

    # -- Lifecycle -------------------------------------------------------

    def spawn(self, archetype: Archetype, tile: int, owner: Faction) -> Unit | None:
        """Create a unit with full pools.

        Returns None without effect when the tile is blocked; callers are
        expected to have validated the tile already.
        """
        if not self.is_free(tile):
            log.debug("spawn of %s at %d refused: tile blocked", archetype.value, tile)
            return None
        unit = Unit.from_stats(
            next(self._ids), archetype, self._types[archetype], owner, tile,
            facing=SPAWN_FACING[owner],
        )
        self._units[unit.uid] = unit
        log.debug("spawned %s #%d (%s) at %d", archetype.value, unit.uid, owner.value, tile)
        return unit

    def remove(self, unit: Unit) -> None:
        if self.is_alive(unit):
            del self._units[unit.uid]

    def move(self, unit: Unit, tile: int) -> None:
        """Place ``unit`` on an adjacent free tile."""
        assert self.is_alive(unit)
        assert self.unit_at(tile) is None, f"tile {tile} already occupied"
        assert not self._grid.is_obstacle(tile)
        unit.position = tile

    def _replace(self, old: Unit, new: Unit) -> Unit:
        assert self.is_alive(old)
        self._units[old.uid] = new
        return new

    def start_wall(self, tile: int, owner: Faction, turns: int) -> Unit | None:
        """Place a wall construction site."""
        site = self.spawn(Archetype.PENDING_WALL, tile, owner)
        if site is not None:
            site.spend_all()
            site.construction_timer = turns
        return site

    def begin_transform(self, unit: Unit, target: Archetype, turns: int) -> Unit:
        """Turn ``unit`` into a transformer that will become ``target``.

        The transformer already carries the target's hit points; its action
        pools are frozen at zero until the timer runs out.
        """
        morph = transition(unit, Archetype.TRANSFORMER, self._types[Archetype.TRANSFORMER])
        morph.max_hp = morph.hp = self._types[target].hp
        morph.spend_all()
        morph.construction_timer = turns
        morph.transform_target = target
        return self._replace(unit, morph)

    def complete(self, unit: Unit) -> Unit:
        """Finish construction of a wall site or transformer."""
        if unit.archetype is Archetype.PENDING_WALL:
            done = transition(unit, Archetype.WALL, self._types[Archetype.WALL])
        else:
            assert unit.transform_target is not None, f"unit #{unit.uid} has nothing to become"
            done = transition(unit, unit.transform_target, self._types[unit.transform_target])
            done.hp = min(unit.hp, done.max_hp)
            done.move_points = 0
        return self._replace(unit, done)

    def advance_construction(self) -> list[Unit]:
        """Tick every construction timer once.

        Returns:
            The completed records, in registry order.
        """
        completed = []
        for unit in self:
            if unit.construction_timer <= 0:
                continue
            unit.construction_timer -= 1
            if unit.construction_timer == 0:
                completed.append(self.complete(unit))
        return completed

    def assert_consistent(self) -> None:
        """Check that no two units share a tile."""
        positions = [u.position for u in self._units.values()]
        assert len(positions) == len(set(positions)), "two units share a tile"
