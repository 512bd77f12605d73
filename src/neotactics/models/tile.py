"""Tile model — one square of the battlefield.

Tiles are created once at map generation.  Only harvesting and a
destroyed deep drill ever change them afterwards.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class TileKind(Enum):
    """Terrain class of a tile."""

    GROUND = "ground"
    OBSTACLE = "obstacle"
    TIBERIUM = "tiberium"


@dataclass
class Deposit:
    """Harvestable tiberium payload.

    Attributes:
        capacity_max: Amount the deposit started with.
        current: Amount still in the ground.
        yield_per_turn: Most a harvester can extract in one income pass.
        size_class: ``"small"`` or ``"large"``.
    """

    capacity_max: int
    current: int
    yield_per_turn: int
    size_class: str = "small"

    def extract(self) -> int:
        """Remove one turn's yield and return the amount taken."""
        amount = min(self.yield_per_turn, self.current)
        self.current -= amount
        assert 0 <= self.current <= self.capacity_max
        return amount

    @property
    def exhausted(self) -> bool:
        return self.current <= 0


@dataclass
class Tile:
    """A single grid square.

    Attributes:
        index: Row-major index ``y * size + x``.
        kind: Terrain class.
        deposit: Tiberium payload, present only when kind is TIBERIUM.
    """

    index: int
    kind: TileKind = TileKind.GROUND
    deposit: Deposit | None = None

    @property
    def is_obstacle(self) -> bool:
        return self.kind == TileKind.OBSTACLE

    @property
    def has_tiberium(self) -> bool:
        return self.kind == TileKind.TIBERIUM and self.deposit is not None

    def set_deposit(self, deposit: Deposit) -> None:
        """Turn this tile into a tiberium field."""
        self.kind = TileKind.TIBERIUM
        self.deposit = deposit

    def clear(self) -> None:
        """Revert to plain ground with no payload."""
        self.kind = TileKind.GROUND
        self.deposit = None

    def harvest(self) -> int:
        """Extract one turn of tiberium, clearing the tile once empty.

        Returns:
            Amount harvested (0 for tiles without a deposit).
        """
        if not self.has_tiberium:
            return 0
        amount = self.deposit.extract()
        if self.deposit.exhausted:
            self.clear()
        return amount
