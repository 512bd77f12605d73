"""Unit model — archetypes, stat blocks and the unit record.

A unit never changes archetype in place.  Finishing a wall or a
transformation goes through :func:`transition`, which allocates a fresh
record from the new archetype's stat block; the registry swaps it in
under the same id and the old record is no longer alive.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Faction(Enum):
    """The two sides of a match."""

    PLAYER = "player"
    ENEMY = "enemy"

    @property
    def opponent(self) -> Faction:
        return Faction.ENEMY if self is Faction.PLAYER else Faction.PLAYER


class Archetype(Enum):
    """Unit roles.  The value is the key used in config and events."""

    BASE = "base"
    SCOUT = "scout"
    TANK = "tank"
    HARVESTER = "harvester"
    BUILDER = "builder"
    TURRET = "turret"
    WALL = "wall"
    PENDING_WALL = "pending_wall"
    TRANSFORMER = "transformer"
    DEEP_DRILL = "deep_drill"
    MISSILE_TURRET = "missile_turret"
    ARTILLERY = "artillery"


# Static defenders that take part in overwatch and retaliation
REACTIVE_DEFENDERS: frozenset[Archetype] = frozenset({Archetype.TURRET, Archetype.DEEP_DRILL})

# Refresh only their attacks at turn end
STRUCTURES: frozenset[Archetype] = frozenset({
    Archetype.TURRET, Archetype.DEEP_DRILL, Archetype.MISSILE_TURRET,
})

BUILDER_TRANSFORMS: frozenset[Archetype] = frozenset({
    Archetype.TURRET, Archetype.MISSILE_TURRET,
})


@dataclass(frozen=True)
class UnitStats:
    """Base stat block of an archetype.

    Attributes:
        name: Display name.
        hp: Maximum hit points.
        attack: Base damage per attack.
        range: Maximum Euclidean attack range in tiles.
        min_range: Minimum attack range (0 = none).
        max_move: Movement points per turn.
        max_attacks: Attacks per turn.
        cost: Resource price to produce or transform into.
    """

    name: str
    hp: int
    attack: int = 0
    range: float = 0.0
    min_range: float = 0.0
    max_move: int = 0
    max_attacks: int = 0
    cost: int = 0


DEFAULT_UNIT_STATS: dict[Archetype, UnitStats] = {
    Archetype.BASE: UnitStats("HQ", hp=600),
    Archetype.SCOUT: UnitStats("Scout", hp=50, attack=8, range=2.5, max_move=8, max_attacks=2, cost=50),
    Archetype.TANK: UnitStats("Titan", hp=250, attack=45, range=2, max_move=3, max_attacks=1, cost=150),
    Archetype.HARVESTER: UnitStats("Harvester", hp=100, max_move=4, cost=100),
    Archetype.BUILDER: UnitStats("Builder", hp=60, range=1.5, max_move=4, max_attacks=1, cost=25),
    Archetype.TURRET: UnitStats("Turret", hp=180, attack=25, range=2.5, max_attacks=2, cost=30),
    Archetype.WALL: UnitStats("Wall", hp=180, cost=5),
    Archetype.PENDING_WALL: UnitStats("Site", hp=50),
    Archetype.TRANSFORMER: UnitStats("Morph", hp=180),
    Archetype.DEEP_DRILL: UnitStats("Deep Drill", hp=800, attack=10, range=2, max_attacks=2, cost=400),
    Archetype.MISSILE_TURRET: UnitStats(
        "Missile Turret", hp=150, attack=55, range=5, min_range=2, max_attacks=1, cost=100,
    ),
    Archetype.ARTILLERY: UnitStats("Artillery", hp=60, attack=40, range=5, max_move=3, max_attacks=1, cost=120),
}


@dataclass(eq=False)
class Unit:
    """A unit on the board.

    Attributes:
        uid: Unique id, kept across archetype transitions.
        archetype: Current role.
        owner: Controlling faction.
        position: Tile index.
        hp / max_hp: Current and maximum hit points.
        attack, range, min_range: Combat values from the stat block.
        move_points / max_move_points: Movement pool for this turn.
        attacks_remaining / max_attacks: Attack pool for this turn.
        facing: Heading in degrees (presentation only).
        construction_timer: Turns left until construction completes.
        transform_target: Archetype a transformer will become.
    """

    uid: int
    archetype: Archetype
    owner: Faction
    position: int
    hp: int
    max_hp: int
    attack: int = 0
    range: float = 0.0
    min_range: float = 0.0
    move_points: int = 0
    max_move_points: int = 0
    attacks_remaining: int = 0
    max_attacks: int = 0
    facing: float = 0.0
    construction_timer: int = 0
    transform_target: Archetype | None = None

    @classmethod
    def from_stats(
        cls,
        uid: int,
        archetype: Archetype,
        stats: UnitStats,
        owner: Faction,
        position: int,
        facing: float = 0.0,
    ) -> Unit:
        """Create a unit with full hit points and full action pools."""
        return cls(
            uid=uid,
            archetype=archetype,
            owner=owner,
            position=position,
            hp=stats.hp,
            max_hp=stats.hp,
            attack=stats.attack,
            range=stats.range,
            min_range=stats.min_range,
            move_points=stats.max_move,
            max_move_points=stats.max_move,
            attacks_remaining=stats.max_attacks,
            max_attacks=stats.max_attacks,
            facing=facing,
        )

    @property
    def is_dead(self) -> bool:
        return self.hp <= 0

    @property
    def under_construction(self) -> bool:
        return self.construction_timer > 0

    @property
    def missing_hp(self) -> int:
        return self.max_hp - self.hp

    def spend_all(self) -> None:
        """Zero both action pools."""
        self.move_points = 0
        self.attacks_remaining = 0

    def refresh(self) -> None:
        """Restore action pools for a new turn.

        Structures have no movement pool and only regain their attacks.
        """
        if self.archetype not in STRUCTURES:
            self.move_points = self.max_move_points
        self.attacks_remaining = self.max_attacks


def transition(unit: Unit, archetype: Archetype, stats: UnitStats) -> Unit:
    """Allocate the record ``unit`` becomes when it turns into ``archetype``.

    Identity, owner, position and facing carry over; every stat comes
    from the new block.
    """
    return Unit.from_stats(
        uid=unit.uid,
        archetype=archetype,
        stats=stats,
        owner=unit.owner,
        position=unit.position,
        facing=unit.facing,
    )
