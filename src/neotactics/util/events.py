"""Typed event bus — the observation surface of the simulation core.

Renderers, audio and the network bridge subscribe here.  Every event is
a frozen dataclass of plain values (ids, tile indices, strings) so that
subscribers never hold references into live game state.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar, Type

T = TypeVar("T")


# -- Board events --------------------------------------------------------

@dataclass(frozen=True)
class UnitsChanged:
    """The set of live units (or one of their records) changed."""
    reason: str = ""


@dataclass(frozen=True)
class TilesChanged:
    """One or more tiles changed kind or deposit."""
    tiles: tuple[int, ...] = ()


@dataclass(frozen=True)
class UnitMoved:
    """A unit advanced a single grid step."""
    unit_id: int
    from_tile: int
    to_tile: int
    facing: float


# -- Economy / turn events -----------------------------------------------

@dataclass(frozen=True)
class ResourcesChanged:
    """A faction's resource total changed."""
    owner: str
    value: int
    turn: int


@dataclass(frozen=True)
class HarvestCollected:
    """A harvester extracted tiberium during an income pass."""
    owner: str
    tile: int
    amount: int


@dataclass(frozen=True)
class IncomeCollected:
    """A faction's income pass finished; ``amount`` is everything it earned."""
    owner: str
    amount: int
    turn: int


@dataclass(frozen=True)
class TurnChanged:
    """The active faction flipped."""
    turn: int
    faction: str


# -- Feedback events -----------------------------------------------------

@dataclass(frozen=True)
class FloatingText:
    """Short text popping up over a tile (damage, income, rejections)."""
    tile: int
    text: str
    color: str


@dataclass(frozen=True)
class UnitSelected:
    """The player selected a unit."""
    unit_id: int


@dataclass(frozen=True)
class UnitDeselected:
    """The player selection was cleared."""


# -- Combat / lifecycle events -------------------------------------------

@dataclass(frozen=True)
class CombatOccurred:
    """One attack was resolved."""
    attacker_id: int
    defender_id: int
    damage: int
    died: bool
    attacker_owner: str = ""
    defender_owner: str = ""
    reactive: bool = False


@dataclass(frozen=True)
class ConstructionCompleted:
    """A pending wall or transformer finished its timer."""
    unit_id: int
    archetype: str


@dataclass(frozen=True)
class GameEnded:
    """A base was destroyed; the match is over."""
    winner: str
    summary: dict[str, Any] = field(default_factory=dict)


# -- Event bus -----------------------------------------------------------

class EventBus:
    """Simple synchronous event bus with typed events.

    Usage:
        bus = EventBus()
        bus.on(CombatOccurred, lambda e: print(e.damage))
        bus.emit(CombatOccurred(attacker_id=1, defender_id=2, damage=7, died=False))
    """

    def __init__(self) -> None:
        self._handlers: dict[type, list[Callable[[Any], None]]] = defaultdict(list)
        self._any_handlers: list[Callable[[Any], None]] = []

    def on(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Register a handler for an event type."""
        self._handlers[event_type].append(handler)

    def off(self, event_type: Type[T], handler: Callable[[T], None]) -> None:
        """Unregister a handler."""
        handlers = self._handlers.get(event_type, [])
        if handler in handlers:
            handlers.remove(handler)

    def on_any(self, handler: Callable[[Any], None]) -> None:
        """Register a handler that receives every event (used by bridges)."""
        self._any_handlers.append(handler)

    def off_any(self, handler: Callable[[Any], None]) -> None:
        if handler in self._any_handlers:
            self._any_handlers.remove(handler)

    def emit(self, event: object) -> None:
        """Emit an event to all registered handlers."""
        for handler in list(self._handlers.get(type(event), [])):
            handler(event)
        for handler in list(self._any_handlers):
            handler(event)

    def clear(self) -> None:
        """Remove all handlers."""
        self._handlers.clear()
        self._any_handlers.clear()
