"""Serialization — plain-dict views of game state and events for JSON.

Renderers get the same data whether they read ``/api/state`` or follow
the ``/ws`` event stream.
"""

from __future__ import annotations

import dataclasses
from typing import TYPE_CHECKING, Any

from neotactics.models.tile import Tile
from neotactics.models.unit import Unit

if TYPE_CHECKING:
    from neotactics.models.game_state import GameState


def event_to_dict(event: object) -> dict[str, Any]:
    """``{"type": <EventClass>, **fields}`` for a frozen event dataclass."""
    payload = dataclasses.asdict(event)
    payload["type"] = type(event).__name__
    return payload


def tile_to_dict(tile: Tile) -> dict[str, Any]:
    data: dict[str, Any] = {"index": tile.index, "kind": tile.kind.value}
    if tile.deposit is not None:
        data["deposit"] = dataclasses.asdict(tile.deposit)
    return data


def unit_to_dict(unit: Unit) -> dict[str, Any]:
    return {
        "uid": unit.uid,
        "archetype": unit.archetype.value,
        "owner": unit.owner.value,
        "position": unit.position,
        "hp": unit.hp,
        "max_hp": unit.max_hp,
        "attack": unit.attack,
        "range": unit.range,
        "min_range": unit.min_range,
        "move_points": unit.move_points,
        "max_move_points": unit.max_move_points,
        "attacks_remaining": unit.attacks_remaining,
        "max_attacks": unit.max_attacks,
        "facing": unit.facing,
        "construction_timer": unit.construction_timer,
        "transform_target": unit.transform_target.value if unit.transform_target else None,
    }


def state_to_dict(state: GameState) -> dict[str, Any]:
    """Full snapshot of a match."""
    return {
        "size": state.grid.size,
        "turn": state.turn_number,
        "active_faction": state.active_faction.value,
        "resources": {f.value: v for f, v in state.resources.items()},
        "selected_id": state.selected_id,
        "builder_mode": state.builder_mode,
        "game_over": state.game_over,
        "winner": state.winner.value if state.winner else None,
        "busy": state.busy,
        "tiles": [tile_to_dict(t) for t in state.grid],
        "units": [unit_to_dict(u) for u in state.units],
    }
