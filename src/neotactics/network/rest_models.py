"""Pydantic request/response models for the REST bridge.

Every command endpoint answers with a ``CommandResponse``: ``success``
is False and ``reason`` holds the rejection text when the engine turned
the command down.
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


# ===================================================================
# Match
# ===================================================================


class NewMatchRequest(BaseModel):
    size: Optional[int] = Field(default=None, ge=6, le=64)
    seed: Optional[int] = None


# ===================================================================
# Commands
# ===================================================================


class MoveRequest(BaseModel):
    unit_id: int
    dest: int


class AttackRequest(BaseModel):
    attacker_id: int
    defender_id: int


class BuilderModeRequest(BaseModel):
    mode: Literal["wall", "repair"]


class TileRequest(BaseModel):
    tile: int


class RepairRequest(BaseModel):
    target_id: int


class TransformRequest(BaseModel):
    target: Literal["turret", "missile_turret"]


class BuildUnitRequest(BaseModel):
    archetype: str


class CommandResponse(BaseModel):
    success: bool
    reason: str = ""
