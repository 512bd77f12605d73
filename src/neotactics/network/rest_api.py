"""REST bridge — FastAPI application exposing one local game session.

Commands go through REST; the renderer follows the match through the
``/ws`` WebSocket, which pushes every engine event as JSON.

Usage::

    from neotactics.network.rest_api import create_app

    app = create_app(session)
    # serve with uvicorn
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Optional

from fastapi import FastAPI, HTTPException, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from neotactics.models.unit import Unit
from neotactics.network.rest_models import (
    AttackRequest,
    BuilderModeRequest,
    BuildUnitRequest,
    CommandResponse,
    MoveRequest,
    NewMatchRequest,
    RepairRequest,
    TileRequest,
    TransformRequest,
)
from neotactics.network.serialization import event_to_dict, state_to_dict

if TYPE_CHECKING:
    from neotactics.engine.game_session import GameSession
    from neotactics.models.game_state import GameState

log = logging.getLogger(__name__)


def _log_runner_failure(task: asyncio.Task) -> None:
    """Done-callback for the background sequence runner."""
    if task.cancelled():
        return
    try:
        task.result()
    except Exception:
        log.exception("Sequence runner failed")


def create_app(session: "GameSession", pace: bool = True, time_scale: float = 1.0) -> FastAPI:
    """Factory: create and return a configured FastAPI application.

    Args:
        session: The game session every endpoint operates on.
        pace: Play accepted sequences out in real time in a background
            task.  When False they are drained before the response.
        time_scale: Multiplier on pause delays when pacing.
    """
    app = FastAPI(title="Neo-Tactics", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    runner: Optional[asyncio.Task] = None

    def _state() -> "GameState":
        if session.state is None:
            raise HTTPException(status_code=409, detail="No match running")
        return session.state

    def _unit(state: "GameState", uid: int) -> Unit:
        unit = state.units.get(uid)
        if unit is None:
            raise HTTPException(status_code=404, detail=f"Unit {uid} not found")
        return unit

    def _respond(reason: Optional[str]) -> dict[str, Any]:
        nonlocal runner
        if reason is None and not session.sequencer.idle:
            if not pace:
                session.run_until_idle()
            elif runner is None or runner.done():
                runner = asyncio.create_task(session.sequencer.run_async(time_scale))
                runner.add_done_callback(_log_runner_failure)
        return {"success": reason is None, "reason": reason or ""}

    # =================================================================
    # Match
    # =================================================================

    @app.get("/api/state")
    async def get_state() -> dict[str, Any]:
        return state_to_dict(_state())

    @app.post("/api/match")
    async def new_match(body: NewMatchRequest) -> dict[str, Any]:
        if not session.sequencer.idle:
            raise HTTPException(status_code=409, detail="Sequence in progress")
        state = session.new_match(size=body.size, seed=body.seed)
        return state_to_dict(state)

    # =================================================================
    # Commands
    # =================================================================

    @app.post("/api/tile", response_model=CommandResponse)
    async def select_tile(body: TileRequest) -> dict[str, Any]:
        return _respond(session.commands.select_tile(_state(), body.tile))

    @app.post("/api/move", response_model=CommandResponse)
    async def move(body: MoveRequest) -> dict[str, Any]:
        state = _state()
        return _respond(session.commands.issue_move(state, _unit(state, body.unit_id), body.dest))

    @app.post("/api/attack", response_model=CommandResponse)
    async def attack(body: AttackRequest) -> dict[str, Any]:
        state = _state()
        return _respond(session.commands.issue_attack(
            state, _unit(state, body.attacker_id), _unit(state, body.defender_id),
        ))

    @app.post("/api/builder-mode", response_model=CommandResponse)
    async def builder_mode(body: BuilderModeRequest) -> dict[str, Any]:
        return _respond(session.commands.activate_builder_mode(_state(), body.mode))

    @app.post("/api/build-wall", response_model=CommandResponse)
    async def build_wall(body: TileRequest) -> dict[str, Any]:
        return _respond(session.commands.execute_build_wall(_state(), body.tile))

    @app.post("/api/repair", response_model=CommandResponse)
    async def repair(body: RepairRequest) -> dict[str, Any]:
        state = _state()
        return _respond(session.commands.execute_repair(state, _unit(state, body.target_id)))

    @app.post("/api/transform/builder", response_model=CommandResponse)
    async def transform_builder(body: TransformRequest) -> dict[str, Any]:
        return _respond(session.commands.transform_builder(_state(), body.target))

    @app.post("/api/transform/harvester", response_model=CommandResponse)
    async def transform_harvester() -> dict[str, Any]:
        return _respond(session.commands.transform_harvester(_state()))

    @app.post("/api/build", response_model=CommandResponse)
    async def build_unit(body: BuildUnitRequest) -> dict[str, Any]:
        return _respond(session.commands.build_unit(_state(), body.archetype))

    @app.post("/api/end-turn", response_model=CommandResponse)
    async def end_turn() -> dict[str, Any]:
        return _respond(session.commands.end_turn(_state()))

    # =================================================================
    # Event stream
    # =================================================================

    @app.websocket("/ws")
    async def websocket_endpoint(ws: WebSocket) -> None:
        """Push a snapshot, then every bus event, to one renderer."""
        await ws.accept()
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

        def _forward(event: object) -> None:
            queue.put_nowait(event_to_dict(event))

        async def _pump() -> None:
            while True:
                await ws.send_json(await queue.get())

        session.event_bus.on_any(_forward)
        log.info("Renderer connected")
        if session.state is not None:
            await ws.send_json({"type": "Snapshot", "state": state_to_dict(session.state)})
        pump = asyncio.create_task(_pump())
        try:
            # Incoming frames are ignored; reading only detects the disconnect.
            while True:
                await ws.receive_text()
        except WebSocketDisconnect:
            log.info("Renderer disconnected")
        finally:
            pump.cancel()
            session.event_bus.off_any(_forward)

    return app
