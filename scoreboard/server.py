"""
scoreboard/server.py - FastAPI live scoreboard server.

Live channels:
    WS     /ws/display          Passive viewer (scoreboard screens)
    WS     /ws/admin            Control channel: send commands, get broadcasts

Read-only HTTP:
    GET    /health              Server health check
    GET    /state               Current state snapshot
    GET    /matches             Finished matches, oldest first
    GET    /matches/{id}        One finished match
"""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Path, Request, WebSocket, WebSocketDisconnect
from pydantic import BaseModel
from starlette.middleware.cors import CORSMiddleware

from ringside.config import RingsideConfig
from ringside.errors import RingsideError, StoreUnavailable, ValidationError

from .commands import dispatch
from .db import MAX_MATCH_ID, MatchHistoryStore
from .publisher import BroadcastPublisher
from .session import MatchSession

logger = logging.getLogger(__name__)

KEEPALIVE_SECONDS = 30.0


# ======================================================================
# Response Models
# ======================================================================


class StateResponse(BaseModel):
    remainingSeconds: int
    nameA: str
    nameB: str
    scoreA: int
    scoreB: int
    round: int
    phase: str
    running: bool
    paused: bool
    viewMode: str
    queues: dict[str, list[str]]


class MatchRecordResponse(BaseModel):
    id: int
    nameA: str
    nameB: str
    scoreA: int
    scoreB: int
    phase: str
    createdAt: str


class HealthResponse(BaseModel):
    status: str
    subscribers: int
    view_mode: str
    match_status: str
    running: bool
    dropped_messages: int


# ======================================================================
# App
# ======================================================================


def create_app(config: RingsideConfig | None = None) -> FastAPI:
    """Build the scoreboard app. Session and store live for the lifespan."""
    config = config or RingsideConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        store = MatchHistoryStore(config.server.db_path)
        publisher = BroadcastPublisher()
        session = MatchSession(store, publisher, config.match, config.progression)
        app.state.session = session
        logger.info(f"Match history store initialized: {config.server.db_path}")
        _log_startup_config(config)

        yield

        await session.close()
        await publisher.close()
        store.close()
        app.state.session = None

    app = FastAPI(title="Ringside Scoreboard", lifespan=lifespan)

    # Displays are usually served from a different origin
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_routes(app)
    return app


def _log_startup_config(config: RingsideConfig) -> None:
    """Log the match setup so operators can verify it."""
    logger.info("=" * 50)
    logger.info("Scoreboard startup config:")
    logger.info(f"  Round length: {config.match.round_seconds}s | Tick: {config.match.tick_interval}s")
    logger.info(f"  Default phase: {config.match.default_phase}")
    for phase, destination in config.progression.items():
        logger.info(f"  Progression: {phase} -> {destination}")
    logger.info("=" * 50)


def get_session(app: FastAPI) -> MatchSession:
    session = getattr(app.state, "session", None)
    assert session is not None, "Session not initialized"
    return session


def _error_message(error: RingsideError) -> dict[str, Any]:
    return {"type": "error", "code": error.code, "message": error.message}


async def _receive_frame(websocket: WebSocket) -> str | None:
    """Next text frame, or None for a binary frame. Raises on disconnect."""
    message = await websocket.receive()
    if message["type"] == "websocket.disconnect":
        raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))
    return message.get("text")


# ======================================================================
# Endpoints
# ======================================================================


def _register_routes(app: FastAPI) -> None:

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request) -> dict[str, Any]:
        """Server health check."""
        session = get_session(request.app)
        return {
            "status": "ok",
            "subscribers": session.publisher.subscriber_count,
            "view_mode": session.machine.view_mode.value,
            "match_status": session.machine.status.value,
            "running": session.timer.running,
            "dropped_messages": session.publisher.dropped_messages,
        }

    @app.get("/state", response_model=StateResponse)
    async def get_state(request: Request) -> dict[str, Any]:
        """Current snapshot, same shape as the update-display broadcast."""
        return get_session(request.app).snapshot()

    @app.get("/matches", response_model=list[MatchRecordResponse])
    async def list_matches(request: Request) -> list[dict[str, Any]]:
        """Finished matches, oldest first."""
        session = get_session(request.app)
        try:
            async with session.lock:
                return await asyncio.to_thread(session.store.find_all_ordered_by_created_asc)
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=e.message)

    @app.get("/matches/{match_id}", response_model=MatchRecordResponse)
    async def get_match(
        request: Request, match_id: int = Path(ge=1, le=MAX_MATCH_ID)
    ) -> dict[str, Any]:
        """One finished match."""
        session = get_session(request.app)
        try:
            async with session.lock:
                record = await asyncio.to_thread(session.store.get, match_id)
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=e.message)
        if record is None:
            raise HTTPException(status_code=404, detail="Match not found")
        return record

    @app.websocket("/ws/display")
    async def websocket_display(websocket: WebSocket):
        """Passive viewer. Receives every broadcast, sends nothing useful."""
        session = get_session(websocket.app)
        sub = await session.publisher.connect(websocket, role="display")

        try:
            await session.handshake(sub)
            while True:
                # Viewers don't send anything, but we need to notice disconnects
                try:
                    await asyncio.wait_for(_receive_frame(websocket), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    session.publisher.send(sub, {"type": "ping"})
        except WebSocketDisconnect:
            pass
        finally:
            session.publisher.disconnect(sub)

    @app.websocket("/ws/admin")
    async def websocket_admin(websocket: WebSocket):
        """Control channel. Every frame is a command; errors go back to this socket only."""
        session = get_session(websocket.app)
        sub = await session.publisher.connect(websocket, role="admin")

        try:
            await session.handshake(sub)
            while True:
                raw = await _receive_frame(websocket)
                try:
                    if raw is None:
                        raise ValidationError("Binary frames are not accepted, send JSON text")
                    try:
                        message = json.loads(raw)
                    except json.JSONDecodeError as e:
                        raise ValidationError(f"Frame is not valid JSON: {e}") from e
                    await dispatch(session, message)
                except RingsideError as e:
                    logger.warning(f"Command rejected ({e.code}): {e.message}")
                    session.publisher.send(sub, _error_message(e))
        except WebSocketDisconnect:
            pass
        finally:
            session.publisher.disconnect(sub)
