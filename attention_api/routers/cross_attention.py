"""
Cross-Attention Router

API endpoints for the token-by-token translation view: load a scenario,
drive playback, and inspect which source words each generated word attends to.
"""

import asyncio
import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect
from pydantic import BaseModel

from ..services import session_manager
from .self_attention import FocusData, PositionRequest, TokenData, WeightData

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================

class ScenarioRequest(BaseModel):
    source: Optional[str] = None  # None = built-in demo pair
    target: Optional[str] = None  # None = let the oracle translate
    invent: bool = False  # With no source/target, ask the oracle for a new pair


class PlaybackData(BaseModel):
    state: str  # "idle", "playing", "paused", "complete"
    generated_count: int
    total: int
    is_playing: bool
    is_complete: bool
    active_target_index: Optional[int] = None


class CrossAttentionView(BaseModel):
    source: Optional[str] = None
    target: Optional[str] = None
    source_tokens: List[TokenData]
    target_tokens: List[TokenData]  # revealed so far
    weights: List[WeightData]
    explanation: Optional[str] = None
    degraded: bool = False
    playback: PlaybackData
    focus: FocusData


# =============================================================================
# Router
# =============================================================================

router = APIRouter(prefix="/api/cross-attention", tags=["cross-attention"])


@router.post("/scenario", response_model=CrossAttentionView)
async def load_scenario(request: ScenarioRequest):
    """Fetch a translation pair and reset playback to the start."""
    session = session_manager.cross_attention
    await session.load_scenario(request.source, request.target, invent=request.invent)
    return session.view()


@router.get("/state", response_model=CrossAttentionView)
async def get_state():
    return session_manager.cross_attention.view()


@router.post("/start", response_model=CrossAttentionView)
async def start():
    """Start or resume playback (restarts from scratch when complete)."""
    session = session_manager.cross_attention
    session.playback.start()
    return session.view()


@router.post("/pause", response_model=CrossAttentionView)
async def pause():
    session = session_manager.cross_attention
    session.playback.pause()
    return session.view()


@router.post("/step", response_model=CrossAttentionView)
async def step():
    """Reveal one token. Ignored while playing or when complete."""
    session = session_manager.cross_attention
    if not session.playback.step():
        logger.info(f"Step ignored in state '{session.playback.state}'")
    return session.view()


@router.post("/reset", response_model=CrossAttentionView)
async def reset():
    session = session_manager.cross_attention
    session.playback.reset()
    return session.view()


@router.post("/hover", response_model=CrossAttentionView)
async def hover(request: PositionRequest):
    session = session_manager.cross_attention
    try:
        session.hover(request.index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()


@router.post("/select", response_model=CrossAttentionView)
async def select(request: PositionRequest):
    session = session_manager.cross_attention
    try:
        session.select(request.index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()


# =============================================================================
# WebSocket - mounted separately in main.py
# =============================================================================

async def _answer_pings(websocket: WebSocket):
    while True:
        data = await websocket.receive_text()
        if data == "ping":
            await websocket.send_text("pong")


async def websocket_playback(websocket: WebSocket):
    """WebSocket endpoint streaming cross-attention state on every change."""
    await websocket.accept()
    session = session_manager.cross_attention
    queue = session.subscribe()
    logger.info(f"WebSocket client connected. Total: {len(session.subscribers)}")

    # Reading runs alongside sending so a disconnect is noticed immediately
    receiver = asyncio.create_task(_answer_pings(websocket))

    try:
        await websocket.send_json({"type": "state", **session.view()})

        while True:
            getter = asyncio.create_task(queue.get())
            done, _ = await asyncio.wait(
                {getter, receiver},
                timeout=30.0,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if receiver in done:
                getter.cancel()
                receiver.result()  # re-raises WebSocketDisconnect
            if getter in done:
                await websocket.send_json(getter.result())
            else:
                getter.cancel()
                await websocket.send_json({"type": "heartbeat"})

    except WebSocketDisconnect:
        logger.info("WebSocket client disconnected")
    finally:
        receiver.cancel()
        session.unsubscribe(queue)
