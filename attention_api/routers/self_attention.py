"""
Self-Attention Router

API endpoints for the masked self-attention view of a single sentence.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from attention_engine.heuristic import PRESET_SENTENCES

from ..services import session_manager

logger = logging.getLogger(__name__)


# =============================================================================
# Pydantic Models
# =============================================================================

class TokenData(BaseModel):
    id: str
    text: str
    index: int


class WeightData(BaseModel):
    """Edge: source_index attends to target_index."""
    source_index: int
    target_index: int
    weight: float


class FocusData(BaseModel):
    """Hover/pin state and what it highlights."""
    hovered: Optional[int] = None
    active: Optional[int] = None
    reference: Optional[int] = None
    intensities: List[float]
    highlighted: List[WeightData]


class AnalyzeRequest(BaseModel):
    sentence: str


class PositionRequest(BaseModel):
    index: Optional[int] = None  # None = pointer left / unpin


class SelfAttentionView(BaseModel):
    tokens: List[TokenData]
    weights: List[WeightData]
    explanation: Optional[str] = None
    degraded: bool = False
    focus: FocusData


class PresetsResponse(BaseModel):
    sentences: List[str]


# =============================================================================
# Router
# =============================================================================

router = APIRouter(prefix="/api/self-attention", tags=["self-attention"])


@router.get("/presets", response_model=PresetsResponse)
async def get_presets():
    """Suggested sentences, starting with the scripted demo."""
    return PresetsResponse(sentences=PRESET_SENTENCES)


@router.post("/analyze", response_model=SelfAttentionView)
async def analyze(request: AnalyzeRequest):
    """
    Synthesize causal self-attention for a sentence.

    Demo sentences use scripted patterns, other sentences go to the oracle,
    and the result is simulated (and says so) when the oracle is unavailable.
    """
    session = session_manager.self_attention
    try:
        await session.analyze(request.sentence)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()


@router.get("/view", response_model=SelfAttentionView)
async def get_view():
    """Current sentence, weights and focus."""
    return session_manager.self_attention.view()


@router.post("/hover", response_model=SelfAttentionView)
async def hover(request: PositionRequest):
    session = session_manager.self_attention
    try:
        session.hover(request.index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()


@router.post("/select", response_model=SelfAttentionView)
async def select(request: PositionRequest):
    """Pin a token (selecting the pinned token again unpins it)."""
    session = session_manager.self_attention
    try:
        session.select(request.index)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return session.view()
