"""
Session Service

Holds the state the presentation layer interacts with: the synthesis engine,
the current self-attention sentence, the current cross-attention scenario
and its playback. There is exactly one session per mode per process.
"""

import asyncio
import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from attention_engine import (
    AttentionFocus,
    CrossAttentionResult,
    GeminiOracle,
    PlaybackController,
    PlaybackState,
    SelfAttentionResult,
    SynthesisEngine,
)
from attention_engine.oracle import Oracle
from attention_engine.playback import PLAYBACK_INTERVAL, Ticker

from ..config import APIConfig, config

logger = logging.getLogger(__name__)


def _focus_view(focus: AttentionFocus, n_candidates: int) -> Dict[str, Any]:
    return {
        "hovered": focus.hovered,
        "active": focus.active,
        "reference": focus.reference,
        "intensities": focus.intensities(n_candidates),
        "highlighted": [asdict(w) for w in focus.highlighted_edges()],
    }


class SelfAttentionSession:
    """The sentence currently shown in self-attention mode."""

    def __init__(self, engine: SynthesisEngine, render_threshold: float):
        self.engine = engine
        self.result: Optional[SelfAttentionResult] = None
        self.focus = AttentionFocus(render_threshold=render_threshold)

    async def analyze(self, sentence: str) -> SelfAttentionResult:
        result = await self.engine.synthesize_self_attention(sentence)
        self.result = result
        self.focus.set_weights(result.weights)
        return result

    def _check_index(self, index: Optional[int]):
        if index is None:
            return
        if self.result is None:
            raise ValueError("No sentence analyzed yet")
        if not 0 <= index < len(self.result.tokens):
            raise ValueError(f"Token index {index} out of range [0, {len(self.result.tokens)})")

    def hover(self, index: Optional[int]):
        self._check_index(index)
        self.focus.hover(index)

    def select(self, index: Optional[int]):
        self._check_index(index)
        self.focus.select(index)

    def view(self) -> Dict[str, Any]:
        result = self.result
        if result is None:
            return {"tokens": [], "weights": [], "explanation": None, "degraded": False,
                    "focus": _focus_view(self.focus, 0)}
        return {
            "tokens": [asdict(t) for t in result.tokens],
            "weights": [asdict(w) for w in result.weights],
            "explanation": result.explanation,
            "degraded": result.degraded,
            "focus": _focus_view(self.focus, len(result.tokens)),
        }


class CrossAttentionSession:
    """
    The translation pair currently shown in cross-attention mode.

    The pinned token follows the playback: every revealed token becomes
    active, and a manual select pins a different revealed token.
    """

    def __init__(
        self,
        engine: SynthesisEngine,
        render_threshold: float,
        ticker: Optional[Ticker] = None,
        interval: float = PLAYBACK_INTERVAL,
    ):
        self.engine = engine
        self.result: Optional[CrossAttentionResult] = None
        self.focus = AttentionFocus(render_threshold=render_threshold)
        self.playback = PlaybackController(ticker=ticker, interval=interval)
        self.playback.add_listener(self._on_playback)
        self.subscribers: List[asyncio.Queue] = []

    def _on_playback(self, state: PlaybackState):
        self.focus.active = state.active_target_index
        if self.subscribers:
            payload = {"type": "state", **self.view()}
            for queue in self.subscribers:
                queue.put_nowait(payload)

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        self.subscribers.append(queue)
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        if queue in self.subscribers:
            self.subscribers.remove(queue)

    async def load_scenario(
        self,
        source: Optional[str] = None,
        target: Optional[str] = None,
        invent: bool = False,
    ) -> CrossAttentionResult:
        # No timer or partial reveal may survive into the next scenario
        self.playback.pause()
        self.playback.reset()

        result = await self.engine.synthesize_cross_attention(source, target, invent=invent)
        self.result = result
        self.focus.set_weights(result.weights)
        self.playback.load(result.target_tokens)
        return result

    def hover(self, index: Optional[int]):
        if index is not None and not any(t.index == index for t in self.playback.revealed):
            raise ValueError(f"Target token {index} has not been generated yet")
        self.focus.hover(index)

    def select(self, index: Optional[int]):
        self.playback.select(index)

    def close(self):
        self.playback.close()

    def view(self) -> Dict[str, Any]:
        result = self.result
        n_source = len(result.source_tokens) if result else 0
        return {
            "source": result.source if result else None,
            "target": result.target if result else None,
            "source_tokens": [asdict(t) for t in result.source_tokens] if result else [],
            "target_tokens": [asdict(t) for t in self.playback.revealed],
            "weights": [asdict(w) for w in result.weights] if result else [],
            "explanation": result.explanation if result else None,
            "degraded": result.degraded if result else False,
            "playback": self.playback.snapshot().to_dict(),
            "focus": _focus_view(self.focus, n_source),
        }


class SessionManager:
    """
    Builds the engine from configuration and owns both sessions.

    Usage:
        manager = SessionManager()
        await manager.self_attention.analyze("O gato preto")
        await manager.cross_attention.load_scenario()
    """

    def __init__(self, settings: Optional[APIConfig] = None):
        self.configure(settings or config)

    def configure(
        self,
        settings: APIConfig,
        oracle: Optional[Oracle] = None,
        ticker: Optional[Ticker] = None,
    ):
        """(Re)build engine and sessions. Any running playback is stopped."""
        if getattr(self, "cross_attention", None) is not None:
            self.cross_attention.close()

        self.settings = settings
        if oracle is None:
            oracle = GeminiOracle(api_key=settings.api_key, model=settings.oracle_model)
        if not settings.has_credential:
            logger.warning("No oracle API key configured; non-demo inputs will be simulated")

        self.engine = SynthesisEngine(oracle=oracle, threshold=settings.materialize_threshold)
        self.self_attention = SelfAttentionSession(self.engine, settings.render_threshold)
        self.cross_attention = CrossAttentionSession(
            self.engine,
            settings.render_threshold,
            ticker=ticker,
            interval=settings.playback_interval,
        )

    def get_status(self) -> dict:
        return {
            "oracle_configured": self.settings.has_credential,
            "oracle_model": self.settings.oracle_model,
            "cached_results": len(self.engine.cache),
            "cache_hits": self.engine.cache.hits,
            "cache_misses": self.engine.cache.misses,
            "playback_state": self.cross_attention.playback.state,
        }

    def close(self):
        self.cross_attention.close()


# Global session manager instance
session_manager = SessionManager()
