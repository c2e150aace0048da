"""
Attention Synthesis Engine
==========================

Produces tokens + sparse attention weights for a sentence (self-attention)
or a sentence pair (cross-attention).

Resolution order for every query:
1. Scripted scenario (demo inputs with hand-tuned patterns)
2. Oracle (external text-generation service)
3. Degraded generator (noise / uniform alignment, flagged as simulated)

Every result, degraded ones included, is cached under the exact input, so a
transient oracle failure stays in place for the life of the process rather
than flickering between simulated and real data.
"""

import logging
from typing import Hashable, Optional, Tuple

import numpy as np

from .cache import ResultCache
from .fallback import (
    CROSS_OFFLINE_EXPLANATION,
    OFFLINE_EXPLANATION,
    UNKNOWN_SOURCE,
    UNKNOWN_TARGET,
    degraded_self_matrix,
    uniform_alignment,
)
from .heuristic import find_cross_scenario, find_self_scenario
from .oracle import (
    CROSS_ATTENTION_SCHEMA,
    SELF_ATTENTION_SCHEMA,
    CrossAttentionPayload,
    MissingCredential,
    Oracle,
    OracleError,
    SelfAttentionPayload,
    alignment_prompt,
    as_matrix,
    invention_prompt,
    parse_payload,
    self_attention_prompt,
    translation_prompt,
)
from .types import (
    MATERIALIZE_THRESHOLD,
    ORIGIN_FALLBACK,
    ORIGIN_ORACLE,
    ORIGIN_SCRIPTED,
    CrossAttentionResult,
    SelfAttentionResult,
    alignment_weights,
    causal_weights,
    split_words,
    tokenize,
)

logger = logging.getLogger(__name__)


class _Sentinel:
    def __init__(self, name: str):
        self.name = name

    def __repr__(self) -> str:
        return f"<{self.name}>"


# Stand-ins for omitted inputs in cross-attention cache keys
DEFAULT = _Sentinel("default")
INVENT = _Sentinel("invent")


def _clean(text: Optional[str]) -> Optional[str]:
    """Treat None, "" and whitespace-only input as omitted."""
    if text is None or not text.strip():
        return None
    return text


class SynthesisEngine:
    """
    Owns the oracle client and the result cache.

    Args:
        oracle: Oracle client; None means "no credential" and routes every
                non-scripted query to the degraded generator
        cache: Result store (a fresh ResultCache when omitted)
        threshold: Materialization threshold for sparse weights
        rng: Random source for degraded noise

    Usage:
        engine = SynthesisEngine(oracle=GeminiOracle(api_key))
        result = await engine.synthesize_self_attention("O gato preto")
    """

    def __init__(
        self,
        oracle: Optional[Oracle] = None,
        cache: Optional[ResultCache] = None,
        threshold: float = MATERIALIZE_THRESHOLD,
        rng: Optional[np.random.Generator] = None,
    ):
        self.oracle = oracle
        self.cache = cache if cache is not None else ResultCache()
        self.threshold = threshold
        self._rng = rng if rng is not None else np.random.default_rng()

    async def _ask(self, prompt: str, schema: dict) -> str:
        if self.oracle is None:
            raise MissingCredential("No oracle configured")
        return await self.oracle.generate(prompt, schema)

    # =========================================================================
    # Self-Attention
    # =========================================================================

    async def synthesize_self_attention(self, sentence: str) -> SelfAttentionResult:
        """
        Build the self-attention view of a sentence.

        Raises:
            ValueError: if the sentence has no tokens
        """
        if not sentence or not sentence.split():
            raise ValueError("Sentence must contain at least one word")

        cached = self.cache.get(sentence)
        if cached is not None:
            return cached

        words = split_words(sentence)
        scenario = find_self_scenario(sentence)

        if scenario is not None:
            logger.info(f"Using scripted scenario '{scenario.name}'")
            matrix = scenario.build(sentence, words)
            explanation = scenario.explanation
            origin = ORIGIN_SCRIPTED
        else:
            try:
                matrix, explanation = await self._self_from_oracle(sentence, len(words))
                origin = ORIGIN_ORACLE
            except OracleError as e:
                logger.warning(
                    f"Self-attention oracle failed ({type(e).__name__}: {e}); "
                    "using simulated attention"
                )
                matrix = degraded_self_matrix(sentence, words, self._rng)
                explanation = OFFLINE_EXPLANATION
                origin = ORIGIN_FALLBACK

        result = SelfAttentionResult(
            tokens=tokenize(sentence, prefix="token"),
            weights=causal_weights(matrix, self.threshold),
            explanation=explanation,
            matrix=matrix,
            origin=origin,
        )
        return self.cache.put(sentence, result)

    async def _self_from_oracle(self, sentence: str, n: int) -> Tuple[np.ndarray, str]:
        text = await self._ask(self_attention_prompt(sentence), SELF_ATTENTION_SCHEMA)
        payload = parse_payload(text, SelfAttentionPayload)
        return as_matrix(payload.matrix, n, n), payload.explanation

    # =========================================================================
    # Cross-Attention
    # =========================================================================

    @staticmethod
    def cross_key(
        source: Optional[str],
        target: Optional[str],
        invent: bool = False,
    ) -> Hashable:
        source, target = _clean(source), _clean(target)
        fill = INVENT if invent and source is None and target is None else DEFAULT
        return (source or fill, target or fill)

    async def synthesize_cross_attention(
        self,
        source: Optional[str] = None,
        target: Optional[str] = None,
        invent: bool = False,
    ) -> CrossAttentionResult:
        """
        Build the cross-attention view of a translation pair.

        Args:
            source: Portuguese sentence (None for the built-in demo)
            target: English sentence (None to let the oracle translate)
            invent: With no inputs, ask the oracle for a brand new pair
                    instead of the built-in demo

        Returns:
            CrossAttentionResult whose weights go from target positions
            (source_index) to source positions (target_index)
        """
        source, target = _clean(source), _clean(target)
        key = self.cross_key(source, target, invent)

        cached = self.cache.get(key)
        if cached is not None:
            return cached

        inventing = key == (INVENT, INVENT)
        scenario = None if inventing else find_cross_scenario(source, target)
        explanation = None

        if scenario is not None:
            logger.info(f"Using scripted scenario '{scenario.name}'")
            source_text, target_text = scenario.texts(source, target)
            n_source, n_target = len(split_words(source_text)), len(split_words(target_text))
            alignment = scenario.alignment(n_target, n_source)
            explanation = scenario.explanation
            origin = ORIGIN_SCRIPTED
        else:
            try:
                source_text, target_text, alignment = await self._cross_from_oracle(source, target)
                origin = ORIGIN_ORACLE
            except OracleError as e:
                logger.warning(
                    f"Cross-attention oracle failed ({type(e).__name__}: {e}); "
                    "using uniform alignment"
                )
                source_text = source or UNKNOWN_SOURCE
                target_text = target or UNKNOWN_TARGET
                alignment = uniform_alignment(
                    len(split_words(target_text)), len(split_words(source_text))
                )
                explanation = CROSS_OFFLINE_EXPLANATION
                origin = ORIGIN_FALLBACK

        result = CrossAttentionResult(
            source=source_text,
            target=target_text,
            source_tokens=tokenize(source_text, prefix="source"),
            target_tokens=tokenize(target_text, prefix="target"),
            weights=alignment_weights(alignment, self.threshold),
            alignment=alignment,
            origin=origin,
            explanation=explanation,
        )
        return self.cache.put(key, result)

    async def _cross_from_oracle(
        self,
        source: Optional[str],
        target: Optional[str],
    ) -> Tuple[str, str, np.ndarray]:
        if source and target:
            prompt = alignment_prompt(source, target)
        elif source:
            prompt = translation_prompt(source)
        else:
            prompt = invention_prompt()

        text = await self._ask(prompt, CROSS_ATTENTION_SCHEMA)
        payload = parse_payload(text, CrossAttentionPayload)

        # Caller-supplied text wins over whatever the oracle echoed back;
        # a lone target has no prompt of its own, so it is replaced
        source_text = source or payload.source
        target_text = target if source and target else payload.target
        alignment = as_matrix(
            payload.alignment,
            len(split_words(target_text)),
            len(split_words(source_text)),
        )
        return source_text, target_text, alignment
