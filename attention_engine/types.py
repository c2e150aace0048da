"""
Token / Weight Data Model
=========================

Plain value types shared by every part of the engine.

LEARNING NOTES
--------------
- A Token is one whitespace-delimited word at a fixed position
- An AttentionWeight is a directed edge "source attends to target"
- Self-attention edges obey the causal mask: target_index <= source_index
- Cross-attention edges go from a target (generated) position to a source
  position, so source_index and target_index live in different sequences
"""

from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np


# Edges at or below this weight are never materialized
MATERIALIZE_THRESHOLD = 0.01

# Edges below this weight are not highlighted by the presentation layer
RENDER_THRESHOLD = 0.05

# Present in every explanation produced without the oracle
SIMULATED_MARKER = "Simulação"

ORIGIN_SCRIPTED = "scripted"
ORIGIN_ORACLE = "oracle"
ORIGIN_FALLBACK = "fallback"


@dataclass(frozen=True)
class Token:
    """A single word at a fixed position within its sequence."""
    id: str
    text: str
    index: int


@dataclass(frozen=True)
class AttentionWeight:
    """Sparse attention edge: source_index attends to target_index."""
    source_index: int
    target_index: int
    weight: float


def split_words(text: str) -> List[str]:
    """Split on whitespace runs, preserving order."""
    return text.split()


def tokenize(text: str, prefix: str = "token") -> List[Token]:
    """
    Turn text into Token objects with ids of the form ``{prefix}-{i}``.

    Example:
        >>> [t.id for t in tokenize("O gato", prefix="source")]
        ['source-0', 'source-1']
    """
    return [
        Token(id=f"{prefix}-{i}", text=word, index=i)
        for i, word in enumerate(split_words(text))
    ]


def causal_weights(
    matrix: np.ndarray,
    threshold: float = MATERIALIZE_THRESHOLD,
) -> List[AttentionWeight]:
    """
    Convert a self-attention matrix into sparse causal edges.

    Cells above the diagonal are discarded regardless of value, so
    oracle or fallback matrices that ignore the mask still yield valid edges.
    """
    weights = []
    for i, row in enumerate(matrix):
        for j, value in enumerate(row):
            if j > i:
                break
            if value > threshold:
                weights.append(AttentionWeight(i, j, float(value)))
    return weights


def alignment_weights(
    alignment: np.ndarray,
    threshold: float = MATERIALIZE_THRESHOLD,
) -> List[AttentionWeight]:
    """
    Convert a (target x source) alignment matrix into sparse edges.

    Re-indexes so that source_index is the target position t and
    target_index is the source position s.
    """
    weights = []
    for t, row in enumerate(alignment):
        for s, value in enumerate(row):
            if value > threshold:
                weights.append(AttentionWeight(t, s, float(value)))
    return weights


@dataclass
class SelfAttentionResult:
    """
    Output of self-attention synthesis.

    Attributes:
        tokens: Tokens of the sentence
        weights: Sparse causal edges above the materialization threshold
        explanation: Human-readable description (always non-empty)
        matrix: Dense N x N matrix the weights were derived from
        origin: Which generator produced it (scripted/oracle/fallback)
    """
    tokens: List[Token]
    weights: List[AttentionWeight]
    explanation: str
    matrix: np.ndarray = field(repr=False)
    origin: str = ORIGIN_SCRIPTED

    @property
    def degraded(self) -> bool:
        return self.origin == ORIGIN_FALLBACK


@dataclass
class CrossAttentionResult:
    """
    Output of cross-attention synthesis.

    alignment[t][s] is the confidence that target position t was generated
    by attending to source position s. Rows are not normalized.
    """
    source: str
    target: str
    source_tokens: List[Token]
    target_tokens: List[Token]
    weights: List[AttentionWeight]
    alignment: np.ndarray = field(repr=False)
    origin: str = ORIGIN_SCRIPTED
    explanation: Optional[str] = None

    @property
    def degraded(self) -> bool:
        return self.origin == ORIGIN_FALLBACK
