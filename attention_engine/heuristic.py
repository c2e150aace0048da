"""
Heuristic Attention Generator
=============================

Deterministic attention matrices for the scripted demo sentences.

LEARNING NOTES
--------------
Real causal attention heads tend to show:
- A strong diagonal (tokens attend to themselves)
- Locality: recent tokens get more weight than distant ones
- Rows that sum to 1 (softmax output is a probability distribution)

The base matrix reproduces those three properties. Scripted scenarios then
overwrite a handful of cells to tell a specific story, for example how the
second "manga" (fruit) looks at "comia" instead of "costureira".

Overridden cells are assigned literally and the row is NOT renormalized, so
rows touched by a scenario no longer sum exactly to 1.
"""

import zlib
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np

from .types import SIMULATED_MARKER


# Scripted patterns are simulated too, and their explanations say so
SCRIPTED_PREFIX = f"{SIMULATED_MARKER} roteirizada (demonstração): "

# Jitter added to every causal cell before normalization
JITTER_SCALE = 0.15

# Extra score for the diagonal (self-attention)
SELF_BONUS = 0.8


def sentence_rng(sentence: str) -> np.random.Generator:
    """RNG seeded from a stable checksum of the sentence."""
    return np.random.default_rng(zlib.crc32(sentence.encode("utf-8")))


def locality_score(i: int, j: int) -> float:
    """Inverse-distance score: 1.0 for self, 0.5 for neighbours, ..."""
    return 1.0 / (abs(i - j) + 1)


def build_causal_matrix(n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """
    Build a row-normalized causal attention matrix of shape (n, n).

    Args:
        n: Number of tokens
        rng: Source of jitter (a fixed default seed when omitted)

    Returns:
        Matrix where row i is a distribution over positions 0..i and every
        cell above the diagonal is 0.
    """
    rng = rng if rng is not None else np.random.default_rng(0)
    matrix = np.zeros((n, n))

    for i in range(n):
        for j in range(i + 1):
            score = locality_score(i, j) + rng.random() * JITTER_SCALE
            if i == j:
                score += SELF_BONUS
            matrix[i, j] = score
        matrix[i, : i + 1] /= matrix[i, : i + 1].sum()

    return matrix


def locate(words: Sequence[str], word: str, start: int = 0) -> Optional[int]:
    """
    Index of the first word at or after `start` whose lowercase form
    contains `word`, or None.
    """
    for i in range(max(start, 0), len(words)):
        if word in words[i].lower():
            return i
    return None


def boost(matrix: np.ndarray, source: Optional[int], target: Optional[int], value: float) -> bool:
    """
    Overwrite matrix[source, target] with `value`.

    No-op (returns False) when either endpoint is missing or when the edge
    would look into the future (target > source).
    """
    if source is None or target is None or target > source:
        return False
    matrix[source, target] = value
    return True


# =============================================================================
# Scripted Scenarios
# =============================================================================

@dataclass
class SelfAttentionScenario:
    """A demo sentence family with fixed overrides on the base matrix."""
    name: str
    triggers: Tuple[str, ...]
    explanation: str
    apply: Callable[[np.ndarray, List[str]], None]

    def matches(self, sentence: str) -> bool:
        return any(trigger in sentence for trigger in self.triggers)

    def build(self, sentence: str, words: List[str]) -> np.ndarray:
        matrix = build_causal_matrix(len(words), sentence_rng(sentence))
        self.apply(matrix, words)
        return matrix


def _homonym_overrides(matrix: np.ndarray, words: List[str]):
    costureira = locate(words, "costureira")
    consertou = locate(words, "consertou")
    manga1 = locate(words, "manga")
    camisa = locate(words, "camisa")
    comia = locate(words, "comia")
    manga2 = locate(words, "manga", manga1 + 1) if manga1 is not None else None
    doce = locate(words, "doce")

    # manga (sleeve) looks at the tailor and the verb
    if manga1 is not None:
        boost(matrix, manga1, costureira, 0.45)
        boost(matrix, manga1, consertou, 0.4)

    boost(matrix, camisa, manga1, 0.6)
    boost(matrix, comia, costureira, 0.3)

    # manga (fruit) looks at "comia" and away from the tailor
    if manga2 is not None:
        boost(matrix, manga2, comia, 0.7)
        if costureira is not None:
            matrix[manga2, costureira] *= 0.1

    boost(matrix, doce, manga2, 0.6)


HOMONYM_SCENARIO = SelfAttentionScenario(
    name="homonym-manga",
    triggers=("costureira consertou a manga", "manga da camisa"),
    explanation=(
        SCRIPTED_PREFIX
        + "Visualização completa da atenção: Cada palavra atende a todas as "
        "anteriores (máscara causal), com pesos maiores em conexões "
        "gramaticais e semânticas relevantes."
    ),
    apply=_homonym_overrides,
)

SELF_ATTENTION_SCENARIOS: List[SelfAttentionScenario] = [HOMONYM_SCENARIO]

# Suggested inputs: the homonym demo, a second homonym for the oracle,
# the "pilares" fallback pattern, and a plain sentence
PRESET_SENTENCES: List[str] = [
    "A costureira consertou a manga da camisa enquanto comia uma manga doce.",
    "O banco de madeira estava no jardim perto do banco financeiro.",
    "Conhecimento, paixão e muito trabalho são os pilares fundamentais.",
    "A inteligência artificial transforma o mundo rapidamente.",
]


@dataclass
class CrossAttentionScenario:
    """
    A hand-authored translation pair with its alignment.

    links are (target_index, source_index, strength) triples.
    """
    name: str
    source: str
    target: str
    links: List[Tuple[int, int, float]]
    triggers: Tuple[str, ...] = ()
    is_default: bool = False
    keep_caller_text: bool = False
    explanation: Optional[str] = None

    def matches(self, source: Optional[str], target: Optional[str]) -> bool:
        if self.is_default and not source and not target:
            return True
        return bool(source) and any(trigger in source for trigger in self.triggers)

    def texts(self, source: Optional[str], target: Optional[str]) -> Tuple[str, str]:
        if self.keep_caller_text:
            return source or self.source, target or self.target
        return self.source, self.target

    def alignment(self, n_target: int, n_source: int) -> np.ndarray:
        matrix = np.zeros((n_target, n_source))
        for t, s, strength in self.links:
            if t < n_target and s < n_source:
                matrix[t, s] = strength
        return matrix


# Adjective-noun inversion: "preto" comes after "gato", "black" before "cat"
BLACK_CAT_SCENARIO = CrossAttentionScenario(
    name="black-cat",
    source="O gato preto saltou sobre o muro alto .",
    target="The black cat jumped over the high wall .",
    links=[
        (0, 0, 0.95),
        (1, 2, 0.95),
        (2, 1, 0.95),
        (3, 3, 0.95),
        (4, 4, 0.95),
        (5, 5, 0.95),
        (6, 7, 0.95),
        (7, 6, 0.95),
        (8, 8, 0.95),
    ],
    triggers=("gato preto",),
    is_default=True,
    explanation=(
        SCRIPTED_PREFIX
        + "Inversão de adjetivos: para gerar \"black\" antes de \"cat\", o "
        "modelo precisa olhar para \"preto\", que vem depois de \"gato\"."
    ),
)

KNOWLEDGE_SCENARIO = CrossAttentionScenario(
    name="knowledge-passion",
    source=(
        "Conhecimento, paixão e muito trabalho são os pilares fundamentais "
        "que sustentam qualquer grande realização."
    ),
    target=(
        "Knowledge, passion, and hard work are the fundamental pillars "
        "that sustain any great achievement."
    ),
    links=[
        (0, 0, 0.95),
        (1, 1, 0.95),
        (2, 2, 0.9),
        (3, 3, 0.7),
        (3, 4, 0.5),
        (4, 4, 0.95),
        (5, 5, 0.9),
        (6, 6, 0.9),
        (7, 8, 0.95),
        (8, 7, 0.95),
        (9, 9, 0.9),
        (10, 10, 0.95),
        (11, 11, 0.95),
        (12, 12, 0.95),
        (13, 13, 0.95),
    ],
    triggers=("Conhecimento, paixão",),
    keep_caller_text=True,
    explanation=(
        SCRIPTED_PREFIX
        + "Alinhamento quase monotônico; \"fundamental pillars\" inverte a "
        "ordem de \"pilares fundamentais\"."
    ),
)

CROSS_ATTENTION_SCENARIOS: List[CrossAttentionScenario] = [
    BLACK_CAT_SCENARIO,
    KNOWLEDGE_SCENARIO,
]


def find_self_scenario(sentence: str) -> Optional[SelfAttentionScenario]:
    for scenario in SELF_ATTENTION_SCENARIOS:
        if scenario.matches(sentence):
            return scenario
    return None


def find_cross_scenario(
    source: Optional[str],
    target: Optional[str],
) -> Optional[CrossAttentionScenario]:
    for scenario in CROSS_ATTENTION_SCENARIOS:
        if scenario.matches(source, target):
            return scenario
    return None
