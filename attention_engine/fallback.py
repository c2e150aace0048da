"""
Degraded-Mode Generators

Used when the oracle is missing, unreachable or answers with garbage.
The output is low-fidelity but always renderable, and every explanation
says that it was simulated.
"""

from typing import List, Optional

import numpy as np

from .types import SIMULATED_MARKER


OFFLINE_EXPLANATION = (
    f"{SIMULATED_MARKER} (API Indisponível): Exibindo padrões de atenção "
    "simulados para demonstração."
)

CROSS_OFFLINE_EXPLANATION = (
    f"{SIMULATED_MARKER} (API Indisponível): Alinhamento uniforme de baixa "
    "confiança."
)

UNKNOWN_SOURCE = "Entrada desconhecida."
UNKNOWN_TARGET = "Unknown input."

# Upper bound for noise cells
NOISE_SCALE = 0.3

UNIFORM_ALIGNMENT = 0.1


def noise_matrix(n: int, rng: Optional[np.random.Generator] = None) -> np.ndarray:
    """(n, n) matrix of uniform noise in [0, NOISE_SCALE)."""
    rng = rng if rng is not None else np.random.default_rng()
    return rng.random((n, n)) * NOISE_SCALE


def pillars_matrix(words: List[str]) -> np.ndarray:
    """
    Fixed pattern for the "Conhecimento, paixão ..." sentence: a faint
    background with "pilares" looking back at the three pillars.
    """
    n = len(words)
    matrix = np.full((n, n), 0.05)
    pilares = next((i for i, w in enumerate(words) if "pilares" in w), None)
    if pilares is not None:
        for column in (0, 1, 4):
            if column < n:
                matrix[pilares, column] = 0.8
    return matrix


def degraded_self_matrix(
    sentence: str,
    words: List[str],
    rng: Optional[np.random.Generator] = None,
) -> np.ndarray:
    if sentence.startswith("Conhecimento"):
        return pillars_matrix(words)
    return noise_matrix(len(words), rng)


def uniform_alignment(n_target: int, n_source: int) -> np.ndarray:
    return np.full((n_target, n_source), UNIFORM_ALIGNMENT)
