# Attention Theater - Synthesis Engine
#
# Produces attention data for the visualizer without running a model.
#
# Structure:
#   attention_engine/
#   ├── types.py      - Token / AttentionWeight value types, matrix -> edges
#   ├── heuristic.py  - Causal locality matrix and scripted demo scenarios
#   ├── oracle.py     - Gemini client, response schemas, oracle errors
#   ├── fallback.py   - Degraded generators used when the oracle fails
#   ├── cache.py      - Per-engine result cache
#   ├── engine.py     - SynthesisEngine (scripted -> oracle -> degraded)
#   ├── playback.py   - Token-by-token reveal state machine
#   └── intensity.py  - Hover/pin resolution and edge highlighting

from .cache import ResultCache
from .engine import SynthesisEngine
from .intensity import AttentionFocus
from .oracle import (
    GeminiOracle,
    MissingCredential,
    OracleError,
    OracleMalformedResponse,
    OracleUnreachable,
)
from .playback import AsyncioTicker, ManualTicker, PlaybackController, PlaybackState
from .types import (
    MATERIALIZE_THRESHOLD,
    RENDER_THRESHOLD,
    SIMULATED_MARKER,
    AttentionWeight,
    CrossAttentionResult,
    SelfAttentionResult,
    Token,
)

__all__ = [
    "ResultCache",
    "SynthesisEngine",
    "AttentionFocus",
    "GeminiOracle",
    "OracleError",
    "MissingCredential",
    "OracleUnreachable",
    "OracleMalformedResponse",
    "PlaybackController",
    "PlaybackState",
    "AsyncioTicker",
    "ManualTicker",
    "Token",
    "AttentionWeight",
    "SelfAttentionResult",
    "CrossAttentionResult",
    "MATERIALIZE_THRESHOLD",
    "RENDER_THRESHOLD",
    "SIMULATED_MARKER",
]
