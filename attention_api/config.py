"""
API Configuration

Central configuration for the visualizer API server.

The oracle credential is read from GEMINI_API_KEY (or API_KEY). Leaving it
unset is a supported mode: every non-scripted query is then answered by the
degraded generator with a "simulated" explanation.
"""

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, List, Optional

import yaml

from attention_engine.oracle import DEFAULT_MODEL
from attention_engine.playback import PLAYBACK_INTERVAL
from attention_engine.types import MATERIALIZE_THRESHOLD, RENDER_THRESHOLD


@dataclass
class APIConfig:
    """API server configuration."""

    # Server settings
    host: str = "0.0.0.0"
    port: int = 8000

    # CORS settings
    cors_origins: List[str] = None

    # Oracle settings
    api_key: Optional[str] = None
    oracle_model: str = DEFAULT_MODEL

    # Attention settings
    playback_interval: float = PLAYBACK_INTERVAL
    materialize_threshold: float = MATERIALIZE_THRESHOLD
    render_threshold: float = RENDER_THRESHOLD

    def __post_init__(self):
        if self.cors_origins is None:
            self.cors_origins = [
                "http://localhost:3000",
                "http://localhost:5173",
            ]
        assert self.playback_interval > 0, \
            f"playback_interval must be positive, got {self.playback_interval}"
        assert 0.0 <= self.materialize_threshold <= self.render_threshold <= 1.0, \
            "thresholds must satisfy 0 <= materialize <= render <= 1"

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, **overrides) -> "APIConfig":
        """Build a config with the credential taken from the environment."""
        api_key = os.environ.get("GEMINI_API_KEY") or os.environ.get("API_KEY")
        overrides.setdefault("api_key", api_key or None)
        return cls(**overrides)

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary (credential excluded)."""
        d = asdict(self)
        d.pop("api_key")
        return d

    def save_yaml(self, path: str) -> None:
        """Save configuration to YAML file."""
        with open(path, 'w') as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def load_yaml(cls, path: str) -> "APIConfig":
        """
        Load configuration from YAML file.

        The credential is never stored in the file; it still comes from the
        environment.
        """
        with open(path, 'r') as f:
            d = yaml.safe_load(f) or {}
        known = {f.name for f in fields(cls)} - {"api_key"}
        unknown = set(d) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return cls.from_env(**d)


# Global config instance
config = APIConfig.from_env()
