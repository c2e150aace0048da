"""
API Services

Shared services for the visualizer API.
"""

from .sessions import (
    CrossAttentionSession,
    SelfAttentionSession,
    SessionManager,
    session_manager,
)

__all__ = [
    "SessionManager",
    "SelfAttentionSession",
    "CrossAttentionSession",
    "session_manager",
]
