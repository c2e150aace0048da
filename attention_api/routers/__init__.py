"""
API Routers

Route handlers for each visualization mode.
"""

from .self_attention import router as self_attention_router
from .cross_attention import router as cross_attention_router

__all__ = ["self_attention_router", "cross_attention_router"]
