"""
API Server for Attention Theater

Main FastAPI application serving both visualization modes:
- Self-attention: causal attention inside one sentence
- Cross-attention: token-by-token translation with source alignment

Usage:
    uvicorn attention_api.main:app --reload --port 8000

    Or directly:
    python -m attention_api.main
"""

import argparse
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .config import config
from .routers import cross_attention_router, self_attention_router
from .routers.cross_attention import websocket_playback
from .services import session_manager

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# =============================================================================
# Pydantic Models
# =============================================================================

class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str
    modes: list[str]


class StatusResponse(BaseModel):
    oracle_configured: bool
    oracle_model: str
    cached_results: int
    cache_hits: int
    cache_misses: int
    playback_state: Optional[str] = None


# =============================================================================
# Application Lifespan
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Attention Theater API server...")
    if not session_manager.settings.has_credential:
        logger.info("Running offline: answers for non-demo input will be simulated")
    yield
    logger.info("Shutting down API server...")

    # Stop the playback timer
    session_manager.close()


# =============================================================================
# Application Factory
# =============================================================================

def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Attention Theater API",
        description="""
Attention data for a visualizer of transformer attention over Portuguese and
English sentences. No model is run: patterns are scripted for demo inputs,
requested from Gemini otherwise, and simulated when Gemini is unavailable.

## Modes

- **Self-attention** (`/api/self-attention/*`): masked attention within a sentence
- **Cross-attention** (`/api/cross-attention/*`): translation alignment with playback

## WebSocket

- `/ws/playback`: cross-attention state after every playback change
        """,
        version=VERSION,
        lifespan=lifespan,
    )

    # Configure CORS for frontend
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Mount routers
    app.include_router(self_attention_router)
    app.include_router(cross_attention_router)

    return app


app = create_app()


# =============================================================================
# Root Endpoints
# =============================================================================

@app.get("/api/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="ok",
        timestamp=datetime.now().isoformat(),
        version=VERSION,
        modes=["self-attention", "cross-attention"],
    )


@app.get("/api/status", response_model=StatusResponse)
async def status():
    """Oracle configuration and cache counters."""
    return StatusResponse(**session_manager.get_status())


@app.get("/")
async def root():
    """Root endpoint with API info."""
    return {
        "name": "Attention Theater API",
        "version": VERSION,
        "docs": "/docs",
        "modes": {
            "self_attention": "/api/self-attention",
            "cross_attention": "/api/cross-attention",
        },
    }


# =============================================================================
# WebSocket Endpoint
# =============================================================================

@app.websocket("/ws/playback")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for playback state updates."""
    await websocket_playback(websocket)


# =============================================================================
# Main Entry Point
# =============================================================================

def main():
    """Run the server."""
    import uvicorn

    parser = argparse.ArgumentParser(description="Start the Attention Theater API server")
    parser.add_argument('--host', default=config.host, help='Host to bind to')
    parser.add_argument('--port', type=int, default=config.port, help='Port to bind to')
    parser.add_argument('--reload', action='store_true', help='Enable auto-reload')

    args = parser.parse_args()

    uvicorn.run(
        "attention_api.main:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


if __name__ == '__main__':
    main()
