"""FastAPI application factory."""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from chatgraph import __version__
from chatgraph.agent.runner import GraphRunner
from chatgraph.api.routes import router as core_router
from chatgraph.core.config.loader import load_config


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: init Config → GraphRunner. Shutdown: log."""
    # Tests may inject state before startup
    if getattr(app.state, "runner", None) is None:
        config = load_config()
        app.state.config = config
        app.state.runner = GraphRunner(config)

    logger.info(f"chatgraph API started — model: {app.state.config.assistant.model}")
    yield
    logger.info("chatgraph API shutting down")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="chatgraph API",
        description="Streaming tool-calling agent API",
        version=__version__,
        lifespan=lifespan,
    )

    # Middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routers
    app.include_router(core_router)

    return app


app = create_app()
