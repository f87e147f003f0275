"""FastAPI dependency injection — pull singletons from app.state."""

from __future__ import annotations

from fastapi import Request

from chatgraph.agent.runner import GraphRunner


def get_runner(request: Request) -> GraphRunner:
    """Get GraphRunner singleton from app state."""
    return request.app.state.runner
