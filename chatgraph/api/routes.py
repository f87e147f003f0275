"""Core API routes — streaming chat, thread state, health."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from loguru import logger

from chatgraph import __version__
from chatgraph.agent.errors import TrimmingInvariantError
from chatgraph.agent.events import encode_stream
from chatgraph.agent.history import ensure_tool_pairing
from chatgraph.agent.runner import GraphRunner
from chatgraph.api.deps import get_runner
from chatgraph.api.models import (
    ChatRequestBody,
    HealthResponse,
    ThreadMessage,
    ThreadResponse,
)

router = APIRouter()

_SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


@router.post("/chat/stream")
async def chat_stream(
    body: ChatRequestBody,
    runner: GraphRunner = Depends(get_runner),
):
    """
    Streaming chat via Server-Sent Events (SSE).

    Frames (``data: <json>\\n\\n``):
      {"type": "connected"}                                — first frame
      {"type": "token", "token": "..."}                    — model text
      {"type": "tool_start", "tool": "...", "input": ...}  — tool call begins
      {"type": "tool_end", "tool": "...", "output": ...}   — tool result
      {"type": "error", "error": "..."}                    — run failed
      {"type": "done"}                                     — last event
    followed by the literal ``data: [DONE]``.
    """
    logger.debug(f"Chat stream: thread={body.chat_id}, seed={len(body.messages)}")
    seed = [m.to_message() for m in body.messages]
    try:
        ensure_tool_pairing(seed)
    except TrimmingInvariantError as e:
        logger.warning(f"Rejected seed history: thread={body.chat_id}: {e}")
        raise HTTPException(status_code=422, detail=str(e)) from e

    events = runner.stream(
        body.chat_id,
        [HumanMessage(content=body.new_message)],
        seed_history=seed,
    )
    return StreamingResponse(
        encode_stream(events),
        media_type="text/event-stream",
        headers=_SSE_HEADERS,
    )


@router.get("/threads/{thread_id}", response_model=ThreadResponse)
async def get_thread(thread_id: str, runner: GraphRunner = Depends(get_runner)):
    """Return the committed messages of a thread."""
    if thread_id not in runner.store:
        raise HTTPException(status_code=404, detail="Thread not found")
    messages = runner.store.get(thread_id)
    return ThreadResponse(
        thread_id=thread_id,
        messages=[_to_thread_message(m) for m in messages],
    )


@router.delete("/threads/{thread_id}")
async def delete_thread(thread_id: str, runner: GraphRunner = Depends(get_runner)):
    """Forget a thread's checkpoint (e.g. after the chat is deleted)."""
    if not runner.store.delete(thread_id):
        raise HTTPException(status_code=404, detail="Thread not found")
    return {"status": "deleted", "thread_id": thread_id}


@router.get("/health", response_model=HealthResponse)
async def health(runner: GraphRunner = Depends(get_runner)):
    """Health check."""
    return HealthResponse(
        status="ok",
        agent_ready=True,
        version=__version__,
        threads=len(runner.store),
    )


def _to_thread_message(msg: BaseMessage) -> ThreadMessage:
    content = msg.content if isinstance(msg.content, str) else str(msg.content)
    if isinstance(msg, HumanMessage):
        return ThreadMessage(role="user", content=content)
    if isinstance(msg, AIMessage):
        return ThreadMessage(
            role="assistant",
            content=content,
            tool_calls=[
                {"id": tc["id"], "name": tc["name"], "args": tc["args"]}
                for tc in msg.tool_calls
            ],
        )
    if isinstance(msg, ToolMessage):
        return ThreadMessage(role="tool", content=content, tool_call_id=msg.tool_call_id)
    return ThreadMessage(role=msg.type, content=content)
