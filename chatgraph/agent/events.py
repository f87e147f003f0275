"""Stream events and the SSE wire encoder.

Wire format: one ``data: <json>\\n\\n`` frame per event, ``connected`` first,
``done`` last, followed by the literal terminator ``data: [DONE]\\n\\n``.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from typing import Annotated, Any, Literal, Union

from loguru import logger
from pydantic import BaseModel, Field, TypeAdapter

SSE_DATA_PREFIX = "data: "
SSE_LINE_DELIMITER = "\n\n"
SSE_DONE_FRAME = f"{SSE_DATA_PREFIX}[DONE]{SSE_LINE_DELIMITER}"


# ════════════════════════════════════════════════════════════
# EVENTS
# ════════════════════════════════════════════════════════════


class ConnectedEvent(BaseModel):
    type: Literal["connected"] = "connected"


class TokenEvent(BaseModel):
    type: Literal["token"] = "token"
    token: str


class ToolStartEvent(BaseModel):
    type: Literal["tool_start"] = "tool_start"
    tool: str
    input: Any = None


class ToolEndEvent(BaseModel):
    type: Literal["tool_end"] = "tool_end"
    tool: str
    output: Any = None


class ErrorEvent(BaseModel):
    type: Literal["error"] = "error"
    error: str


class DoneEvent(BaseModel):
    type: Literal["done"] = "done"


StreamEvent = Annotated[
    Union[
        ConnectedEvent,
        TokenEvent,
        ToolStartEvent,
        ToolEndEvent,
        ErrorEvent,
        DoneEvent,
    ],
    Field(discriminator="type"),
]

_event_adapter: TypeAdapter[StreamEvent] = TypeAdapter(StreamEvent)


def parse_event(data: str | bytes | dict[str, Any]) -> StreamEvent:
    """Parse a JSON payload (or dict) back into a typed event."""
    if isinstance(data, dict):
        return _event_adapter.validate_python(data)
    return _event_adapter.validate_json(data)


# ════════════════════════════════════════════════════════════
# ENCODER
# ════════════════════════════════════════════════════════════


def encode_event(event: StreamEvent) -> str:
    """Serialize one event as a self-delimited SSE frame."""
    return f"{SSE_DATA_PREFIX}{event.model_dump_json()}{SSE_LINE_DELIMITER}"


async def encode_stream(events: AsyncGenerator[StreamEvent, None]) -> AsyncIterator[str]:
    """Encode an event stream into SSE frames, enforcing frame order.

    ``connected`` is always the first frame and ``done`` + ``[DONE]`` the last,
    even when the producer omits them or raises. Events after ``done`` are
    dropped.
    """
    started = False
    try:
        # Closing this generator (client disconnect) closes the producer too
        async with aclosing(events) as stream:
            async for event in stream:
                if not started:
                    started = True
                    if not isinstance(event, ConnectedEvent):
                        yield encode_event(ConnectedEvent())
                elif isinstance(event, ConnectedEvent):
                    continue
                yield encode_event(event)
                if isinstance(event, DoneEvent):
                    yield SSE_DONE_FRAME
                    return
    except Exception as e:
        logger.exception(f"Event stream failed: {e}")
        if not started:
            yield encode_event(ConnectedEvent())
        yield encode_event(ErrorEvent(error=str(e) or type(e).__name__))

    if not started:
        yield encode_event(ConnectedEvent())
    yield encode_event(DoneEvent())
    yield SSE_DONE_FRAME
