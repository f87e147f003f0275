"""Conversation history shaping — trimming, tool-pairing check, cache hints."""

from __future__ import annotations

import json
import math
from collections.abc import Sequence
from typing import Any

from langchain_core.messages import (
    AIMessage,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from loguru import logger

from chatgraph.agent.errors import TrimmingInvariantError

CACHE_CONTROL = {"type": "ephemeral"}


# ── Sizing ───────────────────────────────────────────────────


def message_size(msg: BaseMessage) -> int:
    """Approximate token count of one message (1 token ~ 4 chars, min 1)."""
    text = _content_text(msg.content)
    if isinstance(msg, AIMessage) and msg.tool_calls:
        text += json.dumps(
            [{"name": tc["name"], "args": tc["args"]} for tc in msg.tool_calls],
            default=str,
        )
    return max(1, math.ceil(len(text) / 4))


def history_size(messages: Sequence[BaseMessage]) -> int:
    return sum(message_size(m) for m in messages)


# ── Trimming ─────────────────────────────────────────────────


def trim_history(messages: Sequence[BaseMessage], budget: int) -> list[BaseMessage]:
    """Bound history to ``budget`` approximate tokens.

    Policy:
        - input already within budget → returned unchanged
        - a leading system message is always kept
        - whole messages are dropped oldest-first until the rest fits,
          but never past the most recent user message
        - the window is re-anchored so it starts on a user message,
          which discards orphaned assistant/tool bookkeeping
        - if the anchored turn still does not fit, its earlier
          assistant/tool blocks are dropped oldest-first; the last
          block is always kept so the model sees its latest tool results

    Parameters
    ----------
    messages : Sequence[BaseMessage]
        Conversation, optionally starting with a SystemMessage.
    budget : int
        Approximate token budget (see ``message_size``).

    Returns
    -------
    list[BaseMessage]
        Trimmed copy; input is never mutated.
    """
    messages = list(messages)
    if history_size(messages) <= budget:
        return messages

    system: list[BaseMessage] = []
    rest = messages
    if rest and isinstance(rest[0], SystemMessage):
        system, rest = rest[:1], rest[1:]

    # The latest user message is the floor: it is never dropped
    floor = len(rest)
    for i in range(len(rest) - 1, -1, -1):
        if isinstance(rest[i], HumanMessage):
            floor = i
            break

    remaining = budget - history_size(system)
    size = history_size(rest)
    start = 0
    while start < floor and size > remaining:
        size -= message_size(rest[start])
        start += 1

    while start < len(rest) and not isinstance(rest[start], HumanMessage):
        start += 1

    window = rest[start:]
    if window and history_size(window) > remaining:
        window = _drop_tool_blocks(window, remaining)

    window = system + window
    logger.debug(
        f"History trimmed: {len(messages)} → {len(window)} messages "
        f"(budget={budget}, size={history_size(window)})"
    )
    return window


def _drop_tool_blocks(window: list[BaseMessage], remaining: int) -> list[BaseMessage]:
    """Shrink ``[anchor, *tail]`` by whole assistant blocks (an assistant
    message plus its tool results), oldest first, keeping the last one."""
    anchor, tail = window[:1], window[1:]
    blocks: list[list[BaseMessage]] = []
    for msg in tail:
        if isinstance(msg, ToolMessage) and blocks:
            blocks[-1].append(msg)
        else:
            blocks.append([msg])

    size = history_size(window)
    while len(blocks) > 1 and size > remaining:
        size -= history_size(blocks.pop(0))
    return anchor + [m for block in blocks for m in block]


def ensure_tool_pairing(messages: Sequence[BaseMessage]) -> None:
    """Raise TrimmingInvariantError unless every tool message answers the
    assistant message directly before its tool block."""
    declared: set[str] = set()
    for i, msg in enumerate(messages):
        if isinstance(msg, ToolMessage):
            if msg.tool_call_id not in declared:
                raise TrimmingInvariantError(
                    f"Tool message at position {i} has no matching tool call "
                    f"(tool_call_id={msg.tool_call_id!r})"
                )
            declared.discard(msg.tool_call_id)
        elif isinstance(msg, AIMessage):
            declared = {tc["id"] for tc in msg.tool_calls if tc.get("id")}
        else:
            declared = set()


# ── Cache hints ──────────────────────────────────────────────


def add_cache_hints(messages: Sequence[BaseMessage]) -> list[BaseMessage]:
    """Mark messages as reuse-eligible for provider-side prompt caching.

    Marked: the leading system message, the most recent message and the
    second-most-recent user message. Marked messages are copies whose text
    content becomes a single ``cache_control`` block; semantics are unchanged.
    """
    hinted = list(messages)
    if not hinted:
        return hinted

    targets = {len(hinted) - 1}
    if isinstance(hinted[0], SystemMessage):
        targets.add(0)

    seen = 0
    for i in range(len(hinted) - 1, -1, -1):
        if isinstance(hinted[i], HumanMessage):
            seen += 1
            if seen == 2:
                targets.add(i)
                break

    for i in targets:
        hinted[i] = _with_cache_control(hinted[i])
    return hinted


def _with_cache_control(msg: BaseMessage) -> BaseMessage:
    # Empty text blocks are rejected by providers; leave those untouched
    if not isinstance(msg.content, str) or not msg.content:
        return msg
    block = {"type": "text", "text": msg.content, "cache_control": dict(CACHE_CONTROL)}
    return msg.model_copy(update={"content": [block]})


def _content_text(content: Any) -> str:
    if isinstance(content, str):
        return content
    parts = []
    for block in content or []:
        if isinstance(block, str):
            parts.append(block)
        elif isinstance(block, dict):
            parts.append(str(block.get("text", "")))
    return "".join(parts)
