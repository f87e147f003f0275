"""LiteLLM provider — streams completions as LangChain AIMessageChunks."""

from __future__ import annotations

import json
import os
from collections.abc import AsyncIterator, Sequence
from typing import Any

import litellm
from langchain_core.messages import (
    AIMessage,
    AIMessageChunk,
    BaseMessage,
    HumanMessage,
    SystemMessage,
    ToolMessage,
)
from langchain_core.messages.tool import tool_call_chunk
from loguru import logger

from chatgraph.core.config.schema import Config
from chatgraph.core.providers.base import BaseLLMProvider

# Suppress litellm noise
litellm.suppress_debug_info = True


class LiteLLMProvider(BaseLLMProvider):
    """LiteLLM-backed provider (openai/*, anthropic/*, openrouter/*, ...)."""

    def __init__(self, config: Config) -> None:
        self._setup_keys(config)

    async def astream(
        self,
        messages: Sequence[BaseMessage],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        api_base: str | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[AIMessageChunk]:
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": [message_to_dict(m) for m in messages],
            "temperature": temperature,
            "max_tokens": max_tokens,
            "stream": True,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if api_base:
            kwargs["api_base"] = api_base
        if timeout:
            kwargs["timeout"] = timeout

        response = await litellm.acompletion(**kwargs)
        seen: set[int] = set()
        async for raw in response:
            chunk = self._to_chunk(raw, seen)
            if chunk is not None:
                yield chunk

    @staticmethod
    def _to_chunk(raw: Any, seen: set[int]) -> AIMessageChunk | None:
        """Convert one litellm stream delta → AIMessageChunk.

        Tool-call id and name are only taken from the first delta of each
        index; later deltas carry argument fragments. ``seen`` tracks the
        indices already started within this stream.
        """
        if not raw.choices:
            return None
        delta = raw.choices[0].delta

        chunks = []
        for tc in getattr(delta, "tool_calls", None) or []:
            index = tc.index if tc.index is not None else 0
            fn = tc.function
            first = index not in seen
            seen.add(index)
            chunks.append(
                tool_call_chunk(
                    name=getattr(fn, "name", None) if first else None,
                    args=getattr(fn, "arguments", None) or "",
                    id=tc.id if first else None,
                    index=index,
                )
            )

        content = getattr(delta, "content", None) or ""
        if not content and not chunks:
            return None
        return AIMessageChunk(content=content, tool_call_chunks=chunks)

    @staticmethod
    def _setup_keys(config: Config) -> None:
        """Set env vars for LiteLLM from config."""
        for env, val in [
            ("ANTHROPIC_API_KEY", config.providers.anthropic.api_key),
            ("OPENAI_API_KEY", config.providers.openai.api_key),
            ("OPENROUTER_API_KEY", config.providers.openrouter.api_key),
            ("DEEPSEEK_API_KEY", config.providers.deepseek.api_key),
            ("GROQ_API_KEY", config.providers.groq.api_key),
            ("GEMINI_API_KEY", config.providers.gemini.api_key),
        ]:
            if val:
                os.environ.setdefault(env, val)
        logger.debug("LiteLLM provider keys configured")


def message_to_dict(msg: BaseMessage) -> dict[str, Any]:
    """Convert LangChain message to dict for litellm."""
    if isinstance(msg, HumanMessage):
        return {"role": "user", "content": msg.content}
    elif isinstance(msg, AIMessage):
        d: dict[str, Any] = {"role": "assistant", "content": msg.content}
        if msg.tool_calls:
            d["tool_calls"] = [
                {
                    "id": tc["id"],
                    "type": "function",
                    "function": {"name": tc["name"], "arguments": json.dumps(tc["args"])},
                }
                for tc in msg.tool_calls
            ]
        return d
    elif isinstance(msg, ToolMessage):
        return {
            "role": "tool",
            "tool_call_id": msg.tool_call_id,
            "content": msg.content,
        }
    elif isinstance(msg, SystemMessage):
        return {"role": "system", "content": msg.content}
    else:
        return {"role": "user", "content": str(msg.content)}
