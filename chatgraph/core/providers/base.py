"""Base LLM provider — strategy pattern interface."""

from __future__ import annotations

import abc
from collections.abc import AsyncIterator, Sequence
from typing import Any

from langchain_core.messages import AIMessageChunk, BaseMessage


class BaseLLMProvider(abc.ABC):
    """Abstract base for streaming LLM providers."""

    @abc.abstractmethod
    def astream(
        self,
        messages: Sequence[BaseMessage],
        model: str,
        tools: list[dict[str, Any]] | None = None,
        temperature: float = 0.7,
        max_tokens: int = 4096,
        api_base: str | None = None,
        timeout: float | None = None,
    ) -> AsyncIterator[AIMessageChunk]:
        """Stream a chat completion as AIMessageChunks.

        Text arrives as chunk content; tool calls arrive as
        ``tool_call_chunks`` keyed by index. Summing the chunks yields the
        complete message.
        """
        ...
