"""Shared fixtures — scripted LLM provider and test tools."""

from __future__ import annotations

import asyncio
import json

import pytest
from langchain_core.messages import AIMessageChunk
from langchain_core.messages.tool import tool_call_chunk
from langchain_core.tools import tool

from chatgraph.agent.tools import ToolRegistry
from chatgraph.core.config import Config
from chatgraph.core.providers.base import BaseLLMProvider


def text_reply(text: str, pieces: int = 2) -> list[AIMessageChunk]:
    """Split ``text`` into ``pieces`` streamed chunks."""
    size = max(1, -(-len(text) // pieces))
    return [AIMessageChunk(content=text[i:i + size]) for i in range(0, len(text), size)]


def tool_reply(name: str, args: dict, call_id: str = "call_1", text: str = "") -> list[AIMessageChunk]:
    """One streamed chunk declaring a single tool call."""
    return [
        AIMessageChunk(
            content=text,
            tool_call_chunks=[
                tool_call_chunk(name=name, args=json.dumps(args), id=call_id, index=0)
            ],
        )
    ]


class ScriptedProvider(BaseLLMProvider):
    """Replays scripted replies; the last reply repeats once the script runs out.

    A reply is a list of chunks, or an exception to raise. ``calls`` records
    the prompt of every model call, ``tools`` the tool definitions passed.
    """

    def __init__(self, replies: list) -> None:
        self.replies = list(replies)
        self.calls: list[list] = []
        self.tools: list = []

    def _next_reply(self):
        return self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]

    async def astream(self, messages, model, tools=None, **kwargs):
        self.calls.append(list(messages))
        self.tools.append(tools)
        reply = self._next_reply()
        if isinstance(reply, Exception):
            raise reply
        for chunk in reply:
            yield chunk


class GatedProvider(ScriptedProvider):
    """Emits the first chunk, then waits for ``gate`` before the rest."""

    def __init__(self, replies: list) -> None:
        super().__init__(replies)
        self.entered = asyncio.Event()
        self.gate = asyncio.Event()

    async def astream(self, messages, model, tools=None, **kwargs):
        self.calls.append(list(messages))
        reply = self._next_reply()
        self.entered.set()
        for i, chunk in enumerate(reply):
            if i == 1:
                await self.gate.wait()
            yield chunk
        if len(reply) < 2:
            await self.gate.wait()


@pytest.fixture
def cfg():
    return Config(assistant={"system_prompt": "You are TestBot.", "max_steps": 25})


@pytest.fixture
def registry():
    @tool
    def lookup(x: int) -> str:
        """Look up the value stored under x."""
        return "42"

    @tool
    def explode(x: int) -> str:
        """Always fails."""
        raise ValueError("boom")

    reg = ToolRegistry()
    reg.register_group("test", [lookup, explode])
    return reg
