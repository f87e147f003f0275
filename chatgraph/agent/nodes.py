"""Graph nodes — agent, tools — and the router between them."""

from __future__ import annotations

import asyncio
from enum import StrEnum
from typing import Any

from langchain_core.messages import AIMessage, AIMessageChunk, SystemMessage, ToolMessage
from langgraph.config import get_stream_writer
from loguru import logger

from chatgraph.agent.errors import ModelInvocationError, ToolExecutionError
from chatgraph.agent.events import TokenEvent, ToolEndEvent, ToolStartEvent
from chatgraph.agent.history import add_cache_hints, ensure_tool_pairing, trim_history
from chatgraph.agent.state import AgentState
from chatgraph.agent.tools import ToolRegistry
from chatgraph.core.config.schema import Config
from chatgraph.core.providers.base import BaseLLMProvider


class RouteDecision(StrEnum):
    TOOLS = "tools"
    AGENT = "agent"
    TERMINATE = "terminate"


def make_nodes(config: Config, provider: BaseLLMProvider, registry: ToolRegistry):
    """
    Create node functions closed over config, provider, and tools.

    Returns dict of {node_name: callable} for graph registration.
    """
    assistant = config.assistant

    async def agent(state: AgentState) -> dict[str, Any]:
        """Trim history, call the model and stream its tokens."""
        writer = get_stream_writer()

        prompt = list(state["messages"])
        if assistant.system_prompt:
            prompt.insert(0, SystemMessage(content=assistant.system_prompt))
        prompt = trim_history(prompt, assistant.history_budget)
        ensure_tool_pairing(prompt)
        if assistant.cache_hints:
            prompt = add_cache_hints(prompt)

        tool_defs = registry.get_tool_definitions() or None
        merged: AIMessageChunk | None = None
        try:
            async for chunk in provider.astream(
                prompt,
                model=assistant.model,
                tools=tool_defs,
                temperature=assistant.temperature,
                max_tokens=assistant.max_tokens,
                api_base=config.get_api_base(),
                timeout=assistant.request_timeout,
            ):
                if isinstance(chunk.content, str) and chunk.content:
                    writer(TokenEvent(token=chunk.content))
                merged = chunk if merged is None else merged + chunk
        except asyncio.TimeoutError as e:
            logger.error(f"LLM timeout after {assistant.request_timeout}s")
            raise ModelInvocationError("Model request timed out") from e
        except Exception as e:
            logger.error(f"LLM error: {e}")
            raise ModelInvocationError(f"Error calling LLM: {e}") from e

        content = merged.content if merged is not None else ""
        tool_calls = merged.tool_calls if merged is not None else []
        ai_message = AIMessage(content=content, tool_calls=tool_calls)

        if ai_message.tool_calls:
            names = [tc["name"] for tc in ai_message.tool_calls]
            logger.debug(f"LLM tool calls: {names}")
        else:
            snippet = str(ai_message.content)[:80]
            logger.debug(f"LLM response (no tools): {snippet!r}")

        return {"messages": [ai_message]}

    async def tools(state: AgentState) -> dict[str, Any]:
        """Execute the last AI message's tool calls sequentially, in order."""
        writer = get_stream_writer()
        last_msg = state["messages"][-1]
        results = []

        for call in last_msg.tool_calls:
            name = call["name"]
            writer(ToolStartEvent(tool=name, input=call["args"]))
            logger.debug(f"Executing tool: {name}({call['args']})")
            try:
                result = await registry.ainvoke(name, call["args"])
                logger.debug(f"Tool result: {name} → {result[:100]}")
            except ToolExecutionError as e:
                result = str(e)
                logger.warning(f"Tool failed: {name} → {e}")

            results.append(ToolMessage(content=result, tool_call_id=call["id"], name=name))
            writer(ToolEndEvent(tool=name, output=result))

        return {"messages": results}

    return {
        RouteDecision.AGENT: agent,
        RouteDecision.TOOLS: tools,
    }


def route(state: AgentState) -> RouteDecision:
    """Conditional edge: pick the next node from the last message only.

    Pending tool calls win over text content; a tool result goes back to
    the agent; anything else ends the run.
    """
    messages = state["messages"]
    if not messages:
        return RouteDecision.TERMINATE
    last_msg = messages[-1]

    if isinstance(last_msg, AIMessage) and last_msg.tool_calls:
        return RouteDecision.TOOLS
    if isinstance(last_msg, ToolMessage):
        return RouteDecision.AGENT
    return RouteDecision.TERMINATE
