"""GraphRunner — drives the agent graph for one thread and streams events."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import aclosing

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage
from langgraph.errors import GraphRecursionError
from loguru import logger

from chatgraph.agent.checkpoint import CheckpointStore, KeyedLock
from chatgraph.agent.errors import (
    ChatGraphError,
    ModelInvocationError,
    StepBudgetExceeded,
    TrimmingInvariantError,
)
from chatgraph.agent.events import (
    ConnectedEvent,
    DoneEvent,
    ErrorEvent,
    StreamEvent,
    TokenEvent,
)
from chatgraph.agent.graph import create_graph
from chatgraph.agent.tools import ToolRegistry, make_tools
from chatgraph.core.config.schema import Config
from chatgraph.core.providers.base import BaseLLMProvider


class GraphRunner:
    """
    Executor for the agent graph.

    Flow per request:
        1. Emit ``connected``
        2. Lock the thread (runs on the same thread are serialized)
        3. Load the thread checkpoint (or the seed history for a new thread)
        4. Stream the graph: agent ⇄ tools, bounded by ``max_steps``
        5. Commit the checkpoint — only after a clean run
        6. Emit ``done`` (on success and on every failure path)

    Cancellation (client disconnect, iterator closed) stops the run without
    further events and without a commit.
    """

    def __init__(
        self,
        config: Config,
        provider: BaseLLMProvider | None = None,
        tools: ToolRegistry | None = None,
        store: CheckpointStore | None = None,
    ):
        self.config = config
        if provider is None:
            from chatgraph.core.providers.litellm import LiteLLMProvider

            provider = LiteLLMProvider(config)
        self.provider = provider
        self.registry = tools if tools is not None else make_tools(config)
        self.store = store if store is not None else CheckpointStore(config.checkpoint.max_threads)
        self._locks = KeyedLock()
        self._graph = create_graph(config, self.provider, self.registry)

    async def stream(
        self,
        thread_id: str,
        messages: Sequence[BaseMessage],
        seed_history: Sequence[BaseMessage] | None = None,
    ) -> AsyncIterator[StreamEvent]:
        """Run the graph for ``thread_id`` with ``messages`` appended.

        Parameters
        ----------
        thread_id : str
            Conversation identity; keys the checkpoint and the lock.
        messages : Sequence[BaseMessage]
            New messages for this turn (usually one HumanMessage).
        seed_history : Sequence[BaseMessage], optional
            History used only when the thread has no checkpoint yet.

        Yields
        ------
        StreamEvent
            ``connected`` first, ``done`` last.
        """
        yield ConnectedEvent()

        async with self._locks.hold(thread_id):
            if thread_id in self.store:
                history = self.store.get(thread_id)
            else:
                history = list(seed_history or [])
            max_steps = self.config.assistant.max_steps
            logger.info(
                f"Run started: thread={thread_id}, history={len(history)}, "
                f"new={len(messages)}"
            )

            final: dict | None = None
            try:
                async with aclosing(
                    self._graph.astream(
                        {"messages": history + list(messages), "thread_id": thread_id},
                        config={"recursion_limit": max_steps},
                        stream_mode=["custom", "values"],
                    )
                ) as chunks:
                    async for mode, chunk in chunks:
                        if mode == "custom":
                            yield chunk
                        else:
                            final = chunk
            except GraphRecursionError:
                err = StepBudgetExceeded(max_steps)
                logger.warning(f"{err}: thread={thread_id}")
                yield ErrorEvent(error=str(err))
            except TrimmingInvariantError as e:
                logger.critical(f"History invariant violated: thread={thread_id}: {e}")
                yield ErrorEvent(error="Internal error")
            except ModelInvocationError as e:
                yield ErrorEvent(error=str(e))
            except Exception as e:
                logger.exception(f"Run failed: thread={thread_id}: {e}")
                yield ErrorEvent(error=str(e) or type(e).__name__)
            else:
                if final is not None:
                    self.store.put(thread_id, final["messages"])
                    logger.info(
                        f"Run finished: thread={thread_id}, "
                        f"messages={len(final['messages'])}"
                    )

        yield DoneEvent()

    async def invoke(self, thread_id: str, message: str) -> str:
        """Run one user turn and return the concatenated answer text.

        Raises
        ------
        ChatGraphError
            If the run ended with an error event.
        """
        tokens: list[str] = []
        error: str | None = None
        async for event in self.stream(thread_id, [HumanMessage(content=message)]):
            if isinstance(event, TokenEvent):
                tokens.append(event.token)
            elif isinstance(event, ErrorEvent):
                error = event.error
        if error is not None:
            raise ChatGraphError(error)
        return self._extract_response(self.store.get(thread_id)) or "".join(tokens)

    @staticmethod
    def _extract_response(messages: Sequence[BaseMessage]) -> str:
        """Get final assistant text from a message list."""
        for msg in reversed(messages):
            if isinstance(msg, AIMessage) and msg.content and not msg.tool_calls:
                return str(msg.content)
        return ""
