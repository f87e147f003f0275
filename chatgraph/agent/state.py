"""AgentState — LangGraph state definition."""

from __future__ import annotations

from langgraph.graph import MessagesState


class AgentState(MessagesState):
    """
    Extends MessagesState (messages: Annotated[list[BaseMessage], add_messages]).

    Append-only: the agent node adds one AIMessage per turn, the tools node
    one ToolMessage per resolved call.
    """

    thread_id: str
