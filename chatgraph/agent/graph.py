"""LangGraph StateGraph — compile agent graph."""

from __future__ import annotations

from langgraph.graph import END, START, StateGraph

from chatgraph.agent.nodes import RouteDecision, make_nodes, route
from chatgraph.agent.state import AgentState
from chatgraph.agent.tools import ToolRegistry
from chatgraph.core.config.schema import Config
from chatgraph.core.providers.base import BaseLLMProvider


def create_graph(
    config: Config,
    provider: BaseLLMProvider,
    registry: ToolRegistry,
):
    """
    Build and compile the agent graph.

    Graph flow:
        START → agent ⇄ tools → END

    The router runs after every node. The graph is compiled without a
    LangGraph checkpointer; thread state is committed by GraphRunner only
    after a clean run.
    """
    nodes = make_nodes(config, provider, registry)
    path_map = {
        RouteDecision.TOOLS.value: RouteDecision.TOOLS.value,
        RouteDecision.AGENT.value: RouteDecision.AGENT.value,
        RouteDecision.TERMINATE.value: END,
    }

    graph = StateGraph(AgentState)

    # Add nodes
    graph.add_node(RouteDecision.AGENT.value, nodes[RouteDecision.AGENT])
    graph.add_node(RouteDecision.TOOLS.value, nodes[RouteDecision.TOOLS])

    # Edges
    graph.add_edge(START, RouteDecision.AGENT.value)
    graph.add_conditional_edges(RouteDecision.AGENT.value, route, path_map)
    graph.add_conditional_edges(RouteDecision.TOOLS.value, route, path_map)
    return graph.compile()
