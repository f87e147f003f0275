"""chatgraph — streaming LangGraph agent with tool calling and thread checkpoints."""

__version__ = "0.1.0"
