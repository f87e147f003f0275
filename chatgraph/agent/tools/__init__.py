"""Tool system — ToolRegistry and factory that creates the built-in tools."""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase
from typing import Any

from langchain_core.tools import BaseTool
from loguru import logger

from chatgraph.agent.errors import ToolExecutionError
from chatgraph.agent.tools.clock import make_clock_tools
from chatgraph.core.config.schema import Config


@dataclass
class ToolInfo:
    """Metadata for a registered tool."""

    tool: BaseTool
    group: str


class ToolRegistry:
    """Name → tool lookup used by the tools node.

    Tools are registered in groups; a later registration of the same name
    replaces the earlier one.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolInfo] = {}

    def register_group(self, group: str, tools: list[BaseTool]) -> None:
        """Register a list of tools under a group name."""
        for t in tools:
            self._tools[t.name] = ToolInfo(tool=t, group=group)

    def get(self, name: str) -> BaseTool | None:
        info = self._tools.get(name)
        return info.tool if info else None

    async def ainvoke(self, name: str, args: dict[str, Any]) -> str:
        """Run a tool and return its output as text.

        Raises
        ------
        ToolExecutionError
            Unknown tool, invalid arguments or an exception inside the tool.
        """
        tool = self.get(name)
        if tool is None:
            raise ToolExecutionError(name, f"Tool '{name}' not found")
        try:
            result = await tool.ainvoke(args)
        except Exception as e:
            raise ToolExecutionError(name, f"Tool error: {e}") from e
        return result if isinstance(result, str) else str(result)

    def get_tool_definitions(self) -> list[dict[str, Any]]:
        """Convert registered tools to OpenAI function format."""
        defs = []
        for info in self._tools.values():
            tool = info.tool
            schema = tool.args_schema.model_json_schema() if tool.args_schema else {}
            defs.append(
                {
                    "type": "function",
                    "function": {
                        "name": tool.name,
                        "description": tool.description or "",
                        "parameters": schema,
                    },
                }
            )
        return defs

    def get_catalog(self) -> list[dict[str, Any]]:
        """Tool name/group/description listing for introspection."""
        return [
            {
                "name": name,
                "group": self._tools[name].group,
                "description": (self._tools[name].tool.description or "").split("\n")[0],
            }
            for name in sorted(self._tools)
        ]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools


def make_tools(config: Config) -> ToolRegistry:
    """Create the built-in tools allowed by ``config.tools.enabled``.

    Parameters
    ----------
    config : Config
        Application config. ``tools.enabled`` holds glob patterns.

    Returns
    -------
    ToolRegistry
        Registry with the enabled tools registered under their groups.
    """
    registry = ToolRegistry()
    patterns = config.tools.enabled

    def _enabled(tools: list[BaseTool]) -> list[BaseTool]:
        return [t for t in tools if any(fnmatchcase(t.name, p) for p in patterns)]

    registry.register_group("clock", _enabled(make_clock_tools()))
    logger.debug(f"Tools registered: {sorted(registry._tools)}")
    return registry


__all__ = ["ToolRegistry", "ToolInfo", "make_tools"]
