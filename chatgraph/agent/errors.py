"""Agent error taxonomy."""

from __future__ import annotations


class ChatGraphError(Exception):
    """Base class for agent execution errors."""


class ModelInvocationError(ChatGraphError):
    """The model capability failed or timed out. Terminal for the current run."""


class ToolExecutionError(ChatGraphError):
    """A single tool call failed. Recovered as tool-message content."""

    def __init__(self, tool: str, message: str) -> None:
        super().__init__(message)
        self.tool = tool


class TrimmingInvariantError(ChatGraphError):
    """History violates tool-call pairing. Indicates an internal bug."""


class StepBudgetExceeded(ChatGraphError):
    """The agent/tools loop ran past the configured step cap."""

    def __init__(self, max_steps: int) -> None:
        super().__init__(f"Step budget exceeded ({max_steps} steps)")
        self.max_steps = max_steps
