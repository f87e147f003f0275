"""Pydantic request / response models for the HTTP API."""

from __future__ import annotations

import json
from typing import Any, Literal

from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, ToolMessage
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class ToolCallItem(BaseModel):
    """Tool call declared by a prior assistant message."""

    id: str
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _parse_arguments(cls, v: Any) -> Any:
        # OpenAI-style clients send arguments as a JSON string
        if isinstance(v, str):
            return json.loads(v) if v.strip() else {}
        return v


class ChatMessage(BaseModel):
    """One prior message as held by the client."""

    model_config = ConfigDict(populate_by_name=True)

    role: Literal["user", "assistant", "agent", "tool"]
    content: str = ""
    tool_calls: list[ToolCallItem] = Field(default_factory=list, alias="toolCalls")
    tool_call_id: str | None = Field(default=None, alias="toolCallId")

    @model_validator(mode="after")
    def _check_role_fields(self) -> ChatMessage:
        if self.role == "tool" and not self.tool_call_id:
            raise ValueError("tool messages require toolCallId")
        if self.tool_calls and self.role not in ("assistant", "agent"):
            raise ValueError("only assistant messages may declare toolCalls")
        return self

    def to_message(self) -> BaseMessage:
        if self.role == "user":
            return HumanMessage(content=self.content)
        if self.role == "tool":
            return ToolMessage(content=self.content, tool_call_id=self.tool_call_id)
        return AIMessage(
            content=self.content,
            tool_calls=[
                {"id": tc.id, "name": tc.name, "args": tc.arguments} for tc in self.tool_calls
            ],
        )


class ChatRequestBody(BaseModel):
    """Streaming chat request.

    ``messages`` only seeds a thread that has no checkpoint yet; an existing
    thread continues from its own state.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(default_factory=list)
    new_message: str = Field(alias="newMessage", min_length=1)
    chat_id: str = Field(alias="chatId", min_length=1)


class ThreadMessage(BaseModel):
    role: str
    content: str
    tool_calls: list[dict] = Field(default_factory=list)
    tool_call_id: str | None = None


class ThreadResponse(BaseModel):
    thread_id: str
    messages: list[ThreadMessage]


class HealthResponse(BaseModel):
    status: str
    agent_ready: bool
    version: str = ""
    threads: int = 0
