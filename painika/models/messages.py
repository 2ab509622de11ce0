"""Message data models shared by the conversation store, model client and session engine."""

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["system", "user", "assistant", "tool"]


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


class ToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    parameters: dict[str, Any] = Field(default_factory=dict)


class ToolResult(BaseModel):
    """Outcome of a tool call, correlated to it by ``id``."""

    model_config = ConfigDict(frozen=True)

    id: str
    result: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        """A result is conclusive only when no error was recorded."""
        return self.error is None


class TokenCounts(BaseModel):
    """Token usage attached to an assistant message."""

    model_config = ConfigDict(frozen=True)

    input: int = 0
    output: int = 0


class Message(BaseModel):
    """One fragment of the transcript. Immutable once created."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=_new_id)
    role: MessageRole
    content: str
    tool_calls: list[ToolCall] | None = None
    tool_results: list[ToolResult] | None = None
    timestamp: datetime = Field(default_factory=_now)
    tokens: TokenCounts | None = None


def create_message(
    role: MessageRole,
    content: str,
    *,
    tool_calls: list[ToolCall] | None = None,
    tool_results: list[ToolResult] | None = None,
    tokens: TokenCounts | None = None,
) -> Message:
    """Build a new message with a fresh id and the current timestamp."""
    return Message(
        role=role,
        content=content,
        tool_calls=tool_calls,
        tool_results=tool_results,
        tokens=tokens,
    )
