"""Tool execution records and parameter descriptors."""

import uuid
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field

ParameterType = Literal["string", "number", "boolean", "object"]


class ToolParameter(BaseModel):
    """Hand-declared description of one tool parameter."""

    name: str
    type: ParameterType
    description: str = ""
    required: bool = True
    default: Any = None

    def json_schema(self) -> dict[str, Any]:
        """JSON-schema fragment describing this parameter to the model."""
        schema: dict[str, Any] = {"type": self.type}
        if self.description:
            schema["description"] = self.description
        if not self.required and self.default is not None:
            schema["default"] = self.default
        return schema


class ToolState(StrEnum):
    """Lifecycle states of a tool execution."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class ToolExecution(BaseModel):
    """Record of one tool invocation.

    Moves pending -> running -> completed | error. The terminal state is set
    exactly once; afterwards the record is never mutated.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str
    state: ToolState = ToolState.PENDING
    input: dict[str, Any] = Field(default_factory=dict)
    output: Any = None
    error: str | None = None
    start_time: datetime = Field(default_factory=lambda: datetime.now(UTC))
    end_time: datetime | None = None

    @property
    def finished(self) -> bool:
        return self.state in (ToolState.COMPLETED, ToolState.ERROR)

    def start(self) -> None:
        if self.state != ToolState.PENDING:
            raise RuntimeError(f"Execution {self.id} cannot start from state {self.state}")
        self.state = ToolState.RUNNING

    def complete(self, output: Any) -> None:
        self._finish(ToolState.COMPLETED)
        self.output = output

    def fail(self, error: str) -> None:
        self._finish(ToolState.ERROR)
        self.error = error

    def _finish(self, state: ToolState) -> None:
        if self.finished:
            raise RuntimeError(f"Execution {self.id} already finished as {self.state}")
        self.state = state
        self.end_time = datetime.now(UTC)
