"""Wire-level types exchanged with the chat completion endpoint."""

import json
from dataclasses import dataclass, field
from typing import Any, Literal

from pydantic import BaseModel


class FunctionCall(BaseModel):
    """Function name and JSON-encoded arguments as sent by the model."""

    name: str
    arguments: str = "{}"

    class Config:
        extra = "ignore"

    def decode_arguments(self) -> dict[str, Any]:
        """Decode the argument string into a parameter mapping.

        Raises:
            ValueError: If the arguments are not a JSON object
        """
        if not self.arguments.strip():
            return {}
        decoded = json.loads(self.arguments)
        if not isinstance(decoded, dict):
            raise ValueError(f"Tool arguments must be a JSON object, got {type(decoded).__name__}")
        return decoded


class WireToolCall(BaseModel):
    """Tool call entry of a completion choice."""

    id: str
    type: Literal["function"] = "function"
    function: FunctionCall

    class Config:
        extra = "ignore"


@dataclass
class TokenUsage:
    """Token usage reported for one completion."""

    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass
class CompletionResponse:
    """Uniform result of a single-shot completion."""

    content: str
    usage: TokenUsage = field(default_factory=TokenUsage)
    tool_calls: list[WireToolCall] = field(default_factory=list)
    model: str | None = None
    finish_reason: str | None = None
