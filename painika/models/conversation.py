"""Conversation store: the ordered transcript and running token counters of one session."""

import uuid
from datetime import UTC, datetime

from pydantic import BaseModel, Field

from painika.models.messages import Message, create_message


class TokenTotals(BaseModel):
    """Cumulative token counters of a conversation."""

    input: int = 0
    output: int = 0


class Conversation(BaseModel):
    """Ordered message history for one logical session.

    Messages are only ever appended; the sequence is the literal transcript
    replayed to the model on every completion.
    """

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    messages: list[Message] = Field(default_factory=list)
    total_tokens: TokenTotals = Field(default_factory=TokenTotals)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def seeded(cls, system_prompt: str) -> "Conversation":
        """Create an empty conversation with the system message in place."""
        conversation = cls()
        conversation.append(create_message("system", system_prompt))
        return conversation

    def append(self, message: Message) -> Message:
        """Add a message to the end of the transcript."""
        self.messages.append(message)
        return message

    def add_usage(self, input_tokens: int, output_tokens: int) -> None:
        """Accumulate token counts from one completion."""
        self.total_tokens.input += input_tokens
        self.total_tokens.output += output_tokens

    def totals(self) -> tuple[int, int]:
        """Return the (input, output) running counters."""
        return self.total_tokens.input, self.total_tokens.output

    def touch(self) -> None:
        """Update the last-modified timestamp."""
        self.updated_at = datetime.now(UTC)

    def snapshot(self) -> "Conversation":
        """Copy safe to hand out; appends to it do not reach this conversation."""
        return self.model_copy(
            update={"messages": list(self.messages), "total_tokens": self.total_tokens.model_copy()}
        )
