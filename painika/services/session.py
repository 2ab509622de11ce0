"""Session engine: drives one conversation through model completions and tool executions."""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from enum import StrEnum
from typing import Any

from painika.clients.groq import GroqClient
from painika.exceptions import ConfigurationError
from painika.models.conversation import Conversation
from painika.models.llm import CompletionResponse, WireToolCall
from painika.models.messages import Message, TokenCounts, ToolCall, ToolResult, create_message
from painika.models.session import SessionConfig
from painika.models.tools import ToolExecution
from painika.services.prompts import SYSTEM_PROMPT
from painika.tools.registry import ToolRegistry, create_default_registry
from painika.utils.logging import get_logger

logger = get_logger(__name__)


class TurnState(StrEnum):
    """Where the current (or last) turn stands."""

    AWAITING_USER_INPUT = "awaiting_user_input"
    FIRST_COMPLETION_REQUESTED = "first_completion_requested"
    NO_TOOL_CALLS = "no_tool_calls"
    TOOL_CALLS_PENDING = "tool_calls_pending"
    EXECUTING_TOOLS = "executing_tools"
    SECOND_COMPLETION_REQUESTED = "second_completion_requested"
    STREAMING = "streaming"
    TURN_COMPLETE = "turn_complete"


class MessageStream:
    """Fragments of a streamed reply, followed by the assembled assistant message.

    Iterate it to receive text fragments as they arrive. Once the stream ends
    naturally, ``message`` holds the assistant message appended to the
    conversation. Closing it early (``aclose`` or leaving ``async with``)
    releases the HTTP response and appends nothing.
    """

    def __init__(self, fragments: AsyncGenerator[str, None], on_complete: Callable[[str], Message]):
        self._fragments = fragments
        self._on_complete = on_complete
        self._parts: list[str] = []
        self._closed = False
        self.message: Message | None = None

    @property
    def text(self) -> str:
        """Text received so far."""
        return "".join(self._parts)

    def __aiter__(self) -> "MessageStream":
        return self

    async def __anext__(self) -> str:
        if self._closed:
            raise StopAsyncIteration

        try:
            fragment = await anext(self._fragments)
        except StopAsyncIteration:
            if self.message is None and not self._closed:
                self.message = self._on_complete(self.text)
            raise

        self._parts.append(fragment)
        return fragment

    async def read(self) -> Message:
        """Consume the remaining fragments and return the final message.

        Raises:
            RuntimeError: If the stream was closed before it ended
        """
        async for _ in self:
            pass
        if self.message is None:
            raise RuntimeError("Stream was closed before the reply completed")
        return self.message

    async def aclose(self) -> None:
        """Release the response; a stream closed before its end appends nothing."""
        if self.message is None:
            self._closed = True
        await self._fragments.aclose()

    async def __aenter__(self) -> "MessageStream":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


class ChatSession:
    """One conversation with the assistant.

    Not safe for overlapping turns: callers run one ``send_message``,
    ``stream_message`` or ``execute_tool`` at a time per session, holding
    ``turn_lock`` for the whole turn (including the whole stream).
    """

    def __init__(
        self,
        config: SessionConfig | None = None,
        *,
        client: GroqClient | None = None,
        tools: ToolRegistry | None = None,
        system_prompt: str = SYSTEM_PROMPT,
    ):
        """Initialize a session.

        Args:
            config: Session configuration used to build the Groq client
            client: Pre-built Groq client, takes precedence over ``config``
            tools: Tool registry (defaults to the built-in tools)
            system_prompt: Prompt seeded as the first message

        Raises:
            ConfigurationError: If neither a client nor a usable credential is available
        """
        if client is None:
            if config is None:
                raise ConfigurationError("A session config or a Groq client is required")
            client = GroqClient(config.to_groq_config())

        self.client = client
        self.tools = tools if tools is not None else create_default_registry()
        self.system_prompt = system_prompt
        self.state = TurnState.AWAITING_USER_INPUT
        self._conversation = Conversation.seeded(system_prompt)
        self.turn_lock = asyncio.Lock()

        logger.info(f"Session initialized with conversation {self._conversation.id}")

    @property
    def conversation_id(self) -> str:
        return self._conversation.id

    @property
    def busy(self) -> bool:
        """Whether a turn currently holds the session."""
        return self.turn_lock.locked()

    async def send_message(self, content: str) -> Message:
        """Run one turn: at most one batch of tool calls, at most two completions.

        Returns:
            The final assistant message of the turn

        Raises:
            ModelClientError: If a completion fails; messages appended so far stay
        """
        self._begin_turn(content)
        tools = self.tools.describe()

        self.state = TurnState.FIRST_COMPLETION_REQUESTED
        response = await self.client.complete(list(self._conversation.messages), tools)
        self._record_usage(response)

        if not response.tool_calls:
            self.state = TurnState.NO_TOOL_CALLS
            return self._finish_turn(response)

        self.state = TurnState.TOOL_CALLS_PENDING
        logger.info(f"Model requested {len(response.tool_calls)} tool call(s)")

        calls, decode_errors = self._decode_tool_calls(response.tool_calls)
        self._conversation.append(
            create_message("assistant", response.content, tool_calls=calls, tokens=_token_counts(response))
        )

        # Sequential so side effects land in transcript order
        self.state = TurnState.EXECUTING_TOOLS
        for call in calls:
            self._conversation.append(await self._run_tool_call(call, decode_errors.get(call.id)))

        self.state = TurnState.SECOND_COMPLETION_REQUESTED
        final_response = await self.client.complete(list(self._conversation.messages), tools)
        self._record_usage(final_response)

        return self._finish_turn(final_response)

    def stream_message(self, content: str) -> MessageStream:
        """Start a streamed turn. Tool calls are not offered on this path.

        The user message is appended immediately; the assistant message is
        appended only when the stream ends naturally. Streamed turns add no
        token usage.
        """
        self._begin_turn(content)
        self.state = TurnState.STREAMING

        fragments = self.client.stream(list(self._conversation.messages))
        return MessageStream(fragments, self._finish_stream)

    async def execute_tool(self, name: str, params: dict[str, Any]) -> ToolExecution:
        """Run a tool outside the completion loop and record its result in the transcript."""
        execution = await self.tools.execute(name, params)

        self._conversation.append(self._tool_result_message(execution.id, execution))
        self._conversation.touch()

        return execution

    def get_conversation(self) -> Conversation:
        return self._conversation.snapshot()

    def get_available_tools(self) -> list[str]:
        return self.tools.get_tool_names()

    def get_token_usage(self) -> dict[str, int]:
        input_tokens, output_tokens = self._conversation.totals()
        return {"input": input_tokens, "output": output_tokens, "total": input_tokens + output_tokens}

    def clear(self) -> None:
        """Discard the transcript and start over with a fresh conversation."""
        previous_id = self._conversation.id
        self._conversation = Conversation.seeded(self.system_prompt)
        self.state = TurnState.AWAITING_USER_INPUT
        logger.info(f"Conversation {previous_id} cleared, new conversation {self._conversation.id}")

    async def aclose(self) -> None:
        await self.client.aclose()

    def _begin_turn(self, content: str) -> None:
        logger.info(f"Processing message for conversation {self._conversation.id}: {content[:50]}...")
        self.state = TurnState.AWAITING_USER_INPUT
        self._conversation.append(create_message("user", content))

    def _finish_turn(self, response: CompletionResponse) -> Message:
        message = self._conversation.append(
            create_message("assistant", response.content, tokens=_token_counts(response))
        )
        self._conversation.touch()
        self.state = TurnState.TURN_COMPLETE

        input_tokens, output_tokens = self._conversation.totals()
        logger.info(f"Turn complete - Token usage - Input: {input_tokens}, Output: {output_tokens}")
        return message

    def _finish_stream(self, content: str) -> Message:
        message = self._conversation.append(create_message("assistant", content))
        self._conversation.touch()
        self.state = TurnState.TURN_COMPLETE
        logger.info(f"Streamed turn complete ({len(content)} characters)")
        return message

    def _record_usage(self, response: CompletionResponse) -> None:
        self._conversation.add_usage(response.usage.input_tokens, response.usage.output_tokens)

    @staticmethod
    def _decode_tool_calls(wire_calls: list[WireToolCall]) -> tuple[list[ToolCall], dict[str, str]]:
        """Decode wire tool calls; calls with undecodable arguments get empty parameters and an error."""
        calls: list[ToolCall] = []
        errors: dict[str, str] = {}

        for wire_call in wire_calls:
            try:
                parameters = wire_call.function.decode_arguments()
            except ValueError as e:
                logger.warning(f"Invalid arguments for tool {wire_call.function.name}: {e}")
                errors[wire_call.id] = f"Invalid tool arguments: {e}"
                parameters = {}

            calls.append(ToolCall(id=wire_call.id, name=wire_call.function.name, parameters=parameters))

        return calls, errors

    async def _run_tool_call(self, call: ToolCall, decode_error: str | None) -> Message:
        if decode_error is not None:
            return _tool_error_message(call.id, decode_error)

        try:
            execution = await self.tools.execute(call.name, call.parameters)
        except Exception as e:
            logger.error(f"Tool {call.name} raised outside the executor: {e}", exc_info=True)
            return _tool_error_message(call.id, str(e) or type(e).__name__)

        return self._tool_result_message(call.id, execution)

    @staticmethod
    def _tool_result_message(call_id: str, execution: ToolExecution) -> Message:
        if execution.error is not None:
            return _tool_error_message(call_id, execution.error)

        return create_message(
            "tool",
            json.dumps(execution.output, default=str),
            tool_results=[ToolResult(id=call_id, result=execution.output)],
        )


def _tool_error_message(call_id: str, error: str) -> Message:
    return create_message(
        "tool",
        json.dumps({"error": error}),
        tool_results=[ToolResult(id=call_id, result=None, error=error)],
    )


def _token_counts(response: CompletionResponse) -> TokenCounts:
    return TokenCounts(input=response.usage.input_tokens, output=response.usage.output_tokens)
