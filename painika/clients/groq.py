"""Groq chat completion client with retry, rate limiting and SSE streaming."""

import asyncio
import json
import os
import time
from collections.abc import AsyncGenerator, Sequence
from dataclasses import dataclass
from typing import Any

import httpx
from limits import parse
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter
from pydantic import ValidationError

from painika import __version__
from painika.exceptions import (
    ConfigurationError,
    ExhaustedRetries,
    MalformedResponse,
    ModelClientError,
    RemoteError,
    TransportError,
)
from painika.models.llm import CompletionResponse, TokenUsage, WireToolCall
from painika.models.messages import Message
from painika.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MODEL = "llama-3.3-70b-versatile"
DEFAULT_BASE_URL = "https://api.groq.com/openai"
COMPLETIONS_PATH = "/v1/chat/completions"

SSE_DATA_PREFIX = "data:"
SSE_DONE = "[DONE]"


@dataclass
class GroqConfig:
    """Configuration for the Groq API client."""

    token: str | None = None
    model: str = DEFAULT_MODEL
    base_url: str = DEFAULT_BASE_URL
    temperature: float = 0.7
    max_tokens: int = 4096
    max_retries: int = 3
    backoff_base: float = 2.0
    timeout: float | None = 120.0

    # Client-side throttle; None disables it
    requests_per_minute: int | None = 30


class RequestRateLimiter:
    """Moving-window request limiter shared by all attempts of one client."""

    def __init__(self, requests_per_minute: int):
        """Initialize rate limiter.

        Args:
            requests_per_minute: Maximum requests per minute
        """
        self.storage = MemoryStorage()
        self.limiter = MovingWindowRateLimiter(self.storage)
        self.request_limit = parse(f"{requests_per_minute}/minute")

    async def acquire(self, identifier: str) -> None:
        """Wait until the request window admits one more request."""
        while not self.limiter.hit(self.request_limit, identifier):
            window_stats = self.limiter.get_window_stats(self.request_limit, identifier)
            wait_time = max(0.0, window_stats.reset_time - time.time())
            logger.warning(f"Request rate limit reached, waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time or 0.1)


def serialize_message(message: Message) -> dict[str, Any]:
    """Convert a transcript message into its chat completion wire form."""
    wire: dict[str, Any] = {"role": message.role, "content": message.content}

    if message.tool_calls:
        wire["tool_calls"] = [
            {
                "id": call.id,
                "type": "function",
                "function": {"name": call.name, "arguments": json.dumps(call.parameters)},
            }
            for call in message.tool_calls
        ]

    # The wire format carries a single result reference per tool message
    if message.tool_results:
        wire["tool_call_id"] = message.tool_results[0].id

    return wire


def _delta_content(event: Any) -> str:
    """Extract the incremental text of one streamed completion event."""
    if not isinstance(event, dict):
        return ""
    choices = event.get("choices") or []
    if not choices or not isinstance(choices[0], dict):
        return ""
    delta = choices[0].get("delta") or {}
    content = delta.get("content") if isinstance(delta, dict) else None
    return content if isinstance(content, str) else ""


def _usage_count(usage: dict[str, Any], name: str, alternate: str) -> int:
    """Read one usage counter, accepting both OpenAI and input/output field names."""
    value = usage.get(name, usage.get(alternate))
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise MalformedResponse(f"Usage field {name} must be an integer, got {type(value).__name__}")
    return value


class GroqClient:
    """Low-level client for the OpenAI-compatible Groq chat completion endpoint."""

    config: GroqConfig
    rate_limiter: RequestRateLimiter | None

    def __init__(self, config: GroqConfig | None = None, http_client: httpx.AsyncClient | None = None):
        """Initialize Groq client.

        Args:
            config: Client configuration; the token defaults to GROQ_API_KEY
            http_client: Pre-built HTTP client (the client builds and owns one otherwise)

        Raises:
            ConfigurationError: If no API token is available
        """
        self.config = config or GroqConfig()

        token = self.config.token or os.getenv("GROQ_API_KEY")
        if not token:
            raise ConfigurationError("Groq API token is required (pass it in the config or set GROQ_API_KEY)")
        self.config.token = token

        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self.config.timeout)

        self.rate_limiter = (
            RequestRateLimiter(self.config.requests_per_minute) if self.config.requests_per_minute else None
        )

    @property
    def url(self) -> str:
        return f"{self.config.base_url.rstrip('/')}{COMPLETIONS_PATH}"

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.config.token}",
            "Content-Type": "application/json",
            "User-Agent": f"painika/{__version__}",
        }

    async def complete(
        self, messages: Sequence[Message], tools: list[dict[str, Any]] | None = None
    ) -> CompletionResponse:
        """Request a single-shot completion for the transcript.

        Args:
            messages: Full transcript, in order
            tools: Tool descriptors offered to the model

        Returns:
            Parsed completion with content, token usage and tool calls
        """
        payload = self._build_payload(messages, tools=tools, stream=False)

        logger.debug(f"Creating completion with {len(messages)} messages, {len(tools) if tools else 0} tools")
        response = await self._post_with_retries(payload)
        completion = self._parse_completion(response)

        logger.debug(
            f"Completion received - finish reason: {completion.finish_reason}, "
            f"tool calls: {len(completion.tool_calls)}, tokens: {completion.usage.total_tokens}"
        )
        return completion

    async def stream(self, messages: Sequence[Message]) -> AsyncGenerator[str, None]:
        """Stream a completion as incremental text fragments.

        The HTTP response is released when the stream ends, fails, or the
        consumer closes the generator early. Streamed turns carry no usage.
        """
        payload = self._build_payload(messages, tools=None, stream=True)
        await self._throttle()

        logger.debug(f"Opening completion stream with {len(messages)} messages")
        try:
            async with self._http.stream("POST", self.url, json=payload, headers=self.headers) as response:
                if not response.is_success:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    raise RemoteError(response.status_code, body)

                async for line in response.aiter_lines():
                    if not line.startswith(SSE_DATA_PREFIX):
                        continue

                    data = line[len(SSE_DATA_PREFIX) :].strip()
                    if data == SSE_DONE:
                        return

                    try:
                        event = json.loads(data)
                    except json.JSONDecodeError:
                        logger.debug(f"Skipping malformed stream event: {data[:100]}")
                        continue

                    content = _delta_content(event)
                    if content:
                        yield content
        except httpx.TransportError as e:
            raise TransportError(f"Completion stream from {self.config.base_url} failed: {e}") from e

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "GroqClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def _build_payload(
        self, messages: Sequence[Message], tools: list[dict[str, Any]] | None, stream: bool
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self.config.model,
            "messages": [serialize_message(message) for message in messages],
            "stream": stream,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

        # Without offered tools the model must not be allowed to pick one
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"

        return payload

    async def _throttle(self) -> None:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire(self.config.token or "groq")

    async def _post_with_retries(self, payload: dict[str, Any]) -> httpx.Response:
        """POST a completion request, retrying transport failures, 429 and 5xx."""
        last_error: ModelClientError | None = None

        for attempt in range(1, self.config.max_retries + 1):
            await self._throttle()
            try:
                response = await self._http.post(self.url, json=payload, headers=self.headers)
            except httpx.TransportError as e:
                last_error = TransportError(f"Request to {self.config.base_url} failed: {e}")
                last_error.__cause__ = e
            else:
                if response.is_success:
                    return response

                error = RemoteError(response.status_code, response.text)
                if not error.retryable:
                    raise error
                last_error = error

            if attempt < self.config.max_retries:
                delay = self.config.backoff_base**attempt
                logger.warning(f"Attempt {attempt} failed ({last_error}), retrying in {delay:.0f}s...")
                await asyncio.sleep(delay)

        raise ExhaustedRetries(self.config.max_retries, last_error) from last_error

    def _parse_completion(self, response: httpx.Response) -> CompletionResponse:
        try:
            data = response.json()
        except ValueError as e:
            raise MalformedResponse(f"Completion response is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise MalformedResponse(f"Completion response must be a JSON object, got {type(data).__name__}")

        choices = data.get("choices") or []
        if not isinstance(choices, list):
            raise MalformedResponse(f"Completion choices must be a list, got {type(choices).__name__}")
        choice = choices[0] if choices and isinstance(choices[0], dict) else {}

        message = choice.get("message") or {}
        if not isinstance(message, dict):
            raise MalformedResponse(f"Completion message must be an object, got {type(message).__name__}")

        usage = data.get("usage") or {}
        if not isinstance(usage, dict):
            raise MalformedResponse(f"Completion usage must be an object, got {type(usage).__name__}")
        token_usage = TokenUsage(
            input_tokens=_usage_count(usage, "prompt_tokens", "input_tokens"),
            output_tokens=_usage_count(usage, "completion_tokens", "output_tokens"),
        )

        content = message.get("content") or ""
        if not isinstance(content, str):
            raise MalformedResponse(f"Completion content must be a string, got {type(content).__name__}")

        wire_calls = message.get("tool_calls") or []
        if not isinstance(wire_calls, list):
            raise MalformedResponse(f"Completion tool calls must be a list, got {type(wire_calls).__name__}")
        try:
            tool_calls = [WireToolCall.model_validate(call) for call in wire_calls]
        except ValidationError as e:
            raise MalformedResponse(f"Completion contains an invalid tool call: {e}") from e

        return CompletionResponse(
            content=content,
            usage=token_usage,
            tool_calls=tool_calls,
            model=data.get("model"),
            finish_reason=choice.get("finish_reason"),
        )
