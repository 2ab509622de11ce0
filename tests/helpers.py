"""Stub completion service shared by the test modules."""

import asyncio
import json
from collections.abc import Iterable
from typing import Any

import httpx

from painika.clients.groq import GroqClient, GroqConfig


def completion_body(
    content: str | None = "",
    tool_calls: list[dict[str, Any]] | None = None,
    prompt_tokens: int = 10,
    completion_tokens: int = 5,
) -> dict[str, Any]:
    """Chat completion JSON as the remote service returns it."""
    message: dict[str, Any] = {"role": "assistant", "content": content}
    if tool_calls:
        message["tool_calls"] = tool_calls

    return {
        "id": "chatcmpl-test",
        "model": "llama-3.3-70b-versatile",
        "choices": [{"index": 0, "message": message, "finish_reason": "tool_calls" if tool_calls else "stop"}],
        "usage": {"prompt_tokens": prompt_tokens, "completion_tokens": completion_tokens},
    }


def wire_tool_call(call_id: str, name: str, arguments: dict[str, Any] | str) -> dict[str, Any]:
    encoded = arguments if isinstance(arguments, str) else json.dumps(arguments)
    return {"id": call_id, "type": "function", "function": {"name": name, "arguments": encoded}}


def sse_chunks(fragments: Iterable[str], done: bool = True) -> list[bytes]:
    """Event-stream lines carrying one delta per fragment."""
    chunks = [
        f"data: {json.dumps({'choices': [{'index': 0, 'delta': {'content': fragment}}]})}\n\n".encode()
        for fragment in fragments
    ]
    if done:
        chunks.append(b"data: [DONE]\n\n")
    return chunks


class TrackingStream(httpx.AsyncByteStream):
    """Response body that records whether it was closed."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks
        self.closed = False
        self.sent = 0

    async def __aiter__(self):
        for chunk in self.chunks:
            self.sent += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


class ScriptedService:
    """MockTransport handler replaying queued responses and recording requests."""

    def __init__(self, responses: Iterable[httpx.Response | Exception] = ()):
        self.responses = list(responses)
        self.requests: list[httpx.Request] = []

    def queue(self, *responses: httpx.Response | Exception) -> "ScriptedService":
        self.responses.extend(responses)
        return self

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError("Unexpected request to the completion service")

        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def payloads(self) -> list[dict[str, Any]]:
        return [json.loads(request.content) for request in self.requests]


class SlowService(ScriptedService):
    """Scripted service that takes ``delay`` seconds to answer each request."""

    def __init__(self, responses: Iterable[httpx.Response | Exception] = (), delay: float = 0.05):
        super().__init__(responses)
        self.delay = delay

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(self.delay)
        return super().__call__(request)


def ok(body: dict[str, Any]) -> httpx.Response:
    return httpx.Response(200, json=body)


def make_client(service: ScriptedService, **overrides: Any) -> GroqClient:
    """Groq client wired to the scripted service, without rate limiting."""
    config = GroqConfig(token="test-token", requests_per_minute=None, **overrides)
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(service))
    return GroqClient(config, http_client=http_client)
