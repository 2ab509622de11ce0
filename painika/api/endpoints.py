"""API endpoints for the coding assistant service."""

import json
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from typing import Annotated, Any

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import StreamingResponse

from painika import __version__
from painika.exceptions import ConfigurationError, ModelClientError, RemoteError
from painika.models.api import (
    ClearResponse,
    HealthResponse,
    MessageRequest,
    MessageResponse,
    SessionCreatedResponse,
    TokenUsageResponse,
    ToolListResponse,
    ToolRequest,
)
from painika.models.conversation import Conversation
from painika.models.session import SessionConfig
from painika.models.tools import ToolExecution
from painika.services.session import ChatSession
from painika.services.session_manager import SessionRegistry
from painika.utils.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


def get_session_registry(request: Request) -> SessionRegistry:
    """Registry attached to the application at startup."""
    return request.app.state.sessions


Registry = Annotated[SessionRegistry, Depends(get_session_registry)]


async def get_chat_session(session_id: str, registry: Registry) -> ChatSession:
    session = await registry.get_session(session_id)
    if session is None:
        logger.warning(f"Invalid session ID provided: {session_id}")
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return session


Session = Annotated[ChatSession, Depends(get_chat_session)]


def _claim_turn(session_id: str, session: ChatSession) -> None:
    if session.busy:
        logger.warning(f"Rejected overlapping turn for session {session_id}")
        raise HTTPException(status_code=409, detail=f"Session is busy with another turn: {session_id}")


def _model_error(session_id: str, error: ModelClientError) -> HTTPException:
    logger.error(f"Completion failed for session {session_id}: {error}")
    detail: dict[str, Any] = {"error": str(error)}
    if isinstance(error, RemoteError):
        detail["status"] = error.status
    return HTTPException(status_code=502, detail=detail)


def _sse(event: dict[str, Any]) -> str:
    return f"data: {json.dumps(event)}\n\n"


@router.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check(registry: Registry) -> HealthResponse:
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(UTC),
        version=__version__,
        sessions=registry.get_session_count(),
    )


@router.post("/sessions", response_model=SessionCreatedResponse, tags=["Session"])
async def create_session(config: SessionConfig, registry: Registry) -> SessionCreatedResponse:
    """Initialize a new session with its completion service credentials."""
    try:
        entry = await registry.create_session(config)
    except ConfigurationError as e:
        logger.warning(f"Session configuration rejected: {e}")
        raise HTTPException(status_code=400, detail=str(e)) from e

    return SessionCreatedResponse(session_id=entry.session_id, conversation_id=entry.session.conversation_id)


@router.delete("/sessions/{session_id}", status_code=204, tags=["Session"])
async def delete_session(session_id: str, registry: Registry) -> Response:
    if not await registry.delete_session(session_id):
        raise HTTPException(status_code=404, detail=f"Session not found: {session_id}")
    return Response(status_code=204)


@router.post("/sessions/{session_id}/messages", response_model=MessageResponse, tags=["Conversation"])
async def send_message(session_id: str, request: MessageRequest, session: Session) -> MessageResponse:
    """Send a user message and return the final assistant message of the turn."""
    _claim_turn(session_id, session)
    async with session.turn_lock:
        try:
            message = await session.send_message(request.message)
        except ModelClientError as e:
            raise _model_error(session_id, e) from e

    return MessageResponse(message=message, usage=TokenUsageResponse(**session.get_token_usage()))


@router.post("/sessions/{session_id}/stream", tags=["Conversation"])
async def stream_message(session_id: str, request: MessageRequest, session: Session) -> StreamingResponse:
    """Stream the assistant reply as server-sent events.

    Emits ``chunk`` events while text arrives, then one ``done`` event with the
    final message, or an ``error`` event if the completion fails.
    """
    _claim_turn(session_id, session)

    async def events() -> AsyncIterator[str]:
        async with session.turn_lock:
            async with session.stream_message(request.message) as stream:
                try:
                    async for fragment in stream:
                        yield _sse({"type": "chunk", "content": fragment})
                except ModelClientError as e:
                    logger.error(f"Stream failed for session {session_id}: {e}")
                    yield _sse({"type": "error", "error": str(e)})
                    return

                message = stream.message.model_dump(mode="json") if stream.message else None
                yield _sse({"type": "done", "message": message})

    return StreamingResponse(
        events(),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )


@router.get("/sessions/{session_id}/tools", response_model=ToolListResponse, tags=["Tools"])
async def list_tools(session: Session) -> ToolListResponse:
    return ToolListResponse(tools=session.get_available_tools())


@router.post("/sessions/{session_id}/tools/{tool_name}", response_model=ToolExecution, tags=["Tools"])
async def execute_tool(session_id: str, tool_name: str, request: ToolRequest, session: Session) -> ToolExecution:
    """Run a tool directly; failures are reported in the execution record, not as HTTP errors."""
    _claim_turn(session_id, session)
    async with session.turn_lock:
        return await session.execute_tool(tool_name, request.params)


@router.get("/sessions/{session_id}/conversation", response_model=Conversation, tags=["Conversation"])
async def get_conversation(session: Session) -> Conversation:
    return session.get_conversation()


@router.get("/sessions/{session_id}/usage", response_model=TokenUsageResponse, tags=["Conversation"])
async def get_token_usage(session: Session) -> TokenUsageResponse:
    return TokenUsageResponse(**session.get_token_usage())


@router.post("/sessions/{session_id}/clear", response_model=ClearResponse, tags=["Conversation"])
async def clear_conversation(session_id: str, session: Session) -> ClearResponse:
    _claim_turn(session_id, session)
    session.clear()
    return ClearResponse(conversation_id=session.conversation_id)
