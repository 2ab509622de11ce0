"""Request and response models for the HTTP front-end."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from painika.models.messages import Message


class MessageRequest(BaseModel):
    """Request model for sending a user message."""

    message: str = Field(..., min_length=1)


class ToolRequest(BaseModel):
    """Request model for running a tool directly."""

    params: dict[str, Any] = Field(default_factory=dict)


class TokenUsageResponse(BaseModel):
    """Cumulative token usage of a session."""

    input: int
    output: int
    total: int


class SessionCreatedResponse(BaseModel):
    """Response model for session initialization."""

    success: bool = True
    session_id: str
    conversation_id: str


class MessageResponse(BaseModel):
    """Final assistant message of a turn with the session's token usage."""

    message: Message
    usage: TokenUsageResponse


class ClearResponse(BaseModel):
    """Response model for clearing a conversation."""

    conversation_id: str


class ToolListResponse(BaseModel):
    """Registered tool names."""

    tools: list[str]


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    timestamp: datetime
    version: str
    sessions: int
