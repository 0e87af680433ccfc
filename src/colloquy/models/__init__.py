"""Pydantic request and response models for the HTTP API."""

from colloquy.models.chat import (
    ChatRequest,
    ChatResponse,
    MessageResponse,
    ToolCallResponse,
)
from colloquy.models.health import HealthResponse
from colloquy.models.models import ModelDetail, ModelListResponse
from colloquy.models.sessions import (
    MessagesResponse,
    SessionDetailResponse,
    SessionListResponse,
    message_to_response,
)

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "HealthResponse",
    "MessageResponse",
    "MessagesResponse",
    "ModelDetail",
    "ModelListResponse",
    "SessionDetailResponse",
    "SessionListResponse",
    "ToolCallResponse",
    "message_to_response",
]
