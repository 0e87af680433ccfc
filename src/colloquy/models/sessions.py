"""Pydantic models for session API responses."""

from typing import Any

from pydantic import BaseModel, Field

from colloquy.models.chat import MessageResponse, ToolCallResponse
from colloquy.sessions.types import Message, format_timestamp


class SessionListResponse(BaseModel):
    session_ids: list[str] = Field(description="Stored session ids, sorted")


class SessionDetailResponse(BaseModel):
    """Full session, including its message history and scratch data."""

    session_id: str = Field(description="Session identifier")
    created_at: str = Field(description="ISO 8601 creation time")
    updated_at: str = Field(description="ISO 8601 last update time")
    message_count: int = Field(description="Number of messages")
    messages: list[MessageResponse] = Field(description="Message history")
    data: dict[str, Any] = Field(description="Application scratch data")


class MessagesResponse(BaseModel):
    messages: list[MessageResponse] = Field(description="Message history")


def message_to_response(message: Message) -> MessageResponse:
    """Convert a session Message to its API form."""
    tool_calls = None
    if message.tool_calls:
        tool_calls = [
            ToolCallResponse(**call.to_dict()) for call in message.tool_calls
        ]
    return MessageResponse(
        role=message.role,
        content=message.content,
        timestamp=format_timestamp(message.timestamp),
        tool_calls=tool_calls,
        tool_call_id=message.tool_call_id,
        name=message.name,
    )
