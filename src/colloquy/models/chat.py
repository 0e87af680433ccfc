"""Pydantic models for chat API requests and responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from colloquy.llm.settings import ModelSettings


class ChatRequest(BaseModel):
    """Request body for POST /api/v1/chat/{session_id}."""

    message: str = Field(
        default="",
        description="The user message. May be empty; rules still run.",
    )
    model_settings: ModelSettings | None = Field(
        default=None,
        description="Sampling settings merged over the agent's for this turn",
    )
    data: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra per-turn data visible to rule conditions",
    )
    timeout: float | None = Field(
        default=None, gt=0, description="Whole-turn deadline in seconds"
    )

    model_config = ConfigDict(
        protected_namespaces=(),
        json_schema_extra={
            "examples": [
                {"message": "Where is my order?"},
                {"message": "Hi", "model_settings": {"temperature": 0.2}},
            ]
        }
    )


class ToolCallResponse(BaseModel):
    id: str
    type: str = "function"
    function: dict[str, str]


class MessageResponse(BaseModel):
    """Response schema for a single message."""

    role: str = Field(description="Message role")
    content: str = Field(description="Message content")
    timestamp: str = Field(description="ISO 8601 timestamp")
    tool_calls: list[ToolCallResponse] | None = Field(
        default=None, description="Tool calls requested by the assistant"
    )
    tool_call_id: str | None = Field(
        default=None, description="Call answered by a tool message"
    )
    name: str | None = Field(default=None, description="Tool name for tool messages")


class ChatResponse(BaseModel):
    """Response body for the chat endpoint."""

    session_id: str = Field(description="Session the turn ran in")
    message: MessageResponse = Field(description="The committed assistant message")
    matched_rule: str | None = Field(
        default=None, description="Name of the rule that routed the turn"
    )
    state: str = Field(description="Final turn state")
    llm_calls: int = Field(description="Number of LLM calls made")
    structured_output: Any = Field(
        default=None, description="Reserved for structured replies"
    )
