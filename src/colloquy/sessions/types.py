"""Data types for conversation messages.

Messages are frozen dataclasses: once appended to a session they never
change. Tool calls requested by the assistant travel with the assistant
message that requested them, and tool-role messages point back at one of
those calls by id.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"
ROLE_SYSTEM = "system"
ROLE_TOOL = "tool"

VALID_ROLES = frozenset({ROLE_USER, ROLE_ASSISTANT, ROLE_SYSTEM, ROLE_TOOL})


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    """Format a datetime as ISO-8601 with a trailing Z."""
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp written by format_timestamp."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class ToolCallFunction:
    """Function name and JSON-encoded arguments of a tool call."""

    name: str
    arguments: str = "{}"

    def parsed_arguments(self) -> dict[str, Any]:
        """Decode the arguments.

        Raises:
            ValueError: If the arguments are not a JSON object
        """
        decoded = json.loads(self.arguments) if self.arguments.strip() else {}
        if not isinstance(decoded, dict):
            raise ValueError("arguments must be a JSON object")
        return decoded


@dataclass(frozen=True)
class ToolCall:
    """A tool invocation requested by the assistant."""

    id: str
    function: ToolCallFunction
    type: str = "function"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "function": {
                "name": self.function.name,
                "arguments": self.function.arguments,
            },
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ToolCall":
        function = data.get("function", {})
        return cls(
            id=data["id"],
            type=data.get("type", "function"),
            function=ToolCallFunction(
                name=function.get("name", ""),
                arguments=function.get("arguments", "{}"),
            ),
        )


@dataclass(frozen=True)
class Message:
    """A single conversation record.

    Attributes:
        role: One of user, assistant, system, tool
        content: Text content (may be empty for tool-call-only replies)
        timestamp: Creation time (UTC)
        tool_calls: Tool calls requested by an assistant message
        tool_call_id: For tool messages, the call this result answers
        name: For tool messages, the tool that produced the result
    """

    role: str
    content: str = ""
    timestamp: datetime = field(default_factory=utc_now)
    tool_calls: tuple[ToolCall, ...] = ()
    tool_call_id: str | None = None
    name: str | None = None

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            raise ValueError(f"Unknown message role: {self.role}")
        if self.role == ROLE_TOOL and not self.tool_call_id:
            raise ValueError("Tool messages require a tool_call_id")
        if self.tool_calls and self.role != ROLE_ASSISTANT:
            raise ValueError("Only assistant messages may carry tool calls")
        # Accept lists from callers but store an immutable tuple
        if not isinstance(self.tool_calls, tuple):
            object.__setattr__(self, "tool_calls", tuple(self.tool_calls))

    @classmethod
    def user(cls, content: str) -> "Message":
        return cls(role=ROLE_USER, content=content)

    @classmethod
    def system(cls, content: str) -> "Message":
        return cls(role=ROLE_SYSTEM, content=content)

    @classmethod
    def assistant(
        cls, content: str, tool_calls: tuple[ToolCall, ...] | list[ToolCall] = ()
    ) -> "Message":
        return cls(role=ROLE_ASSISTANT, content=content, tool_calls=tuple(tool_calls))

    @classmethod
    def tool(cls, tool_call_id: str, name: str, content: str) -> "Message":
        return cls(
            role=ROLE_TOOL, content=content, tool_call_id=tool_call_id, name=name
        )

    @property
    def has_tool_calls(self) -> bool:
        return len(self.tool_calls) > 0

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted JSON form.

        Optional keys are only written when set.
        """
        data: dict[str, Any] = {
            "role": self.role,
            "content": self.content,
            "timestamp": format_timestamp(self.timestamp),
        }
        if self.tool_calls:
            data["toolCalls"] = [call.to_dict() for call in self.tool_calls]
        if self.tool_call_id is not None:
            data["toolCallId"] = self.tool_call_id
        if self.name is not None:
            data["name"] = self.name
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build a Message from its persisted JSON form.

        Raises:
            ValueError: If the role is unknown or a tool message lacks its call id
        """
        timestamp = data.get("timestamp")
        return cls(
            role=data.get("role", ""),
            content=data.get("content", ""),
            timestamp=parse_timestamp(timestamp) if timestamp else utc_now(),
            tool_calls=tuple(
                ToolCall.from_dict(call) for call in data.get("toolCalls") or []
            ),
            tool_call_id=data.get("toolCallId"),
            name=data.get("name"),
        )
