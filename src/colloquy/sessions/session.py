"""Session class holding one conversation's state.

This module provides the Session class which handles:
- The append-only message log
- The key-value scratch map for application state
- created_at / updated_at bookkeeping
- Conversion to and from the persisted JSON form

All access is serialized by an internal lock and readers always receive
copies, so a Session can be shared between threads and the event loop.
"""

import logging
import threading
from datetime import datetime
from typing import Any

from colloquy.sessions.types import (
    ROLE_ASSISTANT,
    ROLE_TOOL,
    Message,
    format_timestamp,
    parse_timestamp,
    utc_now,
)

logger = logging.getLogger(__name__)


class Session:
    """A single conversation keyed by a caller-chosen id.

    Persisted form:
    {
        "id": "...",
        "createdAt": "...Z",
        "updatedAt": "...Z",
        "messages": [...],
        "data": {...}
    }
    """

    def __init__(
        self,
        session_id: str,
        messages: list[Message] | None = None,
        data: dict[str, Any] | None = None,
        created_at: datetime | None = None,
        updated_at: datetime | None = None,
    ):
        """Initialize a Session.

        Args:
            session_id: Unique session identifier chosen by the caller
            messages: Initial message history (default: empty)
            data: Initial scratch data (default: empty)
            created_at: Creation time (default: now)
            updated_at: Last update time (default: created_at)
        """
        self._lock = threading.RLock()
        self._id = session_id
        self._messages: list[Message] = list(messages or [])
        self._data: dict[str, Any] = dict(data or {})
        self._created_at = created_at or utc_now()
        self._updated_at = updated_at or self._created_at

        # updated_at never trails the newest message
        if self._messages:
            newest = max(message.timestamp for message in self._messages)
            if newest > self._updated_at:
                self._updated_at = newest

    @property
    def id(self) -> str:
        return self._id

    @property
    def created_at(self) -> datetime:
        with self._lock:
            return self._created_at

    @property
    def updated_at(self) -> datetime:
        with self._lock:
            return self._updated_at

    def messages(self) -> list[Message]:
        """Return a snapshot of the message log."""
        with self._lock:
            return list(self._messages)

    def message_count(self) -> int:
        with self._lock:
            return len(self._messages)

    def last_message(self) -> Message | None:
        with self._lock:
            return self._messages[-1] if self._messages else None

    def add_message(self, message: Message) -> Message:
        """Append a message to the log.

        Args:
            message: The message to append

        Returns:
            The appended message

        Raises:
            ValueError: If a tool message answers a call id that no earlier
                assistant message requested
        """
        with self._lock:
            if message.role == ROLE_TOOL and not self._has_tool_call(
                message.tool_call_id
            ):
                raise ValueError(
                    f"Tool message references unknown call id {message.tool_call_id}"
                )

            self._messages.append(message)
            self._touch(message.timestamp)
            return message

    def _has_tool_call(self, call_id: str | None) -> bool:
        for message in reversed(self._messages):
            if message.role != ROLE_ASSISTANT:
                continue
            if any(call.id == call_id for call in message.tool_calls):
                return True
        return False

    def get_data(self, key: str, default: Any = None) -> Any:
        with self._lock:
            return self._data.get(key, default)

    def set_data(self, key: str, value: Any) -> None:
        with self._lock:
            self._data[key] = value
            self._touch()

    def delete_data(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)
            self._touch()

    def data(self) -> dict[str, Any]:
        """Return a shallow copy of the scratch map."""
        with self._lock:
            return dict(self._data)

    def _touch(self, at: datetime | None = None) -> None:
        now = utc_now()
        if at is not None and at > now:
            now = at
        if now > self._updated_at:
            self._updated_at = now

    def to_dict(self) -> dict[str, Any]:
        """Convert session to a dictionary for JSON serialization.

        Returns:
            Dictionary representation of the session
        """
        with self._lock:
            return {
                "id": self._id,
                "createdAt": format_timestamp(self._created_at),
                "updatedAt": format_timestamp(self._updated_at),
                "messages": [message.to_dict() for message in self._messages],
                "data": dict(self._data),
            }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """Rebuild a session from its persisted form.

        Raises:
            KeyError: If the id is missing
            ValueError: If a message is invalid
        """
        created_at = data.get("createdAt")
        updated_at = data.get("updatedAt")
        return cls(
            session_id=data["id"],
            messages=[Message.from_dict(item) for item in data.get("messages", [])],
            data=dict(data.get("data") or {}),
            created_at=parse_timestamp(created_at) if created_at else None,
            updated_at=parse_timestamp(updated_at) if updated_at else None,
        )

    def __repr__(self) -> str:
        return f"Session(id={self._id!r}, messages={self.message_count()})"
