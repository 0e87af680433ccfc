"""Session management for colloquy.

This package provides the message model, the thread-safe Session and the
stores that persist sessions between turns.
"""

from colloquy.sessions.session import Session
from colloquy.sessions.store import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionStore,
)
from colloquy.sessions.types import (
    ROLE_ASSISTANT,
    ROLE_SYSTEM,
    ROLE_TOOL,
    ROLE_USER,
    Message,
    ToolCall,
    ToolCallFunction,
)

__all__ = [
    # Core classes
    "Session",
    "SessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
    # Message types
    "Message",
    "ToolCall",
    "ToolCallFunction",
    # Roles
    "ROLE_USER",
    "ROLE_ASSISTANT",
    "ROLE_SYSTEM",
    "ROLE_TOOL",
]
