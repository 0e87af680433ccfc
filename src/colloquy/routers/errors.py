"""Translation of colloquy errors into HTTP responses.

Error bodies have the shape:
    {"error": {"code": "...", "message": "...", "details": {...}}}
"""

import logging
from typing import Any

from fastapi import HTTPException

from colloquy.errors import (
    ColloquyError,
    InvalidConfigError,
    LLMError,
    SessionNotFoundError,
    ToolError,
    ToolLoopExhaustedError,
    TurnCancelledError,
    TurnTimeoutError,
    UnsupportedModelError,
)

logger = logging.getLogger(__name__)

# Checked in order; subclasses before their bases
_ERROR_MAP: list[tuple[type[ColloquyError], int, str]] = [
    (SessionNotFoundError, 404, "session_not_found"),
    (UnsupportedModelError, 400, "unsupported_model"),
    (InvalidConfigError, 422, "invalid_config"),
    (LLMError, 502, "llm_error"),
    (ToolLoopExhaustedError, 500, "tool_loop_exhausted"),
    (ToolError, 500, "tool_error"),
    (TurnTimeoutError, 504, "turn_timeout"),
    (TurnCancelledError, 504, "turn_cancelled"),
]


def http_error(
    status_code: int, code: str, message: str, details: dict[str, Any] | None = None
) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={
            "error": {
                "code": code,
                "message": message,
                "details": details or {},
            }
        },
    )


def to_http_exception(error: ColloquyError) -> HTTPException:
    """Map a colloquy error onto an HTTPException."""
    for error_type, status_code, code in _ERROR_MAP:
        if isinstance(error, error_type):
            return http_error(status_code, code, str(error), _details(error))

    logger.error(f"Unmapped error: {error}")
    return http_error(500, "internal_error", str(error))


def _details(error: ColloquyError) -> dict[str, Any]:
    if isinstance(error, SessionNotFoundError):
        return {"session_id": error.session_id}
    if isinstance(error, UnsupportedModelError):
        return {"model": error.model}
    if isinstance(error, ToolLoopExhaustedError):
        return {"rounds": error.rounds, "last_text": error.last_text}
    return {}
