"""Unit tests for mapping colloquy errors onto HTTP responses."""

import pytest

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
from colloquy.routers.errors import to_http_exception


@pytest.mark.parametrize(
    "error,status_code,code",
    [
        (SessionNotFoundError("s1"), 404, "session_not_found"),
        (UnsupportedModelError("m"), 400, "unsupported_model"),
        (InvalidConfigError("bad"), 422, "invalid_config"),
        (LLMError("down"), 502, "llm_error"),
        (ToolLoopExhaustedError(3), 500, "tool_loop_exhausted"),
        (ToolError("broken"), 500, "tool_error"),
        (TurnTimeoutError("slow"), 504, "turn_timeout"),
        (TurnCancelledError("stop"), 504, "turn_cancelled"),
        (ColloquyError("other"), 500, "internal_error"),
    ],
)
def test_error_mapping(error, status_code, code):
    exc = to_http_exception(error)

    assert exc.status_code == status_code
    assert exc.detail["error"]["code"] == code
    assert exc.detail["error"]["message"] == str(error)


def test_error_details():
    assert to_http_exception(SessionNotFoundError("s1")).detail["error"]["details"] == {
        "session_id": "s1"
    }
    assert to_http_exception(SessionNotFoundError("s1")).detail["error"]["message"] == (
        "Session s1 not found"
    )
    assert to_http_exception(ToolLoopExhaustedError(2, "partial")).detail["error"][
        "details"
    ] == {"rounds": 2, "last_text": "partial"}
    assert to_http_exception(LLMError("down")).detail["error"]["details"] == {}
