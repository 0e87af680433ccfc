"""Pytest configuration and shared fixtures for colloquy tests.

This module provides a scripted ChatModel stand-in and helpers used across
unit and integration tests.
"""

import asyncio
from typing import Any

import pytest

from colloquy.conditions import Condition
from colloquy.errors import UnsupportedModelError
from colloquy.llm import ChatModel, ModelInfo, ModelSettings
from colloquy.sessions import Message, Session, ToolCall, ToolCallFunction


class ScriptedChatModel(ChatModel):
    """ChatModel that replays a scripted list of replies.

    Each script entry is a Message to return, an exception to raise, or the
    string "hang" to block until cancelled. Every call is recorded.
    """

    def __init__(self, replies: list[Any] | None = None, models: list[str] | None = None):
        self.replies = list(replies or [])
        self.models = models if models is not None else ["test-model"]
        self.calls: list[dict[str, Any]] = []
        self.validate_calls = 0

    def add_reply(self, reply: Any) -> "ScriptedChatModel":
        self.replies.append(reply)
        return self

    async def generate(
        self,
        messages: list[Message],
        model: str,
        settings: ModelSettings | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        self.calls.append(
            {
                "messages": list(messages),
                "model": model,
                "settings": settings,
                "tools": tools,
            }
        )
        if not self.replies:
            raise AssertionError("ScriptedChatModel ran out of replies")
        reply = self.replies.pop(0)
        if reply == "hang":
            await asyncio.Event().wait()
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def validate_model(self, name: str) -> None:
        self.validate_calls += 1
        if name not in self.models:
            raise UnsupportedModelError(name)

    async def model_info(self, name: str) -> ModelInfo | None:
        if name not in self.models:
            return None
        return ModelInfo(name=name, provider="scripted", supports_tools=True)

    async def supported_models(self) -> list[str]:
        return list(self.models)


class CountingCondition(Condition):
    """Condition returning a fixed value and counting evaluations."""

    def __init__(self, result: bool, label: str = "counting"):
        self.result = result
        self.label = label
        self.evaluations = 0

    @property
    def name(self) -> str:
        return self.label

    @property
    def description(self) -> str:
        return f"Always {self.result}"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        self.evaluations += 1
        return self.result


class ExplodingCondition(Condition):
    """Condition whose evaluation always raises."""

    @property
    def name(self) -> str:
        return "exploding"

    @property
    def description(self) -> str:
        return "Raises on evaluation"

    def evaluate(self, session: Session, data: dict[str, Any]) -> bool:
        raise RuntimeError("boom")


def tool_call_reply(*calls: tuple[str, str], content: str = "") -> Message:
    """Build an assistant reply requesting (name, arguments_json) tool calls."""
    return Message.assistant(
        content,
        tool_calls=[
            ToolCall(id=f"call_{index}", function=ToolCallFunction(name, arguments))
            for index, (name, arguments) in enumerate(calls)
        ],
    )


@pytest.fixture
def chat_model():
    """A ScriptedChatModel serving "test-model" with an empty script."""
    return ScriptedChatModel()


@pytest.fixture
def scripted_model():
    """Factory for ScriptedChatModel instances with a given script."""
    return ScriptedChatModel


@pytest.fixture
def counting_condition():
    """Factory for CountingCondition instances."""
    return CountingCondition


@pytest.fixture
def exploding_condition():
    return ExplodingCondition()


@pytest.fixture
def tool_reply():
    """The tool_call_reply helper, for building tool-requesting replies."""
    return tool_call_reply
