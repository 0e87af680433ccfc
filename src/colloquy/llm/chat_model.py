"""The ChatModel contract the agent talks to."""

from abc import ABC, abstractmethod
from typing import Any

from colloquy.llm.settings import ModelSettings
from colloquy.llm.types import ModelInfo
from colloquy.sessions.types import Message


class ChatModel(ABC):
    """Abstract LLM transport.

    Implementations translate the conversation into their provider's wire
    format and return the assistant reply as a Message.
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        model: str,
        settings: ModelSettings | None = None,
        tools: list[dict[str, Any]] | None = None,
    ) -> Message:
        """Produce the next assistant message.

        Args:
            messages: Full prompt, oldest first
            model: Model name to use
            settings: Sampling settings (None for provider defaults)
            tools: Function schemas the model may call

        Returns:
            An assistant Message, possibly carrying tool calls

        Raises:
            LLMError: If the provider fails or returns nothing usable
        """

    @abstractmethod
    async def validate_model(self, name: str) -> None:
        """Check that the model can be used.

        Raises:
            UnsupportedModelError: If the model is not available
        """

    @abstractmethod
    async def model_info(self, name: str) -> ModelInfo | None:
        """Return metadata for a model, or None if it is unknown."""

    @abstractmethod
    async def supported_models(self) -> list[str]:
        """List model names this ChatModel can serve."""
