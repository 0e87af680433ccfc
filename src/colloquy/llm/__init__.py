"""LLM contract shared by the agent and its providers."""

from colloquy.llm.chat_model import ChatModel
from colloquy.llm.settings import ModelSettings
from colloquy.llm.types import ModelInfo

__all__ = ["ChatModel", "ModelInfo", "ModelSettings"]
