"""Ollama integration."""

from colloquy.ollama.client import OllamaChatModel

__all__ = ["OllamaChatModel"]
