"""API routers for colloquy."""

from colloquy.routers import chat, health, models, sessions

__all__ = ["chat", "health", "models", "sessions"]
