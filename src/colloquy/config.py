"""Configuration module for colloquy using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ColloquySettings(BaseSettings):
    """Main configuration settings for colloquy.

    All settings can be overridden via environment variables with the
    COLLOQUY_ prefix. For example, COLLOQUY_OLLAMA_HOST will override the
    ollama_host setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"

    # Agent
    agent_name: str = "assistant"
    model: str = "llama3.2:latest"
    instructions: str | None = None
    max_tool_rounds: int = Field(default=4, ge=0)
    tool_timeout: float = Field(default=30.0, gt=0)
    llm_timeout: float = Field(default=30.0, gt=0)

    # Sessions
    session_backend: Literal["memory", "json"] = "memory"
    data_dir: str = "."
    sessions_dir: str = "sessions"

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"
    debug_logging: bool = False

    model_config = SettingsConfigDict(env_prefix="COLLOQUY_")

    @property
    def resolved_sessions_dir(self) -> Path:
        """Get the full path to the sessions directory."""
        return Path(self.data_dir) / self.sessions_dir
