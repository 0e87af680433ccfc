"""Dependency injection providers for FastAPI endpoints."""

from functools import lru_cache

from fastapi import HTTPException, Request

from colloquy.agent import Agent
from colloquy.config import ColloquySettings


@lru_cache
def get_settings() -> ColloquySettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the COLLOQUY_ prefix.

    Returns:
        ColloquySettings: The application configuration settings.
    """
    return ColloquySettings()


def get_agent(request: Request) -> Agent:
    """Get the agent from app state.

    Raises:
        HTTPException: If the agent is not initialized (503 Service Unavailable).
    """
    agent = getattr(request.app.state, "agent", None)
    if agent is None:
        raise HTTPException(
            status_code=503,
            detail={
                "error": {
                    "code": "agent_unavailable",
                    "message": "Agent not initialized",
                    "details": {},
                }
            },
        )
    return agent
