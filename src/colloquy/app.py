"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and
configures the FastAPI application, including lifespan management for
startup/shutdown and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from colloquy.agent import Agent, AgentBuilder
from colloquy.config import ColloquySettings
from colloquy.ollama import OllamaChatModel
from colloquy.routers import chat, health, models, sessions
from colloquy.sessions.store import (
    InMemorySessionStore,
    JsonFileSessionStore,
    SessionStore,
)

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def build_session_store(settings: ColloquySettings) -> SessionStore:
    """Create the session store selected by settings.session_backend."""
    if settings.session_backend == "json":
        logger.info(f"Using JSON session store at {settings.resolved_sessions_dir}")
        return JsonFileSessionStore(settings.resolved_sessions_dir)
    return InMemorySessionStore()


def build_default_agent(settings: ColloquySettings) -> Agent:
    """Build an Ollama-backed agent from settings alone."""
    chat_model = OllamaChatModel(host=settings.ollama_host, timeout=settings.llm_timeout)
    return (
        AgentBuilder()
        .with_settings(settings)
        .with_chat_model(chat_model)
        .with_session_store(build_session_store(settings))
        .build()
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    When no agent was supplied to create_app(), an Ollama-backed agent is
    built from settings at startup and its client is closed at shutdown.
    """
    settings: ColloquySettings = app.state.settings
    owns_agent = app.state.agent is None

    if owns_agent:
        app.state.agent = build_default_agent(settings)
        logger.info(f"Initialized agent with Ollama host: {settings.ollama_host}")

    chat_model = app.state.agent.chat_model
    if isinstance(chat_model, OllamaChatModel):
        connected = await chat_model.check_connection()
        if connected:
            logger.info("Successfully connected to Ollama")
        else:
            logger.warning("Could not connect to Ollama - check if server is running")

    yield

    if owns_agent and isinstance(chat_model, OllamaChatModel):
        await chat_model.close()
        logger.info("Ollama client closed")


def create_app(
    agent: Agent | None = None, settings: ColloquySettings | None = None
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        agent: The agent to serve. If not provided, one is built from
               settings at startup.
        settings: Optional ColloquySettings instance. If not provided,
                  settings will be loaded from environment variables.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from colloquy.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="colloquy",
        description="Conversational agent server with rules, tools and sessions",
        version=VERSION,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.agent = agent

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(models.router)
    app.include_router(sessions.router)
    app.include_router(chat.router)

    return app
