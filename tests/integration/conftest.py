"""Pytest configuration for integration tests.

The app under test serves an agent backed by a scripted ChatModel and a
JSON session store in a temporary directory.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from colloquy import create_app
from colloquy.agent import AgentBuilder
from colloquy.conditions import Contains
from colloquy.config import ColloquySettings
from colloquy.sessions import JsonFileSessionStore
from colloquy.tools import ToolBuilder


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with an isolated data directory."""
    return ColloquySettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        data_dir=str(tmp_path),
        sessions_dir="sessions",
        session_backend="json",
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def model(scripted_model):
    """The scripted ChatModel behind the test agent. Tests append replies."""
    return scripted_model()


@pytest.fixture
def test_agent(model, test_settings):
    add = (
        ToolBuilder("add")
        .with_description("Add two numbers")
        .with_param("a", "number")
        .with_param("b", "number")
        .with_func(lambda a, b: a + b)
        .build()
    )
    return (
        AgentBuilder("support")
        .with_chat_model(model)
        .with_model("test-model")
        .with_session_store(JsonFileSessionStore(test_settings.resolved_sessions_dir))
        .with_tool(add)
        .with_max_tool_rounds(1)
        .when(Contains("hello")).ask("Hi! How can I help?").build()
        .when(Contains("help"))
        .ask_ai("Offer order support.")
        .or_else("I can help with orders.")
        .build()
        .build()
    )


@pytest.fixture
def test_app(test_agent, test_settings):
    return create_app(agent=test_agent, settings=test_settings)


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
