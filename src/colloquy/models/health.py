"""Health check response model."""

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint.

    Attributes:
        status: Health status indicator ("ok" or "error").
        version: The version of colloquy.
        agent: Name of the served agent.
        model: Model the agent talks to.
        ollama_connected: Ollama connectivity, when the agent runs on Ollama.
        ollama_host: The Ollama host URL, when the agent runs on Ollama.
    """

    status: str = Field(..., description="Health status of the service")
    version: str = Field(..., description="Version of colloquy")
    agent: str = Field(..., description="Name of the served agent")
    model: str = Field(..., description="Model the agent uses")
    ollama_connected: bool | None = Field(
        default=None, description="Whether Ollama is reachable"
    )
    ollama_host: str | None = Field(default=None, description="Ollama host URL")
