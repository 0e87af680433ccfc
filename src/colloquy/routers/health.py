"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Depends, Request

from colloquy.agent import Agent
from colloquy.dependencies import get_agent
from colloquy.models.health import HealthResponse
from colloquy.ollama import OllamaChatModel

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check(
    request: Request, agent: Agent = Depends(get_agent)
) -> HealthResponse:
    """Health check endpoint.

    Returns the service version and the agent it serves. When the agent
    runs on Ollama, connectivity to the Ollama server is checked as well.
    """
    ollama_connected = None
    ollama_host = None

    chat_model = agent.chat_model
    if isinstance(chat_model, OllamaChatModel):
        ollama_host = chat_model.host
        ollama_connected = await chat_model.check_connection()
        logger.debug(f"Ollama connectivity check: {ollama_connected}")

    return HealthResponse(
        status="ok",
        version=request.app.version,
        agent=agent.name,
        model=agent.model,
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
    )
