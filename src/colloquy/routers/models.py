"""Models router for listing and inspecting the models the agent can use."""

import logging

from fastapi import APIRouter, Depends

from colloquy.agent import Agent
from colloquy.dependencies import get_agent
from colloquy.errors import ColloquyError
from colloquy.models.models import ModelDetail, ModelListResponse
from colloquy.routers.errors import http_error, to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["models"])


@router.get("/models", response_model=ModelListResponse)
async def list_models(agent: Agent = Depends(get_agent)) -> ModelListResponse:
    """List the models the agent's ChatModel can serve.

    Raises:
        HTTPException: 502 if the provider cannot be reached
    """
    try:
        names = await agent.chat_model.supported_models()
    except ColloquyError as e:
        logger.error(f"Failed to list models: {e}")
        raise to_http_exception(e)

    logger.info(f"Listed {len(names)} models")
    return ModelListResponse(models=names)


@router.get("/models/{model_name:path}", response_model=ModelDetail)
async def get_model_detail(
    model_name: str, agent: Agent = Depends(get_agent)
) -> ModelDetail:
    """Get detailed information about a specific model.

    Raises:
        HTTPException: 404 if model not found, 502 if the provider fails
    """
    try:
        info = await agent.chat_model.model_info(model_name)
    except ColloquyError as e:
        logger.error(f"Failed to get model details for {model_name}: {e}")
        raise to_http_exception(e)

    if info is None:
        logger.info(f"Model not found: {model_name}")
        raise http_error(
            404,
            "model_not_found",
            f"Model '{model_name}' not found",
            {"model": model_name},
        )

    return ModelDetail.from_info(info)
