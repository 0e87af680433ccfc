"""Chat API endpoint."""

import logging

from fastapi import APIRouter, Depends

from colloquy.agent import Agent, ChatOptions
from colloquy.dependencies import get_agent
from colloquy.errors import ColloquyError
from colloquy.models.chat import ChatRequest, ChatResponse
from colloquy.models.sessions import message_to_response
from colloquy.routers.errors import to_http_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


@router.post("/{session_id}", response_model=ChatResponse)
async def chat(
    session_id: str,
    request_body: ChatRequest,
    agent: Agent = Depends(get_agent),
) -> ChatResponse:
    """Run one turn in a session and return the assistant reply.

    The session is created on first use.

    Args:
        session_id: The session ID to chat in
        request_body: The user message and per-turn options
        agent: Injected agent

    Returns:
        ChatResponse with the committed assistant message

    Raises:
        HTTPException: 400 for an unsupported model, 422 for invalid
            configuration, 502 if the LLM fails, 500 if tool resolution
            fails, 504 if the turn times out
    """
    options = ChatOptions(
        model_settings=request_body.model_settings,
        data=request_body.data,
        timeout=request_body.timeout,
    )

    try:
        result = await agent.chat(session_id, request_body.message, options)
    except ColloquyError as e:
        logger.warning(f"Chat turn for session {session_id} failed: {e}")
        raise to_http_exception(e)

    return ChatResponse(
        session_id=result.session.id,
        message=message_to_response(result.message),
        matched_rule=result.matched_rule,
        state=result.state.value,
        llm_calls=result.llm_calls,
        structured_output=result.structured_output,
    )
