"""Sessions router.

This module provides REST API endpoints for:
- Listing all sessions
- Retrieving session details
- Getting session messages
- Deleting sessions
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status

from colloquy.agent import Agent
from colloquy.dependencies import get_agent
from colloquy.errors import ColloquyError
from colloquy.models.sessions import (
    MessagesResponse,
    SessionDetailResponse,
    SessionListResponse,
    message_to_response,
)
from colloquy.routers.errors import to_http_exception
from colloquy.sessions.types import format_timestamp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


@router.get("", response_model=SessionListResponse, summary="List sessions")
async def list_sessions(
    agent: Annotated[Agent, Depends(get_agent)],
) -> SessionListResponse:
    session_ids = await agent.list_sessions()
    logger.debug(f"Listed {len(session_ids)} sessions")
    return SessionListResponse(session_ids=session_ids)


@router.get(
    "/{session_id}",
    response_model=SessionDetailResponse,
    summary="Get session details",
)
async def get_session(
    session_id: str,
    agent: Annotated[Agent, Depends(get_agent)],
) -> SessionDetailResponse:
    """Get a session including its message history and scratch data.

    Raises:
        HTTPException: 404 if session not found
    """
    try:
        session = await agent.get_session(session_id)
    except ColloquyError as e:
        logger.warning(f"Session {session_id} not available: {e}")
        raise to_http_exception(e)

    messages = session.messages()
    return SessionDetailResponse(
        session_id=session.id,
        created_at=format_timestamp(session.created_at),
        updated_at=format_timestamp(session.updated_at),
        message_count=len(messages),
        messages=[message_to_response(message) for message in messages],
        data=session.data(),
    )


@router.get(
    "/{session_id}/messages",
    response_model=MessagesResponse,
    summary="Get session messages",
)
async def get_messages(
    session_id: str,
    agent: Annotated[Agent, Depends(get_agent)],
) -> MessagesResponse:
    """Get all messages from a session.

    Raises:
        HTTPException: 404 if session not found
    """
    try:
        session = await agent.get_session(session_id)
    except ColloquyError as e:
        logger.warning(f"Session {session_id} not available: {e}")
        raise to_http_exception(e)

    return MessagesResponse(
        messages=[message_to_response(message) for message in session.messages()]
    )


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a session",
)
async def delete_session(
    session_id: str,
    agent: Annotated[Agent, Depends(get_agent)],
) -> None:
    """Delete a session permanently.

    Raises:
        HTTPException: 404 if session not found
    """
    try:
        await agent.delete_session(session_id)
    except ColloquyError as e:
        logger.warning(f"Failed to delete session {session_id}: {e}")
        raise to_http_exception(e)

    logger.info(f"Deleted session {session_id}")
