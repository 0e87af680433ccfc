"""The Agent: a built, immutable conversational agent."""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from colloquy.agent.orchestrator import ChatOptions, TurnOrchestrator, TurnResult
from colloquy.errors import InvalidConfigError
from colloquy.llm.chat_model import ChatModel
from colloquy.llm.settings import ModelSettings
from colloquy.rules import Rule
from colloquy.sessions.session import Session
from colloquy.sessions.store import SessionStore
from colloquy.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


class Agent:
    """A configured agent. Create one with AgentBuilder.

    Turns for the same session id run one at a time; turns for different
    ids run concurrently. A session's lock lives only while some turn holds
    or waits for it.
    """

    def __init__(self, name: str, description: str, orchestrator: TurnOrchestrator):
        self.name = name
        self.description = description
        self._orchestrator = orchestrator
        self._session_locks: dict[str, asyncio.Lock] = {}
        self._lock_users: dict[str, int] = {}

    @property
    def model(self) -> str:
        return self._orchestrator.model

    @property
    def instructions(self) -> str:
        return self._orchestrator.instructions

    @property
    def model_settings(self) -> ModelSettings:
        return self._orchestrator.model_settings

    @property
    def chat_model(self) -> ChatModel:
        return self._orchestrator.chat_model

    @property
    def store(self) -> SessionStore:
        return self._orchestrator.store

    @property
    def tools(self) -> ToolRegistry:
        return self._orchestrator.tools

    @property
    def rules(self) -> tuple[Rule, ...]:
        return self._orchestrator.rules

    async def chat(
        self, session_id: str, utterance: str, options: ChatOptions | None = None
    ) -> TurnResult:
        """Run one conversational turn.

        Args:
            session_id: Conversation to continue (created if absent)
            utterance: What the user said
            options: Per-turn options; options.session_id wins over session_id

        Returns:
            TurnResult with the assistant reply and the updated session

        Raises:
            InvalidConfigError: If no session id is given
        """
        options = options or ChatOptions()
        session_id = options.session_id or session_id
        if not session_id:
            raise InvalidConfigError("A session id is required")

        logger.debug(f"Agent {self.name} handling turn for session {session_id}")
        async with self._session_turn(session_id):
            return await self._orchestrator.run(session_id, utterance, options)

    @asynccontextmanager
    async def _session_turn(self, session_id: str) -> AsyncIterator[None]:
        """Hold the session's lock for one turn, dropping it once unused."""
        lock = self._session_locks.get(session_id)
        if lock is None:
            lock = asyncio.Lock()
            self._session_locks[session_id] = lock
        self._lock_users[session_id] = self._lock_users.get(session_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[session_id] -= 1
            if self._lock_users[session_id] == 0:
                del self._lock_users[session_id]
                del self._session_locks[session_id]

    async def get_session(self, session_id: str) -> Session:
        """Load a session. Raises SessionNotFoundError if it does not exist."""
        return await self.store.get(session_id)

    async def list_sessions(self) -> list[str]:
        return await self.store.list_ids()

    async def delete_session(self, session_id: str) -> None:
        await self.store.delete(session_id)

    def __repr__(self) -> str:
        return (
            f"Agent(name={self.name!r}, model={self.model!r}, "
            f"rules={len(self.rules)}, tools={self.tools.names()})"
        )
