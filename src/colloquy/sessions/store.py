"""Session stores.

This module provides the SessionStore contract and two implementations:
- InMemorySessionStore: a dict guarded by a single lock
- JsonFileSessionStore: one JSON file per session on disk
"""

import json
import logging
import re
import threading
from abc import ABC, abstractmethod
from pathlib import Path

from colloquy.errors import InvalidConfigError, SessionNotFoundError
from colloquy.sessions.session import Session

logger = logging.getLogger(__name__)

_SESSION_ID_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class SessionStore(ABC):
    """Persistence contract for sessions.

    Operations on one session id must be linearizable. Distinct ids need
    not coordinate.
    """

    @abstractmethod
    async def get(self, session_id: str) -> Session:
        """Return the session stored under session_id.

        Raises:
            SessionNotFoundError: If no such session exists
        """

    @abstractmethod
    async def put(self, session: Session) -> None:
        """Store the session, replacing any previous version."""

    @abstractmethod
    async def delete(self, session_id: str) -> None:
        """Delete a session.

        Raises:
            SessionNotFoundError: If no such session exists
        """

    @abstractmethod
    async def exists(self, session_id: str) -> bool:
        """Check whether a session exists."""

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """List all stored session ids, sorted."""

    async def get_or_create(self, session_id: str) -> Session:
        """Return the stored session, creating and storing a new one if absent."""
        try:
            return await self.get(session_id)
        except SessionNotFoundError:
            session = Session(session_id)
            await self.put(session)
            logger.info(f"Created new session {session_id}")
            return session


class InMemorySessionStore(SessionStore):
    """Keeps live Session objects in a dict.

    The store-wide lock is only held while reading or writing a slot; the
    Session guards its own fields.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    async def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def put(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.id] = session

    async def delete(self, session_id: str) -> None:
        with self._lock:
            if session_id not in self._sessions:
                raise SessionNotFoundError(session_id)
            del self._sessions[session_id]
        logger.info(f"Deleted session {session_id}")

    async def exists(self, session_id: str) -> bool:
        with self._lock:
            return session_id in self._sessions

    async def list_ids(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    async def get_or_create(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(session_id)
                self._sessions[session_id] = session
                logger.info(f"Created new session {session_id}")
            return session


class JsonFileSessionStore(SessionStore):
    """Stores each session as <sessions_dir>/<session_id>.json.

    Session ids are restricted to letters, digits, '_', '.' and '-' so they
    map onto file names safely.
    """

    def __init__(self, sessions_dir: Path):
        """Initialize the store.

        Args:
            sessions_dir: Directory where session JSON files are stored
        """
        self.sessions_dir = sessions_dir
        self.sessions_dir.mkdir(parents=True, exist_ok=True)
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _path(self, session_id: str) -> Path:
        if not _SESSION_ID_PATTERN.match(session_id) or session_id in (".", ".."):
            raise InvalidConfigError(f"Invalid session id: {session_id!r}")
        return self.sessions_dir / f"{session_id}.json"

    def _lock_for(self, session_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault(session_id, threading.Lock())

    async def get(self, session_id: str) -> Session:
        file_path = self._path(session_id)
        with self._lock_for(session_id):
            if not file_path.exists():
                raise SessionNotFoundError(session_id)
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)

        session = Session.from_dict(data)
        logger.debug(f"Loaded session {session_id} from {file_path}")
        return session

    async def put(self, session: Session) -> None:
        file_path = self._path(session.id)
        data = session.to_dict()
        tmp_path = file_path.with_suffix(".json.tmp")

        with self._lock_for(session.id):
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
            tmp_path.replace(file_path)

        logger.debug(f"Saved session {session.id} to {file_path}")

    async def delete(self, session_id: str) -> None:
        file_path = self._path(session_id)
        with self._lock_for(session_id):
            if not file_path.exists():
                raise SessionNotFoundError(session_id)
            file_path.unlink()
        logger.info(f"Deleted session {session_id}")

    async def exists(self, session_id: str) -> bool:
        return self._path(session_id).exists()

    async def list_ids(self) -> list[str]:
        return sorted(path.stem for path in self.sessions_dir.glob("*.json"))
