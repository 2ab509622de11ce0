"""Session registry for in-memory session engines."""

import os
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from painika.models.session import SessionConfig
from painika.services.session import ChatSession
from painika.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()

SessionFactory = Callable[[SessionConfig], ChatSession]


@dataclass
class SessionEntry:
    """A registered session and its bookkeeping."""

    session_id: str
    session: ChatSession
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)


class SessionRegistry:
    """Sessions keyed by id, handed to request handlers instead of a process-wide current session."""

    def __init__(self, session_timeout_minutes: int | None = None, factory: SessionFactory | None = None):
        """Initialize session registry.

        Args:
            session_timeout_minutes: Idle minutes before a session expires
                (defaults to PAINIKA_SESSION_TIMEOUT_MINUTES, then 60)
            factory: Builds a session engine from its configuration
        """
        if session_timeout_minutes is None:
            session_timeout_minutes = int(os.getenv("PAINIKA_SESSION_TIMEOUT_MINUTES", "60"))

        self.sessions: dict[str, SessionEntry] = {}
        self.session_timeout = timedelta(minutes=session_timeout_minutes)
        self.factory: SessionFactory = factory or (lambda config: ChatSession(config))

    async def create_session(self, config: SessionConfig) -> SessionEntry:
        """Build and register a new session.

        Raises:
            ConfigurationError: If the configuration lacks a usable credential
        """
        await self._cleanup_expired_sessions()

        session = self.factory(config)
        entry = SessionEntry(session_id=self._generate_session_id(), session=session)
        self.sessions[entry.session_id] = entry

        logger.info(f"Created session {entry.session_id} (conversation {session.conversation_id})")
        return entry

    async def get_session(self, session_id: str) -> ChatSession | None:
        """Get existing session by ID.

        Returns:
            Session if found and not expired, None otherwise
        """
        await self._cleanup_expired_sessions()

        entry = self.sessions.get(session_id)
        if entry is None:
            return None

        entry.update_activity()
        return entry.session

    async def delete_session(self, session_id: str) -> bool:
        """Delete a session and release its HTTP client.

        Returns:
            True if session was deleted, False if not found
        """
        entry = self.sessions.pop(session_id, None)
        if entry is None:
            return False

        await entry.session.aclose()
        logger.info(f"Deleted session {session_id}")
        return True

    async def close_all(self) -> None:
        for session_id in list(self.sessions):
            await self.delete_session(session_id)

    def get_session_count(self) -> int:
        return len(self.sessions)

    def _generate_session_id(self) -> str:
        """Generate a new CUID-based session ID."""
        return cuid()

    async def _cleanup_expired_sessions(self) -> None:
        """Remove expired sessions from memory."""
        current_time = datetime.now(UTC)
        expired_sessions = [
            session_id
            for session_id, entry in self.sessions.items()
            if current_time - entry.last_activity > self.session_timeout
        ]

        for session_id in expired_sessions:
            logger.info(f"Session {session_id} expired")
            await self.delete_session(session_id)
