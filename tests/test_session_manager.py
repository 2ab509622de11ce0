"""Tests for the session registry."""

from datetime import UTC, datetime, timedelta

import pytest

from painika.models.session import SessionConfig
from painika.services.session import ChatSession
from painika.services.session_manager import SessionRegistry
from tests.helpers import ScriptedService, make_client


@pytest.fixture
def registry():
    return SessionRegistry(
        session_timeout_minutes=5,
        factory=lambda config: ChatSession(client=make_client(ScriptedService())),
    )


class TestSessionRegistry:
    """Tests for session bookkeeping."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, registry):
        entry = await registry.create_session(SessionConfig())

        assert entry.session_id
        assert await registry.get_session(entry.session_id) is entry.session
        assert registry.get_session_count() == 1

    @pytest.mark.asyncio
    async def test_sessions_are_isolated(self, registry):
        """Test that two sessions keep separate conversations."""
        first = await registry.create_session(SessionConfig())
        second = await registry.create_session(SessionConfig())

        assert first.session_id != second.session_id
        assert first.session.conversation_id != second.session.conversation_id

    @pytest.mark.asyncio
    async def test_unknown_session(self, registry):
        assert await registry.get_session("missing") is None
        assert await registry.delete_session("missing") is False

    @pytest.mark.asyncio
    async def test_delete(self, registry):
        entry = await registry.create_session(SessionConfig())

        assert await registry.delete_session(entry.session_id) is True
        assert await registry.get_session(entry.session_id) is None
        assert registry.get_session_count() == 0

    @pytest.mark.asyncio
    async def test_expired_sessions_are_removed(self, registry):
        """Test that idle sessions past the timeout disappear on the next lookup."""
        entry = await registry.create_session(SessionConfig())
        entry.last_activity = datetime.now(UTC) - timedelta(minutes=10)

        assert await registry.get_session(entry.session_id) is None
        assert registry.get_session_count() == 0

    @pytest.mark.asyncio
    async def test_close_all(self, registry):
        await registry.create_session(SessionConfig())
        await registry.create_session(SessionConfig())

        await registry.close_all()

        assert registry.get_session_count() == 0

    def test_timeout_from_environment(self, monkeypatch):
        monkeypatch.setenv("PAINIKA_SESSION_TIMEOUT_MINUTES", "15")
        assert SessionRegistry().session_timeout == timedelta(minutes=15)
