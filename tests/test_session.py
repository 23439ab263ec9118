"""Tests for checkout session bookkeeping"""

import asyncio
from datetime import datetime, timedelta

from checkout.core.session import SessionManager, TokenSession, session_manager
from checkout.main import sweep_sessions

from conftest import InMemoryCart, ScriptedWidget, line


def new_session(manager: SessionManager, idle_hours: float = 0):
    session = manager.create_session(
        auth=TokenSession(None),
        client=None,
        cart=InMemoryCart([line()]),
        widget=ScriptedWidget(),
    )
    session.updated_at = datetime.utcnow() - timedelta(hours=idle_hours)
    return session


class TestCleanup:
    def test_removes_only_idle_sessions(self):
        manager = SessionManager()
        idle = new_session(manager, idle_hours=30)
        fresh = new_session(manager, idle_hours=1)

        assert manager.cleanup_old_sessions(max_age_hours=24) == 1
        assert manager.get_session(idle.session_id) is None
        assert manager.get_session(fresh.session_id) is fresh

    async def test_keeps_sessions_with_running_attempt(self):
        manager = SessionManager()
        busy = new_session(manager, idle_hours=30)
        busy.task = asyncio.create_task(asyncio.Event().wait())

        try:
            assert manager.cleanup_old_sessions(max_age_hours=24) == 0
        finally:
            busy.task.cancel()

    def test_access_marks_session_used(self):
        manager = SessionManager()
        session = new_session(manager, idle_hours=30)

        manager.get_session(session.session_id)

        assert manager.cleanup_old_sessions(max_age_hours=24) == 0


async def test_sweeper_drops_idle_sessions():
    idle = new_session(session_manager, idle_hours=30)

    sweeper = asyncio.create_task(sweep_sessions(interval=0.01, max_age_hours=24))
    try:
        await asyncio.sleep(0.05)
    finally:
        sweeper.cancel()

    assert idle.session_id not in session_manager.sessions
