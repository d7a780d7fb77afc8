from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from bank_auth.app.services.session_store import SessionSummary
from bank_auth.app.use_cases.sessions import (
    CleanupExpiredSessionsUseCase,
    ListSessionsUseCase,
    TerminateOtherSessionsUseCase,
    TerminateSessionUseCase,
)
from bank_auth.libs.result import Return

CURRENT = "a" * 64
OTHER = "b" * 64


def summary(session_id: str, is_current: bool = False) -> SessionSummary:
    now = datetime(2026, 1, 1, 12, 0, 0)
    return SessionSummary(
        session_id=session_id,
        ip_address="10.0.0.1",
        mfa_verified=True,
        created_at=now,
        last_activity=now,
        expires_at=datetime(2026, 1, 2, 12, 0, 0),
        is_expiring_soon=False,
        is_current=is_current,
    )


@pytest.fixture
def sessions():
    store = MagicMock()
    store.list_active = AsyncMock(
        return_value=Return.ok([summary(CURRENT, is_current=True), summary(OTHER)])
    )
    store.end_session = AsyncMock(return_value=Return.ok(True))
    store.end_all_user_sessions = AsyncMock(return_value=Return.ok(3))
    store.cleanup_expired = AsyncMock(return_value=Return.ok(7))
    return store


@pytest.mark.asyncio
async def test_list_sessions(sessions):
    user_id = uuid4()

    result = await ListSessionsUseCase(sessions).execute(user_id, CURRENT)

    assert result.value.total == 2
    assert result.value.sessions[0].is_current is True
    sessions.list_active.assert_called_once_with(user_id, CURRENT)


@pytest.mark.asyncio
async def test_terminate_own_session(sessions, mock_audit):
    result = await TerminateSessionUseCase(sessions, mock_audit).execute(
        uuid4(), OTHER, CURRENT
    )

    assert result.value.sessions_terminated == 1
    sessions.end_session.assert_called_once_with(OTHER)
    metadata = mock_audit.log_action.call_args.kwargs["metadata"]
    assert metadata == {"terminated_session": OTHER[:8], "was_current": False}


@pytest.mark.asyncio
async def test_terminate_foreign_session_is_not_found(sessions, mock_audit):
    result = await TerminateSessionUseCase(sessions, mock_audit).execute(
        uuid4(), "f" * 64, CURRENT
    )

    assert result.error.code == "SESSION_NOT_FOUND"
    sessions.end_session.assert_not_called()
    mock_audit.log_action.assert_not_called()


@pytest.mark.asyncio
async def test_terminate_other_sessions(sessions, mock_audit):
    user_id = uuid4()

    result = await TerminateOtherSessionsUseCase(sessions, mock_audit).execute(user_id, CURRENT)

    assert result.value.sessions_terminated == 3
    sessions.end_all_user_sessions.assert_called_once_with(user_id, CURRENT)
    assert mock_audit.log_security_event.call_args.args[0] == "ALL_SESSIONS_TERMINATED"


@pytest.mark.asyncio
async def test_cleanup_expired(sessions):
    result = await CleanupExpiredSessionsUseCase(sessions).execute()

    assert result.value.deleted_count == 7
