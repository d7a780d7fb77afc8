from datetime import datetime
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from bank_auth.app.services.session_store import SessionDescriptor, SessionTokens
from bank_auth.app.use_cases.auth import ClientContext, ResendMfaUseCase, VerifyMfaUseCase
from bank_auth.domain.entities import AuditSeverity, User
from bank_auth.libs.result import Error, Return
from tests.utils.audit import audited_actions

SESSION_ID = "b" * 64


@pytest.fixture
def user():
    return User(
        id=uuid4(),
        email="jane@bank.com",
        password_hash="x",
        first_name="Jane",
        last_name="Doe",
        mfa_enabled=True,
    )


@pytest.fixture
def sessions(user):
    expires_at = datetime(2026, 1, 2, 12, 0, 0)
    store = MagicMock()
    store.validate = AsyncMock(
        return_value=Return.ok(
            SessionDescriptor(
                session_id=SESSION_ID,
                user_id=user.id,
                ip_address="10.0.0.1",
                mfa_verified=False,
                expires_at=expires_at,
            )
        )
    )
    store.mark_mfa_verified = AsyncMock(return_value=Return.ok(None))
    store.get_tokens = AsyncMock(
        return_value=Return.ok(
            SessionTokens(access_token="access.jwt", refresh_token="refresh.jwt", expires_at=expires_at)
        )
    )
    return store


@pytest.fixture
def mfa():
    manager = MagicMock()
    manager.verify = AsyncMock(return_value=Return.ok(True))
    manager.resend = AsyncMock(return_value=Return.ok(600))
    return manager


@pytest.mark.asyncio
async def test_verify_mfa_hands_out_stored_tokens(mock_uow, mfa, sessions, mock_audit, user):
    mock_uow.users.get_by_id.return_value = user

    use_case = VerifyMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute(SESSION_ID, "123456", ClientContext())

    assert result.is_ok()
    assert result.value.access_token == "access.jwt"
    assert result.value.user.id == user.id
    mfa.verify.assert_called_once_with(user.id, "123456")
    sessions.mark_mfa_verified.assert_called_once_with(SESSION_ID)
    assert audited_actions(mock_audit) == ["MFA_VERIFIED", "LOGIN_SUCCESS"]


@pytest.mark.asyncio
async def test_verify_mfa_wrong_code(mock_uow, mfa, sessions, mock_audit):
    mfa.verify.return_value = Return.err(Error("CODE_MISMATCH", "Invalid verification code"))

    use_case = VerifyMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute(SESSION_ID, "000000", ClientContext())

    assert result.error.code == "CODE_MISMATCH"
    sessions.mark_mfa_verified.assert_not_called()
    sessions.get_tokens.assert_not_called()
    assert audited_actions(mock_audit) == ["MFA_VERIFICATION_FAILED"]


@pytest.mark.asyncio
async def test_verify_mfa_lockout_is_critical(mock_uow, mfa, sessions, mock_audit):
    mfa.verify.return_value = Return.err(Error("TOO_MANY_ATTEMPTS", "Too many attempts"))

    use_case = VerifyMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    await use_case.execute(SESSION_ID, "000000", ClientContext())

    assert mock_audit.log_security_event.call_args.kwargs["severity"] == AuditSeverity.critical


@pytest.mark.asyncio
async def test_verify_mfa_unknown_session(mock_uow, mfa, sessions, mock_audit):
    sessions.validate.return_value = Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

    use_case = VerifyMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute("unknown", "123456", ClientContext())

    assert result.error.code == "SESSION_NOT_FOUND"
    mfa.verify.assert_not_called()


@pytest.mark.asyncio
async def test_resend_mfa(mock_uow, mfa, sessions, mock_audit, user):
    mock_uow.users.get_by_id.return_value = user

    use_case = ResendMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute(SESSION_ID, ClientContext())

    assert result.value.masked_email == "ja***@bank.com"
    assert result.value.expires_in == 600
    mfa.resend.assert_called_once_with(user.id, "jane@bank.com", "Jane Doe")
    assert audited_actions(mock_audit) == ["MFA_CODE_RESENT"]


@pytest.mark.asyncio
async def test_resend_refused_for_verified_session(mock_uow, mfa, sessions, mock_audit, user):
    descriptor = sessions.validate.return_value.value
    sessions.validate.return_value = Return.ok(descriptor.model_copy(update={"mfa_verified": True}))

    use_case = ResendMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute(SESSION_ID, ClientContext())

    assert result.error.code == "MFA_NOT_PENDING"
    mfa.resend.assert_not_called()


@pytest.mark.asyncio
async def test_resend_rate_limited(mock_uow, mfa, sessions, mock_audit, user):
    mock_uow.users.get_by_id.return_value = user
    mfa.resend.return_value = Return.err(Error("TOO_MANY_ATTEMPTS", "Too many requests"))

    use_case = ResendMfaUseCase(mock_uow, mfa, sessions, mock_audit)
    result = await use_case.execute(SESSION_ID, ClientContext())

    assert result.error.code == "TOO_MANY_ATTEMPTS"
    mock_audit.log_action.assert_not_called()
