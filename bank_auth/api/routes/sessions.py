from fastapi import APIRouter, Depends, status

from bank_auth.api.error import raise_for_error
from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.use_cases.auth import AuthContext
from bank_auth.app.use_cases.sessions import (
    ListSessionsUseCase,
    SessionListResponse,
    TerminateOtherSessionsUseCase,
    TerminateSessionResponse,
    TerminateSessionUseCase,
)
from bank_auth.depends import get_audit_sink, get_current_session, get_session_store

router = APIRouter(prefix="/sessions", tags=["Sessions"])


@router.get("", status_code=status.HTTP_200_OK, response_model=SessionListResponse)
async def list_sessions(
    current: AuthContext = Depends(get_current_session),
    sessions: SessionStore = Depends(get_session_store),
):
    """
    List Active Sessions

    Only active, unexpired sessions of the caller, most recently used first.
    is_current marks the calling session; is_expiring_soon means under an
    hour left.
    """
    use_case = ListSessionsUseCase(sessions)
    result = await use_case.execute(current.user_id, current.session_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_200_OK,
    response_model=TerminateSessionResponse,
)
async def terminate_session(
    session_id: str,
    current: AuthContext = Depends(get_current_session),
    sessions: SessionStore = Depends(get_session_store),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Terminate Session

    Raises:
        - 404 Not Found: SESSION_NOT_FOUND (not one of the caller's live sessions)
    """
    use_case = TerminateSessionUseCase(sessions, audit)
    result = await use_case.execute(
        current.user_id, session_id, current.session_id, current.ip_address
    )

    if result.is_err():
        raise_for_error(
            result.error, overrides={"SESSION_NOT_FOUND": status.HTTP_404_NOT_FOUND}
        )

    return result.value


@router.post(
    "/terminate-others",
    status_code=status.HTTP_200_OK,
    response_model=TerminateSessionResponse,
)
async def terminate_other_sessions(
    current: AuthContext = Depends(get_current_session),
    sessions: SessionStore = Depends(get_session_store),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Logout Everywhere Else

    Ends every session of the caller except the current one.
    """
    use_case = TerminateOtherSessionsUseCase(sessions, audit)
    result = await use_case.execute(current.user_id, current.session_id, current.ip_address)

    if result.is_err():
        raise_for_error(result.error)

    return result.value
