"""
Admin API Routes - Maintenance Endpoints

Called by schedulers and operators. Authentication is via Admin API Key,
not user JWTs.
"""

from fastapi import APIRouter, Depends, status

from bank_auth.api.error import raise_for_error
from bank_auth.api.utils.admin_auth import verify_admin_api_key
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.use_cases.sessions import (
    CleanupExpiredSessionsUseCase,
    CleanupResponse,
)
from bank_auth.depends import get_session_store

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/sessions/cleanup",
    status_code=status.HTTP_200_OK,
    response_model=CleanupResponse,
    dependencies=[Depends(verify_admin_api_key)],
)
async def cleanup_expired_sessions(sessions: SessionStore = Depends(get_session_store)):
    """
    Cleanup Expired Sessions

    Hard-deletes every session past its expiry. Safe to call repeatedly.

    Requires: X-Admin-API-Key header

    Raises:
        - 401 Unauthorized: Missing or invalid admin API key
    """
    use_case = CleanupExpiredSessionsUseCase(sessions)
    result = await use_case.execute()

    if result.is_err():
        raise_for_error(result.error)

    return result.value
