"""
Logout Use Case
"""

import logging
from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.cache import CacheError
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.token_service import ITokenService
from bank_auth.libs.result import Result, Return
from .dtos import LogoutResponse

logger = logging.getLogger(__name__)


class LogoutUseCase:
    """
    Use case for logout.

    Business Rules:
    - Idempotent: logging out of an ended or unknown session succeeds
    - The bearer token is blacklisted for the rest of its lifetime
    - The session is soft-revoked and evicted from the cache
    """

    def __init__(self, sessions: SessionStore, tokens: ITokenService, audit: IAuditSink):
        self.sessions = sessions
        self.tokens = tokens
        self.audit = audit

    async def execute(
        self,
        session_id: str,
        access_token: Optional[str] = None,
        user_id: Optional[UUID] = None,
        ip_address: Optional[str] = None,
    ) -> Result[LogoutResponse]:
        if access_token:
            try:
                await self.tokens.invalidate(access_token)
            except CacheError as e:
                logger.warning("Could not blacklist access token on logout: %s", e)

        ended = await self.sessions.end_session(session_id)

        if ended.value:
            await self.audit.log_action(
                "LOGOUT",
                user_id=user_id,
                session_id=session_id,
                ip_address=ip_address,
            )

        return Return.ok(LogoutResponse(status="success", message="Logged out successfully"))
