"""
Refresh Token Use Case

Rotates the token pair of a live, MFA-verified session.
"""

import logging
from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.cache import CacheError
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.token_service import ITokenService
from bank_auth.libs.result import Error, Result, Return
from .dtos import RefreshTokenResponse

logger = logging.getLogger(__name__)

REFRESH_TOKEN_INVALID = Error("REFRESH_TOKEN_INVALID", "Invalid or expired refresh token")


class RefreshTokenUseCase:
    """
    Use case for token refresh.

    Business Rules:
    - The refresh token must be valid, unrevoked and stored on an active,
      MFA-verified session of the same user
    - Rotation: a new pair replaces the old one, the old refresh token is
      blacklisted
    - The session lifetime window restarts
    - Every failure is reported as REFRESH_TOKEN_INVALID
    """

    def __init__(self, sessions: SessionStore, tokens: ITokenService, audit: IAuditSink):
        self.sessions = sessions
        self.tokens = tokens
        self.audit = audit

    async def execute(
        self, refresh_token: str, ip_address: Optional[str] = None
    ) -> Result[RefreshTokenResponse]:
        claims = await self.tokens.decode_refresh(refresh_token)
        if claims is None:
            return Return.err(REFRESH_TOKEN_INVALID)

        found = await self.sessions.find_by_refresh_token(refresh_token)
        if found.is_err():
            return Return.err(REFRESH_TOKEN_INVALID)
        descriptor = found.value

        if str(descriptor.user_id) != claims.get("user_id") or not descriptor.mfa_verified:
            return Return.err(REFRESH_TOKEN_INVALID)

        pair = self.tokens.issue_pair(UUID(claims["user_id"]), claims.get("email", ""))

        rotated = await self.sessions.rotate_tokens(
            descriptor.session_id, pair.access_token, pair.refresh_token
        )
        if rotated.is_err():
            return Return.err(REFRESH_TOKEN_INVALID)

        try:
            await self.tokens.invalidate(refresh_token)
        except CacheError as e:
            # The old token no longer matches the session, so it is dead anyway
            logger.warning("Could not blacklist rotated refresh token: %s", e)

        refreshed = await self.sessions.refresh(descriptor.session_id)
        if refreshed.is_err():
            return Return.err(REFRESH_TOKEN_INVALID)

        await self.audit.log_action(
            "TOKEN_REFRESHED",
            user_id=descriptor.user_id,
            session_id=descriptor.session_id,
            ip_address=ip_address,
        )

        return Return.ok(
            RefreshTokenResponse(
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                session_id=descriptor.session_id,
                expires_at=refreshed.value.expires_at,
            )
        )
