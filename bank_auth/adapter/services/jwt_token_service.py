"""
JWT token service.

HS256 access and refresh tokens signed with separate secrets. Revoked
tokens are kept in the cache at blacklist:{token} until they would have
expired anyway.
"""

import logging
import math
import secrets
from datetime import UTC, datetime, timedelta
from typing import Optional
from uuid import UUID

from jose import JWTError, jwt

from bank_auth.app.services.cache import CacheError, ICache
from bank_auth.app.services.token_service import ITokenService, TokenPair

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def blacklist_key(token: str) -> str:
    return f"blacklist:{token}"


class JwtTokenService(ITokenService):
    def __init__(
        self,
        cache: ICache,
        access_secret: str,
        refresh_secret: str,
        access_token_minutes: int = 60 * 24,
        refresh_token_days: int = 7,
    ):
        self.cache = cache
        self.access_secret = access_secret
        self.refresh_secret = refresh_secret
        self.access_ttl = timedelta(minutes=access_token_minutes)
        self.refresh_ttl = timedelta(days=refresh_token_days)

    def _encode(self, user_id: UUID, email: str, token_type: str) -> str:
        now = datetime.now(UTC)
        if token_type == "access":
            secret, ttl = self.access_secret, self.access_ttl
        else:
            secret, ttl = self.refresh_secret, self.refresh_ttl

        payload = {
            "user_id": str(user_id),
            "email": email,
            "type": token_type,
            "exp": now + ttl,
            "iat": now,
            # Two tokens minted in the same second must still differ
            "jti": secrets.token_hex(16),
        }
        return jwt.encode(payload, secret, algorithm=ALGORITHM)

    def issue_pair(self, user_id: UUID, email: str) -> TokenPair:
        return TokenPair(
            access_token=self._encode(user_id, email, "access"),
            refresh_token=self._encode(user_id, email, "refresh"),
        )

    async def _decode(self, token: str, secret: str, token_type: str) -> Optional[dict]:
        try:
            payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
        except JWTError:
            return None
        if payload.get("type") != token_type:
            return None
        try:
            revoked = await self.is_revoked(token)
        except CacheError as e:
            # Sessions still gate every request, so the blacklist may fail open
            logger.warning("Token blacklist unavailable: %s", e)
            revoked = False
        if revoked:
            return None
        return payload

    async def decode_access(self, token: str) -> Optional[dict]:
        return await self._decode(token, self.access_secret, "access")

    async def decode_refresh(self, token: str) -> Optional[dict]:
        return await self._decode(token, self.refresh_secret, "refresh")

    async def invalidate(self, token: str) -> None:
        """Blacklist a token for the rest of its lifetime."""
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return
        exp = claims.get("exp")
        if exp is None:
            return
        remaining = math.ceil(exp - datetime.now(UTC).timestamp())
        if remaining > 0:
            await self.cache.set(blacklist_key(token), "1", remaining)

    async def is_revoked(self, token: str) -> bool:
        return await self.cache.exists(blacklist_key(token))
