"""
MFA Code Manager

Issues, delivers and checks emailed one-time codes. Challenges live only
in the cache; a code that outlives its TTL is gone for good.
"""

import hmac
import logging
import re
import secrets
from uuid import UUID

from bank_auth.app.services.cache import ICache
from bank_auth.app.services.notification_sender import (
    INotificationSender,
    NotificationError,
)
from bank_auth.app.services.settings import AuthSettings
from bank_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

CODE_PATTERN = re.compile(r"^\d{6}$")


def challenge_key(user_id: UUID) -> str:
    return f"mfa_challenge:{user_id}"


def resend_key(user_id: UUID) -> str:
    return f"mfa_resend:{user_id}"


def fail_key(user_id: UUID) -> str:
    return f"mfa_fail:{user_id}"


def lock_key(user_id: UUID) -> str:
    return f"mfa_lock:{user_id}"


def generate_code() -> str:
    """Uniform 6-digit code, 000000-999999."""
    return f"{secrets.randbelow(10**6):06d}"


class MfaCodeManager:
    """
    One live challenge per user.

    Business Rules:
    - Issuing overwrites the previous challenge (only the latest code works)
    - A verified code is deleted immediately (no replay)
    - MFA_MAX_FAILED_ATTEMPTS wrong codes inside the window lock verification
    - MFA_RESEND_LIMIT resends inside the window lock resending
    - Cache errors are not swallowed here: the cache is the only copy
    """

    def __init__(
        self,
        cache: ICache,
        sender: INotificationSender,
        settings: AuthSettings,
    ):
        self.cache = cache
        self.sender = sender
        self.settings = settings

    async def issue(self, user_id: UUID, email: str, display_name: str) -> Result[int]:
        """
        Generate, store and send a new code.

        Returns:
            Result with the number of seconds the code stays valid, or
            Error NOTIFICATION_FAILED when delivery fails under the "fail" policy
        """
        code = generate_code()
        ttl = self.settings.mfa_code_ttl_seconds
        await self.cache.set(challenge_key(user_id), code, ttl)

        try:
            await self.sender.send_mfa_code(email, display_name, code)
        except NotificationError as e:
            if self.settings.mfa_delivery_failure_policy == "fail":
                await self.cache.delete(challenge_key(user_id))
                logger.error("MFA code delivery failed for user %s: %s", user_id, e)
                return Return.err(
                    Error("NOTIFICATION_FAILED", "Failed to send verification code")
                )
            logger.error(
                "MFA code delivery failed for user %s, challenge kept: %s", user_id, e
            )

        logger.info("MFA code issued for user %s", user_id)
        return Return.ok(ttl)

    async def verify(self, user_id: UUID, code: str) -> Result[bool]:
        """
        Check a submitted code against the live challenge.

        Returns:
            Result with True, or Error TOO_MANY_ATTEMPTS / INVALID_CODE_FORMAT /
            CODE_EXPIRED_OR_NOT_FOUND / CODE_MISMATCH
        """
        if await self.cache.exists(lock_key(user_id)):
            return Return.err(
                Error("TOO_MANY_ATTEMPTS", "Too many attempts. Please try again later.")
            )

        if not CODE_PATTERN.match(code or ""):
            return Return.err(
                Error("INVALID_CODE_FORMAT", "Verification code must be 6 digits")
            )

        stored = await self.cache.get(challenge_key(user_id))
        if stored is None:
            return Return.err(
                Error("CODE_EXPIRED_OR_NOT_FOUND", "Code expired or not found")
            )

        if not hmac.compare_digest(stored.encode(), code.encode()):
            return await self._register_failure(user_id)

        await self.cache.delete(challenge_key(user_id), fail_key(user_id), lock_key(user_id))
        logger.info("MFA code verified for user %s", user_id)
        return Return.ok(True)

    async def resend(self, user_id: UUID, email: str, display_name: str) -> Result[int]:
        """Issue a fresh code unless the user is rate limited."""
        if await self.is_locked(user_id):
            logger.warning("MFA resend refused for user %s: rate limited", user_id)
            return Return.err(
                Error("TOO_MANY_ATTEMPTS", "Too many requests. Please wait before requesting a new code.")
            )

        await self.cache.incr(resend_key(user_id), self.settings.mfa_resend_window_seconds)
        return await self.issue(user_id, email, display_name)

    async def is_locked(self, user_id: UUID) -> bool:
        if await self.cache.exists(lock_key(user_id)):
            return True
        sent = await self.cache.get(resend_key(user_id))
        return sent is not None and int(sent) >= self.settings.mfa_resend_limit

    async def has_pending(self, user_id: UUID) -> bool:
        return await self.cache.exists(challenge_key(user_id))

    async def _register_failure(self, user_id: UUID) -> Result[bool]:
        attempts = await self.cache.incr(
            fail_key(user_id), self.settings.mfa_failed_window_seconds
        )
        if attempts >= self.settings.mfa_max_failed_attempts:
            await self.cache.set(lock_key(user_id), "locked", self.settings.mfa_lockout_seconds)
            # A locked user has to ask for a new code once the lock lifts
            await self.cache.delete(challenge_key(user_id))
            logger.warning(
                "MFA verification locked for user %s after %d failed attempts",
                user_id,
                attempts,
            )
            return Return.err(
                Error("TOO_MANY_ATTEMPTS", "Too many attempts. Please try again later.")
            )

        return Return.err(Error("CODE_MISMATCH", "Invalid verification code"))
