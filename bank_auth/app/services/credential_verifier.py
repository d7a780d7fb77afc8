"""
Credential Verifier

Checks an email/password pair against the stored bcrypt hash.
"""

import logging
from datetime import timedelta
from functools import lru_cache
from typing import Optional, Tuple
from uuid import UUID

import bcrypt
from pydantic import BaseModel

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.settings import AuthSettings
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.base import utcnow
from bank_auth.domain.entities import AccountStatus, AuditSeverity, User
from bank_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

GENERIC_CREDENTIALS_MESSAGE = "Invalid email or password"

# bcrypt only looks at the first 72 bytes
BCRYPT_MAX_BYTES = 72


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def hash_password(password: str, rounds: int = 12) -> str:
    return bcrypt.hashpw(_password_bytes(password), bcrypt.gensalt(rounds)).decode()


def check_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode())
    except ValueError:
        # Malformed hash in the database
        logger.error("Stored password hash is not a valid bcrypt hash")
        return False


@lru_cache(maxsize=1)
def _dummy_hash() -> bytes:
    return bcrypt.hashpw(b"dummy_password", bcrypt.gensalt(12))


def normalize_email(email: str) -> str:
    return email.strip().lower()


class VerifiedUser(BaseModel):
    """Profile of a user whose credentials checked out"""

    user_id: UUID
    email: str
    first_name: str
    last_name: str
    mfa_enabled: bool

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email

    @classmethod
    def from_user(cls, user: User) -> "VerifiedUser":
        return cls(
            user_id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            mfa_enabled=user.mfa_enabled,
        )


class CredentialVerifier:
    """
    Verifies email/password credentials.

    Business Rules:
    - Unknown email and wrong password are indistinguishable to the caller
      (same error, one bcrypt comparison either way)
    - Suspended/closed and locked accounts fail before the real comparison;
      ACCOUNT_SUSPENDED / ACCOUNT_LOCKED codes are for the audit trail only
    - MAX_LOGIN_ATTEMPTS consecutive wrong passwords lock the account
    - Every attempt is reported to the audit sink
    """

    def __init__(self, uow: UnitOfWork, audit: IAuditSink, settings: AuthSettings):
        self.uow = uow
        self.audit = audit
        self.settings = settings

    async def verify(
        self, email: str, password: str, ip_address: Optional[str] = None
    ) -> Result[VerifiedUser]:
        """
        Verify credentials.

        Args:
            email: Email as typed by the user
            password: Plain text password (never logged)
            ip_address: Client address, for the audit trail

        Returns:
            Result with the VerifiedUser, or Error INVALID_CREDENTIALS /
            ACCOUNT_LOCKED / ACCOUNT_SUSPENDED (all with the same message)
        """
        normalized = normalize_email(email)
        user_id = None
        verified = None

        async with self.uow:
            user = await self.uow.users.get_by_email(normalized)

            if user is None:
                # Keep timing equivalent to a wrong password
                bcrypt.checkpw(_password_bytes(password), _dummy_hash())
                failure = ("INVALID_CREDENTIALS", "unknown_email")
            else:
                user_id = user.id
                failure = await self._check_user(user, password)
                if failure is None:
                    verified = VerifiedUser.from_user(user)

        if failure is not None:
            code, reason = failure
            await self.audit.log_security_event(
                "CREDENTIALS_REJECTED",
                user_id=user_id,
                ip_address=ip_address,
                severity=AuditSeverity.warning,
                metadata={"outcome": "failure", "reason": reason, "email": normalized},
            )
            return Return.err(Error(code, GENERIC_CREDENTIALS_MESSAGE))

        await self.audit.log_action(
            "CREDENTIALS_VERIFIED",
            user_id=user_id,
            ip_address=ip_address,
            metadata={"outcome": "success"},
        )
        return Return.ok(verified)

    async def _check_user(self, user: User, password: str) -> Optional[Tuple[str, str]]:
        """Status and password checks. Returns (code, reason) on failure."""
        now = utcnow()

        if user.account_status in (AccountStatus.suspended, AccountStatus.closed):
            bcrypt.checkpw(_password_bytes(password), _dummy_hash())
            return "ACCOUNT_SUSPENDED", f"account_{user.account_status.value}"

        if user.account_status == AccountStatus.locked or (
            user.account_locked_until is not None and user.account_locked_until > now
        ):
            bcrypt.checkpw(_password_bytes(password), _dummy_hash())
            return "ACCOUNT_LOCKED", "account_locked"

        if not check_password(password, user.password_hash):
            attempts = await self.uow.users.record_failed_login(user.id)
            reason = "wrong_password"
            if attempts >= self.settings.max_login_attempts:
                await self.uow.users.lock_until(
                    user.id, now + timedelta(minutes=self.settings.account_lock_minutes)
                )
                reason = "wrong_password_account_locked"
                logger.warning(
                    "Account %s locked after %d failed login attempts", user.id, attempts
                )
            await self.uow.commit()
            return "INVALID_CREDENTIALS", reason

        await self.uow.users.record_successful_login(user.id, now)
        await self.uow.commit()
        return None
