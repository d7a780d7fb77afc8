"""
Auth Settings

Explicit settings object handed to every core component at construction
time. Built from ApplicationConfig so a config reload only affects
components created afterwards.
"""

from typing import Literal

from pydantic import BaseModel, Field


class AuthSettings(BaseModel):
    """Tunables of the authentication core"""

    # Credentials
    bcrypt_rounds: int = Field(default=12, ge=12)
    max_login_attempts: int = 5
    account_lock_minutes: int = 30

    # Sessions
    session_lifetime_seconds: int = Field(default=24 * 60 * 60, gt=0)
    max_sessions_per_user: int = 5
    expiring_soon_seconds: int = 60 * 60
    cache_timeout_seconds: float = 0.5
    db_timeout_seconds: float = 5.0

    # MFA
    mfa_code_ttl_seconds: int = 600
    mfa_resend_limit: int = 3
    mfa_resend_window_seconds: int = 600
    mfa_max_failed_attempts: int = 5
    mfa_failed_window_seconds: int = 900
    mfa_lockout_seconds: int = 900
    mfa_delivery_failure_policy: Literal["fail", "log"] = "fail"

    @classmethod
    def from_config(cls, config) -> "AuthSettings":
        return cls(
            bcrypt_rounds=config.BCRYPT_ROUNDS,
            max_login_attempts=config.MAX_LOGIN_ATTEMPTS,
            account_lock_minutes=config.ACCOUNT_LOCK_MINUTES,
            session_lifetime_seconds=config.SESSION_LIFETIME_SECONDS,
            max_sessions_per_user=config.MAX_SESSIONS_PER_USER,
            cache_timeout_seconds=config.CACHE_TIMEOUT_SECONDS,
            db_timeout_seconds=config.DB_TIMEOUT_SECONDS,
            mfa_code_ttl_seconds=config.MFA_CODE_TTL_SECONDS,
            mfa_resend_limit=config.MFA_RESEND_LIMIT,
            mfa_resend_window_seconds=config.MFA_RESEND_WINDOW_SECONDS,
            mfa_max_failed_attempts=config.MFA_MAX_FAILED_ATTEMPTS,
            mfa_failed_window_seconds=config.MFA_FAILED_WINDOW_SECONDS,
            mfa_lockout_seconds=config.MFA_LOCKOUT_SECONDS,
            mfa_delivery_failure_policy=config.MFA_DELIVERY_FAILURE_POLICY,
        )
