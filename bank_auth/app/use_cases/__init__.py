"""
Use Cases

Organized into domain folders:
- auth/: Login, MFA completion, logout, password change, token refresh
- mfa/: Enabling and disabling MFA
- sessions/: Listing and ending sessions, expiry sweep
"""

from .auth import (
    ChangePasswordUseCase,
    LoginUseCase,
    LogoutUseCase,
    RefreshTokenUseCase,
    ResendMfaUseCase,
    VerifyMfaUseCase,
)
from .mfa import (
    ConfirmMfaSetupUseCase,
    DisableMfaUseCase,
    EnableMfaUseCase,
    GetMfaStatusUseCase,
)
from .sessions import (
    CleanupExpiredSessionsUseCase,
    ListSessionsUseCase,
    TerminateOtherSessionsUseCase,
    TerminateSessionUseCase,
)

__all__ = [
    # Auth
    "LoginUseCase",
    "VerifyMfaUseCase",
    "ResendMfaUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "RefreshTokenUseCase",
    # MFA
    "EnableMfaUseCase",
    "ConfirmMfaSetupUseCase",
    "DisableMfaUseCase",
    "GetMfaStatusUseCase",
    # Sessions
    "ListSessionsUseCase",
    "TerminateSessionUseCase",
    "TerminateOtherSessionsUseCase",
    "CleanupExpiredSessionsUseCase",
]
