"""
Authentication Use Cases

Login, MFA completion, logout and credential changes.
"""

from .login_use_case import LoginUseCase
from .verify_mfa_use_case import VerifyMfaUseCase
from .resend_mfa_use_case import ResendMfaUseCase
from .logout_use_case import LogoutUseCase
from .change_password_use_case import ChangePasswordUseCase
from .refresh_token_use_case import RefreshTokenUseCase
from .dtos import (
    AuthContext,
    AuthenticatedResponse,
    ChangePasswordResponse,
    ClientContext,
    LoginResponse,
    LogoutResponse,
    RefreshTokenResponse,
    ResendMfaResponse,
    UserProfile,
)

__all__ = [
    # Use Cases
    "LoginUseCase",
    "VerifyMfaUseCase",
    "ResendMfaUseCase",
    "LogoutUseCase",
    "ChangePasswordUseCase",
    "RefreshTokenUseCase",
    # DTOs - Commands
    "ClientContext",
    "AuthContext",
    # DTOs - Responses
    "LoginResponse",
    "AuthenticatedResponse",
    "ResendMfaResponse",
    "LogoutResponse",
    "ChangePasswordResponse",
    "RefreshTokenResponse",
    # DTOs - Nested Models
    "UserProfile",
]
