"""
Authentication Use Case DTOs (Data Transfer Objects)

All Command and Response classes for auth domain.
Provides type safety and clear contracts between layers.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from bank_auth.domain.entities import User


# ============================================================================
# Commands / request context
# ============================================================================


class ClientContext(BaseModel):
    """Where a request came from"""

    ip_address: str = "unknown"
    user_agent: Optional[str] = None
    device_info: dict = Field(default_factory=dict)


class AuthContext(BaseModel):
    """The caller behind an authenticated request"""

    user_id: UUID
    email: str
    session_id: str
    access_token: str
    ip_address: str = "unknown"


# ============================================================================
# Response DTOs
# ============================================================================


class UserProfile(BaseModel):
    """Profile returned once a user is fully signed in"""

    id: UUID
    email: str
    first_name: str
    last_name: str
    mfa_enabled: bool

    @classmethod
    def from_user(cls, user: User) -> "UserProfile":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
            mfa_enabled=user.mfa_enabled,
        )


class LoginResponse(BaseModel):
    """
    Response for user login use case.

    With MFA only session_id, masked_email and mfa_expires_in are set;
    tokens are held back until the code is verified.
    """

    requires_mfa: bool
    session_id: str
    masked_email: Optional[str] = None
    mfa_expires_in: Optional[int] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    user: Optional[UserProfile] = None


class AuthenticatedResponse(BaseModel):
    """Response once MFA is verified"""

    access_token: str
    refresh_token: Optional[str] = None
    session_id: str
    expires_at: datetime
    user: UserProfile


class ResendMfaResponse(BaseModel):
    """Response for resend MFA code use case"""

    masked_email: str
    expires_in: int


class LogoutResponse(BaseModel):
    status: str
    message: str


class ChangePasswordResponse(BaseModel):
    status: str
    message: str
    sessions_terminated: int


class RefreshTokenResponse(BaseModel):
    """Response for refresh token use case"""

    access_token: str
    refresh_token: str
    session_id: str
    expires_at: datetime
