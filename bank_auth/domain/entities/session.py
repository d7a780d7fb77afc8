"""
Session Entity

Server-side record of one signed-in browser or device.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import JSON, Column, DateTime, Field, Index, SQLModel

from bank_auth.domain.base import utcnow


class Session(SQLModel, table=True):
    """
    Session entity - durable record of a signed-in device.

    Business Rules:
    - session_id is a 256-bit random hex token, never reused
    - Usable only while is_active, mfa_verified and not expired
    - Logout soft-revokes (is_active=False); only the expiry sweep deletes
    - Tokens are opaque to the store: stored and handed back unchanged
    """

    __tablename__ = "sessions"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    session_id: str = Field(unique=True, index=True, max_length=64)

    user_id: UUID = Field(foreign_key="users.id", nullable=False, index=True)

    access_token: str
    refresh_token: Optional[str] = Field(default=None, index=True)

    # Client context
    ip_address: str = Field(max_length=45)
    user_agent: Optional[str] = None
    device_info: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    country: Optional[str] = Field(default=None, max_length=100)
    city: Optional[str] = Field(default=None, max_length=100)

    # Security
    is_active: bool = Field(default=True)
    is_suspicious: bool = Field(default=False)
    suspicious_reason: Optional[str] = None

    # MFA
    mfa_verified: bool = Field(default=False)
    mfa_verified_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    last_activity: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    expires_at: datetime = Field(sa_column=Column(DateTime, nullable=False))

    __table_args__ = (
        Index("idx_sessions_expires_at", "expires_at"),
        Index("idx_sessions_user_active", "user_id", "is_active"),
        Index("idx_sessions_last_activity", "last_activity"),
    )
