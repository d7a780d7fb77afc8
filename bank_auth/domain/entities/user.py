"""
User Entity

Read-mostly user record. The full profile is owned by the user service;
authentication only touches MFA, password and login bookkeeping columns.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, SQLModel

from bank_auth.domain.base import utcnow
from .enums import AccountStatus


class User(SQLModel, table=True):
    """
    User entity - a bank customer who can sign in.

    Business Rules:
    - Email is unique and stored lower-case
    - Password stored as bcrypt hash (cost factor 12)
    - account_locked_until blocks sign-in until it passes
    - mfa_enabled sends an emailed one-time code on every login
    """

    __tablename__ = "users"

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    email: str = Field(unique=True, index=True, max_length=255)
    password_hash: str = Field(max_length=60)  # Bcrypt output is 60 chars

    first_name: str = Field(default="", max_length=100)
    last_name: str = Field(default="", max_length=100)

    account_status: AccountStatus = Field(default=AccountStatus.active)
    mfa_enabled: bool = Field(default=False)

    # Brute force protection
    failed_login_attempts: int = Field(default=0)
    account_locked_until: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime)
    )

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))
    updated_at: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))
    last_login: Optional[datetime] = Field(default=None, sa_column=Column(DateTime))

    __table_args__ = (Index("idx_user_account_status", "account_status"),)

    @property
    def display_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip() or self.email
