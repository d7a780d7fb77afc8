"""
AuditEvent Entity

Append-only trail of authentication and session events.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import Column, DateTime, Field, Index, JSON, SQLModel

from bank_auth.domain.base import utcnow
from .enums import AuditEventType, AuditSeverity


class AuditEvent(SQLModel, table=True):
    """
    AuditEvent entity - immutable log of authentication events.

    Business Rules:
    - Immutable (never updated or deleted)
    - user_id nullable for attempts against unknown emails
    - Metadata stores additional context (reason, counts, session)
    """

    __tablename__ = "audit_events"

    id: UUID = Field(default_factory=uuid4, primary_key=True)

    user_id: Optional[UUID] = Field(default=None, index=True)
    session_id: Optional[str] = Field(default=None, max_length=64)

    action: str = Field(max_length=100)  # e.g., "LOGIN_SUCCESS", "LOGOUT"
    event_type: AuditEventType = Field(default=AuditEventType.action)
    severity: AuditSeverity = Field(default=AuditSeverity.info)
    ip_address: Optional[str] = Field(default=None, max_length=45)
    event_metadata: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(DateTime))

    __table_args__ = (
        Index("idx_audit_created_at", "created_at"),
        Index("idx_audit_user_action", "user_id", "action"),
    )
