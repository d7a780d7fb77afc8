"""
Bank Auth Domain Entities

All domain entities organized by model.
Each entity in its own file for better maintainability.
"""

# Export all enums
from .enums import (
    AccountStatus,
    AuditEventType,
    AuditSeverity,
)

# Export all entities
from .user import User
from .session import Session
from .audit_event import AuditEvent

__all__ = [
    # Enums
    "AccountStatus",
    "AuditEventType",
    "AuditSeverity",
    # Entities
    "User",
    "Session",
    "AuditEvent",
]
