"""
Bank Auth Domain Enums

All enumeration types used across domain entities.
"""

from enum import Enum


class AccountStatus(str, Enum):
    """Account status of a user, owned by the user profile service"""

    active = "active"
    locked = "locked"
    suspended = "suspended"
    closed = "closed"


class AuditEventType(str, Enum):
    """Kind of audit trail entry"""

    action = "action"
    security = "security"


class AuditSeverity(str, Enum):
    """Severity of an audit trail entry"""

    info = "info"
    warning = "warning"
    critical = "critical"
