from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from bank_auth.domain.entities import AuditSeverity


class IAuditSink(ABC):
    """
    Best-effort audit trail - application layer.

    Implementations must never raise: an audit outage cannot block
    authentication.
    """

    @abstractmethod
    async def log_action(
        self,
        action: str,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.info,
        metadata: Optional[dict] = None,
    ) -> None:
        pass

    @abstractmethod
    async def log_security_event(
        self,
        event: str,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.warning,
        metadata: Optional[dict] = None,
    ) -> None:
        pass
