import logging
from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.entities import AuditEvent, AuditEventType, AuditSeverity

logger = logging.getLogger(__name__)


class AuditEventSink(IAuditSink):
    """
    Writes audit events to the audit_events table.

    Shares the request's unit of work and commits each event as soon as
    it is appended, so call it outside any open transaction block.
    Failures are logged and dropped.
    """

    def __init__(self, uow: UnitOfWork):
        self.uow = uow

    async def log_action(
        self,
        action: str,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.info,
        metadata: Optional[dict] = None,
    ) -> None:
        await self._write(
            action, AuditEventType.action, user_id, session_id, ip_address, severity, metadata
        )

    async def log_security_event(
        self,
        event: str,
        user_id: Optional[UUID] = None,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        severity: AuditSeverity = AuditSeverity.warning,
        metadata: Optional[dict] = None,
    ) -> None:
        await self._write(
            event, AuditEventType.security, user_id, session_id, ip_address, severity, metadata
        )

    async def _write(
        self,
        action: str,
        event_type: AuditEventType,
        user_id: Optional[UUID],
        session_id: Optional[str],
        ip_address: Optional[str],
        severity: AuditSeverity,
        metadata: Optional[dict],
    ) -> None:
        try:
            async with self.uow:
                await self.uow.audit_events.append(
                    AuditEvent(
                        user_id=user_id,
                        session_id=session_id,
                        action=action,
                        event_type=event_type,
                        severity=severity,
                        ip_address=ip_address,
                        event_metadata=metadata or {},
                    )
                )
                await self.uow.commit()
        except Exception:
            logger.exception("Failed to write audit event %s", action)
