from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.app.repositories.audit_event_repository import IAuditEventRepository
from bank_auth.domain.entities import AuditEvent


class AuditEventRepository(IAuditEventRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def append(self, audit_event: AuditEvent) -> None:
        # Rows are never read back or changed, so no refresh
        self.session.add(audit_event)
        await self.session.flush()
