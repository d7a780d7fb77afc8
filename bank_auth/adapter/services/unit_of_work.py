from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.adapter.repositories.audit_event_repository import AuditEventRepository
from bank_auth.adapter.repositories.session_repository import SessionRepository
from bank_auth.adapter.repositories.user_repository import UserRepository
from bank_auth.app.services.unit_of_work import UnitOfWork


class SqlAlchemyUnitOfWork(UnitOfWork):
    """UnitOfWork over one AsyncSession, shared by every use case of a request"""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.users = UserRepository(session)
        self.sessions = SessionRepository(session)
        self.audit_events = AuditEventRepository(session)

    async def __aenter__(self) -> "SqlAlchemyUnitOfWork":
        return self

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        # Rollback expires loaded entities even with expire_on_commit=False
        await self.session.rollback()
