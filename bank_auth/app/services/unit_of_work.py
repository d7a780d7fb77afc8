from abc import ABC, abstractmethod

from bank_auth.app.repositories.audit_event_repository import IAuditEventRepository
from bank_auth.app.repositories.session_repository import ISessionRepository
from bank_auth.app.repositories.user_repository import IUserRepository


class UnitOfWork(ABC):
    """
    One database transaction scope.

    Usage:
        async with uow:
            ...
            await uow.commit()

    Leaving the block rolls back anything not committed. Entities loaded
    inside the block must not be used after it.
    """

    users: IUserRepository
    sessions: ISessionRepository
    audit_events: IAuditEventRepository

    @abstractmethod
    async def __aenter__(self) -> "UnitOfWork":
        pass

    async def __aexit__(self, *args):
        await self.rollback()

    @abstractmethod
    async def commit(self):
        pass

    @abstractmethod
    async def rollback(self):
        pass
