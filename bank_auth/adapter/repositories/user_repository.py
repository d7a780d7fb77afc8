from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.app.repositories.user_repository import IUserRepository
from bank_auth.domain.base import utcnow
from bank_auth.domain.entities import User


class UserRepository(IUserRepository):
    """User repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_email(self, email: str) -> Optional[User]:
        stmt = select(User).where(User.email == email)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        stmt = select(User).where(User.id == user_id)
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def _set(self, user_id: UUID, **values) -> bool:
        stmt = update(User).where(User.id == user_id).values(updated_at=utcnow(), **values)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def record_failed_login(self, user_id: UUID) -> int:
        """Atomic increment, so concurrent failures are all counted"""
        await self._set(user_id, failed_login_attempts=User.failed_login_attempts + 1)
        result = await self.session.exec(
            select(User.failed_login_attempts).where(User.id == user_id)
        )
        return result.one_or_none() or 0

    async def lock_until(self, user_id: UUID, until: datetime) -> None:
        await self._set(user_id, account_locked_until=until)

    async def record_successful_login(self, user_id: UUID, at: datetime) -> None:
        await self._set(
            user_id, failed_login_attempts=0, account_locked_until=None, last_login=at
        )

    async def set_password_hash(self, user_id: UUID, password_hash: str) -> bool:
        return await self._set(user_id, password_hash=password_hash)

    async def set_mfa_enabled(self, user_id: UUID, enabled: bool) -> bool:
        return await self._set(user_id, mfa_enabled=enabled)
