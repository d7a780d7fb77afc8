from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import DateTime, delete, func, update
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.app.repositories.session_repository import ISessionRepository
from bank_auth.domain.base import as_naive_utc, utcnow
from bank_auth.domain.entities import Session


class SessionRepository(ISessionRepository):
    """Session repository implementation using SQLModel"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _db_now(self):
        """Database clock expression, with sub-second precision on SQLite"""
        if self.session.bind is not None and self.session.bind.dialect.name == "sqlite":
            return func.strftime("%Y-%m-%d %H:%M:%f", "now", type_=DateTime)
        return func.now()

    async def _reload(self, session_id: str) -> Optional[Session]:
        stmt = (
            select(Session)
            .where(Session.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def create(self, session_obj: Session) -> Session:
        """Create a new session"""
        self.session.add(session_obj)
        await self.session.flush()
        await self.session.refresh(session_obj)
        return session_obj

    async def get_by_session_id(self, session_id: str) -> Optional[Session]:
        """Get session by its public session id"""
        stmt = (
            select(Session)
            .where(Session.session_id == session_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.exec(stmt)
        return result.one_or_none()

    async def get_active_with_db_now(
        self, session_id: str
    ) -> Optional[Tuple[Session, datetime]]:
        """Get an active session and the database's current time in one query"""
        stmt = select(Session, self._db_now()).where(
            Session.session_id == session_id, Session.is_active == True
        )
        result = await self.session.exec(stmt)
        row = result.one_or_none()
        if row is None:
            return None
        session_obj, db_now = row
        return session_obj, as_naive_utc(db_now)

    async def get_active_by_refresh_token(self, refresh_token: str) -> Optional[Session]:
        """Get the active session that carries this refresh token"""
        stmt = select(Session).where(
            Session.refresh_token == refresh_token, Session.is_active == True
        )
        result = await self.session.exec(stmt)
        return result.first()

    async def get_active_by_user_id(self, user_id: UUID, now: datetime) -> List[Session]:
        """Get active, unexpired sessions for a user, most recent activity first"""
        stmt = (
            select(Session)
            .where(
                Session.user_id == user_id,
                Session.is_active == True,
                Session.expires_at > now,
            )
            .order_by(Session.last_activity.desc())
        )
        result = await self.session.exec(stmt)
        return list(result.all())

    async def touch_activity(self, session_id: str) -> bool:
        """Set last_activity on an active session"""
        stmt = (
            update(Session)
            .where(Session.session_id == session_id, Session.is_active == True)
            .values(last_activity=utcnow())
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def extend_expiry(
        self, session_id: str, expires_at: datetime, now: datetime
    ) -> Optional[Session]:
        """Move expires_at of an active, unexpired session in one UPDATE"""
        stmt = (
            update(Session)
            .where(
                Session.session_id == session_id,
                Session.is_active == True,
                Session.expires_at > now,
            )
            .values(expires_at=expires_at, last_activity=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount == 0:
            return None
        return await self._reload(session_id)

    async def mark_mfa_verified(self, session_id: str) -> Optional[Session]:
        """Flip mfa_verified on an active session in one UPDATE"""
        now = utcnow()
        stmt = (
            update(Session)
            .where(Session.session_id == session_id, Session.is_active == True)
            .values(mfa_verified=True, mfa_verified_at=now, last_activity=now)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        if result.rowcount == 0:
            return None
        return await self._reload(session_id)

    async def update_tokens(
        self, session_id: str, access_token: str, refresh_token: str
    ) -> bool:
        """Replace the token pair of an active session"""
        stmt = (
            update(Session)
            .where(Session.session_id == session_id, Session.is_active == True)
            .values(
                access_token=access_token,
                refresh_token=refresh_token,
                last_activity=utcnow(),
            )
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def deactivate(self, session_id: str) -> bool:
        """Soft-revoke a session"""
        stmt = (
            update(Session)
            .where(Session.session_id == session_id, Session.is_active == True)
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def get_active_ids_for_user(
        self, user_id: UUID, except_session_id: Optional[str] = None
    ) -> List[str]:
        conditions = [Session.user_id == user_id, Session.is_active == True]
        if except_session_id is not None:
            conditions.append(Session.session_id != except_session_id)

        result = await self.session.exec(select(Session.session_id).where(*conditions))
        return list(result.all())

    async def deactivate_many(self, session_ids: List[str]) -> int:
        """Soft-revoke the given sessions"""
        if not session_ids:
            return 0

        stmt = (
            update(Session)
            .where(Session.session_id.in_(session_ids), Session.is_active == True)
            .values(is_active=False)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount

    async def mark_suspicious(self, session_id: str, reason: str) -> bool:
        """Flag a session as suspicious"""
        stmt = (
            update(Session)
            .where(Session.session_id == session_id)
            .values(is_suspicious=True, suspicious_reason=reason)
        )
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount > 0

    async def delete_expired(self, now: datetime) -> int:
        """Hard-delete sessions past expires_at"""
        stmt = delete(Session).where(Session.expires_at < now)
        result = await self.session.execute(stmt)
        await self.session.flush()
        return result.rowcount
