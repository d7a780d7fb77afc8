"""
Session Store

Server-side sessions. The database is the source of truth; the cache
mirror at session:{session_id} only speeds up validation and may be
missing or unreachable at any time.

A revoked session leaves a marker at session_revoked:{session_id} that
outlives any mirror written for it, so a stale mirror is never honoured.
Revocation is refused when that marker cannot be written.
"""

import asyncio
import json
import logging
import math
import secrets
from datetime import datetime, timedelta
from typing import Awaitable, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel

from bank_auth.app.services.cache import CacheError, ICache
from bank_auth.app.services.settings import AuthSettings
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.base import utcnow
from bank_auth.domain.entities import Session
from bank_auth.libs.result import Error, Result, Return

logger = logging.getLogger(__name__)

T = TypeVar("T")

SESSION_NOT_FOUND = Error("SESSION_NOT_FOUND", "Session not found or inactive")
SESSION_EXPIRED = Error("SESSION_EXPIRED", "Session expired")

REVOCATION_GRACE_SECONDS = 60


def cache_key(session_id: str) -> str:
    return f"session:{session_id}"


def revoked_key(session_id: str) -> str:
    return f"session_revoked:{session_id}"


class SessionCreated(BaseModel):
    session_id: str
    expires_at: datetime
    created_at: datetime


class SessionDescriptor(BaseModel):
    """What a validated session tells the caller"""

    session_id: str
    user_id: UUID
    ip_address: str
    mfa_verified: bool
    expires_at: datetime


class SessionRefreshed(BaseModel):
    session_id: str
    expires_at: datetime


class SessionTokens(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime


class SessionSummary(BaseModel):
    """One row of the "active sessions" list"""

    session_id: str
    ip_address: str
    user_agent: Optional[str] = None
    device_info: Optional[dict] = None
    country: Optional[str] = None
    city: Optional[str] = None
    is_suspicious: bool = False
    mfa_verified: bool
    created_at: datetime
    last_activity: datetime
    expires_at: datetime
    is_expiring_soon: bool
    is_current: bool = False


def _descriptor(session: Session) -> SessionDescriptor:
    return SessionDescriptor(
        session_id=session.session_id,
        user_id=session.user_id,
        ip_address=session.ip_address,
        mfa_verified=session.mfa_verified,
        expires_at=session.expires_at,
    )


class SessionStore:
    """
    Creates, validates, refreshes and ends sessions.

    Business Rules:
    - Usable only while is_active, mfa_verified and now < expires_at
    - Fixed window: expires_at = created (or refreshed) + session lifetime
    - Cache TTL never exceeds the remaining lifetime in the database
    - Cache failures fail open (logged); database failures propagate
    - Revocation writes its cache marker first and fails if it cannot
    - end_session is a soft revoke; cleanup_expired is the only hard delete
    - At most max_sessions_per_user live sessions, oldest revoked first
    """

    def __init__(self, uow: UnitOfWork, cache: ICache, settings: AuthSettings):
        self.uow = uow
        self.cache = cache
        self.settings = settings

    async def create(
        self,
        user_id: UUID,
        access_token: str,
        refresh_token: Optional[str],
        ip_address: str,
        user_agent: Optional[str] = None,
        device_info: Optional[dict] = None,
        mfa_verified: bool = False,
    ) -> Result[SessionCreated]:
        """
        Persist a new session and mirror it in the cache.

        Tokens are stored as given and never returned by this method.
        """
        session_id = secrets.token_hex(32)
        lifetime = self.settings.session_lifetime_seconds
        now = utcnow()
        expires_at = now + timedelta(seconds=lifetime)
        device_info = device_info or {}

        async with self.uow:
            await self._enforce_session_limit(user_id, now)
            await self._db(
                self.uow.sessions.create(
                    Session(
                        session_id=session_id,
                        user_id=user_id,
                        access_token=access_token,
                        refresh_token=refresh_token,
                        ip_address=ip_address,
                        user_agent=user_agent,
                        device_info=device_info,
                        country=device_info.get("country"),
                        city=device_info.get("city"),
                        mfa_verified=mfa_verified,
                        mfa_verified_at=now if mfa_verified else None,
                        created_at=now,
                        last_activity=now,
                        expires_at=expires_at,
                    )
                )
            )
            await self.uow.commit()

        await self._cache_put(
            session_id,
            user_id=user_id,
            ip_address=ip_address,
            expires_at=expires_at,
            mfa_verified=mfa_verified,
            ttl=lifetime,
        )

        logger.info("Session created for user %s", user_id)
        return Return.ok(
            SessionCreated(session_id=session_id, expires_at=expires_at, created_at=now)
        )

    async def validate(self, session_id: str) -> Result[SessionDescriptor]:
        """
        Resolve a session id to its descriptor.

        Does not check mfa_verified; the descriptor carries the flag so the
        caller can decide whether a pending session is acceptable.
        """
        cached = await self._cache_get(session_id)
        if cached is not None:
            if cached.expires_at <= utcnow():
                await self._expire(session_id)
                return Return.err(SESSION_EXPIRED)
            return Return.ok(cached)

        expired = False
        descriptor = None
        remaining = 0.0
        async with self.uow:
            found = await self._db(self.uow.sessions.get_active_with_db_now(session_id))
            if found is not None:
                session, db_now = found
                remaining = (session.expires_at - db_now).total_seconds()
                if remaining <= 0:
                    expired = True
                else:
                    descriptor = _descriptor(session)
                    await self._db(self.uow.sessions.touch_activity(session_id))
                    await self.uow.commit()

        if expired:
            await self._expire(session_id)
            return Return.err(SESSION_EXPIRED)
        if descriptor is None:
            return Return.err(SESSION_NOT_FOUND)

        await self._cache_descriptor(descriptor, remaining)
        return Return.ok(descriptor)

    async def refresh(self, session_id: str) -> Result[SessionRefreshed]:
        """Restart the lifetime window of a live session."""
        now = utcnow()
        expires_at = now + timedelta(seconds=self.settings.session_lifetime_seconds)

        async with self.uow:
            session = await self._db(
                self.uow.sessions.extend_expiry(session_id, expires_at, now)
            )
            if session is None:
                return Return.err(SESSION_NOT_FOUND)
            descriptor = _descriptor(session)
            await self.uow.commit()

        await self._cache_descriptor(
            descriptor, (descriptor.expires_at - utcnow()).total_seconds()
        )
        return Return.ok(SessionRefreshed(session_id=session_id, expires_at=expires_at))

    async def mark_mfa_verified(self, session_id: str) -> Result[SessionDescriptor]:
        async with self.uow:
            session = await self._db(self.uow.sessions.mark_mfa_verified(session_id))
            if session is None:
                return Return.err(SESSION_NOT_FOUND)
            descriptor = _descriptor(session)
            await self.uow.commit()

        remaining = (descriptor.expires_at - utcnow()).total_seconds()
        if remaining <= 0:
            await self._expire(session_id)
            return Return.err(SESSION_EXPIRED)

        await self._cache_descriptor(descriptor, remaining)
        return Return.ok(descriptor)

    async def get_tokens(self, session_id: str) -> Result[SessionTokens]:
        """Tokens stored with an active session, for handing out after MFA."""
        async with self.uow:
            session = await self._db(self.uow.sessions.get_by_session_id(session_id))
            if session is None or not session.is_active:
                return Return.err(SESSION_NOT_FOUND)
            tokens = SessionTokens(
                access_token=session.access_token,
                refresh_token=session.refresh_token,
                expires_at=session.expires_at,
            )
        return Return.ok(tokens)

    async def find_by_refresh_token(self, refresh_token: str) -> Result[SessionDescriptor]:
        async with self.uow:
            session = await self._db(
                self.uow.sessions.get_active_by_refresh_token(refresh_token)
            )
            if session is None:
                return Return.err(SESSION_NOT_FOUND)
            descriptor = _descriptor(session)

        if descriptor.expires_at <= utcnow():
            await self._expire(descriptor.session_id)
            return Return.err(SESSION_EXPIRED)
        return Return.ok(descriptor)

    async def rotate_tokens(
        self, session_id: str, access_token: str, refresh_token: str
    ) -> Result[bool]:
        async with self.uow:
            updated = await self._db(
                self.uow.sessions.update_tokens(session_id, access_token, refresh_token)
            )
            if not updated:
                return Return.err(SESSION_NOT_FOUND)
            await self.uow.commit()
        return Return.ok(True)

    async def end_session(self, session_id: str) -> Result[bool]:
        """
        Soft-revoke a session and evict it from the cache.

        Idempotent: ending an unknown or already ended session succeeds
        with False. Raises CacheError, leaving the session untouched, when
        the revocation marker cannot be written.
        """
        async with self.uow:
            session = await self._db(self.uow.sessions.get_by_session_id(session_id))
            if session is None or not session.is_active:
                return Return.ok(False)

            await self._cache_revoke(session_id)
            was_active = await self._db(self.uow.sessions.deactivate(session_id))
            await self.uow.commit()

        await self._cache_evict(session_id)
        if was_active:
            logger.info("Session %s ended", session_id[:8])
        return Return.ok(was_active)

    async def end_all_user_sessions(
        self, user_id: UUID, except_session_id: Optional[str] = None
    ) -> Result[int]:
        async with self.uow:
            session_ids = await self._db(
                self.uow.sessions.get_active_ids_for_user(user_id, except_session_id)
            )
            if not session_ids:
                return Return.ok(0)

            await self._cache_revoke(*session_ids)
            revoked = await self._db(self.uow.sessions.deactivate_many(session_ids))
            await self.uow.commit()

        await self._cache_evict(*session_ids)
        logger.info("Ended %d sessions for user %s", revoked, user_id)
        return Return.ok(revoked)

    async def list_active(
        self, user_id: UUID, current_session_id: Optional[str] = None
    ) -> Result[List[SessionSummary]]:
        """Live sessions of a user, most recently used first."""
        now = utcnow()
        soon = timedelta(seconds=self.settings.expiring_soon_seconds)

        async with self.uow:
            sessions = await self._db(self.uow.sessions.get_active_by_user_id(user_id, now))
            summaries = [
                SessionSummary(
                    session_id=s.session_id,
                    ip_address=s.ip_address,
                    user_agent=s.user_agent,
                    device_info=s.device_info,
                    country=s.country,
                    city=s.city,
                    is_suspicious=s.is_suspicious,
                    mfa_verified=s.mfa_verified,
                    created_at=s.created_at,
                    last_activity=s.last_activity,
                    expires_at=s.expires_at,
                    is_expiring_soon=s.expires_at - now < soon,
                    is_current=s.session_id == current_session_id,
                )
                for s in sessions
            ]
        return Return.ok(summaries)

    async def mark_suspicious(self, session_id: str, reason: str) -> Result[bool]:
        """Annotate only. Revoking is left to the caller."""
        async with self.uow:
            marked = await self._db(self.uow.sessions.mark_suspicious(session_id, reason))
            if not marked:
                return Return.err(SESSION_NOT_FOUND)
            await self.uow.commit()

        logger.warning("Session %s marked suspicious: %s", session_id[:8], reason)
        return Return.ok(True)

    async def check_ip_change(self, session_id: str, current_ip: str) -> bool:
        cached = await self._cache_get(session_id)
        if cached is not None:
            return cached.ip_address != current_ip

        async with self.uow:
            session = await self._db(self.uow.sessions.get_by_session_id(session_id))
            if session is None:
                return False
            original_ip = session.ip_address
        return original_ip != current_ip

    async def cleanup_expired(self) -> Result[int]:
        """Hard-delete rows past expires_at. Safe to run repeatedly."""
        async with self.uow:
            deleted = await self._db(self.uow.sessions.delete_expired(utcnow()))
            await self.uow.commit()

        if deleted:
            logger.info("Cleaned up %d expired sessions", deleted)
        return Return.ok(deleted)

    async def _enforce_session_limit(self, user_id: UUID, now: datetime) -> None:
        """Revoke the oldest sessions so one more fits. Caller commits."""
        limit = self.settings.max_sessions_per_user
        sessions = await self._db(self.uow.sessions.get_active_by_user_id(user_id, now))
        if len(sessions) < limit:
            return

        # Ordered by last_activity desc, so the tail is the oldest
        oldest = [s.session_id for s in sessions[limit - 1 :]]
        await self._cache_revoke(*oldest)
        await self._db(self.uow.sessions.deactivate_many(oldest))
        await self._cache_evict(*oldest)
        logger.info(
            "Session limit reached for user %s, revoked %d oldest", user_id, len(oldest)
        )

    async def _expire(self, session_id: str) -> None:
        """
        Deactivate a session whose lifetime ran out.

        Writes no revocation marker; an expired mirror is rejected on read.
        """
        async with self.uow:
            if await self._db(self.uow.sessions.deactivate(session_id)):
                await self.uow.commit()
        await self._cache_evict(session_id)

    async def _db(self, operation: Awaitable[T]) -> T:
        return await asyncio.wait_for(operation, timeout=self.settings.db_timeout_seconds)

    async def _cache_descriptor(self, descriptor: SessionDescriptor, remaining: float) -> None:
        # Whole seconds, rounded down, so the mirror never outlives the row
        ttl = math.floor(remaining)
        if ttl <= 0:
            return
        await self._cache_put(
            descriptor.session_id,
            user_id=descriptor.user_id,
            ip_address=descriptor.ip_address,
            expires_at=descriptor.expires_at,
            mfa_verified=descriptor.mfa_verified,
            ttl=ttl,
        )

    async def _cache_put(
        self,
        session_id: str,
        user_id: UUID,
        ip_address: str,
        expires_at: datetime,
        mfa_verified: bool,
        ttl: int,
    ) -> None:
        payload = json.dumps(
            {
                "user_id": str(user_id),
                "ip_address": ip_address,
                "expires_at": expires_at.isoformat(),
                "mfa_verified": mfa_verified,
            }
        )
        try:
            await self.cache.set(cache_key(session_id), payload, ttl)
        except CacheError as e:
            logger.warning("Session cache write failed, continuing without it: %s", e)

    async def _cache_get(self, session_id: str) -> Optional[SessionDescriptor]:
        try:
            raw, revoked = await self.cache.get_many(
                cache_key(session_id), revoked_key(session_id)
            )
        except CacheError as e:
            logger.warning("Session cache read failed, using database: %s", e)
            return None
        if raw is None:
            return None
        if revoked is not None:
            await self._cache_evict(session_id)
            return None

        try:
            data = json.loads(raw)
            return SessionDescriptor(
                session_id=session_id,
                user_id=UUID(data["user_id"]),
                ip_address=data["ip_address"],
                mfa_verified=data["mfa_verified"],
                expires_at=datetime.fromisoformat(data["expires_at"]),
            )
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding malformed cache entry for session %s", session_id[:8])
            await self._cache_evict(session_id)
            return None

    async def _cache_revoke(self, *session_ids: str) -> None:
        ttl = self.settings.session_lifetime_seconds + REVOCATION_GRACE_SECONDS
        try:
            for session_id in session_ids:
                await self.cache.set(revoked_key(session_id), "1", ttl)
        except CacheError:
            logger.error("Could not record revocation of %d sessions", len(session_ids))
            raise

    async def _cache_evict(self, *session_ids: str) -> None:
        try:
            await self.cache.delete(*[cache_key(sid) for sid in session_ids])
        except CacheError as e:
            logger.warning("Session cache eviction failed: %s", e)
