from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional, Tuple
from uuid import UUID

from bank_auth.domain.entities import Session


class ISessionRepository(ABC):
    """Session repository interface - application layer"""

    @abstractmethod
    async def create(self, session: Session) -> Session:
        """Create a new session"""
        pass

    @abstractmethod
    async def get_by_session_id(self, session_id: str) -> Optional[Session]:
        """Get session by its public session id, active or not"""
        pass

    @abstractmethod
    async def get_active_with_db_now(
        self, session_id: str
    ) -> Optional[Tuple[Session, datetime]]:
        """Get an active session together with the database clock (naive UTC)"""
        pass

    @abstractmethod
    async def get_active_by_refresh_token(self, refresh_token: str) -> Optional[Session]:
        """Get the active session that carries a refresh token"""
        pass

    @abstractmethod
    async def get_active_by_user_id(self, user_id: UUID, now: datetime) -> List[Session]:
        """Get active, unexpired sessions for a user, most recent activity first"""
        pass

    @abstractmethod
    async def touch_activity(self, session_id: str) -> bool:
        """Set last_activity to now on an active session"""
        pass

    @abstractmethod
    async def extend_expiry(
        self, session_id: str, expires_at: datetime, now: datetime
    ) -> Optional[Session]:
        """Move expires_at of an active, unexpired session. Returns the updated row or None."""
        pass

    @abstractmethod
    async def mark_mfa_verified(self, session_id: str) -> Optional[Session]:
        """Flip mfa_verified on an active session. Returns the updated row or None."""
        pass

    @abstractmethod
    async def update_tokens(
        self, session_id: str, access_token: str, refresh_token: str
    ) -> bool:
        """Replace the token pair stored on an active session"""
        pass

    @abstractmethod
    async def deactivate(self, session_id: str) -> bool:
        """Soft-revoke a session. Returns True if it was active."""
        pass

    @abstractmethod
    async def get_active_ids_for_user(
        self, user_id: UUID, except_session_id: Optional[str] = None
    ) -> List[str]:
        """Ids of a user's active sessions, optionally leaving one out"""
        pass

    @abstractmethod
    async def deactivate_many(self, session_ids: List[str]) -> int:
        """Soft-revoke the given sessions. Returns how many were active."""
        pass

    @abstractmethod
    async def mark_suspicious(self, session_id: str, reason: str) -> bool:
        """Flag a session as suspicious"""
        pass

    @abstractmethod
    async def delete_expired(self, now: datetime) -> int:
        """Hard-delete sessions whose expires_at has passed. Returns count."""
        pass
