from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional
from uuid import UUID

from bank_auth.domain.entities import User


class IUserRepository(ABC):
    """
    Read access to user records plus the few columns authentication owns.

    Profile fields belong to the user service; every write here is a single
    UPDATE of login bookkeeping, the password hash or the MFA flag.
    """

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by normalized email address"""
        pass

    @abstractmethod
    async def get_by_id(self, user_id: UUID) -> Optional[User]:
        pass

    @abstractmethod
    async def record_failed_login(self, user_id: UUID) -> int:
        """Increment the failed login counter, return the new value"""
        pass

    @abstractmethod
    async def lock_until(self, user_id: UUID, until: datetime) -> None:
        pass

    @abstractmethod
    async def record_successful_login(self, user_id: UUID, at: datetime) -> None:
        """Reset the failure counter and lock, stamp last_login"""
        pass

    @abstractmethod
    async def set_password_hash(self, user_id: UUID, password_hash: str) -> bool:
        pass

    @abstractmethod
    async def set_mfa_enabled(self, user_id: UUID, enabled: bool) -> bool:
        pass
