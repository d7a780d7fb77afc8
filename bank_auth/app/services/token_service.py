from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class TokenPair(BaseModel):
    access_token: str
    refresh_token: str


class ITokenService(ABC):
    """Issues and invalidates bearer tokens - application layer"""

    @abstractmethod
    def issue_pair(self, user_id: UUID, email: str) -> TokenPair:
        """Issue a fresh access/refresh token pair for a user"""
        pass

    @abstractmethod
    async def decode_access(self, token: str) -> Optional[dict]:
        """Claims of a valid, non-revoked access token, else None"""
        pass

    @abstractmethod
    async def decode_refresh(self, token: str) -> Optional[dict]:
        """Claims of a valid, non-revoked refresh token, else None"""
        pass

    @abstractmethod
    async def invalidate(self, token: str) -> None:
        """Revoke a token until its natural expiry"""
        pass

    @abstractmethod
    async def is_revoked(self, token: str) -> bool:
        """Whether a token has been invalidated"""
        pass
