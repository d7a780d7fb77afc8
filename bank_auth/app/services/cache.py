from abc import ABC, abstractmethod
from typing import List, Optional


class CacheError(Exception):
    """Raised by cache adapters when the backend fails or times out."""


class ICache(ABC):
    """Key-value cache with per-key TTL - application layer"""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Get a value, None when the key is absent"""
        pass

    @abstractmethod
    async def get_many(self, *keys: str) -> List[Optional[str]]:
        """Get several values in one round trip, None for each absent key"""
        pass

    @abstractmethod
    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        """Set a value that expires after ttl_seconds (overwrites)"""
        pass

    @abstractmethod
    async def delete(self, *keys: str) -> int:
        """Delete keys. Returns number of keys removed."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Whether the key is present"""
        pass

    @abstractmethod
    async def incr(self, key: str, ttl_seconds: int) -> int:
        """
        Increment a counter.

        The TTL is only applied when the counter is created, so the window
        starts at the first increment.
        """
        pass
