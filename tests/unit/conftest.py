import pytest
import pytest_asyncio
import fakeredis.aioredis
from unittest.mock import AsyncMock, MagicMock

from bank_auth.adapter.cache.redis_cache import RedisCache
from bank_auth.app.services.settings import AuthSettings


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_email = AsyncMock()
    uow.users.get_by_id = AsyncMock()
    uow.users.record_failed_login = AsyncMock(return_value=1)
    uow.users.lock_until = AsyncMock()
    uow.users.record_successful_login = AsyncMock()
    uow.users.set_password_hash = AsyncMock(return_value=True)
    uow.users.set_mfa_enabled = AsyncMock(return_value=True)

    uow.audit_events = MagicMock()
    uow.audit_events.append = AsyncMock()
    return uow


@pytest.fixture
def mock_audit():
    audit = MagicMock()
    audit.log_action = AsyncMock()
    audit.log_security_event = AsyncMock()
    return audit


@pytest.fixture
def settings():
    return AuthSettings()


@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client, timeout_seconds=1)
