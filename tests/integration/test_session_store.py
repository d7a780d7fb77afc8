import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.adapter.cache.redis_cache import RedisCache
from bank_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from bank_auth.app.services.cache import CacheError
from bank_auth.app.services.session_store import SessionStore, cache_key, revoked_key
from bank_auth.app.services.settings import AuthSettings
from bank_auth.domain.entities import Session


@pytest.fixture
def make_store(db_session, cache):
    def _make(cache_backend=None, **settings) -> SessionStore:
        return SessionStore(
            SqlAlchemyUnitOfWork(db_session),
            cache_backend or cache,
            AuthSettings(**settings),
        )

    return _make


async def open_session(store: SessionStore, user_id, ip: str = "10.0.0.1", mfa_verified=True) -> str:
    created = await store.create(
        user_id,
        access_token="access.jwt",
        refresh_token="refresh.jwt",
        ip_address=ip,
        user_agent="pytest",
        device_info={"os": "Linux", "country": "VN"},
        mfa_verified=mfa_verified,
    )
    return created.value.session_id


@pytest.mark.asyncio
async def test_create_and_validate(make_store, create_user, redis_client):
    user = await create_user()
    store = make_store()

    session_id = await open_session(store, user.id)

    assert len(session_id) == 64
    assert await redis_client.ttl(cache_key(session_id)) <= 24 * 60 * 60

    validated = await store.validate(session_id)
    assert validated.value.user_id == user.id
    assert validated.value.mfa_verified is True
    assert validated.value.ip_address == "10.0.0.1"


@pytest.mark.asyncio
async def test_cache_ttl_never_exceeds_remaining_lifetime(make_store, create_user, redis_client):
    user = await create_user()
    store = make_store(session_lifetime_seconds=30)
    session_id = await open_session(store, user.id)

    await redis_client.delete(cache_key(session_id))
    await asyncio.sleep(1.1)
    validated = await store.validate(session_id)

    assert validated.is_ok()
    assert 0 < await redis_client.ttl(cache_key(session_id)) <= 28


@pytest.mark.asyncio
async def test_end_session_is_idempotent(make_store, create_user, redis_client):
    user = await create_user()
    store = make_store()
    session_id = await open_session(store, user.id)

    first = await store.end_session(session_id)
    second = await store.end_session(session_id)
    unknown = await store.end_session("0" * 64)

    assert first.value is True
    assert second.value is False
    assert unknown.value is False
    assert await redis_client.exists(cache_key(session_id)) == 0

    validated = await store.validate(session_id)
    assert validated.error.code == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_expired_session_is_rejected_and_revoked(make_store, create_user, db_session):
    user = await create_user()
    store = make_store(session_lifetime_seconds=1)
    session_id = await open_session(store, user.id)

    await asyncio.sleep(1.5)
    validated = await store.validate(session_id)

    assert validated.error.code == "SESSION_EXPIRED"
    listed = await store.list_active(user.id)
    assert session_id not in [s.session_id for s in listed.value]
    row = (
        await db_session.exec(
            select(Session)
            .where(Session.session_id == session_id)
            .execution_options(populate_existing=True)
        )
    ).one()
    assert row.is_active is False


@pytest.mark.asyncio
async def test_end_all_user_sessions_keeps_the_excluded_one(make_store, create_user):
    user = await create_user()
    other = await create_user(email="john@bank.com")
    store = make_store()
    keep = await open_session(store, user.id)
    drop_a = await open_session(store, user.id)
    drop_b = await open_session(store, user.id)
    unrelated = await open_session(store, other.id)

    ended = await store.end_all_user_sessions(user.id, except_session_id=keep)

    assert ended.value == 2
    assert (await store.validate(keep)).is_ok()
    assert (await store.validate(drop_a)).error.code == "SESSION_NOT_FOUND"
    assert (await store.validate(drop_b)).error.code == "SESSION_NOT_FOUND"
    assert (await store.validate(unrelated)).is_ok()


@pytest.mark.asyncio
async def test_session_limit_revokes_oldest(make_store, create_user):
    user = await create_user()
    store = make_store(max_sessions_per_user=2)
    oldest = await open_session(store, user.id)
    middle = await open_session(store, user.id)
    newest = await open_session(store, user.id)

    listed = await store.list_active(user.id, current_session_id=newest)

    ids = [s.session_id for s in listed.value]
    assert oldest not in ids
    assert set(ids) == {middle, newest}
    assert (await store.validate(oldest)).error.code == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_list_active_marks_current(make_store, create_user):
    user = await create_user()
    store = make_store()
    first = await open_session(store, user.id)
    second = await open_session(store, user.id, ip="10.0.0.2")

    listed = await store.list_active(user.id, current_session_id=first)

    by_id = {s.session_id: s for s in listed.value}
    assert by_id[first].is_current is True
    assert by_id[second].is_current is False
    assert by_id[second].ip_address == "10.0.0.2"
    assert by_id[first].country == "VN"
    assert by_id[first].is_expiring_soon is False


@pytest.mark.asyncio
async def test_cleanup_expired_deletes_rows(make_store, create_user):
    user = await create_user()
    short = make_store(session_lifetime_seconds=1)
    await open_session(short, user.id)
    live = await open_session(make_store(), user.id)

    await asyncio.sleep(1.5)
    deleted = await short.cleanup_expired()
    again = await short.cleanup_expired()

    assert deleted.value == 1
    assert again.value == 0
    assert (await short.validate(live)).is_ok()


@pytest.mark.asyncio
async def test_pending_session_becomes_verified(make_store, create_user, redis_client):
    user = await create_user(mfa_enabled=True)
    store = make_store()
    session_id = await open_session(store, user.id, mfa_verified=False)

    assert (await store.validate(session_id)).value.mfa_verified is False

    marked = await store.mark_mfa_verified(session_id)
    assert marked.value.mfa_verified is True
    assert (await store.validate(session_id)).value.mfa_verified is True

    tokens = await store.get_tokens(session_id)
    assert tokens.value.access_token == "access.jwt"


@pytest.mark.asyncio
async def test_refresh_token_lookup_and_rotation(make_store, create_user):
    user = await create_user()
    store = make_store()
    session_id = await open_session(store, user.id)

    found = await store.find_by_refresh_token("refresh.jwt")
    assert found.value.session_id == session_id

    await store.rotate_tokens(session_id, "access.2", "refresh.2")

    assert (await store.find_by_refresh_token("refresh.jwt")).is_err()
    assert (await store.get_tokens(session_id)).value.refresh_token == "refresh.2"


@pytest.mark.asyncio
async def test_ip_change_is_detected_and_flagged(make_store, create_user):
    user = await create_user()
    store = make_store()
    session_id = await open_session(store, user.id)

    assert await store.check_ip_change(session_id, "10.0.0.1") is False
    assert await store.check_ip_change(session_id, "192.168.1.9") is True

    await store.mark_suspicious(session_id, "IP changed")

    listed = await store.list_active(user.id)
    assert listed.value[0].is_suspicious is True
    # Flagging does not revoke
    assert (await store.validate(session_id)).is_ok()


@pytest.mark.asyncio
async def test_stale_cache_entry_past_expiry_is_rejected(make_store, create_user, redis_client, db_session):
    user = await create_user()
    store = make_store(session_lifetime_seconds=1)
    session_id = await open_session(store, user.id)
    # Mirror outlives the row
    await redis_client.expire(cache_key(session_id), 60)

    await asyncio.sleep(1.5)
    validated = await store.validate(session_id)

    assert validated.error.code == "SESSION_EXPIRED"
    assert await redis_client.exists(cache_key(session_id)) == 0
    row = (
        await db_session.exec(
            select(Session)
            .where(Session.session_id == session_id)
            .execution_options(populate_existing=True)
        )
    ).one()
    assert row.is_active is False


@pytest.mark.asyncio
async def test_short_lived_session_is_expiring_soon(make_store, create_user):
    user = await create_user()
    store = make_store(session_lifetime_seconds=1800, expiring_soon_seconds=3600)
    session_id = await open_session(store, user.id)

    listed = await store.list_active(user.id, current_session_id=session_id)

    assert listed.value[0].is_expiring_soon is True


class DeleteFailsCache(RedisCache):
    async def delete(self, *keys: str) -> int:
        raise CacheError("delete refused")


@pytest.mark.asyncio
async def test_ended_session_stays_ended_when_eviction_fails(make_store, create_user, redis_client):
    user = await create_user()
    store = make_store(cache_backend=DeleteFailsCache(redis_client, timeout_seconds=1))
    session_id = await open_session(store, user.id)
    assert (await store.validate(session_id)).is_ok()

    ended = await store.end_session(session_id)

    assert ended.value is True
    assert await redis_client.exists(cache_key(session_id)) == 1
    assert await redis_client.exists(revoked_key(session_id)) == 1
    assert (await store.validate(session_id)).error.code == "SESSION_NOT_FOUND"


@pytest.mark.asyncio
async def test_mass_revoke_holds_when_eviction_fails(make_store, create_user, redis_client):
    user = await create_user()
    store = make_store(cache_backend=DeleteFailsCache(redis_client, timeout_seconds=1))
    keep = await open_session(store, user.id)
    drop = await open_session(store, user.id)

    ended = await store.end_all_user_sessions(user.id, except_session_id=keep)

    assert ended.value == 1
    assert (await store.validate(drop)).error.code == "SESSION_NOT_FOUND"
    assert (await store.validate(keep)).is_ok()


@pytest.mark.asyncio
async def test_revocation_is_refused_when_cache_is_down(make_store, create_user):
    broken = MagicMock()
    broken.get_many = AsyncMock(side_effect=CacheError("down"))
    broken.set = AsyncMock(side_effect=CacheError("down"))
    broken.delete = AsyncMock(side_effect=CacheError("down"))
    user = await create_user()
    store = make_store(cache_backend=broken)

    session_id = await open_session(store, user.id)
    validated = await store.validate(session_id)

    assert validated.value.user_id == user.id
    with pytest.raises(CacheError):
        await store.end_session(session_id)
    with pytest.raises(CacheError):
        await store.end_all_user_sessions(user.id)
    # Nothing was revoked, so store and mirror still agree
    assert (await store.validate(session_id)).is_ok()


class EndsSessionBeforeWrite(RedisCache):
    """Lets another request end the session right before a mirror write lands"""

    def __init__(self, redis_client, other_store: SessionStore):
        super().__init__(redis_client, timeout_seconds=1)
        self.other_store = other_store
        self.armed_for = None

    async def set(self, key: str, value: str, ttl_seconds: int) -> None:
        if self.armed_for is not None and key == cache_key(self.armed_for):
            session_id, self.armed_for = self.armed_for, None
            await self.other_store.end_session(session_id)
        await super().set(key, value, ttl_seconds)


@pytest.mark.asyncio
async def test_logout_during_read_through_is_not_undone(make_store, create_user, redis_client, engine):
    user = await create_user()
    async with AsyncSession(engine, expire_on_commit=False) as other_db:
        other_store = SessionStore(
            SqlAlchemyUnitOfWork(other_db), RedisCache(redis_client), AuthSettings()
        )
        racing = EndsSessionBeforeWrite(redis_client, other_store)
        store = make_store(cache_backend=racing)
        session_id = await open_session(store, user.id)
        await redis_client.delete(cache_key(session_id))

        racing.armed_for = session_id
        first = await store.validate(session_id)
        second = await store.validate(session_id)

    assert first.is_ok()
    assert second.error.code == "SESSION_NOT_FOUND"
