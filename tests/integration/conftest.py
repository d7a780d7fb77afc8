import bcrypt
import fakeredis.aioredis
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.adapter.cache.redis_cache import RedisCache
from bank_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from bank_auth.app.services.notification_sender import INotificationSender
from bank_auth.depends import get_notification_sender, get_redis, get_unit_of_work
from bank_auth.domain.entities import User

PASSWORD = "SecurePass123!"


class CapturingSender(INotificationSender):
    """Keeps every code instead of emailing it"""

    def __init__(self):
        self.sent = []

    async def send_mfa_code(self, email: str, display_name: str, code: str) -> None:
        self.sent.append((email, code))

    def last_code(self, email: str) -> str:
        return [code for to, code in self.sent if to == email][-1]


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def redis_client():
    client = fakeredis.aioredis.FakeRedis(decode_responses=True)
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def cache(redis_client):
    return RedisCache(redis_client, timeout_seconds=1)


@pytest.fixture
def sender():
    return CapturingSender()


@pytest.fixture
def create_user(db_session):
    async def _create(email: str = "jane@bank.com", mfa_enabled: bool = False, **fields) -> User:
        user = User(
            email=email,
            password_hash=bcrypt.hashpw(PASSWORD.encode(), bcrypt.gensalt(4)).decode(),
            first_name=fields.pop("first_name", "Jane"),
            last_name=fields.pop("last_name", "Doe"),
            mfa_enabled=mfa_enabled,
            **fields,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        db_session.expunge(user)
        return user

    return _create


@pytest.fixture
def app(db_session, redis_client, sender):
    from bank_auth.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_redis] = lambda: redis_client
    app.dependency_overrides[get_notification_sender] = lambda: sender

    return app


@pytest_asyncio.fixture
async def client(app):
    transport = ASGITransport(app=app, client=("10.0.0.1", 50000))
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    def _headers(login: dict) -> dict:
        return {
            "Authorization": f"Bearer {login['access_token']}",
            "X-Session-ID": login["session_id"],
        }

    return _headers
