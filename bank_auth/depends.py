import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from bank_auth.adapter.cache.redis_cache import RedisCache
from bank_auth.adapter.services.audit_sink import AuditEventSink
from bank_auth.adapter.services.jwt_token_service import JwtTokenService
from bank_auth.adapter.services.notification_sender import (
    ConsoleNotificationSender,
    SmtpNotificationSender,
)
from bank_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from bank_auth.api.error import ClientError, raise_for_error
from bank_auth.api.utils.client import client_ip, describe_device
from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.cache import ICache
from bank_auth.app.services.credential_verifier import CredentialVerifier
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.notification_sender import INotificationSender
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.settings import AuthSettings
from bank_auth.app.services.token_service import ITokenService
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.app.use_cases.auth.dtos import AuthContext, ClientContext
from bank_auth.libs.result import Error
from config import ApplicationConfig

logger = logging.getLogger(__name__)

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

redis_client = Redis.from_url(ApplicationConfig.REDIS_URL, decode_responses=True)

security = HTTPBearer(auto_error=False)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


def get_settings() -> AuthSettings:
    return AuthSettings.from_config(ApplicationConfig)


def get_redis() -> Redis:
    return redis_client


def get_cache(
    redis: Redis = Depends(get_redis), settings: AuthSettings = Depends(get_settings)
) -> ICache:
    return RedisCache(redis, settings.cache_timeout_seconds)


def get_notification_sender() -> INotificationSender:
    if ApplicationConfig.MAIL_BACKEND == "smtp":
        return SmtpNotificationSender(
            hostname=ApplicationConfig.SMTP_HOST,
            port=ApplicationConfig.SMTP_PORT,
            username=ApplicationConfig.SMTP_USER,
            password=ApplicationConfig.SMTP_PASSWORD,
            sender=ApplicationConfig.SMTP_FROM,
            app_name=ApplicationConfig.APP_NAME,
            code_ttl_seconds=ApplicationConfig.MFA_CODE_TTL_SECONDS,
        )
    return ConsoleNotificationSender()


def get_audit_sink(uow: UnitOfWork = Depends(get_unit_of_work)) -> IAuditSink:
    return AuditEventSink(uow)


def get_token_service(cache: ICache = Depends(get_cache)) -> ITokenService:
    return JwtTokenService(
        cache,
        access_secret=ApplicationConfig.JWT_SECRET,
        refresh_secret=ApplicationConfig.JWT_REFRESH_SECRET,
        access_token_minutes=ApplicationConfig.ACCESS_TOKEN_MINUTES,
        refresh_token_days=ApplicationConfig.REFRESH_TOKEN_DAYS,
    )


def get_credential_verifier(
    uow: UnitOfWork = Depends(get_unit_of_work),
    audit: IAuditSink = Depends(get_audit_sink),
    settings: AuthSettings = Depends(get_settings),
) -> CredentialVerifier:
    return CredentialVerifier(uow, audit, settings)


def get_mfa_code_manager(
    cache: ICache = Depends(get_cache),
    sender: INotificationSender = Depends(get_notification_sender),
    settings: AuthSettings = Depends(get_settings),
) -> MfaCodeManager:
    return MfaCodeManager(cache, sender, settings)


def get_session_store(
    uow: UnitOfWork = Depends(get_unit_of_work),
    cache: ICache = Depends(get_cache),
    settings: AuthSettings = Depends(get_settings),
) -> SessionStore:
    return SessionStore(uow, cache, settings)


def get_client_context(request: Request) -> ClientContext:
    user_agent = request.headers.get("user-agent")
    device_info = describe_device(user_agent)
    country = request.headers.get("cf-ipcountry")
    if country:
        device_info["country"] = country
    return ClientContext(
        ip_address=client_ip(request),
        user_agent=user_agent,
        device_info=device_info,
    )


async def get_current_session(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    x_session_id: Optional[str] = Header(None),
    client: ClientContext = Depends(get_client_context),
    tokens: ITokenService = Depends(get_token_service),
    sessions: SessionStore = Depends(get_session_store),
) -> AuthContext:
    """
    Dependency that authorizes a request.

    Needs both the bearer access token and the X-Session-ID header. The
    session must be active, unexpired, MFA-verified and belong to the
    token's user. A change of IP address marks the session suspicious
    but does not reject the request.

    Raises:
        ClientError: 401 if any check fails
    """
    if credentials is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Authentication required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    claims = await tokens.decode_access(credentials.credentials)
    if claims is None:
        raise ClientError(
            Error("UNAUTHORIZED", "Invalid or expired token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not x_session_id:
        raise ClientError(
            Error("SESSION_NOT_FOUND", "Session ID required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    validated = await sessions.validate(x_session_id)
    if validated.is_err():
        raise_for_error(validated.error)
    descriptor = validated.value

    if str(descriptor.user_id) != claims.get("user_id"):
        raise ClientError(
            Error("UNAUTHORIZED", "Session does not belong to this token"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if not descriptor.mfa_verified:
        raise ClientError(
            Error("MFA_NOT_VERIFIED", "Two-factor verification required"),
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    if await sessions.check_ip_change(x_session_id, client.ip_address):
        logger.warning(
            "Session %s used from a new IP address", x_session_id[:8]
        )
        await sessions.mark_suspicious(
            x_session_id,
            f"IP changed from {descriptor.ip_address} to {client.ip_address}",
        )

    return AuthContext(
        user_id=UUID(claims["user_id"]),
        email=claims.get("email", ""),
        session_id=x_session_id,
        access_token=credentials.credentials,
        ip_address=client.ip_address,
    )
