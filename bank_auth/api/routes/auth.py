from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header, status
from fastapi.security import HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, Field

from bank_auth.api.error import raise_for_error
from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.credential_verifier import CredentialVerifier
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.settings import AuthSettings
from bank_auth.app.services.token_service import ITokenService
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.app.use_cases.auth import (
    AuthContext,
    AuthenticatedResponse,
    ChangePasswordResponse,
    ChangePasswordUseCase,
    ClientContext,
    LoginResponse,
    LoginUseCase,
    LogoutResponse,
    LogoutUseCase,
    RefreshTokenResponse,
    RefreshTokenUseCase,
    ResendMfaResponse,
    ResendMfaUseCase,
    VerifyMfaUseCase,
)
from bank_auth.depends import (
    get_audit_sink,
    get_client_context,
    get_credential_verifier,
    get_current_session,
    get_mfa_code_manager,
    get_session_store,
    get_settings,
    get_token_service,
    get_unit_of_work,
    security,
)

router = APIRouter(prefix="/auth", tags=["Authentication"])


class LoginRequest(BaseModel):
    """
    Login HTTP request payload

    Validates incoming login request.
    """

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., min_length=1, description="User password")


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=LoginResponse,
    response_model_exclude_none=True,
)
async def login(
    request: LoginRequest,
    client: ClientContext = Depends(get_client_context),
    verifier: CredentialVerifier = Depends(get_credential_verifier),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    sessions: SessionStore = Depends(get_session_store),
    tokens: ITokenService = Depends(get_token_service),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    User Login

    Without MFA returns tokens, session id and profile. With MFA returns
    requires_mfa=true, the session id and the masked email the code was
    sent to; tokens come from /auth/mfa/verify.

    Raises:
        - 401 Unauthorized: INVALID_CREDENTIALS (same message for every cause)
        - 500 Internal Server Error: NOTIFICATION_FAILED
    """
    use_case = LoginUseCase(verifier, mfa, sessions, tokens, audit)
    result = await use_case.execute(request.email, request.password, client)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class VerifyMfaRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)
    code: str = Field(..., description="6-digit code from the email")


@router.post(
    "/mfa/verify", status_code=status.HTTP_200_OK, response_model=AuthenticatedResponse
)
async def verify_mfa(
    request: VerifyMfaRequest,
    client: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    sessions: SessionStore = Depends(get_session_store),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Complete MFA Login

    Raises:
        - 400 Bad Request: CODE_MISMATCH, CODE_EXPIRED_OR_NOT_FOUND, INVALID_CODE_FORMAT
        - 401 Unauthorized: SESSION_NOT_FOUND, SESSION_EXPIRED
        - 429 Too Many Requests: TOO_MANY_ATTEMPTS
    """
    use_case = VerifyMfaUseCase(uow, mfa, sessions, audit)
    result = await use_case.execute(request.session_id, request.code, client)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ResendMfaRequest(BaseModel):
    session_id: str = Field(..., min_length=1, max_length=64)


@router.post(
    "/mfa/resend", status_code=status.HTTP_200_OK, response_model=ResendMfaResponse
)
async def resend_mfa(
    request: ResendMfaRequest,
    client: ClientContext = Depends(get_client_context),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    sessions: SessionStore = Depends(get_session_store),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Resend MFA Code

    Raises:
        - 400 Bad Request: MFA_NOT_PENDING
        - 401 Unauthorized: SESSION_NOT_FOUND, SESSION_EXPIRED
        - 429 Too Many Requests: TOO_MANY_ATTEMPTS
    """
    use_case = ResendMfaUseCase(uow, mfa, sessions, audit)
    result = await use_case.execute(request.session_id, client)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/logout", status_code=status.HTTP_200_OK, response_model=LogoutResponse)
async def logout(
    x_session_id: str = Header(...),
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    client: ClientContext = Depends(get_client_context),
    sessions: SessionStore = Depends(get_session_store),
    tokens: ITokenService = Depends(get_token_service),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Logout

    Idempotent: an already ended session still gets a 200.
    """
    access_token = credentials.credentials if credentials else None
    user_id = None
    if access_token:
        claims = await tokens.decode_access(access_token)
        if claims is not None:
            user_id = UUID(claims["user_id"])

    use_case = LogoutUseCase(sessions, tokens, audit)
    result = await use_case.execute(x_session_id, access_token, user_id, client.ip_address)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class RefreshRequest(BaseModel):
    """
    Refresh token HTTP request payload
    """

    refresh_token: str = Field(..., description="Refresh token")


@router.post("/refresh", status_code=status.HTTP_200_OK, response_model=RefreshTokenResponse)
async def refresh(
    request: RefreshRequest,
    client: ClientContext = Depends(get_client_context),
    sessions: SessionStore = Depends(get_session_store),
    tokens: ITokenService = Depends(get_token_service),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Refresh Tokens

    Rotates the token pair and restarts the session lifetime.

    Raises:
        - 401 Unauthorized: REFRESH_TOKEN_INVALID
    """
    use_case = RefreshTokenUseCase(sessions, tokens, audit)
    result = await use_case.execute(request.refresh_token, client.ip_address)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, description="New password (min 8 chars)")


@router.post(
    "/change-password",
    status_code=status.HTTP_200_OK,
    response_model=ChangePasswordResponse,
)
async def change_password(
    request: ChangePasswordRequest,
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    sessions: SessionStore = Depends(get_session_store),
    audit: IAuditSink = Depends(get_audit_sink),
    settings: AuthSettings = Depends(get_settings),
):
    """
    Change Password

    Ends every other session of the user; the calling session stays.

    Raises:
        - 400 Bad Request: INVALID_PASSWORD
        - 401 Unauthorized: not signed in
    """
    use_case = ChangePasswordUseCase(uow, sessions, audit, settings)
    result = await use_case.execute(
        current.user_id,
        current.session_id,
        request.current_password,
        request.new_password,
        current.ip_address,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
