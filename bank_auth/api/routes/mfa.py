from fastapi import APIRouter, Depends, status
from pydantic import BaseModel, Field

from bank_auth.api.error import raise_for_error
from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.app.use_cases.auth import AuthContext
from bank_auth.app.use_cases.mfa import (
    ConfirmMfaSetupUseCase,
    DisableMfaUseCase,
    EnableMfaUseCase,
    GetMfaStatusUseCase,
    MfaCodeSentResponse,
    MfaStatusResponse,
    MfaToggleResponse,
)
from bank_auth.depends import (
    get_audit_sink,
    get_current_session,
    get_mfa_code_manager,
    get_unit_of_work,
)

router = APIRouter(prefix="/mfa", tags=["MFA"])


@router.get("/status", status_code=status.HTTP_200_OK, response_model=MfaStatusResponse)
async def mfa_status(
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
):
    use_case = GetMfaStatusUseCase(uow, mfa)
    result = await use_case.execute(current.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post("/enable", status_code=status.HTTP_200_OK, response_model=MfaCodeSentResponse)
async def enable_mfa(
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Start MFA Setup

    Emails a code that must be confirmed at /mfa/enable/confirm.

    Raises:
        - 409 Conflict: MFA_ALREADY_ENABLED
        - 429 Too Many Requests: TOO_MANY_ATTEMPTS
    """
    use_case = EnableMfaUseCase(uow, mfa, audit)
    result = await use_case.execute(current.user_id, current.session_id, current.ip_address)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class MfaCodeRequest(BaseModel):
    code: str = Field(..., description="6-digit code from the email")


@router.post(
    "/enable/confirm", status_code=status.HTTP_200_OK, response_model=MfaToggleResponse
)
async def confirm_mfa_setup(
    request: MfaCodeRequest,
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Confirm MFA Setup

    Raises:
        - 400 Bad Request: CODE_MISMATCH, CODE_EXPIRED_OR_NOT_FOUND, INVALID_CODE_FORMAT
        - 409 Conflict: MFA_ALREADY_ENABLED
        - 429 Too Many Requests: TOO_MANY_ATTEMPTS
    """
    use_case = ConfirmMfaSetupUseCase(uow, mfa, audit)
    result = await use_case.execute(
        current.user_id, request.code, current.session_id, current.ip_address
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value


@router.post(
    "/disable/request", status_code=status.HTTP_200_OK, response_model=MfaCodeSentResponse
)
async def request_disable_code(
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    audit: IAuditSink = Depends(get_audit_sink),
):
    use_case = DisableMfaUseCase(uow, mfa, audit)
    result = await use_case.request_code(current.user_id)

    if result.is_err():
        raise_for_error(result.error)

    return result.value


class DisableMfaRequest(BaseModel):
    password: str = Field(..., min_length=1)
    code: str = Field(..., description="6-digit code from the email")


@router.post("/disable", status_code=status.HTTP_200_OK, response_model=MfaToggleResponse)
async def disable_mfa(
    request: DisableMfaRequest,
    current: AuthContext = Depends(get_current_session),
    uow: UnitOfWork = Depends(get_unit_of_work),
    mfa: MfaCodeManager = Depends(get_mfa_code_manager),
    audit: IAuditSink = Depends(get_audit_sink),
):
    """
    Disable MFA

    Needs the account password and a code from /mfa/disable/request.

    Raises:
        - 400 Bad Request: INVALID_PASSWORD or a code error
        - 409 Conflict: MFA_NOT_ENABLED
        - 429 Too Many Requests: TOO_MANY_ATTEMPTS
    """
    use_case = DisableMfaUseCase(uow, mfa, audit)
    result = await use_case.confirm(
        current.user_id,
        request.password,
        request.code,
        current.session_id,
        current.ip_address,
    )

    if result.is_err():
        raise_for_error(result.error)

    return result.value
