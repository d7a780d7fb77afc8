"""
Disable MFA Use Case

Turning MFA off needs both the password and a fresh emailed code.
"""

from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.credential_verifier import check_password
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.notification_sender import mask_email
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.entities import AuditSeverity
from bank_auth.libs.result import Error, Result, Return
from .dtos import MfaCodeSentResponse, MfaToggleResponse

MFA_NOT_ENABLED = Error("MFA_NOT_ENABLED", "Two-factor authentication is not enabled")


class DisableMfaUseCase:
    """
    Use case for disabling MFA.

    Business Rules:
    - request_code emails a code to the account address
    - confirm checks the password first, then the code
    - Failed attempts are audited as MFA_DISABLE_FAILED
    """

    def __init__(self, uow: UnitOfWork, mfa: MfaCodeManager, audit: IAuditSink):
        self.uow = uow
        self.mfa = mfa
        self.audit = audit

    async def request_code(self, user_id: UUID) -> Result[MfaCodeSentResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if not user.mfa_enabled:
                return Return.err(MFA_NOT_ENABLED)
            email, display_name = user.email, user.display_name

        if await self.mfa.is_locked(user_id):
            return Return.err(
                Error("TOO_MANY_ATTEMPTS", "Too many requests. Please try again later.")
            )

        issued = await self.mfa.issue(user_id, email, display_name)
        if issued.is_err():
            return issued
        return Return.ok(
            MfaCodeSentResponse(masked_email=mask_email(email), expires_in=issued.value)
        )

    async def confirm(
        self,
        user_id: UUID,
        password: str,
        code: str,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[MfaToggleResponse]:
        failure = None

        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if not user.mfa_enabled:
                return Return.err(MFA_NOT_ENABLED)

            if not check_password(password, user.password_hash):
                failure = Error("INVALID_PASSWORD", "Password is incorrect")
            else:
                checked = await self.mfa.verify(user_id, code)
                if checked.is_err():
                    failure = checked.error
                else:
                    await self.uow.users.set_mfa_enabled(user_id, False)
                    await self.uow.commit()

        if failure is not None:
            await self.audit.log_security_event(
                "MFA_DISABLE_FAILED",
                user_id=user_id,
                session_id=session_id,
                ip_address=ip_address,
                metadata={"reason": failure.code},
            )
            return Return.err(failure)

        await self.audit.log_security_event(
            "MFA_DISABLED",
            user_id=user_id,
            session_id=session_id,
            ip_address=ip_address,
            severity=AuditSeverity.warning,
        )
        return Return.ok(
            MfaToggleResponse(
                status="success",
                message="Two-factor authentication disabled",
                mfa_enabled=False,
            )
        )
