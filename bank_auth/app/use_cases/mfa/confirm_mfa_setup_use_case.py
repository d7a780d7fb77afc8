"""
Confirm MFA Setup Use Case
"""

from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.libs.result import Error, Result, Return
from .dtos import MfaToggleResponse


class ConfirmMfaSetupUseCase:
    """
    Use case for finishing MFA setup.

    Business Rules:
    - The code sent by EnableMfaUseCase must be verified
    - Only then is mfa_enabled switched on; later logins need a code
    """

    def __init__(self, uow: UnitOfWork, mfa: MfaCodeManager, audit: IAuditSink):
        self.uow = uow
        self.mfa = mfa
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        code: str,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[MfaToggleResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if user.mfa_enabled:
                return Return.err(
                    Error("MFA_ALREADY_ENABLED", "Two-factor authentication is already enabled")
                )

            checked = await self.mfa.verify(user_id, code)
            if checked.is_ok():
                await self.uow.users.set_mfa_enabled(user_id, True)
                await self.uow.commit()

        if checked.is_err():
            await self.audit.log_security_event(
                "MFA_VERIFICATION_FAILED",
                user_id=user_id,
                session_id=session_id,
                ip_address=ip_address,
                metadata={"reason": checked.error.code, "context": "setup"},
            )
            return checked

        await self.audit.log_security_event(
            "MFA_ENABLED",
            user_id=user_id,
            session_id=session_id,
            ip_address=ip_address,
        )
        return Return.ok(
            MfaToggleResponse(
                status="success",
                message="Two-factor authentication enabled",
                mfa_enabled=True,
            )
        )
