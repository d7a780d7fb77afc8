"""
Enable MFA Use Case

First half of MFA setup: proves the user can receive codes by sending one.
"""

from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.notification_sender import mask_email
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.libs.result import Error, Result, Return
from .dtos import MfaCodeSentResponse


class EnableMfaUseCase:
    """
    Use case for starting MFA setup.

    Business Rules:
    - MFA must not already be enabled
    - The code goes to the account email
    - MFA stays disabled until ConfirmMfaSetupUseCase verifies the code
    """

    def __init__(self, uow: UnitOfWork, mfa: MfaCodeManager, audit: IAuditSink):
        self.uow = uow
        self.mfa = mfa
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[MfaCodeSentResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            if user.mfa_enabled:
                return Return.err(
                    Error("MFA_ALREADY_ENABLED", "Two-factor authentication is already enabled")
                )
            email, display_name = user.email, user.display_name

        if await self.mfa.is_locked(user_id):
            return Return.err(
                Error("TOO_MANY_ATTEMPTS", "Too many requests. Please try again later.")
            )

        issued = await self.mfa.issue(user_id, email, display_name)
        if issued.is_err():
            return issued

        await self.audit.log_action(
            "MFA_SETUP_INITIATED",
            user_id=user_id,
            session_id=session_id,
            ip_address=ip_address,
        )
        return Return.ok(
            MfaCodeSentResponse(masked_email=mask_email(email), expires_in=issued.value)
        )
