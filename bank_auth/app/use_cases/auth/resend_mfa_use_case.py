"""
Resend MFA Use Case

Sends a fresh code for a login that is still waiting for MFA.
"""

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.notification_sender import mask_email
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.libs.result import Error, Result, Return
from .dtos import ClientContext, ResendMfaResponse


class ResendMfaUseCase:
    """
    Use case for resending the MFA code.

    Business Rules:
    - Only for sessions that are still pending MFA
    - The previous code stops working as soon as the new one is stored
    - Rate limited by the MFA code manager (TOO_MANY_ATTEMPTS)
    """

    def __init__(
        self,
        uow: UnitOfWork,
        mfa: MfaCodeManager,
        sessions: SessionStore,
        audit: IAuditSink,
    ):
        self.uow = uow
        self.mfa = mfa
        self.sessions = sessions
        self.audit = audit

    async def execute(
        self, session_id: str, client: ClientContext
    ) -> Result[ResendMfaResponse]:
        validated = await self.sessions.validate(session_id)
        if validated.is_err():
            return validated
        descriptor = validated.value

        if descriptor.mfa_verified:
            return Return.err(
                Error("MFA_NOT_PENDING", "Session is not waiting for a verification code")
            )

        async with self.uow:
            user = await self.uow.users.get_by_id(descriptor.user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            email, display_name = user.email, user.display_name

        sent = await self.mfa.resend(descriptor.user_id, email, display_name)
        if sent.is_err():
            return sent

        await self.audit.log_action(
            "MFA_CODE_RESENT",
            user_id=descriptor.user_id,
            session_id=session_id,
            ip_address=client.ip_address,
        )
        return Return.ok(
            ResendMfaResponse(masked_email=mask_email(email), expires_in=sent.value)
        )
