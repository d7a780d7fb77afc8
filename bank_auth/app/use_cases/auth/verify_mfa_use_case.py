"""
Verify MFA Use Case

Completes a login that is waiting for an emailed code.
"""

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.entities import AuditSeverity
from bank_auth.libs.result import Error, Result, Return
from .dtos import AuthenticatedResponse, ClientContext, UserProfile


class VerifyMfaUseCase:
    """
    Use case for MFA code verification.

    Business Rules:
    - The session must exist, be active and not expired
    - The code is single use; a wrong code counts towards the lockout
    - On success the session becomes usable and the tokens stored at
      login are handed out
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
        self, session_id: str, code: str, client: ClientContext
    ) -> Result[AuthenticatedResponse]:
        validated = await self.sessions.validate(session_id)
        if validated.is_err():
            return validated
        descriptor = validated.value

        checked = await self.mfa.verify(descriptor.user_id, code)
        if checked.is_err():
            await self.audit.log_security_event(
                "MFA_VERIFICATION_FAILED",
                user_id=descriptor.user_id,
                session_id=session_id,
                ip_address=client.ip_address,
                severity=(
                    AuditSeverity.critical
                    if checked.error.code == "TOO_MANY_ATTEMPTS"
                    else AuditSeverity.warning
                ),
                metadata={"reason": checked.error.code},
            )
            return checked

        marked = await self.sessions.mark_mfa_verified(session_id)
        if marked.is_err():
            return marked

        tokens = await self.sessions.get_tokens(session_id)
        if tokens.is_err():
            return tokens

        async with self.uow:
            user = await self.uow.users.get_by_id(descriptor.user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            profile = UserProfile.from_user(user)

        await self.audit.log_action(
            "MFA_VERIFIED",
            user_id=descriptor.user_id,
            session_id=session_id,
            ip_address=client.ip_address,
        )
        await self.audit.log_action(
            "LOGIN_SUCCESS",
            user_id=descriptor.user_id,
            session_id=session_id,
            ip_address=client.ip_address,
            metadata={"mfa": True, "user_agent": client.user_agent},
        )

        return Return.ok(
            AuthenticatedResponse(
                access_token=tokens.value.access_token,
                refresh_token=tokens.value.refresh_token,
                session_id=session_id,
                expires_at=tokens.value.expires_at,
                user=profile,
            )
        )
