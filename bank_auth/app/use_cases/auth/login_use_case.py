"""
Login Use Case

Verifies credentials, opens a session and either signs the user in or
starts an MFA challenge.
"""

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.credential_verifier import (
    GENERIC_CREDENTIALS_MESSAGE,
    CredentialVerifier,
)
from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.notification_sender import mask_email
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.token_service import ITokenService
from bank_auth.domain.entities import AuditSeverity
from bank_auth.libs.result import Error, Result, Return
from .dtos import ClientContext, LoginResponse, UserProfile


class LoginUseCase:
    """
    Use case for user login.

    Business Rules:
    - Every failure reaches the client as INVALID_CREDENTIALS with one message
    - Tokens are minted up front and stored with the session
    - Without MFA the session is usable immediately and tokens are returned
    - With MFA the session starts unverified, a code is emailed and no
      tokens are returned until the code is verified
    - If the code cannot be delivered the pending session is ended
    """

    def __init__(
        self,
        verifier: CredentialVerifier,
        mfa: MfaCodeManager,
        sessions: SessionStore,
        tokens: ITokenService,
        audit: IAuditSink,
    ):
        self.verifier = verifier
        self.mfa = mfa
        self.sessions = sessions
        self.tokens = tokens
        self.audit = audit

    async def execute(
        self, email: str, password: str, client: ClientContext
    ) -> Result[LoginResponse]:
        """
        Execute login use case.

        Args:
            email: User email
            password: Plain text password
            client: IP address, user agent and device info of the caller

        Returns:
            Result with LoginResponse, or Error
        """
        await self.audit.log_action(
            "LOGIN_ATTEMPT",
            ip_address=client.ip_address,
            metadata={"email": mask_email(email.strip().lower())},
        )

        verified = await self.verifier.verify(email, password, client.ip_address)
        if verified.is_err():
            await self.audit.log_security_event(
                "LOGIN_FAILED",
                ip_address=client.ip_address,
                severity=AuditSeverity.warning,
                metadata={"reason": verified.error.code, "user_agent": client.user_agent},
            )
            return Return.err(Error("INVALID_CREDENTIALS", GENERIC_CREDENTIALS_MESSAGE))

        user = verified.value
        pair = self.tokens.issue_pair(user.user_id, user.email)

        created = await self.sessions.create(
            user_id=user.user_id,
            access_token=pair.access_token,
            refresh_token=pair.refresh_token,
            ip_address=client.ip_address,
            user_agent=client.user_agent,
            device_info=client.device_info,
            mfa_verified=not user.mfa_enabled,
        )
        if created.is_err():
            return created
        session = created.value

        if user.mfa_enabled:
            issued = await self.mfa.issue(user.user_id, user.email, user.display_name)
            if issued.is_err():
                await self.sessions.end_session(session.session_id)
                return issued

            await self.audit.log_action(
                "MFA_CODE_SENT",
                user_id=user.user_id,
                session_id=session.session_id,
                ip_address=client.ip_address,
            )
            return Return.ok(
                LoginResponse(
                    requires_mfa=True,
                    session_id=session.session_id,
                    masked_email=mask_email(user.email),
                    mfa_expires_in=issued.value,
                )
            )

        await self.audit.log_action(
            "LOGIN_SUCCESS",
            user_id=user.user_id,
            session_id=session.session_id,
            ip_address=client.ip_address,
            metadata={"mfa": False, "user_agent": client.user_agent},
        )
        return Return.ok(
            LoginResponse(
                requires_mfa=False,
                session_id=session.session_id,
                access_token=pair.access_token,
                refresh_token=pair.refresh_token,
                expires_at=session.expires_at,
                user=UserProfile(
                    id=user.user_id,
                    email=user.email,
                    first_name=user.first_name,
                    last_name=user.last_name,
                    mfa_enabled=user.mfa_enabled,
                ),
            )
        )
