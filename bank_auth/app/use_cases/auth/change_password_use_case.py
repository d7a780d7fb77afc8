"""
Change Password Use Case

Replaces the password hash and signs the user out everywhere else.
"""

from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.credential_verifier import check_password, hash_password
from bank_auth.app.services.session_store import SessionStore
from bank_auth.app.services.settings import AuthSettings
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.domain.entities import AuditSeverity
from bank_auth.libs.result import Error, Result, Return
from .dtos import ChangePasswordResponse


class ChangePasswordUseCase:
    """
    Use case for changing the password of a signed-in user.

    Business Rules:
    - The current password must be supplied and correct
    - The new password must differ from the current one
    - Every other session of the user is ended; the current one survives
    """

    def __init__(
        self,
        uow: UnitOfWork,
        sessions: SessionStore,
        audit: IAuditSink,
        settings: AuthSettings,
    ):
        self.uow = uow
        self.sessions = sessions
        self.audit = audit
        self.settings = settings

    async def execute(
        self,
        user_id: UUID,
        current_session_id: str,
        current_password: str,
        new_password: str,
        ip_address: Optional[str] = None,
    ) -> Result[ChangePasswordResponse]:
        failure = None

        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))

            if not check_password(current_password, user.password_hash):
                failure = Error("INVALID_PASSWORD", "Current password is incorrect")
            elif check_password(new_password, user.password_hash):
                failure = Error(
                    "INVALID_PASSWORD", "New password must be different from the current one"
                )
            else:
                await self.uow.users.set_password_hash(
                    user_id, hash_password(new_password, self.settings.bcrypt_rounds)
                )
                await self.uow.commit()

        if failure is not None:
            await self.audit.log_security_event(
                "PASSWORD_CHANGE_FAILED",
                user_id=user_id,
                session_id=current_session_id,
                ip_address=ip_address,
                severity=AuditSeverity.warning,
                metadata={"reason": failure.message},
            )
            return Return.err(failure)

        ended = await self.sessions.end_all_user_sessions(user_id, current_session_id)
        terminated = ended.value

        await self.audit.log_security_event(
            "PASSWORD_CHANGED",
            user_id=user_id,
            session_id=current_session_id,
            ip_address=ip_address,
            severity=AuditSeverity.info,
            metadata={"sessions_terminated": terminated},
        )

        return Return.ok(
            ChangePasswordResponse(
                status="success",
                message="Password changed successfully",
                sessions_terminated=terminated,
            )
        )
