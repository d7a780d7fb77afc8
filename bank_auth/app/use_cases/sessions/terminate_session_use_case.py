"""
Terminate Session Use Case

Signs out one of the caller's own devices.
"""

from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.session_store import SessionStore
from bank_auth.libs.result import Error, Result, Return
from .dtos import TerminateSessionResponse


class TerminateSessionUseCase:
    """
    Use case for ending a single session.

    Business Rules:
    - Users can only end their own live sessions; anything else is
      reported as not found so other users' session ids are not confirmed
    """

    def __init__(self, sessions: SessionStore, audit: IAuditSink):
        self.sessions = sessions
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        target_session_id: str,
        current_session_id: Optional[str] = None,
        ip_address: Optional[str] = None,
    ) -> Result[TerminateSessionResponse]:
        listed = await self.sessions.list_active(user_id)
        if listed.is_err():
            return listed
        if target_session_id not in {s.session_id for s in listed.value}:
            return Return.err(Error("SESSION_NOT_FOUND", "Session not found"))

        ended = await self.sessions.end_session(target_session_id)

        await self.audit.log_action(
            "SESSION_TERMINATED",
            user_id=user_id,
            session_id=current_session_id,
            ip_address=ip_address,
            metadata={
                "terminated_session": target_session_id[:8],
                "was_current": target_session_id == current_session_id,
            },
        )
        return Return.ok(
            TerminateSessionResponse(
                status="success",
                message="Session terminated",
                sessions_terminated=1 if ended.value else 0,
            )
        )
