from typing import Optional
from uuid import UUID

from bank_auth.app.services.audit_sink import IAuditSink
from bank_auth.app.services.session_store import SessionStore
from bank_auth.libs.result import Result, Return
from .dtos import TerminateSessionResponse


class TerminateOtherSessionsUseCase:
    """Logout everywhere except the current session"""

    def __init__(self, sessions: SessionStore, audit: IAuditSink):
        self.sessions = sessions
        self.audit = audit

    async def execute(
        self,
        user_id: UUID,
        current_session_id: str,
        ip_address: Optional[str] = None,
    ) -> Result[TerminateSessionResponse]:
        ended = await self.sessions.end_all_user_sessions(user_id, current_session_id)
        count = ended.value

        await self.audit.log_security_event(
            "ALL_SESSIONS_TERMINATED",
            user_id=user_id,
            session_id=current_session_id,
            ip_address=ip_address,
            metadata={"sessions_terminated": count},
        )
        return Return.ok(
            TerminateSessionResponse(
                status="success",
                message=f"{count} other session(s) terminated",
                sessions_terminated=count,
            )
        )
