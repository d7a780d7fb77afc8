from uuid import UUID

from bank_auth.app.services.session_store import SessionStore
from bank_auth.libs.result import Result, Return
from .dtos import SessionListResponse


class ListSessionsUseCase:
    """Active sessions of the caller, current one flagged"""

    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    async def execute(self, user_id: UUID, current_session_id: str) -> Result[SessionListResponse]:
        listed = await self.sessions.list_active(user_id, current_session_id)
        if listed.is_err():
            return listed
        return Return.ok(SessionListResponse(sessions=listed.value, total=len(listed.value)))
