from bank_auth.app.services.session_store import SessionStore
from bank_auth.libs.result import Result, Return
from .dtos import CleanupResponse


class CleanupExpiredSessionsUseCase:
    """Admin sweep: hard-delete sessions past their expiry"""

    def __init__(self, sessions: SessionStore):
        self.sessions = sessions

    async def execute(self) -> Result[CleanupResponse]:
        deleted = await self.sessions.cleanup_expired()
        if deleted.is_err():
            return deleted
        return Return.ok(CleanupResponse(deleted_count=deleted.value))
