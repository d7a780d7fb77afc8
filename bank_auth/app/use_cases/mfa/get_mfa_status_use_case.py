from uuid import UUID

from bank_auth.app.services.mfa_code_manager import MfaCodeManager
from bank_auth.app.services.unit_of_work import UnitOfWork
from bank_auth.libs.result import Error, Result, Return
from .dtos import MfaStatusResponse


class GetMfaStatusUseCase:
    """Whether MFA is on, and whether a setup code is waiting to be confirmed"""

    def __init__(self, uow: UnitOfWork, mfa: MfaCodeManager):
        self.uow = uow
        self.mfa = mfa

    async def execute(self, user_id: UUID) -> Result[MfaStatusResponse]:
        async with self.uow:
            user = await self.uow.users.get_by_id(user_id)
            if user is None:
                return Return.err(Error("USER_NOT_FOUND", "User not found"))
            enabled = user.mfa_enabled

        pending = not enabled and await self.mfa.has_pending(user_id)
        return Return.ok(MfaStatusResponse(mfa_enabled=enabled, setup_pending=pending))
