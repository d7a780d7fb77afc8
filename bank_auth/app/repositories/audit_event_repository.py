from abc import ABC, abstractmethod

from bank_auth.domain.entities import AuditEvent


class IAuditEventRepository(ABC):
    """Append-only audit trail"""

    @abstractmethod
    async def append(self, audit_event: AuditEvent) -> None:
        pass
