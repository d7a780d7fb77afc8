import re
from abc import ABC, abstractmethod


class NotificationError(Exception):
    """Raised when a notification could not be delivered."""


def mask_email(email: str) -> str:
    """jo***@example.com"""
    return re.sub(r"(.{2}).*(@.*)", r"\1***\2", email)


class INotificationSender(ABC):
    """Delivers one-time codes to users - application layer"""

    @abstractmethod
    async def send_mfa_code(self, email: str, display_name: str, code: str) -> None:
        """Send a verification code. Raises NotificationError on failure."""
        pass
