"""
MFA Management DTOs
"""

from pydantic import BaseModel


class MfaCodeSentResponse(BaseModel):
    """A code is on its way to the user's email"""

    masked_email: str
    expires_in: int


class MfaStatusResponse(BaseModel):
    mfa_enabled: bool
    setup_pending: bool


class MfaToggleResponse(BaseModel):
    status: str
    message: str
    mfa_enabled: bool
