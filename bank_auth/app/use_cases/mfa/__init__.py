"""
MFA Management Use Cases
"""

from .enable_mfa_use_case import EnableMfaUseCase
from .confirm_mfa_setup_use_case import ConfirmMfaSetupUseCase
from .disable_mfa_use_case import DisableMfaUseCase
from .get_mfa_status_use_case import GetMfaStatusUseCase
from .dtos import MfaCodeSentResponse, MfaStatusResponse, MfaToggleResponse

__all__ = [
    "EnableMfaUseCase",
    "ConfirmMfaSetupUseCase",
    "DisableMfaUseCase",
    "GetMfaStatusUseCase",
    "MfaCodeSentResponse",
    "MfaStatusResponse",
    "MfaToggleResponse",
]
