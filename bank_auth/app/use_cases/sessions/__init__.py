"""
Session Management Use Cases
"""

from .list_sessions_use_case import ListSessionsUseCase
from .terminate_session_use_case import TerminateSessionUseCase
from .terminate_other_sessions_use_case import TerminateOtherSessionsUseCase
from .cleanup_expired_sessions_use_case import CleanupExpiredSessionsUseCase
from .dtos import CleanupResponse, SessionListResponse, TerminateSessionResponse

__all__ = [
    "ListSessionsUseCase",
    "TerminateSessionUseCase",
    "TerminateOtherSessionsUseCase",
    "CleanupExpiredSessionsUseCase",
    "CleanupResponse",
    "SessionListResponse",
    "TerminateSessionResponse",
]
