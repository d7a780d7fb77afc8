"""
Session Management DTOs
"""

from typing import List

from pydantic import BaseModel

from bank_auth.app.services.session_store import SessionSummary


class SessionListResponse(BaseModel):
    sessions: List[SessionSummary]
    total: int


class TerminateSessionResponse(BaseModel):
    status: str
    message: str
    sessions_terminated: int


class CleanupResponse(BaseModel):
    deleted_count: int
