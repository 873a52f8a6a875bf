"""
Session issuance models.
"""

from pydantic import BaseModel


class SessionResponse(BaseModel):
    session_id: str


class HealthResponse(BaseModel):
    status: str = "ok"
    sessions: int = 0
