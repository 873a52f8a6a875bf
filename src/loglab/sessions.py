"""
Sessions REST API — session id issuance.
"""

from pydantic import ValidationError

from loglab.errors import SessionError
from loglab.models.session import HealthResponse, SessionResponse
from loglab.transport.http import HttpClient


class SessionsAPI:
    def __init__(self, http: HttpClient):
        self._http = http

    async def create(self) -> str:
        """Ask the relay for a fresh session id."""
        data = await self._http.get("/session")
        try:
            return SessionResponse.model_validate(data).session_id
        except ValidationError as e:
            raise SessionError(f"Malformed session response: {e}")

    async def health(self) -> HealthResponse:
        return HealthResponse.model_validate(await self._http.get("/health"))
