"""
REST HTTP client for the relay's issuance endpoints.
"""

from typing import Any

import httpx

from loglab.config import DEFAULT_BASE_URL
from loglab.errors import LogLabError


class HttpClient:
    def __init__(self, base_url: str = DEFAULT_BASE_URL, timeout: float = 30.0, transport: Any = None):
        self._base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=f"{self._base_url}/api",
            headers={"User-Agent": "loglab/0.1.0", "Accept": "application/json"},
            timeout=timeout,
            transport=transport,
        )

    @property
    def base_url(self) -> str:
        return self._base_url

    async def get(self, path: str) -> Any:
        try:
            resp = await self._client.get(path)
        except httpx.HTTPError as e:
            raise LogLabError("http_error", f"GET {path} failed: {e}")
        if resp.status_code >= 400:
            raise LogLabError("http_error", f"HTTP {resp.status_code}: {resp.text[:200]}")
        return resp.json()

    async def close(self) -> None:
        await self._client.aclose()
