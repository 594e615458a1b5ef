"""IRMA API server client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class IrmaApiClient(Protocol):
    """Interface for IRMA API server interactions."""

    async def start_session(self, endpoint: str, token: str) -> dict[str, object]:
        """Submit a signed session request and return the QR payload."""

    async def get_status(self, endpoint: str, session_id: str) -> str:
        """Return the server-side status of a session."""

    async def get_result(self, endpoint: str, session_id: str, result_path: str) -> str:
        """Return the signed proof or signature of a finished session."""


@dataclass
class HttpxIrmaApiClient(IrmaApiClient):
    """HTTPX-backed IRMA API server client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout: float = 10

    @classmethod
    def create(cls, base_url: str, timeout: float = 10) -> "HttpxIrmaApiClient":
        """Create an IRMA client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout=timeout,
        )

    async def start_session(self, endpoint: str, token: str) -> dict[str, object]:
        """POST a session request JWT as plain text."""
        response = await self.http_client.post(
            f"{self.base_url}{endpoint}",
            content=token,
            headers={"Content-Type": "text/plain"},
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.json()

    async def get_status(self, endpoint: str, session_id: str) -> str:
        """Fetch the session status token."""
        response = await self.http_client.get(
            f"{self.base_url}{endpoint}/{session_id}/status",
            timeout=self.timeout,
        )
        response.raise_for_status()
        # The server may answer with a JSON string or with plain text.
        return response.text.strip().strip('"')

    async def get_result(self, endpoint: str, session_id: str, result_path: str) -> str:
        """Fetch the signed result of a finished session."""
        response = await self.http_client.get(
            f"{self.base_url}{endpoint}/{session_id}/{result_path}",
            timeout=self.timeout,
        )
        response.raise_for_status()
        return response.text.strip()

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()
