"""Async client for the FaceID enrollment/login REST endpoints.

The backend stores enrolled embeddings and makes the authoritative match
decision; this client only ships vectors to it and never keeps them.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

import httpx

from faceid.errors import FaceIdApiError
from faceid.logging_config import get_logger
from faceid.utils import ArrayLike, as_embedding

logger = get_logger(__name__)

ENROLL_PATH = "/auth/faceid/enroll"
LOGIN_PATH = "/auth/faceid/login"


class FaceIdApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` for FaceID calls.

    Example:
        >>> client = FaceIdApiClient("https://api.example.com/api")
        >>> try:
        ...     await client.enroll("user@example.com", embedding)
        ...     tokens = await client.login(embedding)
        ... finally:
        ...     await client.close()
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        access_token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        headers = {"Accept": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"

        self.base_url = base_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    async def close(self) -> None:
        """Close the underlying HTTP client."""

        await self._client.aclose()

    async def __aenter__(self) -> FaceIdApiClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def enroll(self, identity: str, embedding: ArrayLike) -> Dict[str, Any]:
        """Register a canonical embedding for an account identified by email."""
        vector = _to_payload(embedding)
        logger.info(f"Submitting FaceID enrollment for '{identity}' (dim={len(vector)})")
        return await self._post(ENROLL_PATH, {"email": identity, "faceVector": vector})

    async def login(self, embedding: ArrayLike) -> Dict[str, Any]:
        """Attempt a FaceID login; returns the token payload on success."""
        vector = _to_payload(embedding)
        logger.debug(f"Submitting FaceID login candidate (dim={len(vector)})")
        return await self._post(LOGIN_PATH, {"faceVector": vector})

    async def _post(self, endpoint: str, body: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = await self._client.post(endpoint, json=body)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            raise FaceIdApiError(f"Timed out waiting for {endpoint}") from exc
        except httpx.HTTPStatusError as exc:
            message = _error_message(exc.response)
            logger.warning(f"{endpoint} returned {exc.response.status_code}: {message}")
            raise FaceIdApiError(message, status_code=exc.response.status_code) from exc
        except httpx.HTTPError as exc:
            raise FaceIdApiError(f"Request to {endpoint} failed: {exc}") from exc

        if not response.content:
            return {}
        return response.json()

    def __repr__(self) -> str:
        return f"FaceIdApiClient(base_url={self.base_url})"


def _to_payload(embedding: ArrayLike) -> list[float]:
    return [float(v) for v in as_embedding(embedding)]


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        data = None

    if isinstance(data, dict):
        for key in ("message", "error"):
            if data.get(key):
                return str(data[key])

    return f"FaceID request failed with status {response.status_code}"
