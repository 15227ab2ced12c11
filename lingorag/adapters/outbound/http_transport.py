"""HTTP transport client for the RAG backend (JSON over HTTP)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from ...core.domain.exceptions import BackendTimeoutError, BackendUnavailableError
from ...core.ports.transport_port import TransportPort, TransportResponse

logger = logging.getLogger(__name__)

USER_AGENT = "lingorag/1.0"
INVALID_JSON_ERROR = "Invalid JSON response from backend"


class HttpTransportClient(TransportPort):
    """Thin async wrapper around the backend endpoints.

    One instance per backend base URL. The only local state is the readiness
    flag, which only ``initialize()`` updates.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str | None = None,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Backend base URL, e.g. ``https://rag.example.workers.dev``.
            api_key: Optional bearer token.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self.base_url = base_url.rstrip("/")
        headers = {
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._ready = False

    async def __aenter__(self) -> HttpTransportClient:
        return self

    async def __aexit__(self, *args) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP session."""
        await self._client.aclose()

    async def _request(
        self,
        method: str,
        endpoint: str,
        payload: dict[str, Any] | None = None,
    ) -> TransportResponse:
        """Send one request and normalize the outcome.

        Raises:
            BackendTimeoutError: The request timed out.
            BackendUnavailableError: DNS, connection or other request fault.

        Undecodable bodies and redirect loops come back as failed responses.
        """
        try:
            response = await self._client.request(method, endpoint, json=payload)
        except httpx.TimeoutException as e:
            raise BackendTimeoutError(
                f"Timed out calling {endpoint}",
                cause=e,
                context={"endpoint": endpoint, "base_url": self.base_url},
            )
        except httpx.TransportError as e:
            raise BackendUnavailableError(
                f"Could not reach RAG backend for {endpoint}",
                cause=e,
                context={"endpoint": endpoint, "base_url": self.base_url},
            )
        except (httpx.DecodingError, httpx.TooManyRedirects) as e:
            # The backend answered, but with something unusable
            logger.warning("Backend %s %s sent an unreadable response: %s", method, endpoint, e)
            return TransportResponse(success=False, error=f"Unreadable response from backend: {e}")
        except httpx.RequestError as e:
            raise BackendUnavailableError(
                f"Request to RAG backend failed for {endpoint}",
                cause=e,
                context={"endpoint": endpoint, "base_url": self.base_url},
            )

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            message = None
            if isinstance(body, dict) and body.get("error"):
                message = str(body["error"])
            error = message or f"HTTP {response.status_code}: {response.reason_phrase}"
            logger.warning("Backend %s %s failed: %s", method, endpoint, error)
            return TransportResponse(
                success=False,
                data=body if isinstance(body, dict) else {},
                error=error,
                status_code=response.status_code,
            )

        if not isinstance(body, dict):
            logger.warning("Backend %s %s returned a non-JSON body", method, endpoint)
            return TransportResponse(
                success=False,
                error=INVALID_JSON_ERROR,
                status_code=response.status_code,
            )

        # Some handlers answer 200 with {"success": false, "error": ...}
        if body.get("success") is False and body.get("error"):
            return TransportResponse(
                success=False,
                data=body,
                error=str(body["error"]),
                status_code=response.status_code,
            )

        return TransportResponse(success=True, data=body, status_code=response.status_code)

    async def initialize(self) -> bool:
        """Call ``GET /init`` and record whether the backend is ready.

        Idempotent. A transport fault marks the client not ready and is
        re-raised.
        """
        try:
            response = await self._request("GET", "/init")
        except BackendUnavailableError:
            self._ready = False
            raise
        self._ready = bool(response.success and response.data.get("success", False))
        logger.info("RAG backend initialized: ready=%s", self._ready)
        return self._ready

    def is_ready(self) -> bool:
        return self._ready

    async def store(self, payload: dict[str, Any]) -> TransportResponse:
        return await self._request("POST", "/store", payload)

    async def search(self, payload: dict[str, Any]) -> TransportResponse:
        return await self._request("POST", "/search", payload)

    async def generate(self, payload: dict[str, Any]) -> TransportResponse:
        return await self._request("POST", "/generate", payload)

    async def get_analytics(self) -> TransportResponse:
        return await self._request("GET", "/analytics")

    async def cleanup(self, max_age_days: int) -> TransportResponse:
        return await self._request("POST", "/cleanup", {"maxAgeDays": max_age_days})

    async def list_documents(self) -> TransportResponse:
        return await self._request("GET", "/documents")
