"""Unit tests for the HTTP transport client."""

import json

import httpx
import pytest

from lingorag.adapters.outbound.http_transport import INVALID_JSON_ERROR, HttpTransportClient
from lingorag.core.domain.exceptions import BackendTimeoutError, BackendUnavailableError

pytestmark = pytest.mark.unit


def _client(handler, api_key=None) -> HttpTransportClient:
    return HttpTransportClient(
        "https://rag.test/", api_key=api_key, transport=httpx.MockTransport(handler)
    )


class TestResponseNormalization:
    """Remote-side failures come back as failed responses, never raise."""

    @pytest.mark.asyncio
    async def test_success_passes_body_through(self):
        client = _client(lambda r: httpx.Response(200, json={"success": True, "documentId": "d1"}))

        response = await client.store({"content": "x"})

        assert response.success
        assert response.data["documentId"] == "d1"
        assert response.status_code == 200
        await client.aclose()

    @pytest.mark.asyncio
    async def test_remote_error_message_is_verbatim(self):
        client = _client(lambda r: httpx.Response(500, json={"error": "Vectorize quota exceeded"}))

        response = await client.search({"query": "x"})

        assert not response.success
        assert response.error == "Vectorize quota exceeded"
        assert response.status_code == 500
        await client.aclose()

    @pytest.mark.asyncio
    async def test_status_without_error_body(self):
        client = _client(lambda r: httpx.Response(404, text="nope"))

        response = await client.get_analytics()

        assert not response.success
        assert response.error == "HTTP 404: Not Found"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_malformed_json(self):
        client = _client(lambda r: httpx.Response(200, text="<html>oops</html>"))

        response = await client.generate({"prompt": "x"})

        assert not response.success
        assert response.error == INVALID_JSON_ERROR
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_object_json(self):
        client = _client(lambda r: httpx.Response(200, json=["a", "b"]))

        response = await client.list_documents()

        assert response.error == INVALID_JSON_ERROR
        await client.aclose()

    @pytest.mark.asyncio
    async def test_ok_status_with_success_false(self):
        client = _client(
            lambda r: httpx.Response(200, json={"success": False, "error": "Missing fields"})
        )

        response = await client.store({})

        assert not response.success
        assert response.error == "Missing fields"
        await client.aclose()

    @pytest.mark.asyncio
    async def test_undecodable_body(self):
        client = _client(
            lambda r: httpx.Response(
                200, content=b"not gzip at all", headers={"content-encoding": "gzip"}
            )
        )

        response = await client.search({"query": "x"})

        assert not response.success
        assert response.error.startswith("Unreadable response from backend")
        await client.aclose()

    @pytest.mark.asyncio
    async def test_redirect_loop(self):
        def handler(request):
            raise httpx.TooManyRedirects("Exceeded maximum allowed redirects.", request=request)

        client = _client(handler)

        response = await client.get_analytics()

        assert not response.success
        await client.aclose()


class TestTransportFaults:
    """Transport-level faults raise typed exceptions."""

    @pytest.mark.asyncio
    async def test_connect_error_raises_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = _client(handler)

        with pytest.raises(BackendUnavailableError) as exc_info:
            await client.search({"query": "x"})

        assert exc_info.value.extra_context["endpoint"] == "/search"
        assert isinstance(exc_info.value.cause, httpx.ConnectError)
        await client.aclose()

    @pytest.mark.asyncio
    async def test_timeout_raises_timeout_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        client = _client(handler)

        with pytest.raises(BackendTimeoutError):
            await client.generate({"prompt": "x"})
        await client.aclose()

    @pytest.mark.asyncio
    async def test_other_request_error_raises_unavailable(self):
        def handler(request):
            raise httpx.RequestError("request could not be sent", request=request)

        client = _client(handler)

        with pytest.raises(BackendUnavailableError):
            await client.store({"content": "x"})
        await client.aclose()


class TestRequests:
    """Tests for what the client sends."""

    @pytest.mark.asyncio
    async def test_headers_and_endpoints(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True, "deletedCount": 2})

        client = _client(handler, api_key="secret")

        await client.cleanup(30)

        request = seen[0]
        assert request.method == "POST"
        assert str(request.url) == "https://rag.test/cleanup"
        assert request.headers["Authorization"] == "Bearer secret"
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["User-Agent"].startswith("lingorag/")
        assert json.loads(request.content) == {"maxAgeDays": 30}
        await client.aclose()

    @pytest.mark.asyncio
    async def test_no_authorization_without_key(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"success": True})

        async with _client(handler) as client:
            await client.get_analytics()

        assert "Authorization" not in seen[0].headers


class TestReadiness:
    """Readiness changes only through initialize()."""

    @pytest.mark.asyncio
    async def test_not_ready_before_initialize(self):
        client = _client(lambda r: httpx.Response(200, json={"success": True}))
        assert client.is_ready() is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_initialize_sets_ready(self):
        client = _client(lambda r: httpx.Response(200, json={"success": True}))

        assert await client.initialize() is True
        assert await client.initialize() is True
        assert client.is_ready()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_initialize_reports_backend_not_ready(self):
        client = _client(lambda r: httpx.Response(200, json={"success": False}))

        assert await client.initialize() is False
        assert not client.is_ready()
        await client.aclose()

    @pytest.mark.asyncio
    async def test_transport_fault_clears_readiness_and_reraises(self):
        state = {"offline": False}

        def handler(request):
            if state["offline"]:
                raise httpx.ConnectError("refused", request=request)
            return httpx.Response(200, json={"success": True})

        client = _client(handler)
        await client.initialize()
        state["offline"] = True

        with pytest.raises(BackendUnavailableError):
            await client.initialize()
        assert client.is_ready() is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_other_calls_do_not_change_readiness(self):
        client = _client(lambda r: httpx.Response(500, json={"error": "down"}))

        await client.search({"query": "x"})

        assert client.is_ready() is False
        await client.aclose()
