"""Unit tests for the search orchestrator."""

import asyncio
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from lingorag.adapters.outbound.http_transport import HttpTransportClient
from lingorag.core.domain import ErrorKind, SearchFilters
from lingorag.core.ports.transport_port import TransportPort, TransportResponse
from lingorag.core.services.search_service import SearchService

pytestmark = pytest.mark.unit


def _hit(doc_id: str, similarity: float, relevance: float | None = None) -> dict:
    return {
        "document": {"id": doc_id, "content": f"content {doc_id}", "type": "lesson", "topic": "t"},
        "similarity": similarity,
        "relevance": similarity if relevance is None else relevance,
    }


class TestSearch:
    """End-to-end search behaviour against the fake backend."""

    @pytest.mark.asyncio
    async def test_present_simple_grammar_lookup(self, rag_client, sample_lessons):
        result = await rag_client.search(
            "present simple",
            SearchFilters(topic="grammar"),
            max_results=5,
            similarity_threshold=0.6,
        )

        assert result.success
        assert len(result.data) == 1
        assert result.data[0].similarity >= 0.6
        assert result.data[0].document.id == sample_lessons[0]

    @pytest.mark.asyncio
    async def test_lowering_threshold_never_removes_results(self, rag_client, sample_lessons):
        strict = await rag_client.search("present simple tense habits", similarity_threshold=0.9)
        loose = await rag_client.search("present simple tense habits", similarity_threshold=0.3)

        strict_ids = {r.document.id for r in strict.data}
        loose_ids = {r.document.id for r in loose.data}
        assert strict_ids <= loose_ids
        assert strict_ids == {sample_lessons[0]}
        assert loose_ids == {sample_lessons[0], sample_lessons[1]}

    @pytest.mark.asyncio
    async def test_stored_document_is_found_by_its_own_content(self, rag_client):
        stored = await rag_client.store("Numbers one to ten in Arabic", "vocabulary", "numbers")

        result = await rag_client.search(
            "Numbers one to ten in Arabic", SearchFilters(topic="numbers")
        )

        assert stored.data in [r.document.id for r in result.data]

    @pytest.mark.asyncio
    async def test_no_match_is_an_empty_list_not_a_failure(self, rag_client, sample_lessons):
        result = await rag_client.search("quantum chromodynamics")

        assert result.success
        assert result.data == []

    @pytest.mark.asyncio
    async def test_filters_are_sent_to_backend(self, rag_client, backend, sample_lessons):
        await rag_client.search(
            "greetings", SearchFilters(type="vocabulary", language="ar"), use_reranking=True
        )

        payload = backend.search_payloads[-1]
        assert payload["type"] == "vocabulary"
        assert payload["language"] == "ar"
        assert payload["useReranking"] is True
        assert payload["similarityThreshold"] == 0.7
        assert payload["maxResults"] == 5
        assert "topic" not in payload

    @pytest.mark.asyncio
    async def test_unreachable_backend_is_degraded(self, rag_client, backend, sample_lessons):
        backend.offline = True

        result = await rag_client.search("present simple")

        assert result.degraded
        assert result.data is None
        assert result.error_kind is ErrorKind.TRANSPORT


class TestSearchValidation:
    """Invalid searches never reach the backend."""

    @pytest.fixture
    def transport(self):
        mock = Mock(spec=TransportPort)
        mock.search = AsyncMock(return_value=TransportResponse(success=True, data={"results": []}))
        return mock

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_blank_query(self, transport, query):
        result = await SearchService(transport).search(query)

        assert result.error_kind is ErrorKind.VALIDATION
        transport.search.assert_not_called()

    @pytest.mark.asyncio
    async def test_non_positive_max_results(self, transport):
        result = await SearchService(transport).search("x", max_results=0)

        assert result.error_kind is ErrorKind.VALIDATION
        transport.search.assert_not_called()


class TestResultHandling:
    """The client orders and caps, but never filters, backend matches."""

    @pytest.mark.asyncio
    async def test_orders_by_relevance_and_caps(self):
        transport = Mock(spec=TransportPort)
        transport.search = AsyncMock(
            return_value=TransportResponse(
                success=True,
                data={"results": [_hit("a", 0.71), _hit("b", 0.95), _hit("c", 0.8, relevance=0.99)]},
            )
        )

        result = await SearchService(transport).search("x", max_results=2)

        assert [r.document.id for r in result.data] == ["c", "b"]

    @pytest.mark.asyncio
    async def test_low_similarity_matches_are_kept(self):
        transport = Mock(spec=TransportPort)
        transport.search = AsyncMock(
            return_value=TransportResponse(success=True, data={"results": [_hit("a", 0.2)]})
        )

        result = await SearchService(transport, similarity_threshold=0.7).search("x")

        assert [r.document.id for r in result.data] == ["a"]

    @pytest.mark.asyncio
    async def test_remote_error_is_application_failure(self):
        transport = Mock(spec=TransportPort)
        transport.search = AsyncMock(
            return_value=TransportResponse(success=False, error="Index not ready")
        )

        result = await SearchService(transport).search("x")

        assert result.error == "Index not ready"
        assert result.error_kind is ErrorKind.APPLICATION

    @pytest.mark.asyncio
    async def test_undecodable_backend_body_is_application_failure(self):
        broken = httpx.MockTransport(
            lambda r: httpx.Response(200, content=b"garbage", headers={"content-encoding": "gzip"})
        )
        async with HttpTransportClient("https://rag.test", transport=broken) as transport:
            result = await SearchService(transport).search("present simple")

        assert not result.success
        assert result.error_kind is ErrorKind.APPLICATION


class TestInFlightDeduplication:
    """Identical concurrent searches share one round trip."""

    @pytest.mark.asyncio
    async def test_concurrent_identical_searches(self, rag_client, backend, sample_lessons):
        first, second = await asyncio.gather(
            rag_client.search("present simple"),
            rag_client.search("Present  Simple"),
        )

        assert backend.count("POST", "/search") == 1
        assert first.data == second.data

    @pytest.mark.asyncio
    async def test_different_searches_are_not_merged(self, rag_client, backend, sample_lessons):
        await asyncio.gather(
            rag_client.search("present simple"),
            rag_client.search("past simple"),
        )

        assert backend.count("POST", "/search") == 2

    @pytest.mark.asyncio
    async def test_sequential_searches_hit_backend_again(self, rag_client, backend, sample_lessons):
        await rag_client.search("present simple")
        await rag_client.search("present simple")

        assert backend.count("POST", "/search") == 2


class TestSuggestReuse:
    """Tests for reuse suggestions."""

    @pytest.mark.asyncio
    async def test_suggestions_and_savings(self, rag_client, sample_lessons):
        result = await rag_client.suggest_reuse("present simple tense", type="lesson")

        assert result.success
        assert sample_lessons[0] in result.data.reused_document_ids
        assert result.data.cost_savings == pytest.approx(0.01 * len(result.data.suggestions))

    @pytest.mark.asyncio
    async def test_degraded_search_is_propagated(self, rag_client, backend):
        backend.offline = True

        result = await rag_client.suggest_reuse("anything")

        assert result.degraded
