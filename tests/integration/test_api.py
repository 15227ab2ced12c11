"""Integration tests for FastAPI endpoints."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from lingorag.adapters.inbound.api.deps import get_client
from lingorag.adapters.inbound.api.main import app
from lingorag.core.domain import (
    AnswerResult,
    Document,
    GenerationMetadata,
    GenerationResponse,
    SearchResult,
)
from lingorag.core.domain.exceptions import BackendUnavailableError
from lingorag.core.services.retry_policy import RetryOutcome


@pytest.fixture
def api(rag_client):
    """Test client backed by the fake RAG backend."""
    app.dependency_overrides[get_client] = lambda: rag_client
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def mock_rag_client():
    """A RagClient stand-in for flows that spawn background writes."""
    mock = MagicMock()
    mock.generate = AsyncMock(
        return_value=GenerationResponse(
            success=True,
            content="Generated explanation",
            rag_context="[LESSON] present simple",
            document_ids=["doc_1"],
            estimated_cost=0.002,
            generation_metadata=GenerationMetadata(
                model="@cf/meta/llama-3-8b-instruct", prompt_length=10, response_length=21
            ),
        )
    )
    mock.answer = AsyncMock(
        return_value=AnswerResult(
            success=True,
            answer="Use it for habits.",
            sources=[
                SearchResult(
                    document=Document(id="doc_1", content="c", type="lesson", topic="grammar"),
                    similarity=0.8,
                    relevance=0.8,
                    context="c",
                )
            ],
            estimated_cost=0.001,
        )
    )
    return mock


@pytest.fixture
def mock_api(mock_rag_client):
    app.dependency_overrides[get_client] = lambda: mock_rag_client
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    @pytest.mark.integration
    def test_health_check(self, api):
        """Test basic health check returns 200."""
        response = api.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "version" in data

    @pytest.mark.integration
    def test_readiness_check(self, api):
        """Readiness re-runs initialization against the backend."""
        response = api.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "ready"
        assert response.json()["backend"] == "ready"

    @pytest.mark.integration
    def test_readiness_when_backend_down(self, api, backend):
        backend.offline = True

        response = api.get("/ready")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"
        assert response.json()["backend"].startswith("unreachable")


class TestContentEndpoints:
    """Tests for store and search endpoints."""

    @pytest.mark.integration
    def test_store_document(self, api, backend):
        response = api.post(
            "/api/v1/documents",
            json={"content": "Hello is marhaba", "type": "vocabulary", "topic": "greetings"},
        )

        assert response.status_code == 201
        assert response.json()["document_id"] in backend.documents

    @pytest.mark.integration
    def test_store_rejects_blank_content(self, api):
        response = api.post(
            "/api/v1/documents", json={"content": "   ", "type": "lesson", "topic": "grammar"}
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "RAG_VALIDATION"

    @pytest.mark.integration
    def test_store_backend_error(self, api, backend):
        backend.store_error = "Embedding failed"

        response = api.post(
            "/api/v1/documents", json={"content": "x", "type": "lesson", "topic": "grammar"}
        )

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "Embedding failed"

    @pytest.mark.integration
    def test_search(self, api, sample_lessons):
        response = api.post(
            "/api/v1/search",
            json={
                "query": "present simple",
                "filters": {"topic": "grammar"},
                "max_results": 5,
                "similarity_threshold": 0.6,
            },
        )

        assert response.status_code == 200
        results = response.json()["results"]
        assert len(results) == 1
        assert results[0]["document"]["id"] == sample_lessons[0]
        assert results[0]["similarity"] >= 0.6

    @pytest.mark.integration
    def test_search_backend_unreachable(self, api, backend):
        backend.offline = True

        response = api.post("/api/v1/search", json={"query": "present simple"})

        assert response.status_code == 503
        assert response.json()["status"] == "degraded"

    @pytest.mark.integration
    def test_search_requires_query(self, api):
        response = api.post("/api/v1/search", json={"query": ""})

        assert response.status_code == 422


class TestGenerationEndpoints:
    """Tests for generate and answer endpoints."""

    @pytest.mark.integration
    def test_generate(self, mock_api, mock_rag_client):
        response = mock_api.post(
            "/api/v1/generate",
            json={"prompt": "Explain the present simple", "search_query": "present simple"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "Generated explanation"
        assert data["document_ids"] == ["doc_1"]
        assert data["model"] == "@cf/meta/llama-3-8b-instruct"
        request = mock_rag_client.generate.call_args.args[0]
        assert request.context.search_query == "present simple"

    @pytest.mark.integration
    def test_generate_degraded(self, mock_api, mock_rag_client):
        mock_rag_client.generate.return_value = GenerationResponse(
            success=False, error="Network error", degraded=True
        )

        response = mock_api.post("/api/v1/generate", json={"prompt": "x"})

        assert response.status_code == 503

    @pytest.mark.integration
    def test_generate_with_retries_exhausted(self, mock_api, mock_rag_client):
        mock_rag_client.generate_with_retries = AsyncMock(
            return_value=RetryOutcome(
                result=GenerationResponse(success=False, error="Inference unavailable"),
                attempts=3,
                exhausted=True,
                error="Inference unavailable",
            )
        )

        response = mock_api.post("/api/v1/generate", json={"prompt": "x", "retries": 2})

        assert response.status_code == 502
        assert response.json()["error"]["message"] == "Inference unavailable"
        assert mock_rag_client.generate_with_retries.call_args.kwargs["max_retries"] == 2

    @pytest.mark.integration
    def test_answer(self, mock_api, mock_rag_client):
        response = mock_api.post(
            "/api/v1/answer",
            json={"question": "When do I use it?", "lesson_id": "l1", "lesson_topic": "grammar"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["answer"] == "Use it for habits."
        assert data["used_context"] is True
        lesson = mock_rag_client.answer.call_args.args[1]
        assert lesson.lesson_id == "l1"

    @pytest.mark.integration
    def test_lingorag_errors_are_structured(self, mock_api, mock_rag_client):
        mock_rag_client.answer.side_effect = BackendUnavailableError("backend down")

        response = mock_api.post("/api/v1/answer", json={"question": "x"})

        assert response.status_code == 503
        assert response.json()["error"]["code"] == "RAG_NET_002"


class TestMaintenanceEndpoints:
    """Tests for analytics and cleanup endpoints."""

    @pytest.mark.integration
    def test_analytics(self, api, sample_lessons):
        response = api.get("/api/v1/analytics")

        assert response.status_code == 200
        data = response.json()
        assert data["total_documents"] == 3
        assert data["total_documents"] == sum(data["type_distribution"].values())
        assert len(data["recent_activity"]) == 3

    @pytest.mark.integration
    def test_cleanup_requires_confirmation(self, api, backend):
        backend.seed("old", age_days=90)

        response = api.post("/api/v1/cleanup", json={"max_age_days": 30})

        assert response.status_code == 400
        error = response.json()["error"]
        assert error["type"] == "ConfirmationRequiredError"
        assert error["code"] == "RAG_VAL_002"
        assert len(backend.documents) == 1
        assert backend.count("POST", "/cleanup") == 0

    @pytest.mark.integration
    def test_cleanup_confirmed(self, api, backend):
        backend.seed("old", age_days=90)
        backend.seed("new", age_days=1)

        response = api.post("/api/v1/cleanup", json={"max_age_days": 30, "confirm": True})

        assert response.status_code == 200
        assert response.json()["deleted_count"] == 1
