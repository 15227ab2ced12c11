"""
Pytest configuration and shared fixtures.
"""

import pytest

from lingorag.composition.container import build_rag_client
from lingorag.config import Settings
from tests.fakes.fake_backend import FakeBackend


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests (no external dependencies)")
    config.addinivalue_line("markers", "integration: Integration tests (HTTP API, CLI)")
    config.addinivalue_line("markers", "slow: Slow tests (network, large data)")


@pytest.fixture
def test_settings():
    """Settings pointing at the fake backend, with no retry delay."""
    return Settings(
        _env_file=None,
        rag_backend_url="https://rag.test",
        rag_api_key="test-key",
        retry_delay_seconds=0.0,
    )


@pytest.fixture
def backend():
    """A fresh in-memory backend."""
    return FakeBackend()


@pytest.fixture
def rag_client(backend, test_settings):
    """A fully wired RagClient talking to the fake backend."""
    return build_rag_client(test_settings, transport=backend.transport())


@pytest.fixture
def sample_lessons(backend):
    """Three grammar/vocabulary lessons already in the store."""
    return [
        backend.seed(
            "The present simple tense describes habits and routines",
            type="lesson",
            topic="grammar",
            difficulty="beginner",
        ),
        backend.seed(
            "The past simple tense describes finished actions",
            type="lesson",
            topic="grammar",
            difficulty="beginner",
        ),
        backend.seed(
            "Common greetings: hello, good morning, good evening",
            type="vocabulary",
            topic="greetings",
        ),
    ]
