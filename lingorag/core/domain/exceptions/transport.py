"""Transport exceptions for lingorag.

Only transport-level faults are raised as exceptions; remote application
errors come back as failed responses instead.
"""

from .base import LingoRagError


class TransportError(LingoRagError):
    """Base error for communication with the RAG backend."""

    error_code = "RAG_NET_001"


class BackendUnavailableError(TransportError):
    """The RAG backend could not be reached.

    Common causes:
    - DNS resolution failure
    - Connection refused
    - Backend worker is down

    Always retryable at the caller's discretion.
    """

    error_code = "RAG_NET_002"


class BackendTimeoutError(BackendUnavailableError):
    """The RAG backend did not answer within the configured timeout."""

    error_code = "RAG_NET_003"
