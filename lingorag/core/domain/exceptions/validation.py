"""Validation exceptions for lingorag.

Services report bad input as failed results; these are raised by the
inbound adapters, which reject requests before any service is called.
"""

from .base import LingoRagError


class ValidationError(LingoRagError):
    """Input validation failed."""

    error_code = "RAG_VAL_001"


class ConfirmationRequiredError(ValidationError):
    """An irreversible operation was requested without explicit confirmation."""

    error_code = "RAG_VAL_002"
