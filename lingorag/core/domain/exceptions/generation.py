"""Generation exceptions for lingorag."""

from .base import LingoRagError


class GenerationError(LingoRagError):
    """The inference service did not produce usable content."""

    error_code = "RAG_GEN_001"


class RetriesExhaustedError(GenerationError):
    """Generation kept failing after every allowed retry."""

    error_code = "RAG_GEN_002"
