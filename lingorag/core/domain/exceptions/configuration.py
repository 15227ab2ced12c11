"""Configuration-related exceptions for lingorag."""

from .base import LingoRagError


class ConfigurationError(LingoRagError):
    """Configuration or environment variable errors."""

    error_code = "RAG_CFG_001"


class MissingBackendURLError(ConfigurationError):
    """The RAG backend base URL is not configured."""

    error_code = "RAG_CFG_002"
