"""Exception hierarchy for lingorag.

Import from this package directly:

    from lingorag.core.domain.exceptions import LingoRagError, BackendUnavailableError
"""

from .base import ExceptionContext, LingoRagError
from .configuration import ConfigurationError, MissingBackendURLError
from .generation import GenerationError, RetriesExhaustedError
from .transport import BackendTimeoutError, BackendUnavailableError, TransportError
from .validation import ConfirmationRequiredError, ValidationError

__all__ = [
    # Base
    "ExceptionContext",
    "LingoRagError",
    # Configuration
    "ConfigurationError",
    "MissingBackendURLError",
    # Transport
    "TransportError",
    "BackendUnavailableError",
    "BackendTimeoutError",
    # Validation
    "ValidationError",
    "ConfirmationRequiredError",
    # Generation
    "GenerationError",
    "RetriesExhaustedError",
]
