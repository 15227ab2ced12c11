"""FastAPI dependency injection for the lingorag API."""

import logging
from typing import Any

from fastapi.responses import JSONResponse

from ....application.rag_client import RagClient
from ....composition.container import get_rag_client
from ....core.domain import OperationResult
from ...common.exception_handler import format_result_error, get_result_status_code

logger = logging.getLogger(__name__)


def get_client() -> RagClient:
    """Get the shared RagClient (overridden in tests)."""
    return get_rag_client()


def failed_result_response(result: OperationResult[Any]) -> JSONResponse:
    """Turn a failed OperationResult into a structured JSON error."""
    logger.warning("Request failed (%s): %s", result.status.value, result.error)
    return JSONResponse(
        status_code=get_result_status_code(result),
        content=format_result_error(result),
    )
