"""Shared error rendering for the API and the CLI.

Exceptions and failed ``OperationResult`` values both end up in the same
``{"error": {"type", "code", "message"}, ...}`` envelope, so clients only
need to parse one shape.
"""

import json
import logging
import traceback
from pathlib import PurePath
from typing import Any

from ...core.domain import ErrorKind, OperationResult, ResultStatus
from ...core.domain.exceptions import (
    BackendTimeoutError,
    BackendUnavailableError,
    LingoRagError,
    ValidationError,
)

logger = logging.getLogger(__name__)

FALLBACK_CODE = "PYTHON_ERR"

# First match wins, so subclasses go before their parents
_EXCEPTION_STATUS: tuple[tuple[type[BaseException] | tuple[type[BaseException], ...], int], ...] = (
    (ValidationError, 400),
    (BackendTimeoutError, 504),
    (BackendUnavailableError, 503),
    (LingoRagError, 500),
    (ValueError, 400),
    ((ConnectionError, TimeoutError), 503),
)


def _raise_site(exc: BaseException) -> dict[str, Any]:
    frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else None
    if not frames:
        return {"class": "<unknown>", "method": "<unknown>", "file": "<unknown>", "line": 0}
    last = frames[-1]
    return {
        "class": "<unknown>",
        "method": last.name,
        "file": PurePath(last.filename.replace("\\", "/")).name,
        "line": last.lineno or 0,
    }


def format_exception_json(
    exc: Exception,
    include_trace: bool = False,
    extra_context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Render any exception in the error envelope.

    Package errors use their own ``to_dict``; anything else gets the
    ``PYTHON_ERR`` code and a location taken from its traceback.
    """
    if isinstance(exc, LingoRagError):
        data = exc.to_dict(include_trace=include_trace)
        if extra_context:
            data.setdefault("context", {}).update(extra_context)
        return data

    data: dict[str, Any] = {
        "error": {"type": type(exc).__name__, "code": FALLBACK_CODE, "message": str(exc)},
        "location": _raise_site(exc),
    }
    if extra_context:
        data["context"] = dict(extra_context)
    if include_trace:
        lines = traceback.format_exception(type(exc), exc, exc.__traceback__)
        data["stack_trace"] = [ln.strip() for ln in lines if ln.strip()]
    return data


def format_result_error(result: OperationResult[Any]) -> dict[str, Any]:
    """Render a failed or degraded result in the error envelope."""
    degraded = result.status is ResultStatus.DEGRADED
    kind = result.error_kind.value if result.error_kind else "application"
    return {
        "error": {
            "type": "BackendDegraded" if degraded else "OperationFailed",
            "code": f"RAG_{kind.upper()}",
            "message": result.error or "Operation failed",
        },
        "status": result.status.value,
    }


def log_exception(
    exc: Exception,
    log: logging.Logger | None = None,
    level: int = logging.ERROR,
    extra_context: dict[str, Any] | None = None,
) -> None:
    """Log the full envelope, trace included, as one JSON message."""
    payload = format_exception_json(exc, include_trace=True, extra_context=extra_context)
    (log or logger).log(level, json.dumps(payload, indent=2, ensure_ascii=False))


def get_error_code(exc: Exception) -> str:
    return exc.error_code if isinstance(exc, LingoRagError) else FALLBACK_CODE


def get_http_status_code(exc: Exception) -> int:
    """HTTP status for an exception that escaped a route."""
    for types, status in _EXCEPTION_STATUS:
        if isinstance(exc, types):
            return status
    return 500


def get_result_status_code(result: OperationResult[Any]) -> int:
    """HTTP status for a result that did not succeed.

    Degraded means the backend could not be reached (503); a rejected
    input is the caller's fault (400); anything else the backend refused (502).
    """
    if result.status is ResultStatus.DEGRADED:
        return 503
    if result.error_kind is ErrorKind.VALIDATION:
        return 400
    return 502
