"""Root of the lingorag exception hierarchy.

Every error raised by the package records its error code, the frame that
raised it and, when wrapping a lower-level failure, that failure as its
cause. ``to_dict`` renders all of it in the JSON shape shared by the API
error responses and the structured logs.
"""

import inspect
import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import PurePath
from types import FrameType
from typing import Any

_UNKNOWN = "<unknown>"


@dataclass
class ExceptionContext:
    """Where an error was raised."""

    class_name: str
    method_name: str
    file_name: str
    line_number: int
    timestamp: str = field(default_factory=lambda: datetime.now(UTC).isoformat())

    @classmethod
    def from_frame(cls, frame: FrameType | None) -> "ExceptionContext":
        if frame is None:
            return cls(_UNKNOWN, _UNKNOWN, _UNKNOWN, 0)
        owner = frame.f_locals.get("self")
        code = frame.f_code
        return cls(
            class_name=type(owner).__name__ if owner is not None else "<module>",
            method_name=code.co_name,
            file_name=PurePath(code.co_filename.replace("\\", "/")).name,
            line_number=frame.f_lineno,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "class": self.class_name,
            "method": self.method_name,
            "file": self.file_name,
            "line": self.line_number,
            "timestamp": self.timestamp,
        }


class LingoRagError(Exception):
    """Base class for errors raised by lingorag.

    Wrap library exceptions at the adapter boundary so callers only ever
    catch this family:

        try:
            response = await client.post("/search", json=payload)
        except httpx.ConnectError as e:
            raise BackendUnavailableError(
                "RAG backend is unreachable",
                cause=e,
                context={"endpoint": "/search"},
            )
    """

    error_code: str = "RAG_ERR_001"

    def __init__(
        self,
        message: str,
        *,
        cause: Exception | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.extra_context = dict(context) if context else {}
        self.location = self._capture_location()
        self.stack_trace = self._format_cause_trace(cause)

    def _capture_location(self) -> ExceptionContext:
        frame = inspect.currentframe()
        # Walk back past __init__ to the raise site
        for _ in range(2):
            if frame is not None and frame.f_back is not None:
                frame = frame.f_back
        return ExceptionContext.from_frame(frame)

    @staticmethod
    def _format_cause_trace(cause: Exception | None) -> str | None:
        if cause is None:
            return None
        return "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))

    def to_dict(self, include_trace: bool = False) -> dict[str, Any]:
        """Render the error for JSON output.

        ``context``, ``cause`` and ``stack_trace`` appear only when there is
        something to put in them; the trace also needs ``include_trace``.
        """
        payload: dict[str, Any] = {
            "error": {
                "type": type(self).__name__,
                "code": self.error_code,
                "message": self.message,
            },
            "location": self.location.to_dict(),
        }
        if self.extra_context:
            payload["context"] = self.extra_context
        if self.cause is not None:
            payload["cause"] = {"type": type(self.cause).__name__, "message": str(self.cause)}
        if include_trace and self.stack_trace:
            payload["stack_trace"] = [ln for ln in self.stack_trace.splitlines() if ln.strip()]
        return payload
