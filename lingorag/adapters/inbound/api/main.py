"""FastAPI application exposing the content cache to the learning app."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .... import __version__
from ....config import settings
from ....config.logging import setup_logging
from ....core.domain.exceptions import LingoRagError
from ...common.exception_handler import (
    format_exception_json,
    get_http_status_code,
    log_exception,
)
from .deps import get_client
from .routers import content, health, maintenance

logger = logging.getLogger(__name__)

# DEBUG=true adds stack traces to error responses
DEBUG_MODE = os.getenv("DEBUG", "false").lower() == "true"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize the backend connection on startup and flush writes on shutdown."""
    setup_logging(settings.log_level, json_format=settings.log_json)
    logger.info("lingorag API starting up (debug=%s)", DEBUG_MODE)
    client = get_client()
    result = await client.initialize()
    if not result.success:
        logger.warning("RAG backend not ready at startup: %s", result.error)
    yield
    await client.aclose()
    logger.info("lingorag API shut down")


app = FastAPI(
    title="lingorag API",
    description=(
        "Retrieval-augmented content cache for AI lessons: reuses stored "
        "content as context before calling the inference service."
    ),
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(content.router)
app.include_router(maintenance.router)


def _error_response(request: Request, exc: Exception) -> JSONResponse:
    log_exception(exc, extra_context={"path": request.url.path, "method": request.method})
    return JSONResponse(
        status_code=get_http_status_code(exc),
        content=format_exception_json(exc, include_trace=DEBUG_MODE),
    )


@app.exception_handler(LingoRagError)
async def lingorag_error_handler(request: Request, exc: LingoRagError) -> JSONResponse:
    return _error_response(request, exc)


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: anything a route let escape still gets the error envelope."""
    return _error_response(request, exc)


__all__ = ["app"]
