"""Health check endpoints."""

from fastapi import APIRouter, Depends

from ..... import __version__
from .....application.rag_client import RagClient
from ..deps import get_client
from ..models import HealthResponse

router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic liveness check; does not touch the backend."""
    return HealthResponse(status="healthy", version=__version__, backend="not_checked")


@router.get("/ready", response_model=HealthResponse)
async def readiness_check(client: RagClient = Depends(get_client)) -> HealthResponse:
    """Readiness probe: re-runs backend initialization."""
    result = await client.initialize()
    if result.degraded:
        backend = f"unreachable: {result.error}"
    elif result.data:
        backend = "ready"
    else:
        backend = "not ready"

    return HealthResponse(
        status="ready" if client.is_ready() else "degraded",
        version=__version__,
        backend=backend,
    )
