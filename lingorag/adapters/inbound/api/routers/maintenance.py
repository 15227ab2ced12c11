"""Analytics and retention endpoints."""

from fastapi import APIRouter, Depends

from .....application.rag_client import RagClient
from .....core.domain.exceptions import ConfirmationRequiredError
from ..deps import failed_result_response, get_client
from ..models import AnalyticsResponse, CleanupRequest, CleanupResponse

router = APIRouter(prefix="/api/v1", tags=["maintenance"])


@router.get("/analytics", response_model=AnalyticsResponse)
async def get_analytics(client: RagClient = Depends(get_client)):
    """Usage and cost analytics over all stored documents."""
    result = await client.get_analytics()
    if not result.success:
        return failed_result_response(result)
    return AnalyticsResponse.from_domain(result.data)


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup_documents(request: CleanupRequest, client: RagClient = Depends(get_client)):
    """Delete documents older than ``max_age_days``. Requires ``confirm: true``."""
    if not request.confirm:
        raise ConfirmationRequiredError(
            "Cleanup is irreversible; resend with confirm=true",
            context={"max_age_days": request.max_age_days},
        )
    result = await client.cleanup(request.max_age_days)
    if not result.success:
        return failed_result_response(result)
    return CleanupResponse(deleted_count=result.data)
