"""Store, search, generate and tutoring endpoints."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from .....application.rag_client import RagClient
from .....core.domain import LessonContext, OperationResult
from ..deps import failed_result_response, get_client
from ..models import (
    AnswerRequest,
    AnswerResponse,
    GenerateRequest,
    GenerateResponse,
    SearchRequest,
    SearchResponse,
    SearchResultModel,
    StoreRequest,
    StoreResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["content"])


@router.post("/documents", response_model=StoreResponse, status_code=201)
async def store_document(request: StoreRequest, client: RagClient = Depends(get_client)):
    """Store a document for future reuse."""
    result = await client.store(request.content, request.type, request.topic, request.metadata)
    if not result.success:
        return failed_result_response(result)
    return StoreResponse(document_id=result.data)


@router.post("/search", response_model=SearchResponse)
async def search_documents(request: SearchRequest, client: RagClient = Depends(get_client)):
    """Search stored documents; an empty list means nothing relevant exists."""
    result = await client.search(
        request.query,
        request.filters.to_domain(),
        max_results=request.max_results,
        similarity_threshold=request.similarity_threshold,
        use_reranking=request.use_reranking,
    )
    if not result.success:
        return failed_result_response(result)
    return SearchResponse(results=[SearchResultModel.from_domain(r) for r in result.data or []])


@router.post("/generate", response_model=GenerateResponse)
async def generate_content(request: GenerateRequest, client: RagClient = Depends(get_client)):
    """Generate content, reusing stored documents as context.

    With ``retries > 0`` the call is retried with the fixed-delay policy and
    fails only once every attempt has failed.
    """
    domain_request = request.to_domain()
    attempts = 1
    if request.retries:
        outcome = await client.generate_with_retries(domain_request, max_retries=request.retries)
        attempts = outcome.attempts
        response = outcome.result
        if outcome.exhausted or response is None:
            error = outcome.error or "Generation failed after retries"
            degraded = bool(response and response.degraded)
            failed = OperationResult.unavailable(error) if degraded else OperationResult.fail(error)
            return failed_result_response(failed)
    else:
        response = await client.generate(domain_request)
        if not response.success:
            failed = (
                OperationResult.unavailable(response.error or "Network error")
                if response.degraded
                else OperationResult.fail(response.error or "Generation failed")
            )
            return failed_result_response(failed)

    return GenerateResponse(
        content=response.content or "",
        rag_context=response.rag_context,
        document_ids=response.document_ids,
        estimated_cost=response.estimated_cost,
        model=response.generation_metadata.model if response.generation_metadata else None,
        attempts=attempts,
    )


@router.post("/answer", response_model=AnswerResponse)
async def answer_question(request: AnswerRequest, client: RagClient = Depends(get_client)):
    """Answer a lesson tutoring question."""
    result = await client.answer(
        request.question,
        LessonContext(
            lesson_id=request.lesson_id,
            lesson_title=request.lesson_title,
            lesson_topic=request.lesson_topic,
            lesson_level=request.lesson_level,
        ),
    )
    if not result.success:
        status_code = 503 if result.degraded else 502
        return JSONResponse(
            status_code=status_code,
            content={"error": {"type": "AnswerFailed", "message": result.error}},
        )
    return AnswerResponse(
        answer=result.answer or "",
        sources=[SearchResultModel.from_domain(s) for s in result.sources],
        used_context=result.used_context,
        estimated_cost=result.estimated_cost,
    )
