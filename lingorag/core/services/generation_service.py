"""Generation orchestrator: search, augment, generate, persist."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from collections.abc import Callable
from typing import Any

from ...common.inflight import InFlightRegistry
from ...common.utils import clean_text, is_blank, request_fingerprint
from ..domain import (
    AnswerResult,
    DocumentType,
    GenerationContext,
    GenerationDomain,
    GenerationMetadata,
    GenerationOptions,
    GenerationRequest,
    GenerationResponse,
    GenerationState,
    LessonContext,
    OperationResult,
    SearchFilters,
    SearchResult,
)
from ..domain.exceptions import BackendUnavailableError
from ..domain.generation import TRANSITIONS
from ..ports.transport_port import TransportPort
from .cost_estimator import estimate_generation_cost
from .persistence_queue import PersistenceQueue, PersistJob
from .prompts import (
    AUGMENTED_PROMPT_TEMPLATE,
    CONTEXT_BLOCK_TEMPLATE,
    GENERATION_RECORD_TEMPLATE,
    QA_RECORD_TEMPLATE,
    TUTOR_CONTEXT_PROMPT,
    TUTOR_GENERAL_PROMPT,
)
from .retry_policy import RetryOutcome, with_retries
from .search_service import SearchService

logger = logging.getLogger(__name__)

# Tutoring Q&A deviates from the search defaults: fewer, looser matches
TUTOR_MAX_RESULTS = 3
TUTOR_SIMILARITY_THRESHOLD = 0.6
TUTOR_CONTEXT_OPTIONS = GenerationOptions(max_tokens=800, temperature=0.7)
TUTOR_GENERAL_OPTIONS = GenerationOptions(max_tokens=600, temperature=0.8)

CONTEXT_SEPARATOR = "\n\n"


class GenerationFlow:
    """Tracks one call through the generation state machine."""

    def __init__(self) -> None:
        self.state = GenerationState.IDLE
        self.history = [GenerationState.IDLE]

    def advance(self, state: GenerationState) -> None:
        if state not in TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal generation transition {self.state.value} -> {state.value}")
        logger.debug("Generation %s -> %s", self.state.value, state.value)
        self.state = state
        self.history.append(state)


@dataclass
class Inference:
    """Content returned by one inference call."""

    content: str
    model: str
    prompt_length: int
    estimated_cost: float


class GenerationService:
    """Answers AI-facing requests from stored content where possible.

    Every call searches for prior documents, prepends what it finds to the
    prompt, calls the inference endpoint and hands the input/output pair to
    the persistence queue without waiting for the write.
    """

    def __init__(
        self,
        transport: TransportPort,
        search_service: SearchService,
        persistence: PersistenceQueue,
        *,
        default_model: str = "@cf/meta/llama-3-8b-instruct",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        max_context_length: int = 1000,
        fallback_cost: float = 0.001,
        default_language: str = "ar",
        retry_max_attempts: int = 2,
        retry_delay_seconds: float = 2.0,
    ) -> None:
        self.transport = transport
        self.search_service = search_service
        self.persistence = persistence
        self.default_model = default_model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_context_length = max_context_length
        self.fallback_cost = fallback_cost
        self.default_language = default_language
        self.retry_max_attempts = retry_max_attempts
        self.retry_delay_seconds = retry_delay_seconds
        self._inflight = InFlightRegistry()

    # ------------------------------------------------------------------
    # Context assembly
    # ------------------------------------------------------------------

    @staticmethod
    def build_context(
        results: list[SearchResult],
        max_length: int,
        include_metadata: bool = True,
    ) -> tuple[str, list[str]]:
        """Concatenate result chunks, in order, up to ``max_length`` characters.

        The last chunk that fits is truncated. Returns the context block and
        the ids of the documents whose chunks were used.
        """
        pieces: list[str] = []
        document_ids: list[str] = []
        used = 0

        for result in results:
            separator = len(CONTEXT_SEPARATOR) if pieces else 0
            remaining = max_length - used - separator
            if remaining <= 0:
                break

            chunk = clean_text(result.context).strip()
            if not chunk:
                continue
            if include_metadata and result.document.type:
                chunk = f"[{result.document.type.upper()}] {chunk}"

            piece = chunk[:remaining]
            pieces.append(piece)
            used += separator + len(piece)
            if result.document.id not in document_ids:
                document_ids.append(result.document.id)

        return CONTEXT_SEPARATOR.join(pieces), document_ids

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def _generate_payload(
        self,
        prompt: str,
        search_query: str,
        options: GenerationOptions,
        max_context_length: int,
        include_metadata: bool = True,
    ) -> dict[str, Any]:
        return {
            "prompt": prompt,
            "context": {
                "searchQuery": search_query,
                "maxContextLength": max_context_length,
                "includeMetadata": include_metadata,
            },
            "options": {
                "model": options.model or self.default_model,
                "maxTokens": options.max_tokens or self.max_tokens,
                "temperature": (
                    self.temperature if options.temperature is None else options.temperature
                ),
                "useReranking": options.use_reranking,
            },
        }

    async def _infer(self, payload: dict[str, Any]) -> OperationResult[Inference]:
        """Call the inference endpoint once."""
        try:
            response = await self.transport.generate(payload)
        except BackendUnavailableError as e:
            logger.warning("Generation degraded, backend unavailable: %s", e.message)
            return OperationResult.unavailable()

        if not response.success:
            return OperationResult.fail(response.error or "Failed to generate content")

        content = response.data.get("content")
        if not isinstance(content, str) or is_blank(content):
            return OperationResult.fail("Backend returned no content")

        requested_model = payload["options"]["model"]
        reported = response.data.get("generationMetadata")
        model = reported.get("model") if isinstance(reported, dict) else None
        if not isinstance(model, str) or not model:
            model = requested_model
        return OperationResult.ok(
            Inference(
                content=content,
                model=model,
                prompt_length=len(payload["prompt"]),
                estimated_cost=estimate_generation_cost(
                    requested_model, response.data, fallback=self.fallback_cost
                ),
            )
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _persist(self, content: str, type: str, topic: str, metadata: dict[str, Any]) -> None:
        """Hand a document to the persistence queue without waiting."""
        try:
            self.persistence.submit(
                PersistJob(content=content, type=type, topic=topic, metadata=metadata)
            )
        except Exception:
            logger.exception("Could not schedule persistence of %s/%s", type, topic)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate(self, request: GenerationRequest) -> GenerationResponse:
        """Generate content, reusing stored documents as context.

        Identical concurrent requests share a single flow.
        """
        key = request_fingerprint("generate", dataclasses.asdict(request), fold_case=False)
        response = await self._inflight.run(key, lambda: self._generate(request))
        # Joined callers share one result; hand each its own copy
        return dataclasses.replace(
            response,
            document_ids=list(response.document_ids),
            generation_metadata=(
                dataclasses.replace(response.generation_metadata)
                if response.generation_metadata
                else None
            ),
        )

    async def _generate(self, request: GenerationRequest) -> GenerationResponse:
        flow = GenerationFlow()
        flow.advance(GenerationState.SEARCHING)

        if is_blank(request.prompt):
            flow.advance(GenerationState.FAILED)
            return GenerationResponse(
                success=False, error="Prompt cannot be empty", state=flow.state
            )

        prompt = clean_text(request.prompt).strip()
        search_query = request.context.search_query.strip() or prompt
        max_context_length = request.context.max_context_length or self.max_context_length

        search = await self.search_service.search(
            search_query,
            request.filters,
            max_results=request.context.max_results,
            use_reranking=request.options.use_reranking,
        )
        if search.degraded:
            flow.advance(GenerationState.FAILED)
            return GenerationResponse(
                success=False, error=search.error, state=flow.state, degraded=True
            )
        if not search.success:
            logger.warning("Continuing without context, search failed: %s", search.error)

        results = search.data if search.success and search.data else []
        rag_context, document_ids = "", []
        if results:
            flow.advance(GenerationState.CONTEXT_FOUND)
            rag_context, document_ids = self.build_context(
                results, max_context_length, request.context.include_metadata
            )
            final_prompt = AUGMENTED_PROMPT_TEMPLATE.format(
                context_block=CONTEXT_BLOCK_TEMPLATE.format(context=rag_context), prompt=prompt
            )
        else:
            flow.advance(GenerationState.NO_CONTEXT)
            final_prompt = prompt

        flow.advance(GenerationState.GENERATING)
        payload = self._generate_payload(
            final_prompt,
            search_query,
            request.options,
            max_context_length,
            request.context.include_metadata,
        )
        inference = await self._infer(payload)
        if not inference.success or inference.data is None:
            flow.advance(GenerationState.FAILED)
            return GenerationResponse(
                success=False,
                rag_context=rag_context,
                document_ids=document_ids,
                error=inference.error,
                state=flow.state,
                degraded=inference.degraded,
            )

        result = inference.data
        response = GenerationResponse(
            success=True,
            content=result.content,
            rag_context=rag_context,
            document_ids=document_ids,
            estimated_cost=result.estimated_cost,
            generation_metadata=GenerationMetadata(
                model=result.model,
                prompt_length=result.prompt_length,
                response_length=len(result.content),
            ),
        )

        flow.advance(GenerationState.STORING)
        tags = [request.domain, "ai-generated", *request.tags]
        if document_ids:
            tags.append("rag-enhanced")
        self._persist(
            GENERATION_RECORD_TEMPLATE.format(prompt=prompt, content=result.content),
            request.document_type,
            request.topic or "general",
            {
                "language": request.language or self.default_language,
                "difficulty": request.filters.difficulty if request.filters else None,
                "tags": tags,
                "aiGenerated": True,
                "source": "rag-generation",
                "domain": request.domain,
                "modelUsed": result.model,
                "cost": result.estimated_cost,
                "contextDocumentIds": document_ids,
            },
        )
        flow.advance(GenerationState.DONE)
        response.state = flow.state
        return response

    async def answer(
        self,
        question: str,
        context: LessonContext | None = None,
    ) -> AnswerResult:
        """Answer a tutoring question, from stored content when available.

        When the search finds nothing the question is still answered from
        general knowledge and ``sources`` is left empty.
        """
        context = context or LessonContext()
        if is_blank(question):
            return AnswerResult(success=False, error="Question cannot be empty")

        question = clean_text(question).strip()
        search_query = " ".join(
            part.strip() for part in (question, context.lesson_title, context.lesson_topic) if part
        )

        search = await self.search_service.search(
            search_query,
            SearchFilters(topic=context.lesson_topic),
            max_results=TUTOR_MAX_RESULTS,
            similarity_threshold=TUTOR_SIMILARITY_THRESHOLD,
        )
        if search.degraded:
            return AnswerResult(success=False, error=search.error, degraded=True)

        search_error = None if search.success else search.error
        sources = list(search.data or []) if search.success else []

        if sources:
            prompt = TUTOR_CONTEXT_PROMPT.format(
                context=CONTEXT_SEPARATOR.join(r.document.content for r in sources),
                question=question,
            )
            options, topic = TUTOR_CONTEXT_OPTIONS, context.lesson_topic or "general"
            query_for_backend = search_query
        else:
            prompt = TUTOR_GENERAL_PROMPT.format(question=question)
            options, topic = TUTOR_GENERAL_OPTIONS, "general"
            query_for_backend = question

        inference = await self._infer(
            self._generate_payload(prompt, query_for_backend, options, self.max_context_length)
        )
        if not inference.success or inference.data is None:
            return AnswerResult(
                success=False,
                error=inference.error,
                search_error=search_error,
                degraded=inference.degraded,
            )

        answer = inference.data.content
        self._persist(
            QA_RECORD_TEMPLATE.format(question=question, answer=answer),
            DocumentType.QUESTION,
            topic,
            {
                "language": self.default_language,
                "tags": ["question", "answer", context.lesson_id or "general"],
                "aiGenerated": True,
                "source": "lesson-tutor",
                "domain": GenerationDomain.LESSON_TUTORING,
                "lessonId": context.lesson_id,
                "lessonTitle": context.lesson_title,
                "lessonLevel": context.lesson_level,
                "modelUsed": inference.data.model,
                "cost": inference.data.estimated_cost,
            },
        )

        return AnswerResult(
            success=True,
            answer=answer,
            sources=sources,
            search_error=search_error,
            estimated_cost=inference.data.estimated_cost,
        )

    async def search_and_generate(
        self,
        prompt: str,
        search_query: str,
        filters: SearchFilters | None = None,
        *,
        max_results: int = 3,
        max_tokens: int | None = None,
        temperature: float | None = None,
        use_reranking: bool = True,
        domain: str = GenerationDomain.TEXT_GENERATION,
        document_type: str = DocumentType.EXPLANATION,
    ) -> GenerationResponse:
        """Convenience wrapper: search with filters, then generate."""
        filters = filters or SearchFilters()
        return await self.generate(
            GenerationRequest(
                prompt=prompt,
                context=GenerationContext(search_query=search_query, max_results=max_results),
                options=GenerationOptions(
                    max_tokens=max_tokens,
                    temperature=temperature,
                    use_reranking=use_reranking,
                ),
                domain=domain,
                document_type=document_type,
                topic=filters.topic or "general",
                language=filters.language,
                filters=filters,
            )
        )

    async def generate_with_retries(
        self,
        request: GenerationRequest,
        *,
        max_retries: int | None = None,
        delay: float | None = None,
        is_usable: Callable[[GenerationResponse], bool] | None = None,
    ) -> RetryOutcome[GenerationResponse]:
        """Generate with the fixed-delay retry policy.

        Used by flows that must not fail silently, such as quiz generation.
        By default a response is usable when it succeeded with non-empty
        content; ``is_usable`` can tighten that (e.g. "parses as a quiz").
        """

        def usable(response: GenerationResponse) -> bool:
            if is_blank(response.content):
                return False
            return is_usable(response) if is_usable else True

        return await with_retries(
            lambda: self.generate(request),
            self.retry_max_attempts if max_retries is None else max_retries,
            self.retry_delay_seconds if delay is None else delay,
            is_success=usable,
        )
