import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Query, Response, status
from starlette.concurrency import run_in_threadpool

from recall.dependencies import (
    CurrentUserDep,
    DraftGeneratorDep,
    GenerationRequestServiceDep,
    RateLimiterDep,
)
from recall.schemas.api.flashcards import FlashcardDTO
from recall.schemas.api.generation_requests import (
    CreateGenerationRequest,
    CreateGenerationRequestResponse,
    GenerationRequestDetailResponse,
    GenerationRequestDTO,
    GenerationRequestListResponse,
    GenerationRequestsQuery,
)
from recall.services.rate_limit.factory import GENERATION_RESOURCE

router = APIRouter(prefix="/generation-requests", tags=["generation"])
logger = logging.getLogger(__name__)


@router.post(
    "",
    response_model=CreateGenerationRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_generation_request(
    body: CreateGenerationRequest,
    response: Response,
    user_id: CurrentUserDep,
    limiter: RateLimiterDep,
    generator: DraftGeneratorDep,
    service: GenerationRequestServiceDep,
):
    """Generate flashcards from source text; cards start pending review."""
    subject = str(user_id)
    await limiter.check(subject, GENERATION_RESOURCE)

    remaining = await limiter.remaining(subject, GENERATION_RESOURCE)
    reset_at = await limiter.reset_at(subject, GENERATION_RESOURCE)
    response.headers["X-RateLimit-Limit"] = str(limiter.limit)
    response.headers["X-RateLimit-Remaining"] = str(remaining)
    if reset_at is not None:
        # epoch seconds
        response.headers["X-RateLimit-Reset"] = str(int(reset_at.timestamp()))

    logger.info(
        "Processing generation request",
        extra={"user_id": subject, "text_length": len(body.source_text)},
    )
    drafts = await run_in_threadpool(generator.generate, body.source_text)
    request, flashcards = await run_in_threadpool(service.create, user_id, body.source_text, drafts)

    return CreateGenerationRequestResponse(
        generation_request=GenerationRequestDTO.model_validate(request),
        flashcards=[FlashcardDTO.model_validate(fc) for fc in flashcards],
    )


@router.get("", response_model=GenerationRequestListResponse)
def list_generation_requests(
    query: Annotated[GenerationRequestsQuery, Query()],
    user_id: CurrentUserDep,
    service: GenerationRequestServiceDep,
):
    return service.list(user_id, query)


@router.get("/{request_id}", response_model=GenerationRequestDetailResponse)
def get_generation_request(request_id: UUID, user_id: CurrentUserDep, service: GenerationRequestServiceDep):
    return service.get(user_id, request_id)


@router.delete("/{request_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_generation_request(request_id: UUID, user_id: CurrentUserDep, service: GenerationRequestServiceDep):
    """Delete a request; its flashcards are kept and detached."""
    service.delete(user_id, request_id)
