from recall.schemas.api.common import ErrorResponse, Pagination
from recall.schemas.api.flashcards import (
    BatchApprovalFailure,
    BatchApproveRequest,
    BatchApproveResponse,
    CreateFlashcardRequest,
    FlashcardDTO,
    FlashcardsListResponse,
    FlashcardsQuery,
    UpdateFlashcardRequest,
)
from recall.schemas.api.generation_requests import (
    CreateGenerationRequest,
    CreateGenerationRequestResponse,
    GenerationRequestDetailResponse,
    GenerationRequestDTO,
    GenerationRequestListItem,
    GenerationRequestListResponse,
    GenerationRequestsQuery,
)
from recall.schemas.api.study_sessions import (
    ReviewFlashcardRequest,
    StudySessionInfo,
    StudySessionResponse,
)

__all__ = [
    "ErrorResponse",
    "Pagination",
    "FlashcardDTO",
    "CreateFlashcardRequest",
    "UpdateFlashcardRequest",
    "FlashcardsQuery",
    "FlashcardsListResponse",
    "BatchApproveRequest",
    "BatchApproveResponse",
    "BatchApprovalFailure",
    "GenerationRequestDTO",
    "CreateGenerationRequest",
    "CreateGenerationRequestResponse",
    "GenerationRequestListItem",
    "GenerationRequestsQuery",
    "GenerationRequestListResponse",
    "GenerationRequestDetailResponse",
    "StudySessionInfo",
    "StudySessionResponse",
    "ReviewFlashcardRequest",
]
