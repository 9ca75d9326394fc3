from recall.models.flashcard import Flashcard
from recall.models.generation_request import GenerationRequest

__all__ = ["Flashcard", "GenerationRequest"]
