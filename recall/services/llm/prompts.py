import json
import logging
from typing import List

from pydantic import BaseModel, Field, ValidationError

from recall.exceptions import DraftGenerationError
from recall.schemas.flashcards import FlashcardDraft

logger = logging.getLogger(__name__)

MIN_FLASHCARDS = 5
MAX_FLASHCARDS = 15

response_format = {
    "type": "json_schema",
    "json_schema": {
        "name": "flashcards_response",
        "strict": True,
        "schema": {
            "type": "object",
            "additionalProperties": False,
            "properties": {
                "flashcards": {
                    "type": "array",
                    "minItems": MIN_FLASHCARDS,
                    "maxItems": MAX_FLASHCARDS,
                    "items": {
                        "type": "object",
                        "additionalProperties": False,
                        "properties": {
                            "front": {
                                "type": "string",
                                "description": "Question or front side of the flashcard",
                            },
                            "back": {
                                "type": "string",
                                "description": "Answer or back side of the flashcard",
                            },
                        },
                        "required": ["front", "back"],
                    },
                }
            },
            "required": ["flashcards"],
        },
    },
}


class FlashcardsPayload(BaseModel):
    flashcards: List[FlashcardDraft] = Field(..., min_length=1, max_length=MAX_FLASHCARDS)


class FlashcardPromptBuilder:
    system_prompt = (
        "You are an expert educational assistant specializing in creating high-quality "
        "flashcards for spaced repetition learning.\n"
        "- Extract key concepts from the provided text\n"
        "- Create clear, focused questions for the front of each card\n"
        "- Provide concise, accurate answers for the back\n"
        f"- Generate between {MIN_FLASHCARDS} and {MAX_FLASHCARDS} flashcards depending on content richness"
    )

    def create_user_prompt(self, source_text: str) -> str:
        return (
            "Generate educational flashcards from the following text. Each flashcard should "
            "focus on a single concept.\n\n"
            "Text to analyze:\n"
            "---\n"
            f"{source_text}\n"
            "---\n\n"
            'Return ONLY valid JSON of the form {"flashcards": [{"front": "...", "back": "..."}]}.'
        )


class FlashcardResponseParser:
    def parse(self, raw: str) -> List[FlashcardDraft]:
        cleaned = (raw or "").strip()
        if cleaned.startswith("```"):
            lines = cleaned.splitlines()
            cleaned = "\n".join(lines[1:-1]).strip()

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error("Invalid JSON from LLM", extra={"preview": cleaned[:300]})
            raise DraftGenerationError("AI service returned invalid data", reason=str(e)) from e

        try:
            payload = FlashcardsPayload.model_validate(data)
        except ValidationError as e:
            raise DraftGenerationError("AI service returned invalid flashcards", reason=str(e)) from e

        return payload.flashcards
