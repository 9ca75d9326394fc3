import logging
from typing import List

from recall.schemas.flashcards import FlashcardDraft
from recall.services.llm.client import LLMClient
from recall.services.llm.prompts import (
    FlashcardPromptBuilder,
    FlashcardResponseParser,
    response_format,
)

logger = logging.getLogger(__name__)


class FlashcardDraftGenerator:
    """Turns source text into front/back drafts through the LLM."""

    def __init__(self, client: LLMClient):
        self._client = client
        self.prompt_builder = FlashcardPromptBuilder()
        self.response_parser = FlashcardResponseParser()

    def generate(self, source_text: str) -> List[FlashcardDraft]:
        logger.info("Generating flashcards via AI", extra={"text_length": len(source_text)})
        result = self._client.generate(
            system_prompt=self.prompt_builder.system_prompt,
            user_prompt=self.prompt_builder.create_user_prompt(source_text),
            response_format=response_format,
        )
        drafts = self.response_parser.parse(result["response"])
        logger.info("Generated flashcard drafts", extra={"count": len(drafts)})
        return drafts
