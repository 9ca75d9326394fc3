from functools import lru_cache

from recall.services.llm.client import LLMClient
from recall.services.llm.generator import FlashcardDraftGenerator


@lru_cache(maxsize=1)
def make_llm_client() -> LLMClient:
    """
    Create and return a singleton LLM client instance.

    Returns:
        LLMClient: Client configured from settings
    """
    return LLMClient()


def make_draft_generator() -> FlashcardDraftGenerator:
    return FlashcardDraftGenerator(client=make_llm_client())
