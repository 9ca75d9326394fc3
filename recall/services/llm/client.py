import logging
from typing import Any, Dict, Optional

from openai import APIConnectionError, APITimeoutError, OpenAI, OpenAIError

from recall.config import get_settings
from recall.exceptions import DraftGenerationError, LLMConnectionError, LLMTimeoutError

logger = logging.getLogger(__name__)


class LLMClient:
    """Client for an OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        self.timeout = float(timeout if timeout is not None else settings.llm_timeout)
        self.client = OpenAI(
            api_key=api_key or settings.llm_api_key,
            base_url=base_url or settings.llm_base_url,
            timeout=self.timeout,
        )
        self.default_model = model or settings.llm_model

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        model: Optional[str] = None,
        **kwargs,
    ) -> Dict[str, Any]:
        """Single chat completion; returns ``{"response": <content>}``."""
        model = model or self.default_model
        logger.info(f"Sending request to LLM: model={model}")
        try:
            completion = self.client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                temperature=kwargs.get("temperature", 0.3),
                top_p=kwargs.get("top_p", 0.9),
                max_tokens=kwargs.get("max_tokens", 2048),
                response_format=kwargs.get("response_format"),
            )
        except APITimeoutError as e:
            raise LLMTimeoutError(f"LLM request timeout: {e}") from e
        except APIConnectionError as e:
            raise LLMConnectionError(f"Cannot connect to LLM: {e}") from e
        except OpenAIError as e:
            raise DraftGenerationError("Failed to generate flashcards", reason=str(e)) from e

        if not completion.choices:
            raise DraftGenerationError("LLM returned no choices")
        return {"response": completion.choices[0].message.content or ""}
