import json

import pytest

from recall.exceptions import DraftGenerationError
from recall.services.llm.generator import FlashcardDraftGenerator
from recall.services.llm.prompts import FlashcardResponseParser, response_format

CARDS = [{"front": f" Question {i} ", "back": f"Answer {i}"} for i in range(5)]


class FakeLLMClient:
    def __init__(self, response):
        self.response = response
        self.calls = []

    def generate(self, system_prompt, user_prompt, model=None, **kwargs):
        self.calls.append({"system_prompt": system_prompt, "user_prompt": user_prompt, **kwargs})
        return {"response": self.response}


class TestResponseParser:
    def test_parses_and_strips(self):
        drafts = FlashcardResponseParser().parse(json.dumps({"flashcards": CARDS}))
        assert len(drafts) == 5
        assert drafts[0].front == "Question 0"

    def test_code_fenced_json(self):
        raw = "```json\n" + json.dumps({"flashcards": CARDS}) + "\n```"
        assert len(FlashcardResponseParser().parse(raw)) == 5

    def test_invalid_json(self):
        with pytest.raises(DraftGenerationError) as exc_info:
            FlashcardResponseParser().parse("not json")
        assert str(exc_info.value) == "AI service returned invalid data"

    @pytest.mark.parametrize(
        "payload",
        [
            {"flashcards": []},
            {"flashcards": [{"front": "", "back": "x"}]},
            {"cards": CARDS},
            {"flashcards": CARDS * 4},
        ],
    )
    def test_invalid_payload(self, payload):
        with pytest.raises(DraftGenerationError):
            FlashcardResponseParser().parse(json.dumps(payload))


class TestGenerator:
    def test_sends_source_text_and_schema(self):
        client = FakeLLMClient(json.dumps({"flashcards": CARDS}))
        drafts = FlashcardDraftGenerator(client).generate("Some source text")

        assert len(drafts) == 5
        assert "Some source text" in client.calls[0]["user_prompt"]
        assert client.calls[0]["response_format"] == response_format
