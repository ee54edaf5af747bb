import logging

import pytest

from LLM_API.exceptions import LLMAPIError, LLMValidationError
from gpt_slide.audit import AuditTrail
from gpt_slide.slide_generation import (
    IMAGE_PROMPT_FALLBACK,
    TEXT_MAX_TOKENS,
    Creativity,
    ImageGenerator,
    ImagePromptGenerator,
    SlideOutlineGenerator,
    TextGenerator,
    creativity_to_temperature,
    strip_json_code_fence,
)
from tests.llm_stubs import PNG_PIXEL, RecordingStubLLM

OUTLINE = {
    "title": "Python入門",
    "slides": [
        {"title": "変数", "points": ["代入", "型"]},
        {"title": "ループ", "code": "for i in range(3):\n    print(i)", "points": []},
    ],
}


@pytest.mark.parametrize(
    "creativity, expected",
    [
        (Creativity.LOW, 0.0),
        ("low", 0.0),
        ("medium", 0.5),
        ("high", 1.0),
        ("unknown", 0.5),
        (None, 0.5),
    ],
)
def test_creativity_to_temperature(creativity, expected):
    assert creativity_to_temperature(creativity) == expected


def test_strip_json_code_fence():
    assert strip_json_code_fence('```json\n{"a": 1}\n```') == '\n{"a": 1}\n'


def test_outline_generator_builds_deck_and_request():
    stub = RecordingStubLLM(outline_payload=OUTLINE)
    deck = SlideOutlineGenerator(stub).generate_outline("Pythonの基礎", 2, "high")

    assert deck.title == "Python入門"
    assert [slide.title for slide in deck.slides] == ["変数", "ループ"]
    assert deck.slides[1].code.startswith("for i")

    request = stub.structured_requests[0]
    assert request.prompt == "Pythonの基礎"
    assert request.temperature == 1.0
    assert request.json_mode is True
    assert '"slides" array is 2' in request.system_prompt
    assert request.to_messages()[0]["role"] == "system"


def test_outline_generator_strips_fenced_json():
    stub = RecordingStubLLM(outline_text='```json\n{"title": "T", "slides": [{"title": "S", "points": ["p"]}]}\n```')
    deck = SlideOutlineGenerator(stub).generate_outline("topic", 1)

    assert deck.title == "T"
    assert deck.slides[0].points == ["p"]


def test_outline_generator_raises_on_invalid_json(caplog):
    stub = RecordingStubLLM(outline_text="not json at all")
    with caplog.at_level(logging.INFO, logger="gpt_slide.audit"):
        with pytest.raises(LLMValidationError):
            SlideOutlineGenerator(stub).generate_outline("topic", 3)

    messages = [record.getMessage() for record in caplog.records]
    assert any(message.startswith("[REQ_1]") for message in messages)
    assert any(message.startswith("[ERR_1]") for message in messages)


def test_outline_generator_raises_on_api_error():
    stub = RecordingStubLLM(error="quota exceeded")
    with pytest.raises(LLMAPIError):
        SlideOutlineGenerator(stub).generate_outline("topic", 3)


def test_text_generator_uses_fixed_token_budget():
    stub = RecordingStubLLM(text_responses=["  deeper text \n"])
    result = TextGenerator(stub).generate("explain\ncurrent", Creativity.LOW)

    assert result == "deeper text"
    request = stub.text_requests[0]
    assert request.max_tokens == TEXT_MAX_TOKENS
    assert request.temperature == 0.0
    assert request.system_prompt is None


def test_image_prompt_generator_falls_back_for_empty_text():
    stub = RecordingStubLLM(text_responses=["The prompt is: a white wall"])
    generator = ImagePromptGenerator(stub, max_words=20, temperature=0.3)
    prompt = generator.build_prompt("   ")

    assert prompt == "The prompt is: a white wall"
    request = stub.text_requests[0]
    assert request.prompt == IMAGE_PROMPT_FALLBACK
    assert request.max_tokens == 60
    assert request.temperature == 0.3
    assert "- 20 words." in request.system_prompt


def test_image_generator_appends_caption():
    stub = RecordingStubLLM()
    blob = ImageGenerator(stub, model_name="dall-e-3").generate("A cat", "Anime")

    assert blob == PNG_PIXEL
    assert stub.image_requests[0].prompt == "A cat Anime"
    assert stub.image_requests[0].model_name == "dall-e-3"


def test_image_generator_raises_on_error():
    stub = RecordingStubLLM(error="content policy")
    with pytest.raises(LLMAPIError):
        ImageGenerator(stub).generate("A cat")


def test_audit_trail_writes_file(tmp_path):
    path = tmp_path / "logs" / "audit.log"
    audit = AuditTrail(path)
    try:
        stub = RecordingStubLLM(text_responses=["answer"])
        TextGenerator(stub, audit=audit).generate("question")
    finally:
        audit.close()

    lines = path.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert "[REQ_3]" in lines[0]
    assert lines[1].endswith("[RES_3] answer")
