import base64
import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from LLM_API.data_classes import BaseRequest, ImageGenerationRequest, StructuredOutputRequest
from LLM_API.exceptions import (
    LLMAuthenticationError,
    LLMContentPolicyError,
    LLMRateLimitError,
    LLMValidationError,
)
from LLM_API.providers import openai as openai_provider
from LLM_API.providers.openai import OpenAIModel
from tests.llm_stubs import PNG_PIXEL


class FakeCompletions:
    def __init__(self, content=None, error=None):
        self.content = content
        self.error = error
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(prompt_tokens=3, completion_tokens=5, total_tokens=8),
        )


class FakeImages:
    def __init__(self, item):
        self.item = item
        self.calls = []

    def generate(self, **kwargs):
        self.calls.append(kwargs)
        return SimpleNamespace(data=[self.item])


def _model(completions=None, images=None):
    model = OpenAIModel(api_key="sk-test", model_name="gpt-test")
    model.client = SimpleNamespace(
        chat=SimpleNamespace(completions=completions or FakeCompletions("")),
        images=images,
    )
    return model


def test_generate_content_sends_messages():
    completions = FakeCompletions("  hello  ")
    model = _model(completions)

    response = model.generate_content(
        BaseRequest(prompt="hi", system_prompt="be brief", max_tokens=50, temperature=0.0)
    )

    assert response.success
    assert response.text == "hello"
    assert response.usage["total_tokens"] == 8
    call = completions.calls[0]
    assert call["model"] == "gpt-test"
    assert call["messages"][0] == {"role": "system", "content": "be brief"}
    assert call["max_tokens"] == 50
    assert call["temperature"] == 0.0


def test_structured_output_requests_json_object():
    payload = {"title": "T", "slides": []}
    completions = FakeCompletions(json.dumps(payload))
    model = _model(completions)

    response = model.generate_structured_output(StructuredOutputRequest(prompt="outline"))

    assert response.parsed_output == payload
    assert response.validation_error is None
    assert completions.calls[0]["response_format"] == {"type": "json_object"}


def test_structured_output_reports_invalid_json():
    model = _model(FakeCompletions("```json\n{}\n```"))
    response = model.generate_structured_output(StructuredOutputRequest(prompt="outline"))

    assert response.parsed_output is None
    assert response.validation_error
    assert response.text.startswith("```json")


def test_api_error_becomes_error_response():
    model = _model(FakeCompletions(error=openai.OpenAIError("server exploded")))
    response = model.generate_content(BaseRequest(prompt="hi"))

    assert not response.success
    assert "server exploded" in response.error


def test_empty_prompt_is_rejected():
    with pytest.raises(LLMValidationError):
        _model().generate_content(BaseRequest(prompt=""))


def test_missing_api_key_raises(monkeypatch):
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.setattr("LLM_API.providers._base_provider.load_dotenv", lambda: False)

    with pytest.raises(LLMAuthenticationError):
        OpenAIModel()


def test_generate_image_downloads_url(monkeypatch):
    images = FakeImages(SimpleNamespace(url="https://img.test/a.png", revised_prompt="a cat"))
    model = _model(images=images)
    requested = []

    def fake_get(url, **kwargs):
        requested.append(url)
        return httpx.Response(200, content=PNG_PIXEL, request=httpx.Request("GET", url))

    monkeypatch.setattr(openai_provider.httpx, "get", fake_get)
    response = model.generate_image(ImageGenerationRequest(prompt="a cat"))

    assert response.image_bytes == PNG_PIXEL
    assert response.revised_prompt == "a cat"
    assert requested == ["https://img.test/a.png"]
    call = images.calls[0]
    assert call["model"] == "dall-e-3"
    assert call["size"] == "1024x1024"
    assert call["quality"] == "hd"


def test_generate_image_decodes_base64():
    item = SimpleNamespace(b64_json=base64.b64encode(PNG_PIXEL).decode("ascii"))
    model = _model(images=FakeImages(item))

    response = model.generate_image(
        ImageGenerationRequest(prompt="a cat", response_format="b64_json")
    )

    assert response.image_bytes == PNG_PIXEL
    assert response.image_url is None


def test_failed_download_becomes_error_response(monkeypatch):
    model = _model(images=FakeImages(SimpleNamespace(url="https://img.test/missing.png")))

    def fake_get(url, **kwargs):
        return httpx.Response(404, request=httpx.Request("GET", url))

    monkeypatch.setattr(openai_provider.httpx, "get", fake_get)
    response = model.generate_image(ImageGenerationRequest(prompt="a cat"))

    assert response.image_bytes is None
    assert response.error


def _status_error(cls, status, body=None, headers=None):
    request = httpx.Request("POST", "https://api.openai.com/v1/images/generations")
    response = httpx.Response(status, headers=headers or {}, request=request)
    return cls("rejected", response=response, body=body)


def test_content_policy_refusal_is_translated():
    error = _status_error(
        openai.BadRequestError, 400, body={"code": "content_policy_violation", "message": "no"}
    )
    model = _model()
    translated = model._translate_error(error)

    assert isinstance(translated, LLMContentPolicyError)
    assert translated.error_type == "content_policy"


def test_rate_limit_carries_retry_after_header():
    error = _status_error(openai.RateLimitError, 429, headers={"retry-after": "12"})
    translated = _model()._translate_error(error)

    assert isinstance(translated, LLMRateLimitError)
    assert translated.retry_after == 12.0
