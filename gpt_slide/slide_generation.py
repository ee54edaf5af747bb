"""Slide outline, text and image generation through an LLM client."""

from __future__ import annotations

import json
import logging
import re
from enum import Enum
from typing import Any, Dict, Optional, Union

from LLM_API.data_classes import (
    BaseRequest,
    ImageGenerationRequest,
    StructuredOutputRequest,
    StructuredOutputResponse,
)
from LLM_API.exceptions import LLMAPIError, LLMValidationError

from .audit import (
    IMAGE_PROMPT_REQUEST,
    IMAGE_PROMPT_RESPONSE,
    OUTLINE_ERROR,
    OUTLINE_REQUEST,
    OUTLINE_RESPONSE,
    TEXT_REQUEST,
    TEXT_RESPONSE,
    AuditTrail,
)
from .slide_models import SlideDeck

LOGGER = logging.getLogger(__name__)

TEXT_MAX_TOKENS = 1000
IMAGE_PROMPT_FALLBACK = 'The message "error" in white wall.'
OUTLINE_TEMPLATE: Dict[str, Any] = {
    "title": "Title",
    "slides": [
        {
            "title": "Slide title",
            "code": "programing code",
            "points": [" item ", " item ", " item "],
        }
    ],
}

_JSON_FENCE_RE = re.compile(r"```json|```")


class Creativity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


_TEMPERATURES = {
    Creativity.LOW: 0.0,
    Creativity.MEDIUM: 0.5,
    Creativity.HIGH: 1.0,
}


def creativity_to_temperature(creativity: Union[Creativity, str, None]) -> float:
    """Map the UI creativity level to a sampling temperature (default 0.5)."""

    try:
        level = Creativity(creativity)
    except ValueError:
        return _TEMPERATURES[Creativity.MEDIUM]
    return _TEMPERATURES[level]


def strip_json_code_fence(text: str) -> str:
    """Remove Markdown fences the model sometimes wraps around JSON."""

    return _JSON_FENCE_RE.sub("", text or "")


class SlideOutlineGenerator:
    """Ask the LLM for a complete deck outline in the slide JSON format."""

    def __init__(self, llm_client, *, audit: Optional[AuditTrail] = None) -> None:
        self.llm_client = llm_client
        self.audit = audit or AuditTrail()

    def generate_outline(
        self,
        prompt: str,
        num_pages: int,
        creativity: Union[Creativity, str, None] = Creativity.MEDIUM,
    ) -> SlideDeck:
        if self.llm_client is None:
            raise RuntimeError("LLM client is required to generate a slide outline")

        request = StructuredOutputRequest(
            prompt=prompt,
            system_prompt=self._build_system_prompt(num_pages),
            temperature=creativity_to_temperature(creativity),
            schema_name="slide_outline",
        )
        self.audit.record(OUTLINE_REQUEST, json.dumps(request.to_dict(), ensure_ascii=False))

        response = self.llm_client.generate_structured_output(request)
        if response.error:
            self.audit.record(OUTLINE_ERROR, response.error)
            raise LLMAPIError(response.error, error_type="outline_request")
        self.audit.record(OUTLINE_RESPONSE, response.text)

        payload = self._extract_parsed_output(response)
        deck = SlideDeck.from_dict(payload)
        LOGGER.info("Outline generated with %d slides (requested %d)", len(deck.slides), num_pages)
        return deck

    def _build_system_prompt(self, num_pages: int) -> str:
        return (
            "Create a detailed outline with titles and bullet points required to explain the topic. "
            "you must output the result in the following JSON format. "
            f'make sure the number of elements in the "slides" array is {num_pages}. '
            'if you generate source code ,put in the "code" element. '
            'you must enclose each JSON element in double quotes ("").\n'
            f" {json.dumps(OUTLINE_TEMPLATE, ensure_ascii=False)}\n "
        )

    def _extract_parsed_output(self, response: StructuredOutputResponse) -> Dict[str, Any]:
        if response.parsed_output:
            return response.parsed_output
        try:
            parsed = json.loads(strip_json_code_fence(response.text))
        except json.JSONDecodeError as exc:
            self.audit.record(OUTLINE_ERROR, str(exc))
            raise LLMValidationError(
                f"Outline response is not valid JSON: {exc}",
                error_type="outline_json",
                original_error=exc,
            ) from exc
        if not isinstance(parsed, dict):
            self.audit.record(OUTLINE_ERROR, f"unexpected payload: {response.text}")
            raise LLMValidationError(
                "Outline response must be a JSON object", error_type="outline_json"
            )
        return parsed


class TextGenerator:
    """Rewrite or expand a piece of slide text."""

    def __init__(self, llm_client, *, audit: Optional[AuditTrail] = None) -> None:
        self.llm_client = llm_client
        self.audit = audit or AuditTrail()

    def generate(
        self, prompt: str, creativity: Union[Creativity, str, None] = Creativity.MEDIUM
    ) -> str:
        request = BaseRequest(
            prompt=prompt,
            max_tokens=TEXT_MAX_TOKENS,
            temperature=creativity_to_temperature(creativity),
        )
        self.audit.record(TEXT_REQUEST, json.dumps(request.to_dict(), ensure_ascii=False))
        response = self.llm_client.generate_content(request)
        if response.error:
            raise LLMAPIError(response.error, error_type="text_request")
        content = (response.text or "").strip()
        self.audit.record(TEXT_RESPONSE, content)
        return content


class ImagePromptGenerator:
    """Turn the text of a slide into a prompt for an image-generation model."""

    def __init__(
        self,
        llm_client,
        *,
        max_words: int = 40,
        temperature: float = 0.5,
        audit: Optional[AuditTrail] = None,
    ) -> None:
        self.llm_client = llm_client
        self.max_words = max_words
        self.temperature = temperature
        self.audit = audit or AuditTrail()

    def build_prompt(self, target_text: str) -> str:
        request = BaseRequest(
            prompt=target_text.strip() if target_text and target_text.strip() else IMAGE_PROMPT_FALLBACK,
            system_prompt=self._system_prompt(),
            max_tokens=round(self.max_words * 3),
            temperature=self.temperature,
        )
        self.audit.record(
            IMAGE_PROMPT_REQUEST, json.dumps(request.to_dict(), ensure_ascii=False)
        )
        response = self.llm_client.generate_content(request)
        if response.error:
            raise LLMAPIError(response.error, error_type="image_prompt_request")
        content = (response.text or "").strip()
        self.audit.record(IMAGE_PROMPT_RESPONSE, content)
        return content

    def _system_prompt(self) -> str:
        return (
            "Please imagine a common scene from the given text and express it as a "
            "detailed prompt in english for image generation AI.\n\n"
            '  rule:\n- begin  a sentence with  "The prompt is:".\n'
            "- without using bullet points.\n- in the third person.\n"
            f"- {self.max_words} words.\ntext :"
        )


class ImageGenerator:
    """Generate an image for a prompt and an optional style caption."""

    def __init__(self, llm_client, *, model_name: Optional[str] = None) -> None:
        self.llm_client = llm_client
        self.model_name = model_name

    def generate(self, prompt: str, caption: str = "") -> bytes:
        full_prompt = f"{prompt} {caption}".strip()
        request = ImageGenerationRequest(prompt=full_prompt, model_name=self.model_name)
        response = self.llm_client.generate_image(request)
        if response.error or not response.image_bytes:
            raise LLMAPIError(
                response.error or "Image generation returned no data",
                error_type="image_request",
            )
        LOGGER.info("Generated image (%d bytes)", len(response.image_bytes))
        return response.image_bytes
