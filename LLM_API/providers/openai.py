import base64
import json
from typing import Optional, Dict, Any

import httpx
import openai
from openai import OpenAI

from ..data_classes import (
    BaseRequest, BaseResponse,
    StructuredOutputRequest, StructuredOutputResponse,
    ImageGenerationRequest, ImageGenerationResponse,
    ProviderConfig
)
from ..decorators import log_request, with_retry
from ..exceptions import (
    LLMError, LLMAPIError, LLMAuthenticationError, LLMContentPolicyError,
    LLMRateLimitError, LLMTimeoutError
)
from ._base_provider import BaseProvider

DEFAULT_MODEL = "gpt-3.5-turbo-16k"
DEFAULT_IMAGE_MODEL = "dall-e-3"
IMAGE_DOWNLOAD_TIMEOUT = 60.0
CONTENT_POLICY_CODE = "content_policy_violation"


class OpenAIModel(BaseProvider):
    """OpenAI Chat Completions / Images implementation of CallModel"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: str = DEFAULT_MODEL,
        image_model: str = DEFAULT_IMAGE_MODEL,
    ):
        self.image_model = image_model
        super().__init__(api_key=api_key, model_name=model_name)

    def _get_provider_config(self) -> ProviderConfig:
        return ProviderConfig(
            provider_name="OpenAI",
            model_name=self.model_name,
            supports_structured_output=True,
            supports_image_generation=True,
            max_tokens_limit=16384,
            default_image_model=self.image_model,
        )

    def setup_client(self):
        self.client = OpenAI(api_key=self._get_api_key("OPENAI_API_KEY"))

    # ------------------------------------------------------------------
    # Text
    # ------------------------------------------------------------------
    def generate_content(self, request: BaseRequest) -> BaseResponse:
        self._validate_request(request)
        model = request.model_name or self.model_name
        try:
            completion = self._chat(request)
        except LLMAuthenticationError:
            raise
        except LLMError as e:
            return BaseResponse(text="", model_used=model, error=str(e))
        return BaseResponse(
            text=_message_text(completion),
            model_used=model,
            usage=_usage(completion),
            raw_response=completion
        )

    def generate_structured_output(self, request: StructuredOutputRequest) -> StructuredOutputResponse:
        self._validate_request(request)
        model = request.model_name or self.model_name
        extra: Dict[str, Any] = {}
        if request.json_mode:
            extra["response_format"] = {"type": "json_object"}
        try:
            completion = self._chat(request, **extra)
        except LLMAuthenticationError:
            raise
        except LLMError as e:
            return StructuredOutputResponse(text="", model_used=model, error=str(e))

        text = _message_text(completion)
        parsed = None
        validation_error = None
        try:
            parsed = json.loads(text)
            if not isinstance(parsed, dict):
                validation_error = f"Expected a JSON object, got {type(parsed).__name__}"
                parsed = None
        except json.JSONDecodeError as e:
            validation_error = f"Structured output parse failed: {e}"
        return StructuredOutputResponse(
            text=text,
            parsed_output=parsed,
            validation_error=validation_error,
            model_used=model,
            usage=_usage(completion),
            raw_response=completion
        )

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------
    def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        self._validate_request(request)
        model = request.model_name or self.image_model
        try:
            result = self._images(request, model)
            item = result.data[0]
            image_url = getattr(item, "url", None)
            if request.response_format == "b64_json":
                image_bytes = base64.b64decode(item.b64_json)
            else:
                image_bytes = _download(image_url)
        except LLMAuthenticationError:
            raise
        except (LLMError, httpx.HTTPError) as e:
            return ImageGenerationResponse(model_used=model, error=str(e))
        return ImageGenerationResponse(
            model_used=model,
            image_url=image_url,
            image_bytes=image_bytes,
            revised_prompt=getattr(item, "revised_prompt", None),
            raw_response=result
        )

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------
    @with_retry()
    @log_request
    def _chat(self, request: BaseRequest, **extra):
        request_data: Dict[str, Any] = {
            "model": request.model_name or self.model_name,
            "messages": request.to_messages(),
        }
        if request.max_tokens:
            request_data["max_tokens"] = request.max_tokens
        if request.temperature is not None:
            request_data["temperature"] = request.temperature
        request_data.update(extra)
        try:
            return self.client.chat.completions.create(**request_data)
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e

    @with_retry()
    @log_request
    def _images(self, request: ImageGenerationRequest, model: str):
        try:
            return self.client.images.generate(
                model=model,
                prompt=request.prompt,
                size=request.size,
                quality=request.quality,
                response_format=request.response_format,
                n=1
            )
        except openai.OpenAIError as e:
            raise self._translate_error(e) from e

    def _translate_error(self, error: Exception) -> LLMError:
        provider = self.get_provider_name()
        if isinstance(error, openai.AuthenticationError):
            return LLMAuthenticationError(str(error), provider, "authentication", original_error=error)
        if isinstance(error, openai.RateLimitError):
            return LLMRateLimitError(
                str(error), provider, "rate_limit",
                retry_after=_retry_after(error), original_error=error
            )
        if isinstance(error, openai.BadRequestError) and error.code == CONTENT_POLICY_CODE:
            return LLMContentPolicyError(str(error), provider, "content_policy", original_error=error)
        if isinstance(error, openai.APITimeoutError):
            return LLMTimeoutError(str(error), provider, "timeout", original_error=error)
        return LLMAPIError(str(error), provider, "api_error", original_error=error)


def _message_text(completion) -> str:
    choices = getattr(completion, "choices", None) or []
    if not choices:
        return ""
    content = getattr(choices[0].message, "content", None) or ""
    return content.strip()


def _usage(completion) -> Optional[Dict[str, int]]:
    usage = getattr(completion, "usage", None)
    if usage is None:
        return None
    return {
        "prompt_tokens": getattr(usage, "prompt_tokens", 0),
        "completion_tokens": getattr(usage, "completion_tokens", 0),
        "total_tokens": getattr(usage, "total_tokens", 0),
    }


def _download(url: Optional[str]) -> bytes:
    if not url:
        raise LLMAPIError("Image response did not contain a URL", "OpenAI", "empty_image")
    response = httpx.get(url, timeout=IMAGE_DOWNLOAD_TIMEOUT, follow_redirects=True)
    response.raise_for_status()
    return response.content


def _retry_after(error) -> Optional[float]:
    response = getattr(error, "response", None)
    raw = response.headers.get("retry-after") if response is not None else None
    try:
        return float(raw) if raw else None
    except ValueError:
        return None
