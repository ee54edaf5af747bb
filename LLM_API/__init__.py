"""
LLM API Package - Unified interface for the slide generation LLM calls
"""

from .base import CallModel
from .data_classes import (
    BaseRequest, BaseResponse,
    StructuredOutputRequest, StructuredOutputResponse,
    ImageGenerationRequest, ImageGenerationResponse,
    ProviderConfig
)
from .exceptions import (
    LLMError, LLMAPIError, LLMValidationError,
    LLMRateLimitError, LLMAuthenticationError, LLMTimeoutError,
    LLMContentPolicyError
)

__version__ = "1.1.0"
__all__ = [
    # Base
    'CallModel',
    # Data Classes
    'BaseRequest', 'BaseResponse',
    'StructuredOutputRequest', 'StructuredOutputResponse',
    'ImageGenerationRequest', 'ImageGenerationResponse',
    'ProviderConfig',
    # Exceptions
    'LLMError', 'LLMAPIError', 'LLMValidationError',
    'LLMRateLimitError', 'LLMAuthenticationError', 'LLMTimeoutError',
    'LLMContentPolicyError',
]
