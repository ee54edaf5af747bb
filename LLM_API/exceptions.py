from typing import Optional
from datetime import datetime


class LLMError(Exception):
    """Base exception for all LLM-related errors"""

    def __init__(
        self,
        message: str,
        provider: str = "",
        error_type: str = "general",
        retry_after: Optional[float] = None,
        original_error: Optional[Exception] = None
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.error_type = error_type
        self.retry_after = retry_after
        self.original_error = original_error
        self.timestamp = datetime.now()

    def __str__(self):
        if self.provider:
            return f"[{self.provider}] {self.error_type}: {self.message}"
        return f"{self.error_type}: {self.message}"


class LLMAPIError(LLMError):
    """The provider answered with an error or the retries ran out"""
    pass


class LLMAuthenticationError(LLMError):
    """No API key, or the provider rejected it"""
    pass


class LLMRateLimitError(LLMError):
    """Rate limit exceeded; ``retry_after`` holds the server hint in seconds"""
    pass


class LLMValidationError(LLMError):
    """The response could not be parsed into the expected shape"""
    pass


class LLMTimeoutError(LLMError):
    """Request timed out"""
    pass


class LLMContentPolicyError(LLMAPIError):
    """The prompt was refused by the provider's safety system (typically image prompts)"""
    pass
