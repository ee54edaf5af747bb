"""Errors raised by slide actions operating on a host presentation."""

from typing import Optional


class GptSlideError(Exception):
    """Base exception for presentation-side failures."""

    def __init__(self, message: str, *, slide_index: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.slide_index = slide_index

    def __str__(self):
        if self.slide_index is None:
            return self.message
        return f"slide {self.slide_index}: {self.message}"


class InvalidSelectionError(GptSlideError):
    """The selection is absent or holds no text shape or table."""
