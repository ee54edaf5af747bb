"""Draft slides with an LLM or from outline text and render them with python-pptx."""

from .slide_models import SlideDeck, SlideRecord
from .markdown_parser import (
    MarkdownSlideParser,
    classify_line,
    deck_to_markdown,
    parse_markdown_to_slides,
)
from .slide_generation import (
    Creativity,
    ImageGenerator,
    ImagePromptGenerator,
    SlideOutlineGenerator,
    TextGenerator,
)
from .pptx_renderer import SlideDeckRenderer
from .slide_actions import SlideActions, SlideSelection
from .deck_store import SlideDeckStore
from .settings import Settings
from .audit import AuditTrail
from .exceptions import GptSlideError, InvalidSelectionError

__all__ = [
    "SlideDeck",
    "SlideRecord",
    "MarkdownSlideParser",
    "classify_line",
    "deck_to_markdown",
    "parse_markdown_to_slides",
    "Creativity",
    "SlideOutlineGenerator",
    "TextGenerator",
    "ImagePromptGenerator",
    "ImageGenerator",
    "SlideDeckRenderer",
    "SlideActions",
    "SlideSelection",
    "SlideDeckStore",
    "Settings",
    "AuditTrail",
    "GptSlideError",
    "InvalidSelectionError",
]
