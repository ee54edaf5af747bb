"""Convert loosely structured outline text into a :class:`SlideDeck`.

Recognised line grammar:

``# text``
    Deck title on first occurrence, afterwards a new slide title.
``## text`` / ``### text``
    Title-only slide (turns into a body slide when bullets follow).
``---``
    Explicit slide break with an empty title.
`````` ``` ``````
    Toggles code capture; the captured text becomes the active slide's code.
``- text`` / ``* text``
    Bullet item; whitespace before the marker is the indent.
anything else
    Plain text, grouped with adjacent bullets.

The parser never fails: every line falls into exactly one category and
malformed structure degrades into extra or merged slides.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional

from .slide_models import (
    DEFAULT_DECK_TITLE,
    PLACEHOLDER_SLIDE_TITLE,
    SlideDeck,
    SlideRecord,
)

LOGGER = logging.getLogger(__name__)

CODE_FENCE = "```"
SEPARATOR = "---"
_HEADING_1_MARKER = "# "
_HEADING_2_OR_3_MARKERS = ("## ", "### ")
_HEADING_PREFIX_RE = re.compile(r"^#{2,3}\s*")
_BULLET_RE = re.compile(r"^(\s*)[-*]\s+(.*)")


# ---------------------------------------------------------------------------
# Line classification
# ---------------------------------------------------------------------------

class LineKind(Enum):
    BLANK = "blank"
    CODE_FENCE = "code_fence"
    HEADING_1 = "heading_1"
    HEADING_2_OR_3 = "heading_2_or_3"
    SEPARATOR = "separator"
    BULLET = "bullet"
    PLAIN_TEXT = "plain_text"


@dataclass(frozen=True, slots=True)
class ClassifiedLine:
    kind: LineKind
    text: str = ""
    indent: int = 0


def classify_line(line: str) -> ClassifiedLine:
    """Tag ``line`` with its category; the first matching rule wins."""

    trimmed = line.strip()
    if not trimmed:
        return ClassifiedLine(LineKind.BLANK)
    if trimmed.startswith(CODE_FENCE):
        return ClassifiedLine(LineKind.CODE_FENCE, line)
    if trimmed.startswith(_HEADING_1_MARKER):
        return ClassifiedLine(
            LineKind.HEADING_1, trimmed[len(_HEADING_1_MARKER):].strip()
        )
    if trimmed.startswith(_HEADING_2_OR_3_MARKERS):
        return ClassifiedLine(
            LineKind.HEADING_2_OR_3, _HEADING_PREFIX_RE.sub("", trimmed).strip()
        )
    if trimmed == SEPARATOR:
        return ClassifiedLine(LineKind.SEPARATOR)

    match = _BULLET_RE.match(line)
    if match:
        return ClassifiedLine(
            LineKind.BULLET, match.group(2).strip(), indent=len(match.group(1))
        )
    return ClassifiedLine(LineKind.PLAIN_TEXT, trimmed)


# ---------------------------------------------------------------------------
# Deck assembly
# ---------------------------------------------------------------------------

class SlideOrigin(Enum):
    """Which structural event established the active slide."""

    HEADING = "heading"
    SECTION = "section"
    BREAK = "break"
    BULLET_HEAD = "bullet_head"
    PLACEHOLDER = "placeholder"


@dataclass(slots=True)
class ActiveSlide:
    record: SlideRecord
    origin: SlideOrigin


class DeckAssembler:
    """Owns the deck title, the committed slides and the active slide.

    A slide is committed the moment it is established, so ``slides`` always
    follows source order. The active slide is the one that receives flat
    content groups and closing code blocks.
    """

    def __init__(self) -> None:
        self.title: Optional[str] = None
        self.slides: List[SlideRecord] = []
        self.active: Optional[ActiveSlide] = None

    @property
    def active_record(self) -> Optional[SlideRecord]:
        return self.active.record if self.active else None

    def open_slide(self, title: str, origin: SlideOrigin) -> SlideRecord:
        record = SlideRecord(title=title)
        self._commit(record)
        self.active = ActiveSlide(record, origin)
        return record

    def attach_code(self, code: str) -> None:
        text = code.strip()
        if not text:
            return
        if self.active is None:
            LOGGER.debug("Discarding code block without an active slide")
            return
        self.active.record.code = text

    def finish(self, *, default_title: str = DEFAULT_DECK_TITLE) -> SlideDeck:
        return SlideDeck(title=self.title or default_title, slides=list(self.slides))

    def _commit(self, record: SlideRecord) -> None:
        if any(existing is record for existing in self.slides):
            return
        self.slides.append(record)


# ---------------------------------------------------------------------------
# Content groups
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ContentItem:
    indent: int
    content: str
    is_plain_text: bool


@dataclass(slots=True)
class ContentGroup:
    """Contiguous run of bullet and plain-text lines awaiting a flush."""

    items: List[ContentItem] = field(default_factory=list)
    placeholder_title: str = PLACEHOLDER_SLIDE_TITLE

    def add(self, line: ClassifiedLine) -> None:
        if line.kind is LineKind.BULLET:
            self.items.append(ContentItem(line.indent, line.text, False))
        else:
            self.items.append(ContentItem(0, line.text, True))

    @property
    def is_hierarchical(self) -> bool:
        return any(not item.is_plain_text and item.indent > 0 for item in self.items)

    def flush(self, assembler: DeckAssembler) -> None:
        if not self.items:
            return
        if self.is_hierarchical:
            self._flush_hierarchical(assembler)
        else:
            self._flush_flat(assembler)
        self.items.clear()

    def _flush_hierarchical(self, assembler: DeckAssembler) -> None:
        # Indent-0 bullets become slide titles; everything else is a point.
        working: Optional[SlideRecord] = None
        for item in self.items:
            if not item.is_plain_text and item.indent == 0:
                working = assembler.open_slide(item.content, SlideOrigin.BULLET_HEAD)
                continue
            if working is None:
                working = assembler.open_slide(
                    self.placeholder_title, SlideOrigin.PLACEHOLDER
                )
            working.points.append(item.content)

    def _flush_flat(self, assembler: DeckAssembler) -> None:
        target = assembler.active_record
        if target is None:
            target = assembler.open_slide(self.placeholder_title, SlideOrigin.PLACEHOLDER)
        target.points.extend(item.content for item in self.items)


# ---------------------------------------------------------------------------
# Mode controller
# ---------------------------------------------------------------------------

class ParserMode(Enum):
    NORMAL = "normal"
    IN_CODE_BLOCK = "in_code_block"


class MarkdownSlideParser:
    """Single-use state machine that turns outline lines into slides."""

    def __init__(
        self,
        *,
        default_title: str = DEFAULT_DECK_TITLE,
        placeholder_title: str = PLACEHOLDER_SLIDE_TITLE,
    ) -> None:
        self.default_title = default_title
        self.mode = ParserMode.NORMAL
        self.assembler = DeckAssembler()
        self.group = ContentGroup(placeholder_title=placeholder_title)
        self._code_lines: List[str] = []

    def feed(self, line: str) -> None:
        classified = classify_line(line)

        if self.mode is ParserMode.IN_CODE_BLOCK:
            if classified.kind is LineKind.CODE_FENCE:
                self._close_code_block()
            else:
                self._code_lines.append(line + "\n")
            return

        kind = classified.kind
        if kind is LineKind.BLANK:
            return
        if kind in (LineKind.BULLET, LineKind.PLAIN_TEXT):
            self.group.add(classified)
            return

        self.group.flush(self.assembler)
        if kind is LineKind.CODE_FENCE:
            self.mode = ParserMode.IN_CODE_BLOCK
            self._code_lines = []
        elif kind is LineKind.HEADING_1:
            if self.assembler.title is None:
                self.assembler.title = classified.text
            else:
                self.assembler.open_slide(classified.text, SlideOrigin.HEADING)
        elif kind is LineKind.HEADING_2_OR_3:
            self.assembler.open_slide(classified.text, SlideOrigin.SECTION)
        elif kind is LineKind.SEPARATOR:
            self.assembler.open_slide("", SlideOrigin.BREAK)

    def feed_lines(self, lines: Iterable[str]) -> None:
        for line in lines:
            self.feed(line)

    def finish(self) -> SlideDeck:
        self.group.flush(self.assembler)
        if self.mode is ParserMode.IN_CODE_BLOCK:
            LOGGER.debug(
                "Dropping unterminated code block (%d lines)", len(self._code_lines)
            )
            self._code_lines = []
            self.mode = ParserMode.NORMAL
        return self.assembler.finish(default_title=self.default_title)

    def _close_code_block(self) -> None:
        self.mode = ParserMode.NORMAL
        self.assembler.attach_code("".join(self._code_lines))
        self._code_lines = []


def parse_markdown_to_slides(markdown: str, **options) -> SlideDeck:
    """Parse outline ``markdown`` into a :class:`SlideDeck`.

    ``options`` are forwarded to :class:`MarkdownSlideParser` and allow the
    deck and placeholder titles to be localised.
    """

    parser = MarkdownSlideParser(**options)
    parser.feed_lines((markdown or "").split("\n"))
    deck = parser.finish()
    LOGGER.debug("Parsed outline into %d slides", len(deck.slides))
    return deck


def deck_to_markdown(deck: SlideDeck) -> str:
    """Serialise ``deck`` into outline text that parses back to the same shape."""

    lines: List[str] = [f"# {deck.title or DEFAULT_DECK_TITLE}"]
    for slide in deck.slides:
        lines.append("")
        lines.append(f"## {slide.title}" if slide.title else SEPARATOR)
        lines.extend(f"- {point}" for point in slide.points)
        if slide.code:
            lines.append(CODE_FENCE)
            lines.append(slide.code)
            lines.append(CODE_FENCE)
    return "\n".join(lines) + "\n"
