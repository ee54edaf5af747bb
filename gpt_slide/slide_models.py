"""Data models representing a generated slide deck."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

DEFAULT_DECK_TITLE = "Title"
PLACEHOLDER_SLIDE_TITLE = "Content"


@dataclass(slots=True)
class SlideRecord:
    """A single body slide: title, bullet points and an optional code block."""

    title: str
    points: List[str] = field(default_factory=list)
    code: Optional[str] = None

    @property
    def section_header(self) -> bool:
        """Slides without points are rendered with a title-only layout."""

        return not self.points

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "title": self.title,
            "points": list(self.points),
            "sectionHeader": self.section_header,
        }
        if self.code:
            payload["code"] = self.code
        return payload

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlideRecord":
        points: List[str] = []
        code = data.get("code") or None
        for item in data.get("points") or []:
            # The model occasionally nests code inside the points array.
            if isinstance(item, dict):
                nested = item.get("code")
                if nested:
                    code = f"{code}\n\n{nested}" if code else nested
                continue
            points.append(str(item))
        return cls(
            title=str(data.get("title") or ""),
            points=points,
            code=code,
        )


@dataclass(slots=True)
class SlideDeck:
    """Deck title plus the ordered body slides that follow the title slide."""

    title: str = DEFAULT_DECK_TITLE
    slides: List[SlideRecord] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "slides": [slide.to_dict() for slide in self.slides],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SlideDeck":
        slides = [
            SlideRecord.from_dict(item)
            for item in data.get("slides") or []
            if isinstance(item, dict)
        ]
        return cls(
            title=str(data.get("title") or DEFAULT_DECK_TITLE),
            slides=slides,
        )

    def section_headers(self) -> List[SlideRecord]:
        return [slide for slide in self.slides if slide.section_header]
