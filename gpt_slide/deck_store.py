"""Read and write slide decks as JSON files."""

from __future__ import annotations

import json
from pathlib import Path

from .slide_models import SlideDeck


class SlideDeckStore:
    """Persist :class:`SlideDeck` instances to disk as JSON files."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def load(self) -> SlideDeck:
        if not self.path.exists():
            raise FileNotFoundError(f"Deck JSON not found at {self.path}")
        data = json.loads(self.path.read_text(encoding="utf-8"))
        return SlideDeck.from_dict(data)

    def save(self, deck: SlideDeck) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps(deck.to_dict(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
