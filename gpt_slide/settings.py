"""Runtime configuration loaded from ``.env`` and the process environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_OPENAI_MODEL = "gpt-3.5-turbo-16k"
DEFAULT_IMAGE_MODEL = "dall-e-3"


@dataclass(slots=True)
class Settings:
    openai_api_key: Optional[str] = None
    openai_model: str = DEFAULT_OPENAI_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    image_temperature: float = 0.5
    image_max_words: int = 40
    audit_log_path: Optional[Path] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``environ`` (defaults to ``os.environ`` after ``.env``)."""

        if environ is None:
            load_dotenv()
            environ = os.environ

        audit_path = environ.get("GPT_SLIDE_AUDIT_LOG")
        return cls(
            openai_api_key=environ.get("OPENAI_API_KEY") or None,
            openai_model=environ.get("OPENAI_MODEL") or DEFAULT_OPENAI_MODEL,
            image_model=environ.get("OPENAI_IMAGE_MODEL") or DEFAULT_IMAGE_MODEL,
            image_temperature=_read_number(environ, "IMAGE_TEMPERATURE", 0.5, float),
            image_max_words=_read_number(environ, "IMAGE_MAX_WORDS", 40, int),
            audit_log_path=Path(audit_path) if audit_path else None,
        )


def _read_number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
