"""Audit trail of every request sent to and response received from the LLM."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

AUDIT_LOGGER_NAME = "gpt_slide.audit"
AUDIT_FORMAT = "%(asctime)s: %(message)s"

# Tags pair each request with its response.
OUTLINE_REQUEST, OUTLINE_RESPONSE, OUTLINE_ERROR = "REQ_1", "RES_1", "ERR_1"
IMAGE_PROMPT_REQUEST, IMAGE_PROMPT_RESPONSE = "REQ_2", "RES_2"
TEXT_REQUEST, TEXT_RESPONSE = "REQ_3", "RES_3"


class AuditTrail:
    """Append tagged messages to the ``gpt_slide.audit`` logger.

    When ``path`` is given the messages are also written to that file, one
    line per entry.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self.path = Path(path) if path is not None else None
        self._handler: Optional[logging.FileHandler] = None
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(self.path, encoding="utf-8")
            self._handler.setFormatter(logging.Formatter(AUDIT_FORMAT))
            self.logger.addHandler(self._handler)
            self.logger.setLevel(logging.INFO)

    def record(self, tag: str, message: str) -> None:
        self.logger.info("[%s] %s", tag, message)

    def close(self) -> None:
        if self._handler is None:
            return
        self.logger.removeHandler(self._handler)
        self._handler.close()
        self._handler = None
