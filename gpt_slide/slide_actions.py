"""Operations exposed to the user on an open presentation."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from pptx import Presentation

from .audit import AuditTrail
from .exceptions import InvalidSelectionError
from .markdown_parser import parse_markdown_to_slides
from .pptx_renderer import SlideDeckRenderer
from .settings import Settings
from .slide_generation import (
    Creativity,
    ImageGenerator,
    ImagePromptGenerator,
    SlideOutlineGenerator,
    TextGenerator,
)
from .slide_models import SlideDeck

LOGGER = logging.getLogger(__name__)


@dataclass
class SlideSelection:
    """Shapes the user picked on one slide."""

    slide_index: Optional[int]
    shape_ids: Sequence[int] = field(default_factory=list)


class SlideActions:
    """Glue between the generation services and the renderer."""

    def __init__(
        self,
        llm_client=None,
        *,
        renderer: Optional[SlideDeckRenderer] = None,
        settings: Optional[Settings] = None,
        audit: Optional[AuditTrail] = None,
    ) -> None:
        self.llm_client = llm_client
        self.renderer = renderer or SlideDeckRenderer()
        self.settings = settings or Settings()
        self.audit = audit or AuditTrail(self.settings.audit_log_path)

    # ------------------------------------------------------------------
    # Slide creation
    # ------------------------------------------------------------------
    def create_slides_from_prompt(
        self,
        presentation: Presentation,
        prompt: str,
        num_pages: int,
        creativity: Union[Creativity, str] = Creativity.MEDIUM,
        *,
        active_slide_index: Optional[int] = None,
    ) -> SlideDeck:
        generator = SlideOutlineGenerator(self.llm_client, audit=self.audit)
        deck = generator.generate_outline(prompt, num_pages, creativity)
        self.renderer.render_deck(presentation, deck, after_index=active_slide_index)
        return deck

    def create_slides_from_markdown(
        self,
        presentation: Presentation,
        markdown: str,
        *,
        active_slide_index: Optional[int] = None,
    ) -> SlideDeck:
        deck = parse_markdown_to_slides(markdown)
        self.renderer.render_deck(presentation, deck, after_index=active_slide_index)
        return deck

    # ------------------------------------------------------------------
    # Editing helpers
    # ------------------------------------------------------------------
    def generate_text_in_selection(
        self,
        presentation: Presentation,
        selection: Optional[SlideSelection],
        instruction: str,
        creativity: Union[Creativity, str] = Creativity.MEDIUM,
    ) -> int:
        """Rewrite every selected text shape and table body cell.

        Returns the number of text frames replaced. The selection is
        validated before anything is sent to the LLM.
        """

        targets = self._resolve_text_targets(presentation, selection)
        generator = TextGenerator(self.llm_client, audit=self.audit)
        for text_frame in targets:
            content = generator.generate(f"{instruction}\n{text_frame.text}", creativity)
            text_frame.text = content
        return len(targets)

    def generate_image_in_slide(
        self, presentation: Presentation, slide_index: int, image_caption: str = ""
    ):
        slide = _get_slide(presentation, slide_index)
        all_text = self.renderer.collect_text_box_text(slide)
        prompt = ImagePromptGenerator(
            self.llm_client,
            max_words=self.settings.image_max_words,
            temperature=self.settings.image_temperature,
            audit=self.audit,
        ).build_prompt(all_text)
        blob = ImageGenerator(self.llm_client, model_name=self.settings.image_model).generate(
            prompt, image_caption
        )
        return self.renderer.insert_image(slide, blob)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _resolve_text_targets(
        self, presentation: Presentation, selection: Optional[SlideSelection]
    ) -> List:
        if selection is None or not selection.shape_ids:
            raise InvalidSelectionError("Select an object that contains text.")
        slide = _get_slide(presentation, selection.slide_index)
        wanted = set(selection.shape_ids)

        targets = []
        for shape in slide.shapes:
            if shape.shape_id not in wanted:
                continue
            if shape.has_text_frame:
                targets.append(shape.text_frame)
            elif getattr(shape, "has_table", False):
                # Row 0 is treated as the header and left untouched.
                for row in list(shape.table.rows)[1:]:
                    targets.extend(cell.text_frame for cell in row.cells)
            else:
                LOGGER.debug("Ignoring non-text shape %s", shape.shape_id)

        if not targets:
            raise InvalidSelectionError(
                "Select an object that contains text.", slide_index=selection.slide_index
            )
        return targets


def _get_slide(presentation: Presentation, slide_index: Optional[int]):
    if slide_index is None or not 0 <= slide_index < len(presentation.slides):
        raise InvalidSelectionError("No current slide.", slide_index=slide_index)
    return presentation.slides[slide_index]
