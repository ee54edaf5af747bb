"""Render :class:`SlideDeck` values into a python-pptx presentation."""

from __future__ import annotations

import io
import logging
import re
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.slide import Slide
from pptx.util import Emu, Pt

from .slide_models import SlideDeck, SlideRecord

LOGGER = logging.getLogger(__name__)

TITLE_LAYOUT = ("Title Slide", 0)
BODY_LAYOUT = ("Title and Content", 1)
SECTION_HEADER_LAYOUT = ("Section Header", 2)

CODE_FONT = "Courier"
CODE_LEFT = Pt(200)
CODE_WIDTH = Pt(500)
CODE_DEFAULT_TOP = Pt(100)
CODE_LINE_SPACING = 1.1
CODE_DENSE_THRESHOLD = 20
CODE_FONT_SIZE = Pt(12)
CODE_DENSE_FONT_SIZE = Pt(8)

IMAGE_LEFT = Pt(200)
IMAGE_TOP = Pt(10)
IMAGE_HEIGHT = Pt(300)

_NEWLINES_RE = re.compile(r"\n+")


class SlideDeckRenderer:
    """Create title and body slides in a host presentation."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def render_deck(
        self,
        presentation: Presentation,
        deck: SlideDeck,
        *,
        after_index: Optional[int] = None,
    ) -> List[Slide]:
        """Append ``deck`` and move the new slides right after ``after_index``.

        ``None`` keeps them at the end; an index that does not exist places
        them after the first slide.
        """

        position = resolve_insert_position(len(presentation.slides), after_index)
        added = [self.create_title_slide(presentation, deck.title)]
        for record in deck.slides:
            added.append(self.create_body_slide(presentation, record))
        _move_slides(presentation, added, position)
        LOGGER.info("Inserted %d slides at position %d", len(added), position)
        return added

    def render_to_stream(
        self, deck: SlideDeck, template_path: Optional[Path] = None
    ) -> io.BytesIO:
        """Return a PPTX stream holding only ``deck``."""

        presentation = Presentation(str(template_path) if template_path else None)
        self.render_deck(presentation, deck)
        buffer = io.BytesIO()
        presentation.save(buffer)
        buffer.seek(0)
        return buffer

    def create_title_slide(self, presentation: Presentation, title: str) -> Slide:
        slide = presentation.slides.add_slide(_layout(presentation, TITLE_LAYOUT))
        if slide.shapes.title is not None:
            slide.shapes.title.text = title
        return slide

    def create_body_slide(self, presentation: Presentation, record: SlideRecord) -> Slide:
        layout = SECTION_HEADER_LAYOUT if record.section_header else BODY_LAYOUT
        slide = presentation.slides.add_slide(_layout(presentation, layout))
        if slide.shapes.title is not None:
            slide.shapes.title.text = record.title

        body = _body_placeholder(slide)
        body_top = body.top if body is not None else None
        if record.section_header:
            if body is not None:
                body._element.getparent().remove(body._element)
        elif body is not None:
            text_frame = body.text_frame
            for idx, point in enumerate(record.points):
                paragraph = text_frame.paragraphs[0] if idx == 0 else text_frame.add_paragraph()
                paragraph.text = point
                paragraph.level = 0
        else:
            LOGGER.warning("Layout has no body placeholder; dropped %d points", len(record.points))

        if record.code:
            self.insert_code_block(slide, record.code, top=body_top)
        return slide

    def insert_code_block(self, slide: Slide, code: str, *, top: Optional[int] = None):
        """Add ``code`` as a monospaced text box; blocks of one line are skipped."""

        lines = _NEWLINES_RE.sub("\n", code).split("\n")
        if len(lines) <= 1:
            LOGGER.debug("Skipping single-line code block: %r", code)
            return None

        font_size = CODE_DENSE_FONT_SIZE if len(lines) > CODE_DENSE_THRESHOLD else CODE_FONT_SIZE
        slide_height = slide.part.package.presentation_part.presentation.slide_height or Pt(540)
        top = Emu(top) if top is not None else CODE_DEFAULT_TOP
        height = max(Emu(slide_height - top - Pt(20)), Pt(40))
        textbox = slide.shapes.add_textbox(CODE_LEFT, top, CODE_WIDTH, height)
        text_frame = textbox.text_frame
        text_frame.word_wrap = True
        for idx, line in enumerate(lines):
            paragraph = text_frame.paragraphs[0] if idx == 0 else text_frame.add_paragraph()
            paragraph.text = line
            paragraph.space_after = Pt(0)
            paragraph.line_spacing = CODE_LINE_SPACING
            paragraph.font.size = font_size
            paragraph.font.name = CODE_FONT
            for run in paragraph.runs:
                run.font.size = font_size
                run.font.name = CODE_FONT
        return textbox

    def insert_image(self, slide: Slide, blob: bytes):
        return slide.shapes.add_picture(io.BytesIO(blob), IMAGE_LEFT, IMAGE_TOP, height=IMAGE_HEIGHT)

    def collect_text_box_text(self, slide: Slide) -> str:
        """Concatenate the text of every free text box on ``slide``."""

        texts = []
        for shape in slide.shapes:
            if shape.shape_type == MSO_SHAPE_TYPE.TEXT_BOX and shape.has_text_frame:
                texts.append(shape.text_frame.text + "\n")
        return "".join(texts)

    def render_preview_image(self, pptx_bytes: bytes, *, slide_index: int = 0) -> Optional[bytes]:
        """Return a PNG preview through LibreOffice, or ``None`` when unavailable."""

        soffice_path = _locate_soffice()
        if soffice_path is None:
            return None
        with tempfile.TemporaryDirectory() as tmpdir:
            pptx_path = Path(tmpdir) / "preview.pptx"
            pptx_path.write_bytes(pptx_bytes)
            try:
                subprocess.run(
                    [soffice_path, "--headless", "--convert-to", "png", "--outdir", tmpdir, str(pptx_path)],
                    check=True,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.PIPE,
                    timeout=60,
                )
            except (subprocess.SubprocessError, OSError) as exc:
                LOGGER.warning("Preview conversion failed: %s", exc)
                return None

            png_files = sorted(Path(tmpdir).glob("*.png"))
            if not png_files:
                return None
            index = max(0, min(slide_index, len(png_files) - 1))
            return png_files[index].read_bytes()


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def resolve_insert_position(slide_count: int, after_index: Optional[int]) -> int:
    if after_index is None:
        return slide_count
    if 0 <= after_index < slide_count:
        return after_index + 1
    return min(1, slide_count)


def _layout(presentation: Presentation, choice):
    name, fallback_index = choice
    layout = presentation.slide_layouts.get_by_name(name)
    if layout is None:
        layouts = presentation.slide_layouts
        layout = layouts[min(fallback_index, len(layouts) - 1)]
    return layout


def _body_placeholder(slide: Slide):
    return next(
        (
            shape
            for shape in slide.placeholders
            if shape.placeholder_format.idx != 0 and shape.has_text_frame
        ),
        None,
    )


def _move_slides(presentation: Presentation, slides: Iterable[Slide], position: int) -> None:
    id_list = presentation.slides._sldIdLst
    entries = {int(entry.id): entry for entry in list(id_list)}
    moving = [entries[slide.slide_id] for slide in slides]
    for entry in moving:
        id_list.remove(entry)
    for offset, entry in enumerate(moving):
        id_list.insert(position + offset, entry)


def _locate_soffice() -> Optional[str]:
    found = shutil.which("soffice")
    if found:
        return found
    mac_path = Path("/Applications/LibreOffice.app/Contents/MacOS/soffice")
    return str(mac_path) if mac_path.exists() else None
