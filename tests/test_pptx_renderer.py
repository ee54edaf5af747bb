import io

import pytest

pytest.importorskip("pptx")
from pptx import Presentation
from pptx.enum.shapes import MSO_SHAPE_TYPE
from pptx.util import Pt

from gpt_slide.pptx_renderer import SlideDeckRenderer, resolve_insert_position
from gpt_slide.slide_models import SlideDeck, SlideRecord
from tests.llm_stubs import PNG_PIXEL


def _build_deck() -> SlideDeck:
    return SlideDeck(
        title="テストデッキ",
        slides=[
            SlideRecord(title="概要", points=["背景", "目的"]),
            SlideRecord(title="セクション"),
            SlideRecord(title="コード", points=["例"], code="def f():\n    return 1\n\n\nprint(f())"),
        ],
    )


def _text_boxes(slide):
    return [shape for shape in slide.shapes if shape.shape_type == MSO_SHAPE_TYPE.TEXT_BOX]


def _placeholder_texts(slide):
    return [shape.text_frame.text for shape in slide.placeholders if shape.has_text_frame]


def test_render_to_stream_creates_title_and_body_slides():
    renderer = SlideDeckRenderer()
    stream = renderer.render_to_stream(_build_deck())
    prs = Presentation(io.BytesIO(stream.getvalue()))

    assert len(prs.slides) == 4
    assert prs.slides[0].slide_layout.name == "Title Slide"
    assert prs.slides[0].shapes.title.text == "テストデッキ"
    assert prs.slides[1].slide_layout.name == "Title and Content"
    assert "背景\n目的" in _placeholder_texts(prs.slides[1])


def test_section_header_slide_has_no_body_placeholder():
    prs = Presentation()
    renderer = SlideDeckRenderer()
    slide = renderer.create_body_slide(prs, SlideRecord(title="章"))

    assert slide.slide_layout.name == "Section Header"
    assert slide.shapes.title.text == "章"
    assert [shape.placeholder_format.idx for shape in slide.placeholders] == [0]


def test_code_block_uses_monospaced_text_box():
    prs = Presentation()
    renderer = SlideDeckRenderer()
    slide = renderer.create_body_slide(prs, _build_deck().slides[2])

    boxes = _text_boxes(slide)
    assert len(boxes) == 1
    text_frame = boxes[0].text_frame
    # Consecutive newlines collapse into one.
    assert text_frame.text == "def f():\n    return 1\nprint(f())"
    assert boxes[0].left == Pt(200)
    assert boxes[0].width == Pt(500)
    for paragraph in text_frame.paragraphs:
        assert paragraph.font.name == "Courier"
        assert paragraph.font.size == Pt(12)
        assert paragraph.line_spacing == pytest.approx(1.1)


def test_long_code_block_uses_small_font():
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    code = "\n".join(f"line {i}" for i in range(21))
    textbox = SlideDeckRenderer().insert_code_block(slide, code)

    assert textbox is not None
    assert textbox.text_frame.paragraphs[0].font.size == Pt(8)


def test_single_line_code_block_is_skipped():
    prs = Presentation()
    renderer = SlideDeckRenderer()
    slide = renderer.create_body_slide(prs, SlideRecord(title="x", points=["y"], code="print(1)"))

    assert _text_boxes(slide) == []


def test_render_deck_inserts_after_index():
    prs = Presentation()
    renderer = SlideDeckRenderer()
    renderer.render_deck(prs, SlideDeck(title="First", slides=[SlideRecord("A", ["a"])]))
    renderer.render_deck(prs, SlideDeck(title="Second", slides=[]), after_index=0)

    titles = [slide.shapes.title.text for slide in prs.slides]
    assert titles == ["First", "Second", "A"]


@pytest.mark.parametrize(
    "count, after_index, expected",
    [
        (5, None, 5),
        (5, 2, 3),
        (5, 4, 5),
        (5, 9, 1),
        (5, -1, 1),
        (0, 3, 0),
    ],
)
def test_resolve_insert_position(count, after_index, expected):
    assert resolve_insert_position(count, after_index) == expected


def test_collect_text_box_text_ignores_placeholders():
    prs = Presentation()
    renderer = SlideDeckRenderer()
    slide = renderer.create_body_slide(prs, SlideRecord("Title", ["point"]))
    box = slide.shapes.add_textbox(Pt(10), Pt(10), Pt(100), Pt(20))
    box.text_frame.text = "a sunny beach"

    assert renderer.collect_text_box_text(slide) == "a sunny beach\n"


def test_insert_image_places_picture():
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[6])
    picture = SlideDeckRenderer().insert_image(slide, PNG_PIXEL)

    assert picture.shape_type == MSO_SHAPE_TYPE.PICTURE
    assert picture.left == Pt(200)
    assert picture.top == Pt(10)


def test_render_preview_image_returns_none_without_soffice(monkeypatch):
    renderer = SlideDeckRenderer()
    stream = renderer.render_to_stream(_build_deck())

    monkeypatch.setattr("gpt_slide.pptx_renderer._locate_soffice", lambda: None)
    assert renderer.render_preview_image(stream.getvalue()) is None
