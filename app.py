"""Streamlit UI for drafting slides into a PowerPoint file."""

from __future__ import annotations

import io
import json
import textwrap
from typing import Dict, List, Optional

import streamlit as st
from pptx import Presentation

from LLM_API.data_classes import (
    BaseRequest,
    BaseResponse,
    ImageGenerationRequest,
    ImageGenerationResponse,
    StructuredOutputRequest,
    StructuredOutputResponse,
)

from gpt_slide.exceptions import InvalidSelectionError
from gpt_slide.pptx_renderer import SlideDeckRenderer
from gpt_slide.settings import Settings
from gpt_slide.slide_actions import SlideActions, SlideSelection
from gpt_slide.slide_generation import Creativity

STUB_MODE = "Stub (offline)"
OPENAI_MODE = "OpenAI (environment)"
PPTX_MIME = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


def _extract_topic(prompt: str, *, max_width: int = 60) -> str:
    """Return a short, single-line summary of ``prompt``."""

    topic = (prompt or "").strip().replace("\n", " ")
    if not topic:
        return "Untitled"
    return textwrap.shorten(topic, width=max_width, placeholder="…")


class StubLLM:
    """Deterministic offline stand-in for the OpenAI client."""

    model_name = "stub"

    def generate_content(self, request: BaseRequest) -> BaseResponse:
        topic = _extract_topic(request.prompt.splitlines()[-1] if request.prompt else "")
        if request.system_prompt:
            text = f"The prompt is: a calm illustration about {topic}."
        else:
            text = f"{topic} (draft)"
        return BaseResponse(text=text, model_used="stub-text")

    def generate_structured_output(
        self, request: StructuredOutputRequest
    ) -> StructuredOutputResponse:
        topic = _extract_topic(request.prompt)
        payload = {
            "title": topic,
            "slides": [
                {"title": f"{topic}: overview", "points": ["Background", "Goal"]},
                {"title": f"{topic}: next steps", "points": ["Owner", "Deadline"]},
            ],
        }
        return StructuredOutputResponse(
            text=json.dumps(payload, ensure_ascii=False),
            parsed_output=payload,
            model_used="stub-structured",
        )

    def generate_image(self, request: ImageGenerationRequest) -> ImageGenerationResponse:
        return ImageGenerationResponse(
            model_used="stub-image",
            error="Image generation needs the OpenAI mode.",
        )


def _instantiate_llm(choice: str, settings: Settings):
    if choice == OPENAI_MODE:
        try:
            from LLM_API.providers.openai import OpenAIModel

            return OpenAIModel(
                api_key=settings.openai_api_key,
                model_name=settings.openai_model,
                image_model=settings.image_model,
            )
        except Exception as exc:  # pragma: no cover - depends on runtime secrets
            st.warning("Could not initialise the OpenAI client. Check OPENAI_API_KEY.")
            st.text(str(exc))
            return None
    return StubLLM()


def _text_shape_options(presentation: Presentation, slide_index: int) -> Dict[str, int]:
    options: Dict[str, int] = {}
    if not 0 <= slide_index < len(presentation.slides):
        return options
    for shape in presentation.slides[slide_index].shapes:
        if shape.has_text_frame or getattr(shape, "has_table", False):
            label = shape.text_frame.text if shape.has_text_frame else "(table)"
            options[f"{shape.shape_id}: {_extract_topic(label, max_width=40)}"] = shape.shape_id
    return options


def _save(presentation: Presentation) -> bytes:
    buffer = io.BytesIO()
    presentation.save(buffer)
    return buffer.getvalue()


def main() -> None:
    st.set_page_config(page_title="GPT Slide", layout="wide")
    st.title("GPT Slide")

    settings = Settings.from_env()
    st.session_state.setdefault("pptx_bytes", None)
    st.session_state.setdefault("deck", None)

    with st.sidebar:
        st.header("Settings")
        llm_option = st.radio("LLM", (STUB_MODE, OPENAI_MODE), index=0)
        creativity = st.select_slider(
            "Creativity",
            options=[level.value for level in Creativity],
            value=Creativity.MEDIUM.value,
        )
        upload = st.file_uploader("Open a presentation", type="pptx")
        if upload is not None and st.button("Load uploaded file"):
            st.session_state["pptx_bytes"] = upload.getvalue()

    pptx_bytes: Optional[bytes] = st.session_state.get("pptx_bytes")
    presentation = Presentation(io.BytesIO(pptx_bytes)) if pptx_bytes else Presentation()
    slide_count = len(presentation.slides)
    st.caption(f"{slide_count} slides in the current presentation")

    active_index: Optional[int] = None
    if slide_count:
        active_index = int(
            st.number_input("Current slide", min_value=1, max_value=slide_count, value=1)
        ) - 1

    llm_client = _instantiate_llm(llm_option, settings) or StubLLM()
    actions = SlideActions(llm_client, renderer=SlideDeckRenderer(), settings=settings)

    tab_prompt, tab_markdown, tab_text, tab_image = st.tabs(
        ["Slides from prompt", "Slides from outline", "Rewrite text", "Illustrate slide"]
    )

    with tab_prompt:
        prompt = st.text_area("What should the slides explain?", height=140)
        num_pages = st.number_input("Number of slides", min_value=1, max_value=30, value=5)
        if st.button("Create slides", type="primary"):
            if not prompt.strip():
                st.error("Enter a topic first.")
            else:
                try:
                    deck = actions.create_slides_from_prompt(
                        presentation,
                        prompt,
                        int(num_pages),
                        creativity,
                        active_slide_index=active_index,
                    )
                    st.session_state["deck"] = deck.to_dict()
                    st.session_state["pptx_bytes"] = _save(presentation)
                    st.success(f"Added {len(deck.slides) + 1} slides.")
                except Exception as exc:
                    st.error("Slide generation failed.")
                    st.exception(exc)

    with tab_markdown:
        markdown = st.text_area(
            "Outline",
            height=240,
            placeholder="# Deck title\n## Section\n- point\n  - detail",
        )
        if st.button("Convert outline"):
            deck = actions.create_slides_from_markdown(
                presentation, markdown, active_slide_index=active_index
            )
            st.session_state["deck"] = deck.to_dict()
            st.session_state["pptx_bytes"] = _save(presentation)
            st.success(f"Added {len(deck.slides) + 1} slides.")

    with tab_text:
        options = _text_shape_options(presentation, active_index if active_index is not None else -1)
        chosen: List[str] = st.multiselect("Selected objects", list(options))
        instruction = st.text_area("Deep-dive instruction", height=100)
        if st.button("Rewrite selection"):
            selection = SlideSelection(active_index, [options[label] for label in chosen])
            try:
                count = actions.generate_text_in_selection(
                    presentation, selection, instruction, creativity
                )
                st.session_state["pptx_bytes"] = _save(presentation)
                st.success(f"Rewrote {count} text blocks.")
            except InvalidSelectionError as exc:
                st.error(str(exc))
            except Exception as exc:
                st.error("Text generation failed.")
                st.exception(exc)

    with tab_image:
        caption = st.text_input("Image style", value="Anime")
        if st.button("Generate image"):
            try:
                actions.generate_image_in_slide(
                    presentation, active_index if active_index is not None else -1, caption
                )
                st.session_state["pptx_bytes"] = _save(presentation)
                st.success("Image inserted.")
            except InvalidSelectionError as exc:
                st.error(str(exc))
            except Exception as exc:
                st.error("Image generation failed.")
                st.exception(exc)

    st.divider()

    deck_data = st.session_state.get("deck")
    if deck_data:
        st.download_button(
            "Download deck JSON",
            data=json.dumps(deck_data, ensure_ascii=False, indent=2).encode("utf-8"),
            file_name="deck.json",
            mime="application/json",
        )
    if st.session_state.get("pptx_bytes"):
        st.download_button(
            "Download PPTX",
            data=st.session_state["pptx_bytes"],
            file_name="gpt_slide.pptx",
            mime=PPTX_MIME,
        )


if __name__ == "__main__":  # pragma: no cover - Streamlit handles execution
    main()
