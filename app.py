"""Streamlit front end: stream a deck, review speaker notes, export PPTX."""

from __future__ import annotations

import html
import json
import logging
from typing import Any, Dict, List, Optional

import streamlit as st

from LLM_API.exceptions import LLMAuthenticationError, LLMError
from deck_generator.brand_kit import LogoUploadError, prepare_logo, suggest_brand_kit
from deck_generator.color_extraction import ColorExtractionError, extract_brand_colors
from deck_generator.config import Settings, configure_logging, create_llm_client, get_settings
from deck_generator.errors import DeckGenerationError
from deck_generator.image_lookup import ImageLookup, refine_image_prompt
from deck_generator.pptx_renderer import DeckExporter
from deck_generator.slide_models import BrandKit, Slide
from deck_generator.speaker_notes import format_duration, mark_color, parse_script_marks, total_duration
from deck_generator.sse_consumer import StreamingConsumer
from deck_generator.streaming import StreamOrchestrator
from deck_generator.templates import TEMPLATES, apply_brand_kit, get_template
from deck_generator.validation import (
    DEFAULT_NUM_SLIDES,
    MAX_PROMPT_LENGTH,
    MAX_SLIDES,
    MIN_SLIDES,
    RequestValidationError,
    validate_generation_request,
)

LOGGER = logging.getLogger(__name__)

PROVIDER_LABELS = {"gemini": "Gemini", "openai": "OpenAI", "claude": "Claude"}


@st.cache_resource(show_spinner=False)
def load_llm_client(provider: str, model_name: Optional[str]):
    """One client per provider/model for the whole Streamlit process."""

    base = get_settings()
    settings = Settings(
        provider=provider,
        model_name=model_name or None,
        stream_timeout_seconds=base.stream_timeout_seconds,
        unsplash_access_key=base.unsplash_access_key,
        log_level=base.log_level,
    )
    return create_llm_client(settings)


def _instantiate_llm(provider: str, model_name: Optional[str]):
    try:
        return load_llm_client(provider, model_name)
    except LLMAuthenticationError as exc:
        st.error(f"{PROVIDER_LABELS[provider]} could not be initialised: {exc.message}")
        return None


def _stream_generation(llm_client, prompt: str, num_slides: int, timeout: float) -> StreamingConsumer:
    request = validate_generation_request({"prompt": prompt, "numSlides": num_slides})
    consumer = StreamingConsumer()
    consumer.start()

    progress = st.progress(0, text="Generating slides...")
    slide_list = st.empty()
    raw_text = st.expander("Raw model output", expanded=False).empty()

    events = StreamOrchestrator(llm_client, timeout_seconds=timeout).run(request)
    try:
        for event in events:
            consumer.apply(event.to_dict())
            progress.progress(consumer.progress, text=f"{len(consumer.slides)}/{num_slides} slides")
            if event.type.value == "slide":
                slide_list.markdown(
                    "\n".join(f"{index + 1}. **{slide['title']}**" for index, slide in enumerate(consumer.slides))
                )
            raw_text.code(consumer.text[-2000:], language="json")
    finally:
        events.close()
        consumer.finish()
    return consumer


def _brand_kit_sidebar(llm_client) -> Optional[BrandKit]:
    st.header("Brand kit")
    brand_kit: Optional[BrandKit] = st.session_state.get("brand_kit")

    logo_file = st.file_uploader("Logo (PNG, JPEG, SVG)", type=["png", "jpg", "jpeg", "svg"])
    if logo_file is not None and st.button("Extract brand colors"):
        try:
            logo = prepare_logo(logo_file.getvalue(), logo_file.type)
            colors = extract_brand_colors(logo_file.getvalue())
        except (LogoUploadError, ColorExtractionError) as exc:
            st.error(f"{exc.code}: {exc.message}")
        else:
            brand_kit = BrandKit(colors=colors, logo=logo)
            st.session_state["brand_kit"] = brand_kit

    description = st.text_input("...or describe the brand", placeholder="Playful fintech for students")
    if description and llm_client is not None and st.button("Suggest palette"):
        try:
            brand_kit = suggest_brand_kit(llm_client, description)
        except (DeckGenerationError, LLMError) as exc:
            st.error(str(exc))
        else:
            if st.session_state.get("brand_kit") and st.session_state["brand_kit"].logo:
                brand_kit.logo = st.session_state["brand_kit"].logo
            st.session_state["brand_kit"] = brand_kit

    if brand_kit is not None:
        swatches = " ".join(
            f"<span style='background:{value};padding:0 12px;margin-right:4px' title='{name}'></span>"
            for name, value in brand_kit.colors.to_dict().items()
        )
        st.markdown(swatches, unsafe_allow_html=True)
        if st.button("Clear brand kit"):
            st.session_state.pop("brand_kit", None)
            brand_kit = None
    return brand_kit


def _script_html(script: str) -> str:
    return "".join(
        html.escape(part.content) if part.type == "text"
        else f"<b style='color:{mark_color(part.mark)}'>{part.content}</b>"
        for part in parse_script_marks(script)
    )


def _render_slides(slides: List[Dict[str, Any]]) -> None:
    tabs = st.tabs([f"{index + 1}. {slide.get('title', '')[:24]}" for index, slide in enumerate(slides)])
    for tab, slide in zip(tabs, slides):
        with tab:
            st.markdown(f"### {slide.get('title', '')}")
            for bullet in slide.get("bullets", []):
                st.markdown(f"- {bullet}")
            if slide.get("imageUrl"):
                st.image(slide["imageUrl"], caption=slide.get("imagePrompt"))
            else:
                st.caption(f"Image idea: {slide.get('imagePrompt', '')}")

            notes = slide.get("speakerNotes") or {}
            with st.expander(f"Speaker notes ({notes.get('duration', '?')})", expanded=False):
                st.markdown(_script_html(notes.get("script", "")), unsafe_allow_html=True)
                if notes.get("tips"):
                    st.markdown("**Tips**\n" + "\n".join(f"- {tip}" for tip in notes["tips"]))
                if notes.get("keyPoints"):
                    st.markdown("**Key points**\n" + "\n".join(f"- {point}" for point in notes["keyPoints"]))


def main() -> None:
    settings = get_settings()
    configure_logging(settings)

    st.set_page_config(page_title="PPTX AI Generator", layout="wide")
    st.title("PPTX AI Generator")

    st.session_state.setdefault("slides", [])
    st.session_state.setdefault("presentation", None)

    with st.sidebar:
        st.header("Model")
        provider = st.selectbox(
            "Provider",
            list(PROVIDER_LABELS),
            index=list(PROVIDER_LABELS).index(settings.provider),
            format_func=PROVIDER_LABELS.get,
        )
        model_name = st.text_input("Model name (optional)", value=settings.model_name or "")
        llm_client = _instantiate_llm(provider, model_name)

        st.header("Template")
        template_id = st.radio(
            "Template",
            [template.id for template in TEMPLATES],
            format_func=lambda value: get_template(value).name,
        )
        st.caption(get_template(template_id).preview)

        brand_kit = _brand_kit_sidebar(llm_client)
        use_brand_colors = brand_kit is not None and st.checkbox("Use brand colors", value=True)

    prompt = st.text_area(
        "What is the presentation about?",
        max_chars=MAX_PROMPT_LENGTH,
        placeholder="Quarterly results for a renewable energy startup, aimed at investors",
    )
    num_slides = st.slider("Number of slides", MIN_SLIDES, MAX_SLIDES, DEFAULT_NUM_SLIDES)

    if st.button("Generate", type="primary", disabled=llm_client is None):
        try:
            consumer = _stream_generation(llm_client, prompt, num_slides, settings.stream_timeout_seconds)
        except RequestValidationError as exc:
            st.error(f"Invalid request: {exc}")
        else:
            if consumer.error:
                st.error(consumer.error)
            elif consumer.is_partial:
                st.warning(
                    "The final response did not validate; showing the slides received while streaming."
                )
            st.session_state["slides"] = consumer.result_slides()
            st.session_state["presentation"] = consumer.presentation

    slides: List[Dict[str, Any]] = st.session_state["slides"]
    if not slides:
        st.caption("Slides appear here as they are generated.")
        return

    st.divider()
    presentation = st.session_state["presentation"] or {}
    if presentation:
        st.subheader(presentation.get("title", ""))
        st.caption(presentation.get("subtitle", ""))

    models = [Slide.from_dict(slide) for slide in slides]
    st.metric("Estimated talk time", format_duration(total_duration(slide.speaker_notes for slide in models)))

    if settings.unsplash_access_key:
        refine = st.checkbox("Let the model refine image prompts", value=False)
    if settings.unsplash_access_key and st.button("Find stock images"):
        lookup = ImageLookup(settings.unsplash_access_key)
        try:
            slides = [
                slide.with_image_url(
                    lookup.find_image(
                        refine_image_prompt(llm_client, slide) if refine and llm_client else slide.image_prompt
                    ).url
                ).to_dict()
                for slide in models
            ]
        finally:
            lookup.close()
        st.session_state["slides"] = slides

    _render_slides(slides)

    template = get_template(template_id)
    if use_brand_colors:
        template = apply_brand_kit(template, brand_kit.colors)

    result = DeckExporter().export(
        slides, brand_kit, template, presentation.get("title"), presentation.get("subtitle")
    )
    for warning in result.warnings:
        st.caption(warning)
    if result.success:
        st.download_button(
            "Download PPTX",
            data=result.payload,
            file_name=result.filename,
            mime="application/vnd.openxmlformats-officedocument.presentationml.presentation",
        )
    else:
        st.error(f"PPTX export failed: {result.error}")

    st.download_button(
        "Download slides JSON",
        data=json.dumps({**presentation, "slides": slides}, ensure_ascii=False, indent=2).encode("utf-8"),
        file_name="presentation.json",
        mime="application/json",
    )


if __name__ == "__main__":  # pragma: no cover - Streamlit handles execution
    main()
