"""Render generated slides into PPTX binaries with python-pptx."""

from __future__ import annotations

import base64
import binascii
import io
import logging
import time
from pathlib import Path
from typing import Any, Callable, Iterable, List, Mapping, Optional, Sequence, Union

import httpx
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.enum.shapes import MSO_SHAPE
from pptx.enum.text import MSO_ANCHOR, PP_ALIGN
from pptx.util import Inches, Pt

from .slide_models import BrandKit, ExportResult, Slide, SpeakerNotes
from .templates import DEFAULT_TEMPLATE_ID, LayoutKind, Template, get_template

LOGGER = logging.getLogger(__name__)

SLIDE_WIDTH = Inches(16)
SLIDE_HEIGHT = Inches(9)
BLANK_LAYOUT_INDEX = 6

AUTHOR = "pptx-ai-generator"
DEFAULT_TITLE = "AI Generated Presentation"
DEFAULT_SUBJECT = "Generated with AI"

SlideInput = Union[Slide, Mapping[str, Any]]
REMOTE_IMAGE_TIMEOUT_SECONDS = 10.0


def fetch_remote_image(url: str) -> Optional[bytes]:
    try:
        response = httpx.get(url, timeout=REMOTE_IMAGE_TIMEOUT_SECONDS, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPError as exc:
        LOGGER.warning("Could not download slide image %s: %s", url, exc)
        return None
    return response.content


class DeckExporter:
    """Render slides, a brand kit and a template into a downloadable deck."""

    def __init__(
        self,
        *,
        clock: Callable[[], float] = time.time,
        fetch_image: Callable[[str], Optional[bytes]] = fetch_remote_image,
    ) -> None:
        self.clock = clock
        self.fetch_image = fetch_image

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def export(
        self,
        slides: Sequence[SlideInput],
        brand_kit: Optional[BrandKit],
        template: Union[Template, str, None] = None,
        title: Optional[str] = None,
        subtitle: Optional[str] = None,
    ) -> ExportResult:
        """Return an :class:`ExportResult` carrying the PPTX bytes on success."""

        try:
            resolved = _resolve_template(template)
            deck_slides = [_as_slide(item) for item in slides]
            warnings: List[str] = []
            buffer = self.render(deck_slides, brand_kit, resolved, title, subtitle, warnings)
        except Exception as exc:
            LOGGER.warning("Deck export failed: %s", exc)
            return ExportResult(success=False, error=str(exc) or "Unknown error")

        filename = f"presentation-{int(self.clock() * 1000)}.pptx"
        LOGGER.info("Exported %d slides to %s", len(deck_slides), filename)
        return ExportResult(
            success=True,
            filename=filename,
            payload=buffer.getvalue(),
            warnings=warnings,
        )

    def render(
        self,
        slides: Sequence[Slide],
        brand_kit: Optional[BrandKit],
        template: Template,
        title: Optional[str] = None,
        subtitle: Optional[str] = None,
        warnings: Optional[List[str]] = None,
    ) -> io.BytesIO:
        """Build the deck and return it as a rewound stream."""

        warnings = warnings if warnings is not None else []
        presentation = Presentation()
        presentation.slide_width = SLIDE_WIDTH
        presentation.slide_height = SLIDE_HEIGHT

        properties = presentation.core_properties
        properties.author = AUTHOR
        properties.title = title or DEFAULT_TITLE
        properties.subject = subtitle or DEFAULT_SUBJECT

        logo = brand_kit.logo if brand_kit else None
        for index, slide in enumerate(slides):
            if index == 0:
                self._add_title_slide(presentation, slide, template, logo, warnings)
            else:
                self._add_content_slide(presentation, slide, template, logo, warnings)

        buffer = io.BytesIO()
        presentation.save(buffer)
        buffer.seek(0)
        return buffer

    # ------------------------------------------------------------------
    # Slide builders
    # ------------------------------------------------------------------
    def _new_slide(self, presentation, template: Template):
        slide = presentation.slides.add_slide(presentation.slide_layouts[BLANK_LAYOUT_INDEX])
        fill = slide.background.fill
        fill.solid()
        fill.fore_color.rgb = _color(template.colors.background)
        if template.layout is LayoutKind.SIDEBAR:
            bar = slide.shapes.add_shape(MSO_SHAPE.RECTANGLE, 0, 0, Inches(0.3), SLIDE_HEIGHT)
            bar.fill.solid()
            bar.fill.fore_color.rgb = _color(template.colors.accent)
            bar.line.fill.background()
        return slide

    def _add_title_slide(self, presentation, slide: Slide, template: Template, logo, warnings) -> None:
        target = self._new_slide(presentation, template)
        if logo:
            self._add_picture(target, logo, Inches(0.5), Inches(0.3), Inches(1.5), Inches(1.5), warnings)

        _add_text(
            target, slide.title,
            Inches(1.5), Inches(2.5), Inches(13), Inches(2),
            size=54, bold=True, color=template.colors.title,
            font=template.fonts.title, align=PP_ALIGN.CENTER,
        )
        if slide.bullets:
            _add_text(
                target, slide.bullets[0],
                Inches(1), Inches(5), Inches(14), Inches(1.5),
                size=28, color=template.colors.accent,
                font=template.fonts.body, align=PP_ALIGN.CENTER,
            )
        _write_notes(target, slide.speaker_notes)

    def _add_content_slide(self, presentation, slide: Slide, template: Template, logo, warnings) -> None:
        target = self._new_slide(presentation, template)
        if logo and template.layout is not LayoutKind.MINIMAL:
            self._add_picture(target, logo, Inches(14.5), Inches(0.3), Inches(1), Inches(1), warnings)

        _add_text(
            target, slide.title,
            Inches(0.5), Inches(0.5), Inches(13), Inches(0.8),
            size=44, bold=True, color=template.colors.title, font=template.fonts.title,
        )

        top = Inches(1.5)
        has_image = bool(slide.image_url) and self._add_picture(
            target, slide.image_url, Inches(0.5), top, Inches(7.5), Inches(6), warnings
        )
        if has_image:
            _add_bullets(target, slide.bullets, Inches(8.2), top, Inches(7), Inches(6), template)
        else:
            _add_bullets(target, slide.bullets, Inches(0.5), top, Inches(15), Inches(6), template)
        _write_notes(target, slide.speaker_notes)

    def _add_picture(self, slide, source: str, left, top, width, height, warnings: List[str]) -> bool:
        if source.startswith(("http://", "https://")):
            payload = self.fetch_image(source)
            image = io.BytesIO(payload) if payload else None
        else:
            image = _image_source(source)
        if image is None:
            warnings.append(f"Skipped unavailable image: {source[:60]}")
            return False
        try:
            slide.shapes.add_picture(image, left, top, width, height)
        except Exception as exc:
            LOGGER.debug("Could not embed image: %s", exc)
            warnings.append(f"Could not embed image: {exc}")
            return False
        return True


# ----------------------------------------------------------------------
# Helper functions
# ----------------------------------------------------------------------

def format_speaker_notes(notes: Optional[SpeakerNotes]) -> str:
    """Render speaker notes as plain text for the notes page."""

    if notes is None:
        return ""
    sections = []
    if notes.script:
        sections.append(f"SCRIPT:\n{notes.script}\n\n")
    if notes.duration:
        sections.append(f"Duration: {notes.duration}\n\n")
    if notes.tips:
        sections.append("TIPS:\n" + "\n".join(f"• {tip}" for tip in notes.tips) + "\n\n")
    if notes.key_points:
        sections.append("KEY POINTS:\n" + "\n".join(f"• {point}" for point in notes.key_points) + "\n")
    return "".join(sections)


def _write_notes(slide, notes: Optional[SpeakerNotes]) -> None:
    text = format_speaker_notes(notes)
    if text:
        slide.notes_slide.notes_text_frame.text = text


def _add_text(slide, text, left, top, width, height, *, size, color, font, bold=False, align=PP_ALIGN.LEFT):
    box = slide.shapes.add_textbox(left, top, width, height)
    frame = box.text_frame
    frame.word_wrap = True
    paragraph = frame.paragraphs[0]
    paragraph.alignment = align
    run = paragraph.add_run()
    run.text = text
    _style(run.font, size=size, color=color, font=font, bold=bold)
    return box


def _add_bullets(slide, bullets: Iterable[str], left, top, width, height, template: Template) -> None:
    box = slide.shapes.add_textbox(left, top, width, height)
    frame = box.text_frame
    frame.word_wrap = True
    frame.vertical_anchor = MSO_ANCHOR.TOP
    for index, bullet in enumerate(bullets):
        paragraph = frame.paragraphs[0] if index == 0 else frame.add_paragraph()
        paragraph.alignment = PP_ALIGN.LEFT
        paragraph.level = 0
        run = paragraph.add_run()
        run.text = f"• {bullet}"
        _style(run.font, size=18, color=template.colors.text, font=template.fonts.body)


def _image_source(source: str) -> Union[io.BytesIO, str, None]:
    if source.startswith("data:"):
        _, _, encoded = source.partition(",")
        try:
            return io.BytesIO(base64.b64decode(encoded, validate=True))
        except (binascii.Error, ValueError):
            return None
    path = Path(source)
    try:
        return str(path) if path.is_file() else None
    except OSError:
        return None


def _style(font_obj, *, size: int, color: str, font: str, bold: bool = False) -> None:
    font_obj.size = Pt(size)
    font_obj.bold = bold
    font_obj.name = _primary_font(font)
    font_obj.color.rgb = _color(color)


def _primary_font(stack: str) -> str:
    """First family of a CSS-style font stack."""

    return stack.split(",")[0].strip() or "Helvetica"


def _color(value: str) -> RGBColor:
    try:
        return RGBColor.from_string(value.lstrip("#").upper())
    except ValueError:
        LOGGER.debug("Invalid color %r, using black", value)
        return RGBColor(0, 0, 0)


def _resolve_template(template: Union[Template, str, None]) -> Template:
    if isinstance(template, Template):
        return template
    resolved = get_template(template or DEFAULT_TEMPLATE_ID)
    if resolved is None:
        raise ValueError(f"Unknown template: {template}")
    return resolved


def _as_slide(item: SlideInput) -> Slide:
    return item if isinstance(item, Slide) else Slide.from_dict(dict(item))
