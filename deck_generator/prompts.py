"""Instruction text sent to the model.

Every builder here is a pure string template over its arguments. The field
limits quoted to the model come from :mod:`deck_generator.validation` so the
instructions and the validator cannot drift apart.
"""

from __future__ import annotations

import textwrap

from .validation import (
    BULLET_COUNT,
    BULLET_TEXT,
    IMAGE_PROMPT,
    KEY_POINT_COUNT,
    KEY_POINT_TEXT,
    PRESENTATION_SUBTITLE,
    PRESENTATION_TITLE,
    SCRIPT,
    SLIDE_TITLE,
    TIP_COUNT,
    TIP_TEXT,
)

_RESPONSE_EXAMPLE = """\
{
  "title": "Presentation Title",
  "subtitle": "Tagline or Brief Description",
  "slides": [
    {
      "id": "slide-1",
      "type": "title",
      "title": "Main Topic",
      "bullets": ["Key point 1", "Key point 2", "Key point 3"],
      "speakerNotes": {
        "script": "Welcome everyone... [2-3 paragraphs]",
        "duration": "1min 30s",
        "tips": ["Make eye contact with the room"],
        "keyPoints": ["Establish credibility", "Set expectations early"]
      },
      "imagePrompt": "Description of image for this slide"
    }
  ]
}"""


def build_presentation_prompt(user_prompt: str, num_slides: int) -> str:
    """Return the generation instructions for ``num_slides`` slides about ``user_prompt``."""

    slide_plural = "slide" if num_slides == 1 else "slides"
    last_id = f"slide-{num_slides}"

    sections = [
        "You are an expert presentation designer and content strategist. "
        f"Create a professional, engaging {num_slides}-{slide_plural} presentation "
        "based on the user's request.",
        "",
        f'USER REQUEST: "{user_prompt}"',
        "",
        "CRITICAL REQUIREMENTS:",
        f"1. Generate EXACTLY {num_slides} slides (no more, no less), with ids slide-1 to {last_id} in order",
        '2. Slide types: First slide MUST be "title", last slide MUST be "conclusion", '
        'every slide in between MUST be "content"',
        f"3. Presentation title: {_span(PRESENTATION_TITLE)} characters; "
        f"subtitle: {_span(PRESENTATION_SUBTITLE)} characters",
        f"4. Slide titles: {_span(SLIDE_TITLE)} characters",
        f"5. Include {_span(BULLET_COUNT)} bullets per slide (never more); "
        f"each bullet must be {_span(BULLET_TEXT)} characters (fit in 2 lines max)",
        f"6. Image prompts: {_span(IMAGE_PROMPT)} characters",
        "7. Use professional, data-driven language",
        "",
        "SPEAKER NOTES GUIDELINES:",
        f"- script: {_span(SCRIPT)} characters, natural and conversational (2-3 paragraphs)",
        "- Write as if the presenter is speaking directly to the audience",
        "- Include natural transitions between slides",
        '- duration: realistic speaking time written as "<minutes>min <seconds>s" or "<seconds>s" '
        '(e.g. "1min 30s", typically 1.5-3 min per slide)',
        f"- tips: {_span(TIP_COUNT)} delivery tips, each {_span(TIP_TEXT)} characters",
        f"- keyPoints: {_span(KEY_POINT_COUNT)} key points, each {_span(KEY_POINT_TEXT)} characters",
        "",
        "IMAGE PROMPTS:",
        "- Describe what image would support each slide's message",
        "- Be specific about style, composition, and mood",
        '- Example: "Professional chart showing growth trends with blue and green colors, '
        'clean minimalist design"',
        "",
        "RESPONSE FORMAT: Return ONLY raw valid JSON (no markdown, no code fences, no text "
        "before or after the JSON):",
        _RESPONSE_EXAMPLE,
        "",
        f"Remember: EXACTLY {num_slides} slides. Invalid JSON will cause failure.",
    ]
    return "\n".join(sections)


def build_brand_kit_prompt(brand_description: str) -> str:
    """Ask the model for a palette and fonts matching a brand description."""

    return textwrap.dedent(
        f"""\
        Analyze this brand description and suggest a professional color palette and typography:

        BRAND: "{brand_description}"

        Return ONLY valid JSON:
        {{
          "colors": {{
            "primary": "#HEXcode",
            "secondary": "#HEXcode",
            "accent": "#HEXcode",
            "background": "#HEXcode",
            "text": "#HEXcode"
          }},
          "fonts": {{
            "heading": "Font Name",
            "body": "Font Name"
          }}
        }}"""
    )


def build_image_prompt(slide_title: str, image_prompt: str) -> str:
    """Turn a slide's image prompt into a standalone image-generation brief."""

    return textwrap.dedent(
        f"""\
        Generate a professional presentation slide image for:

        SLIDE: "{slide_title}"
        REQUIREMENTS: "{image_prompt}"

        Make it: professional, clean, modern, suitable for business presentations
        Style: minimalist with strong visual hierarchy
        Color palette: use complementary colors, ensure good contrast
        Resolution: 1920x1080

        Return ONLY the image description prompt suitable for image generation APIs."""
    )


def _span(limits) -> str:
    return f"{limits.min_length}-{limits.max_length}"
