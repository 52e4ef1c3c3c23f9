"""Brand kit helpers: model-assisted suggestions and logo uploads."""

from __future__ import annotations

import base64
import io
import json
import logging
import re
from typing import Any, Mapping, Optional

from PIL import Image, UnidentifiedImageError

from LLM_API.data_classes import BaseRequest, GenerationConfig

from .errors import DeckGenerationError, ErrorKind
from .prompts import build_brand_kit_prompt
from .slide_models import BrandColors, BrandKit
from .streaming import strip_code_fences

LOGGER = logging.getLogger(__name__)

HEX_COLOR = re.compile(r"#[0-9A-Fa-f]{6}")
MAX_DESCRIPTION_LENGTH = 500
_COLOR_NAMES = ("primary", "secondary", "accent", "background", "text")

# Lower temperature keeps palettes consistent for the same description.
SUGGESTION_CONFIG = GenerationConfig(temperature=0.4, max_output_tokens=1024)


def suggest_brand_kit(llm_client, description: str) -> BrandKit:
    """Ask the model for colors and fonts that fit ``description``.

    Provider failures propagate as :class:`LLM_API.exceptions.LLMError`; an
    unusable answer raises :class:`DeckGenerationError` with
    ``VALIDATION_ERROR``.
    """

    description = description.strip()
    if not description or len(description) > MAX_DESCRIPTION_LENGTH:
        raise DeckGenerationError.of(
            ErrorKind.REQUEST_ERROR,
            f"Brand description must be 1-{MAX_DESCRIPTION_LENGTH} characters",
        )

    response = llm_client.generate_content(
        BaseRequest(prompt=build_brand_kit_prompt(description), config=SUGGESTION_CONFIG)
    )
    try:
        payload = json.loads(strip_code_fences(response.text or ""))
    except json.JSONDecodeError as exc:
        raise DeckGenerationError.of(
            ErrorKind.VALIDATION_ERROR, f"Brand kit response is not valid JSON: {exc}"
        ) from exc

    kit = parse_brand_kit(payload)
    LOGGER.info("Suggested brand kit with primary %s", kit.colors.primary)
    return kit


def parse_brand_kit(payload: Any) -> BrandKit:
    """Validate a ``{colors, fonts}`` object and build a :class:`BrandKit`."""

    if not isinstance(payload, Mapping) or not isinstance(payload.get("colors"), Mapping):
        raise DeckGenerationError.of(ErrorKind.VALIDATION_ERROR, "Brand kit must contain a colors object")

    colors = payload["colors"]
    bad = [
        name for name in _COLOR_NAMES
        if not isinstance(colors.get(name), str) or not HEX_COLOR.fullmatch(colors[name])
    ]
    if bad:
        raise DeckGenerationError.of(
            ErrorKind.VALIDATION_ERROR, f"Invalid hex colors: {', '.join(bad)}"
        )

    fonts = payload.get("fonts") if isinstance(payload.get("fonts"), Mapping) else {}
    return BrandKit(
        colors=BrandColors.from_dict({name: colors[name].upper() for name in _COLOR_NAMES}),
        heading_font=fonts.get("heading") or "Helvetica",
        body_font=fonts.get("body") or "Helvetica",
    )


# ---------------------------------------------------------------------------
# Logo upload
# ---------------------------------------------------------------------------

ALLOWED_LOGO_TYPES = ("image/png", "image/jpeg", "image/svg+xml")
MAX_LOGO_BYTES = 5 * 1024 * 1024
LOGO_MAX_SIZE = (800, 600)


class LogoUploadError(Exception):
    def __init__(self, code: str, message: str, status_code: int = 400) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.status_code = status_code

    def to_dict(self):
        return {"code": self.code, "message": self.message}


def prepare_logo(data: Optional[bytes], content_type: Optional[str]) -> str:
    """Validate an uploaded logo and return it as a ``data:`` URL.

    Raster logos are shrunk to fit 800x600 and re-encoded as PNG; SVG logos
    are passed through untouched.
    """

    if not data:
        raise LogoUploadError("NO_FILE", "No file provided")
    if content_type not in ALLOWED_LOGO_TYPES:
        raise LogoUploadError(
            "INVALID_TYPE", f"Invalid file format. Allowed: PNG, JPEG, SVG. Got: {content_type}"
        )
    if len(data) > MAX_LOGO_BYTES:
        raise LogoUploadError(
            "FILE_TOO_LARGE",
            f"File size exceeds maximum of 5MB. Got: {len(data) / 1024 / 1024:.2f}MB",
        )

    if content_type == "image/svg+xml":
        return "data:image/svg+xml;base64," + base64.b64encode(data).decode("ascii")

    try:
        with Image.open(io.BytesIO(data)) as image:
            image.thumbnail(LOGO_MAX_SIZE)
            buffer = io.BytesIO()
            image.save(buffer, format="PNG", optimize=True)
    except (UnidentifiedImageError, OSError) as exc:
        raise LogoUploadError("UPLOAD_ERROR", str(exc), status_code=500) from exc

    return "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")
