"""Brand palette extraction from logo images.

The pixel algorithm works on a flat RGBA byte buffer. Each channel is
integer-divided into 16 buckets, buckets are ranked by frequency (skipping
near-transparent pixels) and the most frequent ones are turned back into
RGB samples. :func:`build_palette` derives a five-color :class:`BrandColors`
from those samples using WCAG luminance and contrast.
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
from collections import Counter
from typing import List, Optional, Sequence, Tuple, Union

from PIL import Image, UnidentifiedImageError

from .errors import ErrorKind
from .slide_models import RGB, BrandColors

LOGGER = logging.getLogger(__name__)

BUCKET_SIZE = 16
ALPHA_THRESHOLD = 128
DEFAULT_SAMPLE_COUNT = 8
MAX_IMAGE_SIZE = (200, 200)

DEFAULT_PRIMARY = RGB(66, 135, 245)
DEFAULT_SECONDARY = RGB(155, 155, 155)
DARK_TEXT = RGB(20, 20, 20)
LIGHT_TEXT = RGB(245, 245, 245)
BACKGROUND_OFFSET = 40
SECONDARY_MIN_CONTRAST = 3.0


class ColorExtractionError(Exception):
    """Image could not be turned into a palette."""

    def __init__(self, code: str, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message

    @property
    def status_code(self) -> int:
        return 400 if self.code == ErrorKind.VALIDATION_ERROR.code else 500

    def to_dict(self):
        return {"code": self.code, "message": self.message}


# ---------------------------------------------------------------------------
# Color math
# ---------------------------------------------------------------------------

def rgb_to_hex(color: RGB) -> str:
    return "#" + "".join(f"{channel:02X}" for channel in color.as_tuple())


def hex_to_rgb(value: str) -> Optional[RGB]:
    text = value[1:] if value.startswith("#") else value
    if len(text) != 6:
        return None
    try:
        return RGB(int(text[0:2], 16), int(text[2:4], 16), int(text[4:6], 16))
    except ValueError:
        return None


def relative_luminance(color: RGB) -> float:
    """WCAG 2.x relative luminance in ``[0, 1]``."""

    def linear(channel: int) -> float:
        value = channel / 255
        if value <= 0.03928:
            return value / 12.92
        return ((value + 0.055) / 1.055) ** 2.4

    return 0.2126 * linear(color.r) + 0.7152 * linear(color.g) + 0.0722 * linear(color.b)


def contrast_ratio(first: RGB, second: RGB) -> float:
    lighter, darker = sorted((relative_luminance(first), relative_luminance(second)), reverse=True)
    return (lighter + 0.05) / (darker + 0.05)


def has_sufficient_contrast(first: RGB, second: RGB, ratio: float = 4.5) -> bool:
    return contrast_ratio(first, second) >= ratio


def average_color(colors: Sequence[RGB]) -> RGB:
    if not colors:
        return RGB(128, 128, 128)
    count = len(colors)
    return RGB(
        round(sum(color.r for color in colors) / count),
        round(sum(color.g for color in colors) / count),
        round(sum(color.b for color in colors) / count),
    )


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_dominant_colors(
    pixels: Union[bytes, bytearray, memoryview],
    k: int = DEFAULT_SAMPLE_COUNT,
    *,
    channels: int = 4,
) -> List[RGB]:
    """Return up to ``k`` dominant colors of a flat pixel buffer, most frequent first.

    ``channels`` is 4 for RGBA (pixels with alpha below the threshold are
    skipped) or 3 for RGB. Buckets with equal counts keep first-seen order.
    """

    if channels not in (3, 4):
        raise ValueError("channels must be 3 (RGB) or 4 (RGBA)")

    data = memoryview(pixels).cast("B") if not isinstance(pixels, bytes) else pixels
    counts: Counter = Counter()
    for offset in range(0, len(data) - channels + 1, channels):
        if channels == 4 and data[offset + 3] < ALPHA_THRESHOLD:
            continue
        counts[(
            data[offset] // BUCKET_SIZE,
            data[offset + 1] // BUCKET_SIZE,
            data[offset + 2] // BUCKET_SIZE,
        )] += 1

    return [
        RGB(r * BUCKET_SIZE, g * BUCKET_SIZE, b * BUCKET_SIZE)
        for (r, g, b), _ in counts.most_common(k)
    ]


def build_palette(samples: Sequence[RGB]) -> BrandColors:
    """Derive a :class:`BrandColors` palette from frequency-ordered samples."""

    if not samples:
        samples = [DEFAULT_PRIMARY]

    primary = samples[0]
    text = LIGHT_TEXT if relative_luminance(primary) < 0.5 else DARK_TEXT

    secondary = samples[1] if len(samples) > 1 else DEFAULT_SECONDARY
    if len(samples) > 2 and not has_sufficient_contrast(primary, secondary, SECONDARY_MIN_CONTRAST):
        secondary = samples[2]

    accent = RGB(255 - primary.r, 255 - primary.g, 255 - primary.b)
    background = RGB(
        min(255, primary.r + BACKGROUND_OFFSET),
        min(255, primary.g + BACKGROUND_OFFSET),
        min(255, primary.b + BACKGROUND_OFFSET),
    )

    return BrandColors(
        primary=rgb_to_hex(primary),
        secondary=rgb_to_hex(secondary),
        accent=rgb_to_hex(accent),
        background=rgb_to_hex(background),
        text=rgb_to_hex(text),
    )


# ---------------------------------------------------------------------------
# Image collaborator
# ---------------------------------------------------------------------------

def decode_image_payload(payload: Union[bytes, str]) -> bytes:
    """Accept raw bytes, a base64 string or a ``data:`` URL."""

    if isinstance(payload, (bytes, bytearray)):
        if not payload:
            raise ColorExtractionError(ErrorKind.VALIDATION_ERROR.code, "Image payload is empty")
        return bytes(payload)

    if not isinstance(payload, str) or len(payload) < 10:
        raise ColorExtractionError(
            ErrorKind.VALIDATION_ERROR.code, "Expected a base64 encoded image of at least 10 characters"
        )
    encoded = payload.split(",", 1)[1] if payload.startswith("data:") and "," in payload else payload
    try:
        return base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise ColorExtractionError(ErrorKind.VALIDATION_ERROR.code, f"Invalid base64 image: {exc}") from exc


def load_rgba_pixels(image_bytes: bytes) -> Tuple[bytes, Tuple[int, int]]:
    """Decode and shrink an image to fit within 200x200, returning RGBA bytes."""

    try:
        with Image.open(io.BytesIO(image_bytes)) as image:
            rgba = image.convert("RGBA")
    except (UnidentifiedImageError, OSError) as exc:
        raise ColorExtractionError("EXTRACTION_ERROR", f"Could not decode image: {exc}") from exc

    rgba.thumbnail(MAX_IMAGE_SIZE)
    return rgba.tobytes(), rgba.size


def extract_brand_colors(payload: Union[bytes, str], k: int = DEFAULT_SAMPLE_COUNT) -> BrandColors:
    """Full pipeline: encoded image in, palette out."""

    image_bytes = decode_image_payload(payload)
    pixels, size = load_rgba_pixels(image_bytes)
    samples = extract_dominant_colors(pixels, k)
    LOGGER.debug("Extracted %d dominant colors from %dx%d image", len(samples), *size)
    return build_palette(samples)
