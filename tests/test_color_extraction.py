import base64
import io

import pytest

pytest.importorskip("PIL")
from PIL import Image

from deck_generator.color_extraction import (
    ColorExtractionError,
    average_color,
    build_palette,
    contrast_ratio,
    extract_brand_colors,
    extract_dominant_colors,
    has_sufficient_contrast,
    hex_to_rgb,
    relative_luminance,
    rgb_to_hex,
)
from deck_generator.slide_models import RGB


def _rgba(*pixels):
    return bytes(channel for pixel in pixels for channel in pixel)


def test_solid_color_yields_single_quantised_sample():
    pixels = _rgba(*[(200, 40, 40, 255)] * 50)

    assert extract_dominant_colors(pixels, 8) == [RGB(192, 32, 32)]


def test_transparent_pixels_are_ignored():
    pixels = _rgba(*[(0, 0, 255, 10)] * 30, (255, 255, 255, 255))

    assert extract_dominant_colors(pixels, 8) == [RGB(240, 240, 240)]


def test_samples_are_ordered_by_frequency_with_first_seen_ties():
    pixels = _rgba(
        (16, 16, 16, 255),
        (100, 100, 100, 255),
        (100, 100, 100, 255),
        (250, 0, 0, 255),
    )

    assert extract_dominant_colors(pixels, 3) == [RGB(96, 96, 96), RGB(16, 16, 16), RGB(240, 0, 0)]


def test_k_limits_number_of_samples():
    pixels = _rgba(*[(index * 16, 0, 0, 255) for index in range(10)])

    assert len(extract_dominant_colors(pixels, 4)) == 4


def test_rgb_buffers_are_supported():
    pixels = bytes([32, 64, 96] * 4)

    assert extract_dominant_colors(pixels, 2, channels=3) == [RGB(32, 64, 96)]


def test_palette_for_dark_primary_uses_light_text_and_inverted_accent():
    palette = build_palette([RGB(16, 32, 48)])

    assert palette.primary == "#102030"
    assert palette.secondary == "#9B9B9B"
    assert palette.accent == "#EFDFCF"
    assert palette.background == "#384858"
    assert palette.text == "#F5F5F5"


def test_palette_background_is_never_darker_than_primary():
    for primary in (RGB(0, 0, 0), RGB(240, 240, 240), RGB(66, 135, 245)):
        palette = build_palette([primary])
        assert relative_luminance(hex_to_rgb(palette.background)) >= relative_luminance(primary)


def test_empty_samples_fall_back_to_default_blue():
    palette = build_palette([])

    assert palette.primary == "#4287F5"


def test_low_contrast_secondary_is_replaced_by_third_sample():
    palette = build_palette([RGB(96, 96, 96), RGB(112, 112, 112), RGB(240, 240, 240)])

    assert palette.secondary == "#F0F0F0"


def test_hex_helpers():
    assert rgb_to_hex(RGB(255, 0, 171)) == "#FF00AB"
    assert hex_to_rgb("#ff00ab") == RGB(255, 0, 171)
    assert hex_to_rgb("nothex") is None
    assert contrast_ratio(RGB(0, 0, 0), RGB(255, 255, 255)) == pytest.approx(21.0)
    assert has_sufficient_contrast(RGB(0, 0, 0), RGB(255, 255, 255))
    assert not has_sufficient_contrast(RGB(120, 120, 120), RGB(128, 128, 128))


def test_extract_brand_colors_from_png_data_url():
    image = Image.new("RGBA", (400, 300), (200, 40, 40, 255))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    data_url = "data:image/png;base64," + base64.b64encode(buffer.getvalue()).decode("ascii")

    palette = extract_brand_colors(data_url)

    assert palette.primary == "#C02020"
    assert palette.text == "#F5F5F5"


@pytest.mark.parametrize("payload, code", [("short", "VALIDATION_ERROR"), ("!!!!not-base64!!!!", "VALIDATION_ERROR")])
def test_bad_payload_is_a_validation_error(payload, code):
    with pytest.raises(ColorExtractionError) as excinfo:
        extract_brand_colors(payload)

    assert excinfo.value.code == code
    assert excinfo.value.status_code == 400


def test_undecodable_image_is_an_extraction_error():
    payload = base64.b64encode(b"definitely not an image").decode("ascii")

    with pytest.raises(ColorExtractionError) as excinfo:
        extract_brand_colors(payload)

    assert excinfo.value.code == "EXTRACTION_ERROR"
    assert excinfo.value.status_code == 500


def test_average_color():
    assert average_color([RGB(0, 0, 0), RGB(255, 101, 10)]) == RGB(128, 50, 5)
    assert average_color([]) == RGB(128, 128, 128)
