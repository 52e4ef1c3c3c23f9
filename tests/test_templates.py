from deck_generator.slide_models import BrandColors
from deck_generator.templates import TEMPLATES, LayoutKind, apply_brand_kit, get_template


def test_builtin_templates():
    assert [template.id for template in TEMPLATES] == ["professional", "modern", "minimal"]
    assert get_template("modern").layout is LayoutKind.SIDEBAR
    assert get_template("minimal").layout is LayoutKind.MINIMAL
    assert get_template("missing") is None


def test_apply_brand_kit_maps_palette_onto_template_colors():
    colors = BrandColors(
        primary="#112233",
        secondary="#445566",
        accent="#EEDDCC",
        background="#394A5B",
        text="#F5F5F5",
    )
    template = get_template("professional")

    branded = apply_brand_kit(template, colors)

    assert branded.colors.title == "#112233"
    assert branded.colors.background == "#394A5B"
    assert branded.colors.text == "#F5F5F5"
    assert branded.colors.accent == "#EEDDCC"
    assert branded.fonts == template.fonts
    assert template.colors.title == "#1e3a8a"


def test_template_to_dict():
    payload = get_template("modern").to_dict()

    assert payload["layout"] == "sidebar"
    assert payload["colors"]["accent"] == "#06b6d4"
