"""Built-in deck templates and brand-kit application."""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional

from .slide_models import BrandColors


class LayoutKind(str, Enum):
    STANDARD = "standard"
    SIDEBAR = "sidebar"
    MINIMAL = "minimal"


@dataclass(frozen=True, slots=True)
class TemplateColors:
    background: str
    title: str
    text: str
    accent: str


@dataclass(frozen=True, slots=True)
class TemplateFonts:
    title: str
    body: str


@dataclass(frozen=True, slots=True)
class Template:
    id: str
    name: str
    description: str
    preview: str
    colors: TemplateColors
    fonts: TemplateFonts
    layout: LayoutKind

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "preview": self.preview,
            "colors": {
                "background": self.colors.background,
                "title": self.colors.title,
                "text": self.colors.text,
                "accent": self.colors.accent,
            },
            "fonts": {"title": self.fonts.title, "body": self.fonts.body},
            "layout": self.layout.value,
        }


PROFESSIONAL = Template(
    id="professional",
    name="Professional",
    description="Corporate template with clean design and emphasis on content",
    preview=(
        "Classic corporate design with navy blue primary, white backgrounds, and clear "
        "typography. Perfect for business presentations."
    ),
    colors=TemplateColors(background="#ffffff", title="#1e3a8a", text="#1f2937", accent="#3b82f6"),
    fonts=TemplateFonts(title="Helvetica, Arial, sans-serif", body="Segoe UI, Tahoma, sans-serif"),
    layout=LayoutKind.STANDARD,
)

MODERN = Template(
    id="modern",
    name="Modern",
    description="Contemporary design with vibrant colors and dynamic layout",
    preview=(
        "Trendy modern template with gradient backgrounds, bold typography, and accent "
        "colors. Ideal for tech and startup presentations."
    ),
    colors=TemplateColors(background="#f8fafc", title="#0f172a", text="#334155", accent="#06b6d4"),
    fonts=TemplateFonts(title="Inter, -apple-system, sans-serif", body="Inter, -apple-system, sans-serif"),
    layout=LayoutKind.SIDEBAR,
)

MINIMAL = Template(
    id="minimal",
    name="Minimal",
    description="Minimalist design focusing on content with whitespace",
    preview=(
        "Clean and minimal design with generous whitespace, single color accents, and "
        "elegant typography. Best for academic or creative presentations."
    ),
    colors=TemplateColors(background="#fafafa", title="#000000", text="#555555", accent="#666666"),
    fonts=TemplateFonts(title="Georgia, serif", body="Lucida Grande, Trebuchet MS, sans-serif"),
    layout=LayoutKind.MINIMAL,
)

TEMPLATES: List[Template] = [PROFESSIONAL, MODERN, MINIMAL]
DEFAULT_TEMPLATE_ID = PROFESSIONAL.id


def get_template(template_id: str) -> Optional[Template]:
    return next((template for template in TEMPLATES if template.id == template_id), None)


def apply_brand_kit(template: Template, brand_colors: BrandColors) -> Template:
    """Return a copy of ``template`` recolored with ``brand_colors``."""

    return replace(
        template,
        colors=TemplateColors(
            background=brand_colors.background,
            title=brand_colors.primary,
            text=brand_colors.text,
            accent=brand_colors.accent,
        ),
    )
