"""Data models for generated presentations and brand styling."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class SlideType(str, Enum):
    TITLE = "title"
    CONTENT = "content"
    CONCLUSION = "conclusion"


@dataclass(frozen=True, slots=True)
class SpeakerNotes:
    """Delivery notes attached to a single slide."""

    script: str
    duration: str
    tips: Tuple[str, ...]
    key_points: Tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SpeakerNotes":
        return cls(
            script=data.get("script", ""),
            duration=data.get("duration", ""),
            tips=tuple(data.get("tips", [])),
            key_points=tuple(data.get("keyPoints", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "script": self.script,
            "duration": self.duration,
            "tips": list(self.tips),
            "keyPoints": list(self.key_points),
        }


@dataclass(frozen=True, slots=True)
class Slide:
    """A fully validated slide."""

    id: str
    type: SlideType
    title: str
    bullets: Tuple[str, ...]
    speaker_notes: SpeakerNotes
    image_prompt: str
    image_url: Optional[str] = None

    @property
    def number(self) -> int:
        return int(self.id.split("-", 1)[1])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Slide":
        return cls(
            id=data.get("id", ""),
            type=SlideType(data.get("type", SlideType.CONTENT.value)),
            title=data.get("title", ""),
            bullets=tuple(data.get("bullets", [])),
            speaker_notes=SpeakerNotes.from_dict(data.get("speakerNotes", {})),
            image_prompt=data.get("imagePrompt", ""),
            image_url=data.get("imageUrl"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "bullets": list(self.bullets),
            "speakerNotes": self.speaker_notes.to_dict(),
            "imagePrompt": self.image_prompt,
        }
        if self.image_url is not None:
            payload["imageUrl"] = self.image_url
        return payload

    def with_image_url(self, image_url: Optional[str]) -> "Slide":
        return Slide(
            id=self.id,
            type=self.type,
            title=self.title,
            bullets=self.bullets,
            speaker_notes=self.speaker_notes,
            image_prompt=self.image_prompt,
            image_url=image_url,
        )


@dataclass(frozen=True, slots=True)
class PresentationResponse:
    """The complete deck returned by the model."""

    title: str
    subtitle: str
    slides: Tuple[Slide, ...]

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PresentationResponse":
        return cls(
            title=data.get("title", ""),
            subtitle=data.get("subtitle", ""),
            slides=tuple(Slide.from_dict(item) for item in data.get("slides", [])),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "subtitle": self.subtitle,
            "slides": [slide.to_dict() for slide in self.slides],
        }


@dataclass(frozen=True, slots=True)
class GenerationRequest:
    """Inbound request for a streamed generation."""

    prompt: str
    num_slides: int = 5

    def to_dict(self) -> Dict[str, Any]:
        return {"prompt": self.prompt, "numSlides": self.num_slides}


@dataclass(frozen=True, slots=True)
class RGB:
    r: int
    g: int
    b: int

    def as_tuple(self) -> Tuple[int, int, int]:
        return (self.r, self.g, self.b)


@dataclass(frozen=True, slots=True)
class BrandColors:
    """Five-color brand palette, hex encoded."""

    primary: str
    secondary: str
    accent: str
    background: str
    text: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrandColors":
        return cls(
            primary=data["primary"],
            secondary=data["secondary"],
            accent=data["accent"],
            background=data["background"],
            text=data["text"],
        )

    def to_dict(self) -> Dict[str, str]:
        return {
            "primary": self.primary,
            "secondary": self.secondary,
            "accent": self.accent,
            "background": self.background,
            "text": self.text,
        }


@dataclass(slots=True)
class BrandKit:
    """Brand colors, fonts and an optional logo used when exporting."""

    colors: BrandColors
    heading_font: str = "Helvetica"
    body_font: str = "Helvetica"
    logo: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BrandKit":
        fonts = data.get("fonts", {})
        return cls(
            colors=BrandColors.from_dict(data["colors"]),
            heading_font=fonts.get("heading", "Helvetica"),
            body_font=fonts.get("body", "Helvetica"),
            logo=data.get("logo"),
        )

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "colors": self.colors.to_dict(),
            "fonts": {"heading": self.heading_font, "body": self.body_font},
        }
        if self.logo:
            payload["logo"] = self.logo
        return payload


@dataclass(slots=True)
class ExportResult:
    """Outcome of a deck export."""

    success: bool
    filename: str = ""
    payload: Optional[bytes] = None
    error: Optional[str] = None
    warnings: List[str] = field(default_factory=list)
