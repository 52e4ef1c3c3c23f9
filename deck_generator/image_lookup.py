"""Stock-photo lookup for slide image prompts."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

import httpx

from LLM_API.data_classes import BaseRequest
from LLM_API.exceptions import LLMError

from .prompts import build_image_prompt
from .slide_models import Slide

LOGGER = logging.getLogger(__name__)

UNSPLASH_SEARCH_URL = "https://api.unsplash.com/search/photos"
MAX_KEYWORDS = 5
REQUEST_TIMEOUT_SECONDS = 10.0

STOP_WORDS = frozenset(
    """
    a an the and or but in on at to for of with by from is are was were be been
    being have has had do does did will would could should may might must can
    about as this that these those
    """.split()
)

_NON_WORD = re.compile(r"[^\w-]")


@dataclass(frozen=True, slots=True)
class ImageResult:
    url: Optional[str]
    alt: str

    def to_dict(self):
        return {"url": self.url, "alt": self.alt}


def parse_prompt_keywords(prompt: str) -> List[str]:
    """Pick up to five distinct search keywords from an image prompt."""

    keywords: List[str] = []
    for word in prompt.lower().split():
        cleaned = _NON_WORD.sub("", word)
        if len(cleaned) <= 2 or cleaned in STOP_WORDS or cleaned in keywords:
            continue
        keywords.append(cleaned)
        if len(keywords) == MAX_KEYWORDS:
            break
    return keywords


class ImageLookup:
    """Search Unsplash for a landscape photo matching a prompt.

    Every failure degrades to ``ImageResult(None, prompt)``; slides simply
    render without an image.
    """

    def __init__(self, access_key: Optional[str], http_client: Optional[httpx.Client] = None) -> None:
        self.access_key = access_key
        self._client = http_client

    def find_image(self, prompt: str) -> ImageResult:
        if not self.access_key:
            LOGGER.warning("UNSPLASH_ACCESS_KEY not configured; skipping image lookup")
            return ImageResult(None, prompt)

        keywords = parse_prompt_keywords(prompt)
        if not keywords:
            return ImageResult(None, prompt)

        try:
            photo = self._search(" ".join(keywords))
        except (httpx.HTTPError, ValueError) as exc:
            LOGGER.warning("Unsplash search failed: %s", exc)
            return ImageResult(None, prompt)

        if photo is None:
            return ImageResult(None, prompt)
        alt = photo.get("alt_description") or photo.get("description") or prompt
        return ImageResult(photo.get("urls", {}).get("regular"), alt)

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _search(self, query: str) -> Optional[dict]:
        response = self._http().get(
            UNSPLASH_SEARCH_URL,
            params={
                "query": query,
                "orientation": "landscape",
                "per_page": "1",
                "order_by": "relevant",
            },
            headers={"Authorization": f"Client-ID {self.access_key}"},
        )
        response.raise_for_status()
        results = response.json().get("results") or []
        return results[0] if results else None

    def _http(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(timeout=REQUEST_TIMEOUT_SECONDS)
        return self._client


def refine_image_prompt(llm_client, slide: Slide) -> str:
    """Ask the model for a richer image description; fall back to the slide's prompt."""

    request = BaseRequest(prompt=build_image_prompt(slide.title, slide.image_prompt))
    try:
        response = llm_client.generate_content(request)
    except LLMError as exc:
        LOGGER.warning("Image prompt refinement failed for %s: %s", slide.id, exc)
        return slide.image_prompt
    text = (response.text or "").strip()
    return text or slide.image_prompt
