"""HTTP surface: streamed generation, brand kit, export and image endpoints.

Run with ``uvicorn deck_generator.server:app``.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from fastapi import Depends, FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError as BodyValidationError
from fastapi.responses import JSONResponse, Response, StreamingResponse
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from starlette.concurrency import iterate_in_threadpool, run_in_threadpool

from LLM_API.exceptions import LLMAuthenticationError

from .brand_kit import LogoUploadError, prepare_logo
from .color_extraction import ColorExtractionError, extract_brand_colors
from .config import ConfigurationError, Settings, configure_logging, get_llm_client, get_settings
from .errors import ErrorKind, GenerationFailure
from .image_lookup import ImageLookup
from .pptx_renderer import DeckExporter
from .slide_models import BrandKit, Slide
from .streaming import GenerationStream, StreamOrchestrator
from .templates import LayoutKind, Template, TemplateColors, TemplateFonts, get_template
from .validation import (
    DEFAULT_NUM_SLIDES,
    MAX_PROMPT_LENGTH,
    MAX_SLIDES,
    MIN_SLIDES,
    ValidationError,
    validate_generation_request,
)

LOGGER = logging.getLogger(__name__)

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"


# ---------------------------------------------------------------------------
# Request bodies
# ---------------------------------------------------------------------------

class GenerateBody(BaseModel):
    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_LENGTH)
    numSlides: StrictInt = Field(default=DEFAULT_NUM_SLIDES, ge=MIN_SLIDES, le=MAX_SLIDES)


class ExtractColorsBody(BaseModel):
    logoBase64: str = Field(min_length=10, description="Base64 encoded image or data URL")


class TemplateBody(BaseModel):
    id: str
    name: str = ""
    description: str = ""
    preview: str = ""
    colors: Dict[str, str]
    fonts: Dict[str, str]
    layout: LayoutKind = LayoutKind.STANDARD

    def to_template(self) -> Template:
        return Template(
            id=self.id,
            name=self.name,
            description=self.description,
            preview=self.preview,
            colors=TemplateColors(
                background=self.colors.get("background", "#ffffff"),
                title=self.colors.get("title", "#000000"),
                text=self.colors.get("text", "#000000"),
                accent=self.colors.get("accent", "#000000"),
            ),
            fonts=TemplateFonts(
                title=self.fonts.get("title", "Helvetica"),
                body=self.fonts.get("body", "Helvetica"),
            ),
            layout=self.layout,
        )


class ExportBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    slides: List[Dict[str, Any]] = Field(min_length=1)
    brandKit: Optional[Dict[str, Any]] = None
    template: Any = None
    title: Optional[str] = Field(default=None, alias="presentationTitle")
    subtitle: Optional[str] = Field(default=None, alias="presentationSubtitle")


class ImageBody(BaseModel):
    prompt: str = Field(min_length=1, max_length=MAX_PROMPT_LENGTH)


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------

def error_response(failure: GenerationFailure) -> JSONResponse:
    return JSONResponse({"error": failure.to_dict()}, status_code=failure.status_code)


def create_app() -> FastAPI:
    @asynccontextmanager
    async def lifespan(_: FastAPI):
        try:
            configure_logging()
        except ConfigurationError as exc:
            configure_logging(Settings())
            LOGGER.error("Invalid configuration: %s", exc)
        yield

    application = FastAPI(title="PPTX AI Generator", lifespan=lifespan)

    @application.exception_handler(BodyValidationError)
    async def _request_error(request: Request, exc: BodyValidationError) -> JSONResponse:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}"
            for error in exc.errors()
        )
        return error_response(GenerationFailure.of(ErrorKind.REQUEST_ERROR, details or "Invalid request"))

    @application.exception_handler(ConfigurationError)
    async def _configuration_error(request: Request, exc: ConfigurationError) -> JSONResponse:
        LOGGER.error("Invalid configuration: %s", exc)
        return error_response(GenerationFailure.of(ErrorKind.GENERATION_ERROR, str(exc)))

    @application.post("/api/presentations/stream")
    async def stream_presentation(body: GenerateBody, request: Request):
        try:
            generation = validate_generation_request(body.model_dump())
        except ValidationError as exc:
            return error_response(GenerationFailure.of(exc.kind, str(exc)))

        settings = get_settings()
        try:
            llm_client = get_llm_client()
        except LLMAuthenticationError as exc:
            LOGGER.warning("Model client unavailable: %s", exc.message)
            return error_response(GenerationFailure.of(ErrorKind.INVALID_API_KEY, exc.message))

        orchestrator = StreamOrchestrator(llm_client, timeout_seconds=settings.stream_timeout_seconds)
        stream = orchestrator.stream(generation)
        return StreamingResponse(
            _sse_frames(stream, request),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )

    @application.post("/api/brand-kit/extract-colors")
    async def extract_colors(body: ExtractColorsBody):
        try:
            colors = await run_in_threadpool(extract_brand_colors, body.logoBase64)
        except ColorExtractionError as exc:
            LOGGER.warning("Color extraction failed (%s): %s", exc.code, exc.message)
            return JSONResponse({"success": False, "error": exc.to_dict()}, status_code=exc.status_code)
        return {"success": True, "colors": colors.to_dict()}

    @application.post("/api/brand-kit/upload")
    async def upload_logo(file: UploadFile = File(...)):
        data = await file.read()
        try:
            logo = await run_in_threadpool(prepare_logo, data, file.content_type)
        except LogoUploadError as exc:
            return JSONResponse({"success": False, "error": exc.to_dict()}, status_code=exc.status_code)
        return {"success": True, "logo": logo}

    @application.post("/api/presentations/export")
    async def export_presentation(body: ExportBody):
        try:
            slides = [Slide.from_dict(raw) for raw in body.slides]
            brand_kit = BrandKit.from_dict(body.brandKit) if body.brandKit else None
            template = _template_from(body.template)
        except (ValidationError, KeyError, TypeError, ValueError) as exc:
            return error_response(GenerationFailure.of(ErrorKind.REQUEST_ERROR, str(exc)))

        result = await run_in_threadpool(
            DeckExporter().export, slides, brand_kit, template, body.title, body.subtitle
        )
        if not result.success:
            return error_response(GenerationFailure.of(ErrorKind.GENERATION_ERROR, result.error or ""))
        return Response(
            content=result.payload,
            media_type=PPTX_MEDIA_TYPE,
            headers={
                "Content-Disposition": f'attachment; filename="{result.filename}"',
                "Cache-Control": "no-cache, no-store, must-revalidate",
            },
        )

    @application.post("/api/images/generate")
    async def generate_image(body: ImageBody, settings: Settings = Depends(get_settings)):
        lookup = ImageLookup(settings.unsplash_access_key)
        try:
            result = await run_in_threadpool(lookup.find_image, body.prompt)
        finally:
            lookup.close()
        return result.to_dict()

    return application


async def _sse_frames(stream: GenerationStream, request: Request) -> AsyncIterator[str]:
    """Serialise protocol events, pulling the next one only after the previous was sent."""

    try:
        async for event in iterate_in_threadpool(iter(stream)):
            if await request.is_disconnected():
                LOGGER.info("Client disconnected; cancelling generation")
                break
            yield event.to_sse()
    finally:
        stream.close()


def _template_from(raw: Any) -> Optional[Template]:
    if raw is None:
        return None
    if isinstance(raw, str):
        template = get_template(raw)
        if template is None:
            raise ValueError(f"Unknown template: {raw}")
        return template
    return TemplateBody.model_validate(raw).to_template()


app = create_app()
