"""
Render service: validate -> acquire session -> run pipeline -> release.

The two ``handle_*`` entry points never raise. Every outcome, including
unexpected faults, comes back as a RenderResult for the HTTP layer to
serialize. Server faults are logged here; client faults are not incidents
and are only noted at info level.
"""

import logging
from dataclasses import dataclass
from typing import Any

from ..config import Settings, get_settings
from .errors import ErrorKind, RenderServiceError, ValidationError, is_client_fault
from .pipeline import RenderPipeline
from .request import RequestKind, validate
from .session import SessionFactory, open_session

logger = logging.getLogger(__name__)

PNG_MIME_TYPE = "image/png"


@dataclass(frozen=True)
class RenderFailure:
    kind: ErrorKind
    message: str

    @property
    def client_fault(self) -> bool:
        return is_client_fault(self.kind)


@dataclass(frozen=True)
class RenderResult:
    """Either image bytes + mime type, or a failure. Never both."""
    image_bytes: bytes | None = None
    mime_type: str | None = None
    error: RenderFailure | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, image_bytes: bytes) -> "RenderResult":
        return cls(image_bytes=image_bytes, mime_type=PNG_MIME_TYPE)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str) -> "RenderResult":
        return cls(error=RenderFailure(kind=kind, message=message))


class RenderService:
    """
    Orchestrates one self-contained render per call.

    Args:
        settings: Configuration; defaults to the cached process settings.
        session_factory: ``async (settings, viewport) -> session``; defaults
            to launching a real Chromium via BrowserSession.acquire.
        pipeline: Step runner; defaults to RenderPipeline(settings).
    """

    def __init__(
        self,
        settings: Settings | None = None,
        session_factory: SessionFactory | None = None,
        pipeline: RenderPipeline | None = None,
    ):
        self.settings = settings or get_settings()
        self.session_factory = session_factory
        self.pipeline = pipeline or RenderPipeline(self.settings)

    async def handle_raw_render(self, body: bytes | str | None) -> RenderResult:
        """Render a raw HTML body with the default viewport, full page."""
        return await self._handle(RequestKind.RAW, body)

    async def handle_structured_render(self, payload: Any) -> RenderResult:
        """Render a parsed ``{html, css?, selector?, viewport?}`` payload."""
        return await self._handle(RequestKind.STRUCTURED, payload)

    async def _handle(self, kind: RequestKind, raw_input: Any) -> RenderResult:
        try:
            request = validate(kind, raw_input, self.settings)
        except ValidationError as e:
            logger.info("[service] Rejected %s request: %s (%s)", kind.value, e.kind.value, e.message)
            return RenderResult.failure(e.kind, e.message)

        try:
            async with open_session(self.settings, request.viewport, self.session_factory) as session:
                image = await self.pipeline.run(session, request)
        except RenderServiceError as e:
            if e.client_fault:
                logger.info("[service] %s render rejected: %s (%s)", kind.value, e.kind.value, e.message)
            else:
                logger.error("[service] %s render failed: %s: %s", kind.value, e.kind.value, e.message)
            return RenderResult.failure(e.kind, e.message)
        except Exception as e:
            logger.error("[service] Unexpected error rendering HTML to PNG: %s", e, exc_info=True)
            return RenderResult.failure(ErrorKind.INTERNAL_ERROR, f"Failed to render HTML to PNG: {e}")

        return RenderResult.success(image)
