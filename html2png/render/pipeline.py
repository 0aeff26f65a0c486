"""
Render pipeline: the sequenced browser steps that turn a RenderRequest into
PNG bytes on an already-acquired session.

    Created -> ViewportSet -> ContentLoaded -> [StyleInjected] -> Settled -> Captured
                  any step failure ----------------------------------------> Failed

Each step maps its own failures to an ErrorKind. The first failure stops the
run; no partial image is ever returned and no step is retried.
"""

import logging
import time
from enum import Enum

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from ..config import Settings, get_settings
from .errors import ErrorKind, RenderError
from .request import RenderRequest
from .session import BrowserSession

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    CREATED = "Created"
    VIEWPORT_SET = "ViewportSet"
    CONTENT_LOADED = "ContentLoaded"
    STYLE_INJECTED = "StyleInjected"
    SETTLED = "Settled"
    CAPTURED = "Captured"
    FAILED = "Failed"


class RenderPipeline:
    """Stateless step runner; safe to share between concurrent requests."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    async def run(self, session: BrowserSession, request: RenderRequest) -> bytes:
        """
        Execute all steps against ``session.page``.

        Returns:
            PNG bytes of the full page, or of the first element matching
            ``request.selector`` when one is given.

        Raises:
            RenderError: with the kind of the step that failed.
        """
        start = time.monotonic()
        page = session.page
        self._advance(session, PipelineState.CREATED)

        try:
            await self._set_viewport(page, request)
            self._advance(session, PipelineState.VIEWPORT_SET)

            await self._load_content(page, request)
            self._advance(session, PipelineState.CONTENT_LOADED)

            if request.css and request.css.strip():
                await self._inject_css(page, request.css)
                self._advance(session, PipelineState.STYLE_INJECTED)

            await self._settle(page)
            self._advance(session, PipelineState.SETTLED)

            image = await self._capture(page, request.selector)
            self._advance(session, PipelineState.CAPTURED)
        except Exception:
            self._advance(session, PipelineState.FAILED)
            raise

        logger.info(
            "[pipeline] Captured %d bytes (%s, %dx%d@%sx) in %dms",
            len(image),
            f"selector={request.selector!r}" if request.selector else "full page",
            request.viewport.width, request.viewport.height, request.viewport.device_scale_factor,
            (time.monotonic() - start) * 1000,
        )
        return image

    @staticmethod
    def _advance(session: BrowserSession, state: PipelineState) -> None:
        logger.debug("[pipeline] %s -> %s", getattr(session.state, "value", None), state.value)
        session.state = state

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _set_viewport(self, page, request: RenderRequest) -> None:
        viewport = request.viewport
        try:
            await page.set_viewport_size({"width": viewport.width, "height": viewport.height})
        except Exception as e:
            raise RenderError(ErrorKind.VIEWPORT_FAILURE, f"Failed to set viewport: {e}") from e

    async def _load_content(self, page, request: RenderRequest) -> None:
        timeout_ms = self.settings.render_load_timeout_ms
        try:
            await page.set_content(request.html, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise RenderError(
                ErrorKind.LOAD_TIMEOUT, f"Content did not finish loading within {timeout_ms}ms: {e}",
            ) from e
        except Exception as e:
            raise RenderError(ErrorKind.LOAD_FAILURE, f"Failed to load HTML content: {e}") from e

    async def _inject_css(self, page, css: str) -> None:
        try:
            await page.add_style_tag(content=css)
        except Exception as e:
            raise RenderError(ErrorKind.STYLE_INJECTION_FAILURE, f"Failed to inject CSS: {e}") from e

    async def _settle(self, page) -> None:
        # Fixed pause for style/layout recalculation; Playwright has no
        # "layout stable" signal for arbitrary documents.
        delay_ms = self.settings.render_settle_delay_ms
        if delay_ms > 0:
            await page.wait_for_timeout(delay_ms)

    async def _capture(self, page, selector: str | None) -> bytes:
        if selector:
            image = await self._capture_element(page, selector)
        else:
            try:
                image = await page.screenshot(type="png", full_page=True, omit_background=False)
            except Exception as e:
                raise RenderError(ErrorKind.CAPTURE_FAILURE, f"Screenshot failed: {e}") from e

        if not image:
            raise RenderError(ErrorKind.CAPTURE_FAILURE, "Screenshot returned no image data")
        return image

    async def _capture_element(self, page, selector: str) -> bytes:
        # Any failure here is about the caller's selector: bad syntax, no
        # match, or a match that is hidden / has no box to capture.
        try:
            element = await page.query_selector(selector)
        except PlaywrightError as e:
            raise RenderError(
                ErrorKind.SELECTOR_NOT_FOUND, f'Invalid selector "{selector}": {e}', selector=selector,
            ) from e
        if element is None:
            raise RenderError(
                ErrorKind.SELECTOR_NOT_FOUND,
                f'Element with selector "{selector}" not found',
                selector=selector,
            )

        timeout_ms = self.settings.render_element_capture_timeout_ms
        try:
            return await element.screenshot(type="png", omit_background=False, timeout=timeout_ms)
        except Exception as e:
            raise RenderError(
                ErrorKind.SELECTOR_NOT_FOUND,
                f'Element with selector "{selector}" could not be captured: {e}',
                selector=selector,
            ) from e
