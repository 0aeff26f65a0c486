"""
Browser session: one headless Chromium process and one page, owned by a
single request.

Sessions are never pooled or shared. ``open_session`` is the only way the
service uses them, so every acquire is paired with exactly one release on
all exit paths.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

from playwright.async_api import Browser, Page, Playwright, async_playwright

from ..config import Settings, get_settings
from .errors import ErrorKind, LaunchError
from .request import Viewport, default_viewport

logger = logging.getLogger(__name__)


class BrowserSession:
    """Handle for an isolated browser process and its single page."""

    def __init__(self, playwright: Playwright, browser: Browser, page: Page):
        self._playwright = playwright
        self._browser = browser
        self.page = page
        # Last pipeline state reached on this session (set by RenderPipeline).
        self.state = None
        self._released = False

    @property
    def released(self) -> bool:
        return self._released

    @classmethod
    async def acquire(
        cls,
        settings: Settings | None = None,
        viewport: Viewport | None = None,
    ) -> "BrowserSession":
        """
        Launch a sandbox-less headless Chromium and open one page in it.

        The page is created with the request's device scale factor, which
        Chromium only accepts at page creation time.

        Raises:
            LaunchError: the process could not be started or the page opened.
        """
        settings = settings or get_settings()
        viewport = viewport or default_viewport(settings)

        playwright: Playwright | None = None
        browser: Browser | None = None
        try:
            playwright = await async_playwright().start()
            browser = await playwright.chromium.launch(
                headless=settings.browser_headless,
                args=settings.browser_arg_list,
            )
            page = await browser.new_page(
                viewport={"width": viewport.width, "height": viewport.height},
                device_scale_factor=viewport.device_scale_factor,
            )
        except Exception as e:
            await _shutdown(browser, playwright)
            raise LaunchError(f"Failed to launch browser: {e}") from e

        logger.debug("[session] Chromium %s launched", browser.version)
        return cls(playwright, browser, page)

    async def release(self) -> None:
        """
        Close the browser and stop the driver. Idempotent.

        Failures are logged as ReleaseError and swallowed: the outcome of the
        request has already been decided by the time release runs.
        """
        if self._released:
            return
        self._released = True
        await _shutdown(self._browser, self._playwright)
        logger.debug("[session] Browser released")


async def _shutdown(browser: Browser | None, playwright: Playwright | None) -> None:
    if browser is not None:
        try:
            await browser.close()
        except Exception as e:
            logger.error("[session] %s: error closing browser: %s", ErrorKind.RELEASE_ERROR.value, e)
    if playwright is not None:
        try:
            await playwright.stop()
        except Exception as e:
            logger.error("[session] %s: error stopping playwright: %s", ErrorKind.RELEASE_ERROR.value, e)


SessionFactory = Callable[[Settings, Viewport], Awaitable[BrowserSession]]


@asynccontextmanager
async def open_session(
    settings: Settings | None = None,
    viewport: Viewport | None = None,
    factory: SessionFactory | None = None,
) -> AsyncIterator[BrowserSession]:
    """Acquire a session for the duration of the ``async with`` block."""
    settings = settings or get_settings()
    viewport = viewport or default_viewport(settings)
    session = await (factory or BrowserSession.acquire)(settings, viewport)
    try:
        yield session
    finally:
        try:
            await session.release()
        except Exception as e:
            logger.error("[session] %s: %s", ErrorKind.RELEASE_ERROR.value, e)
