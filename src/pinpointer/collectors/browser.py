"""Shared headless Chromium."""
import asyncio
from typing import Any, Awaitable, Callable, Optional

from playwright.async_api import Browser, Playwright, async_playwright

from ..core.config import settings
from ..core.logging import logger

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-dev-shm-usage",
    "--disable-gpu",
    "--disable-software-rasterizer",
    "--disable-extensions",
    "--disable-background-networking",
    "--disable-default-apps",
    "--disable-sync",
    "--disable-translate",
    "--metrics-recording-only",
    "--mute-audio",
    "--no-first-run",
]


class BrowserResource:
    """
    Lazily launched Chromium shared by every job.

    ``acquire()`` returns a connected browser, relaunching it when the previous
    instance has crashed or disconnected. ``close()`` shuts it down; a later
    ``acquire()`` launches a fresh one.
    """

    def __init__(
        self,
        headless: Optional[bool] = None,
        executable_path: Optional[str] = None,
        launcher: Optional[Callable[[], Awaitable[Any]]] = None,
    ):
        self.headless = settings.BROWSER_HEADLESS if headless is None else headless
        self.executable_path = executable_path or settings.BROWSER_EXECUTABLE_PATH
        self._launcher = launcher or self._launch
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._lock: Optional[asyncio.Lock] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    async def _launch(self) -> Browser:
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(
            headless=self.headless,
            args=LAUNCH_ARGS,
            executable_path=self.executable_path,
        )

    def is_healthy(self) -> bool:
        return self._browser is not None and self._browser.is_connected()

    async def acquire(self) -> Browser:
        """Return a connected browser, launching or relaunching as needed."""
        async with self._get_lock():
            if self.is_healthy():
                return self._browser
            if self._browser is not None:
                logger.warning("Browser disconnected, relaunching")
            self._browser = await self._launcher()
            logger.info("Browser launched")
            return self._browser

    async def close(self) -> None:
        async with self._get_lock():
            if self._browser is not None:
                try:
                    await self._browser.close()
                except Exception as e:
                    logger.warning(f"Error closing browser: {e}")
                self._browser = None
            if self._playwright is not None:
                await self._playwright.stop()
                self._playwright = None
            logger.info("Browser closed")


_browser_instance: Optional[BrowserResource] = None


def get_browser_resource() -> BrowserResource:
    """Get or create the process-wide browser resource."""
    global _browser_instance
    if _browser_instance is None:
        _browser_instance = BrowserResource()
    return _browser_instance
