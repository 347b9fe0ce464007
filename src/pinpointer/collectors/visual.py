"""
Rendered-page capture.

Loads the page in desktop and mobile viewports, saves a JPEG screenshot of
each, and runs an in-page probe collecting typography, above-the-fold CTAs,
navigation, tap targets, layout width, overflow and image facts.
"""
import asyncio
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple

from pydantic import ValidationError

from ..core.config import settings
from ..core.logging import job_tag, logger
from ..models.facts import ViewportCapture, ViewportData, VisualFacts
from .browser import BrowserResource

DESKTOP_CONTEXT = {
    "viewport": {"width": 1440, "height": 900},
    "device_scale_factor": 1,
    "user_agent": (
        "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
}

MOBILE_CONTEXT = {
    "viewport": {"width": 375, "height": 812},
    "device_scale_factor": 2,
    "is_mobile": True,
    "has_touch": True,
    "user_agent": (
        "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) AppleWebKit/605.1.15 "
        "(KHTML, like Gecko) Version/17.0 Mobile/15E148 Safari/604.1"
    ),
}

NETWORK_IDLE_TIMEOUT_MS = 30000
DOM_LOADED_TIMEOUT_MS = 20000
SETTLE_SECONDS = 3.0
JPEG_QUALITY = 75

PROBE_SCRIPT = """
(mobile) => {
    const data = {};
    const round = Math.round;

    const bodyStyle = window.getComputedStyle(document.body);
    data.body_font_family = bodyStyle.fontFamily;
    data.body_font_size = bodyStyle.fontSize;
    data.body_color = bodyStyle.color;
    data.body_bg_color = bodyStyle.backgroundColor;

    const h1 = document.querySelector('h1');
    if (h1) {
        const s = window.getComputedStyle(h1);
        data.h1_font_size = s.fontSize;
        data.h1_font_weight = s.fontWeight;
        data.h1_color = s.color;
        data.h1_line_height = s.lineHeight;
    }

    const vh = window.innerHeight;
    const vw = window.innerWidth;

    const ctas = [];
    document.querySelectorAll(
        'button, a[class*="btn"], a[class*="cta"], a[class*="button"], input[type="submit"]'
    ).forEach(el => {
        const r = el.getBoundingClientRect();
        if (r.top < vh && r.bottom > 0 && r.width > 0) {
            const s = window.getComputedStyle(el);
            ctas.push({
                text: (el.textContent || '').trim().slice(0, 50),
                width: round(r.width),
                height: round(r.height),
                top: round(r.top),
                bg_color: s.backgroundColor,
                color: s.color,
                font_size: s.fontSize,
                is_visible: s.display !== 'none' && s.visibility !== 'hidden' && s.opacity !== '0',
            });
        }
    });
    data.ctas_above_fold = ctas.slice(0, 10);

    const nav = document.querySelector('nav') || document.querySelector('[role="navigation"]');
    if (nav) {
        const s = window.getComputedStyle(nav);
        data.nav_position = s.position;
        data.nav_height = round(nav.getBoundingClientRect().height);
        data.nav_bg = s.backgroundColor;
        data.nav_is_fixed = s.position === 'fixed' || s.position === 'sticky';
    }

    if (mobile) {
        let small = 0, total = 0;
        document.querySelectorAll('a, button, input, select, textarea').forEach(el => {
            const r = el.getBoundingClientRect();
            if (r.width > 0 && r.height > 0) {
                total++;
                if (r.width < 44 || r.height < 44) small++;
            }
        });
        data.tap_targets_total = total;
        data.tap_targets_too_small = small;
    }

    const main = document.querySelector('main') || document.querySelector('article')
        || document.querySelector('.content') || document.querySelector('#content');
    if (main) {
        const w = main.getBoundingClientRect().width;
        data.content_width = round(w);
        data.content_max_width_percent = round((w / vw) * 100);
    }

    data.has_horizontal_overflow = document.documentElement.scrollWidth > vw;

    let visible = 0, oversized = 0;
    document.querySelectorAll('img').forEach(img => {
        const r = img.getBoundingClientRect();
        if (r.width > 0 && r.height > 0) {
            visible++;
            if (img.naturalWidth > r.width * 2.5) oversized++;
        }
    });
    data.visible_images = visible;
    data.oversized_images = oversized;

    let highZ = 0;
    document.querySelectorAll('*').forEach(el => {
        if (parseInt(window.getComputedStyle(el).zIndex) > 1000) highZ++;
    });
    data.high_z_index_elements = highZ;

    return data;
}
"""


def parse_probe_result(raw: Any) -> ViewportData:
    """Validate probe output; unusable output becomes empty viewport data."""
    try:
        return ViewportData.model_validate(raw or {})
    except ValidationError as e:
        logger.warning(f"Discarding malformed visual probe data: {e.error_count()} error(s)")
        return ViewportData()


class VisualCaptureService:
    """Captures screenshots and visual probe data for desktop and mobile."""

    def __init__(
        self,
        browser: BrowserResource,
        screenshot_dir: Optional[str] = None,
        enabled: Optional[bool] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.browser = browser
        self.screenshot_dir = Path(screenshot_dir or settings.SCREENSHOT_DIR)
        self.enabled = settings.VISUAL_CAPTURE_ENABLED if enabled is None else enabled
        self.sleep = sleep

    async def _navigate(self, page, url: str, tag: str) -> bool:
        try:
            await page.goto(url, wait_until="networkidle", timeout=NETWORK_IDLE_TIMEOUT_MS)
            return True
        except Exception as e:
            logger.info(f"{tag} Navigation warning: {e}, retrying with domcontentloaded")
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=DOM_LOADED_TIMEOUT_MS)
            await self.sleep(SETTLE_SECONDS)
            return True
        except Exception as e:
            logger.error(f"{tag} Navigation failed: {e}")
            return False

    async def _capture_viewport(
        self, browser, url: str, path: Path, context_options: Dict[str, Any], mobile: bool, tag: str
    ) -> Tuple[bool, ViewportCapture]:
        context = await browser.new_context(**context_options)
        try:
            page = await context.new_page()
            navigated = await self._navigate(page, url, tag)
            if not navigated and not mobile:
                return False, ViewportCapture()
            await page.screenshot(path=str(path), type="jpeg", quality=JPEG_QUALITY, full_page=False)
            try:
                raw = await page.evaluate(PROBE_SCRIPT, mobile)
            except Exception as e:
                logger.error(f"{tag} Visual probe failed: {e}")
                raw = {}
            return True, ViewportCapture(screenshot=str(path), data=parse_probe_result(raw))
        finally:
            await context.close()

    async def capture(self, url: str, job_id: str) -> Optional[VisualFacts]:
        """
        Capture desktop and mobile renderings of ``url``.

        Returns:
            VisualFacts, or None when capture is disabled, the browser is
            unavailable, or the desktop page cannot be loaded
        """
        if not self.enabled:
            return None

        tag = job_tag(job_id)
        short_id = job_id[:8]
        logger.info(f"{tag} Capturing screenshots for {url}")
        desktop_path = self.screenshot_dir / f"{short_id}_desktop.jpg"
        mobile_path = self.screenshot_dir / f"{short_id}_mobile.jpg"
        try:
            self.screenshot_dir.mkdir(parents=True, exist_ok=True)
            browser = await self.browser.acquire()
            ok, desktop = await self._capture_viewport(
                browser, url, desktop_path, DESKTOP_CONTEXT, False, tag,
            )
            if not ok:
                return None
            _, mobile = await self._capture_viewport(
                browser, url, mobile_path, MOBILE_CONTEXT, True, tag,
            )
        except Exception as e:
            logger.error(f"{tag} Screenshot capture error: {e}")
            self._discard(desktop_path, mobile_path)
            return None

        logger.info(
            f"{tag} Screenshots captured: desktop={desktop.screenshot is not None}, "
            f"mobile={mobile.screenshot is not None}"
        )
        return VisualFacts(desktop=desktop, mobile=mobile)

    @staticmethod
    def cleanup(visual: Optional[VisualFacts]) -> None:
        """Delete captured screenshots. Errors are logged, never raised."""
        if visual is None:
            return
        VisualCaptureService._discard(*visual.screenshots)

    @staticmethod
    def _discard(*paths) -> None:
        for path in paths:
            try:
                Path(path).unlink(missing_ok=True)
            except OSError as e:
                logger.warning(f"Could not delete screenshot {path}: {e}")
