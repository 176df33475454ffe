"""Browser session management for the Wildberries storefront.

This module provides a thin wrapper around one long-lived Playwright Chromium
instance with a single page. The storefront and its internal JSON endpoints
sit behind anti-bot checks, so every page load and descriptor request goes
through this already-warmed page.

Design goals:
- Lazy, idempotent start: the first caller launches and warms up the browser.
- No partial state: a failed start tears everything down so the next call
  starts from scratch.
- Descriptor requests run as `fetch()` inside the page and inherit its cookies.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

from playwright.async_api import (
    Browser,
    BrowserContext,
    Error as PlaywrightError,
    Page,
    Playwright,
    TimeoutError as PlaywrightTimeoutError,
    async_playwright,
)

from .config import Settings, get_settings
from .errors import AcquisitionError

logger = logging.getLogger(__name__)

LAUNCH_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--disable-blink-features=AutomationControlled",
    "--disable-dev-shm-usage",
]

# Hide navigator.webdriver from page scripts.
STEALTH_SCRIPT = """
delete Object.getPrototypeOf(navigator).webdriver;
Object.defineProperty(navigator, 'webdriver', { get: () => false });
"""

FETCH_JSON_SCRIPT = """
async (url) => {
    const resp = await fetch(url, { credentials: 'include' });
    if (!resp.ok) throw new Error(`HTTP ${resp.status}`);
    return await resp.json();
}
"""


class BrowserSession:
    """Single-page Chromium session shared by all tool calls."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self._settings = settings or get_settings()
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._start_lock = asyncio.Lock()

    @property
    def is_ready(self) -> bool:
        return self._page is not None

    @property
    def page(self) -> Page:
        if self._page is None:
            raise AcquisitionError("Browser session is not initialized")
        return self._page

    async def ensure_ready(self) -> Page:
        """Launch and warm up the browser on first use; later calls are no-ops."""
        if self._page is not None:
            return self._page
        async with self._start_lock:
            if self._page is not None:
                return self._page
            try:
                page = await self._start()
            except Exception as exc:
                await self._release()
                if isinstance(exc, AcquisitionError):
                    raise
                raise AcquisitionError(f"Browser start failed: {exc}") from exc
            self._page = page
            logger.info("Browser session initialized")
            return page

    async def _start(self) -> Page:
        s = self._settings
        self._playwright = await async_playwright().start()
        logger.info("Launching Chromium (headless=%s)", s.WB_HEADLESS)
        self._browser = await self._playwright.chromium.launch(headless=s.WB_HEADLESS, args=LAUNCH_ARGS)
        self._context = await self._browser.new_context(
            user_agent=s.WB_USER_AGENT,
            viewport={"width": s.WB_VIEWPORT_WIDTH, "height": s.WB_VIEWPORT_HEIGHT},
            locale=s.WB_BROWSER_LOCALE,
            timezone_id=s.WB_TIMEZONE,
        )
        page = await self._context.new_page()
        await page.add_init_script(STEALTH_SCRIPT)

        # Warm-up: the home page hands out the session cookies and anti-bot tokens.
        logger.info("Warming up on %s", s.WB_BASE_URL)
        await page.goto(s.WB_BASE_URL, wait_until="domcontentloaded", timeout=s.WB_NAV_TIMEOUT_MS)
        await asyncio.sleep(s.WB_WARMUP_DELAY_S)
        return page

    async def goto(self, url: str) -> None:
        page = await self.ensure_ready()
        logger.debug("Navigating to %s", url)
        try:
            await page.goto(url, wait_until="domcontentloaded", timeout=self._settings.WB_NAV_TIMEOUT_MS)
        except PlaywrightError as exc:
            raise AcquisitionError(f"Navigation to {url} failed: {exc}") from exc

    async def wait_for_selector(self, selector: str, timeout_ms: int) -> bool:
        """Wait for ``selector``; a timeout means "nothing rendered", not an error."""
        page = await self.ensure_ready()
        try:
            await page.wait_for_selector(selector, timeout=timeout_ms)
        except PlaywrightTimeoutError:
            return False
        return True

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        page = await self.ensure_ready()
        try:
            return await page.evaluate(script, arg)
        except PlaywrightError as exc:
            raise AcquisitionError(f"Page script failed: {exc}") from exc

    async def fetch_json(self, url: str) -> Any:
        """GET ``url`` from inside the page so the request carries the session cookies."""
        page = await self.ensure_ready()
        try:
            return await page.evaluate(FETCH_JSON_SCRIPT, url)
        except PlaywrightError as exc:
            logger.warning("API request failed: %s (%s)", url, exc)
            raise AcquisitionError(f"Request to {url} failed: {exc}") from exc

    async def _release(self) -> None:
        browser, playwright = self._browser, self._playwright
        self._page = None
        self._context = None
        self._browser = None
        self._playwright = None
        if browser is not None:
            try:
                await browser.close()
            except PlaywrightError as exc:
                logger.warning("Browser close failed: %s", exc)
        if playwright is not None:
            await playwright.stop()

    async def teardown(self) -> None:
        """Close the browser and forget all session state. Safe when never started."""
        if self._browser is None and self._playwright is None:
            return
        await self._release()
        logger.info("Browser session closed")
