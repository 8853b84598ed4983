"""
FILE DESCRIPTION: Headless Chromium screenshot backend built on Playwright's sync API.
KEY FUNCTIONS/CLASSES: PlaywrightBackend

Each render runs entirely inside the calling thread with its own Playwright
instance, so request threads never share a browser. Concurrent launches are
capped by a process-wide semaphore.
"""

import threading
from pathlib import Path

from playwright.sync_api import sync_playwright
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError

from rendering.engine import RenderingBackend, RenderExecutionError, RenderTimeoutError
from rendering.models import RenderOptions
from webshot.core import DEFAULT_NAVIGATION_TIMEOUT, DEFAULT_MAX_CONCURRENT_RENDERS, setup_logger

logger = setup_logger("webshot.rendering")

# Third-party sites are often self-signed or on legacy TLS
BROWSER_ARGS = [
    "--disable-gpu",
    "--no-sandbox",
    "--disable-dev-shm-usage",
    "--ignore-certificate-errors",
    "--ssl-version-min=tls1",
]

_SCROLL_HEIGHT_JS = "() => Math.max(document.documentElement.scrollHeight, document.body ? document.body.scrollHeight : 0)"


class PlaywrightBackend(RenderingBackend):
    """
    FLOW: Acquire render slot -> Launch Chromium -> New context (viewport, user agent, TLS errors ignored) ->
    Navigate and wait for 'load' -> Sleep delay_ms -> Capture viewport or full-height PNG -> Close browser.
    """

    def __init__(self, navigation_timeout=DEFAULT_NAVIGATION_TIMEOUT, max_concurrent_renders=DEFAULT_MAX_CONCURRENT_RENDERS):
        self._timeout_ms = navigation_timeout * 1000
        self._slots = threading.BoundedSemaphore(max(1, max_concurrent_renders))

    def render(self, url: str, output_path: Path, options: RenderOptions) -> None:
        with self._slots:
            try:
                with sync_playwright() as p:
                    browser = p.chromium.launch(headless=True, args=BROWSER_ARGS)
                    try:
                        self._capture(browser, url, output_path, options)
                    finally:
                        browser.close()
            except PlaywrightTimeoutError as e:
                raise RenderTimeoutError(f"Timed out loading {url}") from e
            except PlaywrightError as e:
                raise RenderExecutionError(f"Browser failed to render {url}: {e.message}") from e

    def _capture(self, browser, url, output_path, options):
        context = browser.new_context(
            viewport={"width": options.width, "height": options.height},
            # Empty user agent keeps Chromium's own identity
            user_agent=options.user_agent or None,
            ignore_https_errors=True,
        )
        page = context.new_page()
        page.goto(url, wait_until="load", timeout=self._timeout_ms)

        if options.delay_ms:
            page.wait_for_timeout(options.delay_ms)

        if options.full_page:
            # Full scrollable height, but never wider than the viewport
            full_height = max(int(page.evaluate(_SCROLL_HEIGHT_JS) or 0), options.height)
            page.screenshot(
                path=str(output_path),
                type="png",
                full_page=True,
                clip={"x": 0, "y": 0, "width": options.width, "height": full_height},
            )
        else:
            page.screenshot(path=str(output_path), type="png")

        logger.info(
            f"[RENDER] Screenshot {url} width={options.width} height={options.height} "
            f"delay={options.delay_ms} full={options.full_page}"
        )
