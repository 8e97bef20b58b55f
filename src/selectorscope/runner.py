from __future__ import annotations

import logging
from typing import Callable

from .config import InspectorConfig
from .playwright_bridge import PlaywrightSurface
from .runtime_checks import is_closed_target_error, is_missing_browser_error, normalize_url
from .session import inject

logger = logging.getLogger("selectorscope.runner")

StatusCallback = Callable[[str], None]


def run_inspector(
    url: str,
    config: InspectorConfig | None = None,
    *,
    headless: bool = False,
    on_status: StatusCallback | None = None,
) -> int:
    """Open ``url`` in Chromium with the selector overlay and pump events until the page closes."""
    config = config or InspectorConfig()
    status = on_status or (lambda message: logger.info(message))
    target = normalize_url(url)
    if not target:
        status("Please enter a URL.")
        return 2

    try:
        from playwright.sync_api import Error as PlaywrightError
        from playwright.sync_api import sync_playwright
    except ImportError as exc:
        status(f"Playwright is not available: {exc}")
        return 1

    with sync_playwright() as playwright:
        try:
            browser = playwright.chromium.launch(headless=headless)
        except PlaywrightError as exc:
            if is_missing_browser_error(exc):
                status("Chromium not installed. Run: python -m playwright install chromium")
            else:
                status(f"Failed to launch Chromium: {exc}")
            return 1

        session = None
        try:
            context = browser.new_context()
            try:
                context.grant_permissions(["clipboard-read", "clipboard-write"])
            except PlaywrightError as exc:
                logger.warning("Clipboard permissions not granted: %s", exc)

            page = context.new_page()
            surface = PlaywrightSurface(page)
            surface.attach()
            session = inject(surface, config)
            surface.on_document_ready(session.reset)

            status(f"Opening {target}")
            page.goto(target, wait_until="domcontentloaded")
            status("Hover elements to see their selector. Close the window to quit.")

            while not page.is_closed():
                surface.pump()
                try:
                    page.wait_for_timeout(config.poll_interval_ms)
                except PlaywrightError as exc:
                    if is_closed_target_error(exc):
                        break
                    raise
        except PlaywrightError as exc:
            if not is_closed_target_error(exc):
                status(f"Browser session failed: {exc}")
                return 1
        finally:
            if session is not None:
                try:
                    session.teardown()
                except PlaywrightError as exc:
                    logger.debug("Overlay teardown skipped: %s", exc)
            try:
                browser.close()
            except PlaywrightError:
                pass
    return 0
