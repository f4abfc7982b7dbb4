from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from leadcrawl.exceptions import NavigationError

logger = logging.getLogger(__name__)

# Chromium network errors worth another attempt.
TRANSIENT_NET_ERRORS = (
    "net::ERR_CONNECTION_RESET",
    "net::ERR_CONNECTION_CLOSED",
    "net::ERR_CONNECTION_TIMED_OUT",
    "net::ERR_TIMED_OUT",
    "net::ERR_NETWORK_CHANGED",
    "net::ERR_EMPTY_RESPONSE",
)


@dataclass(frozen=True)
class PlaywrightHeadlessOptions:
    wait_until: str = "domcontentloaded"  # domcontentloaded | load | networkidle
    settle_ms: int = 2_000
    headless: bool = True


def _is_transient_navigation_error(error: Exception) -> bool:
    if type(error).__name__ == "TimeoutError":
        return True
    message = str(error)
    return any(marker in message for marker in TRANSIENT_NET_ERRORS)


class PlaywrightBrowser:
    """Headless Chromium shared by every page of a crawl.

    Playwright's sync API is bound to the thread that started it, so the
    browser and its single browsing context live on a dedicated one-thread
    executor and every page call is marshalled onto it. Navigation and the
    settle wait run there too, so headless fetches are sequential whatever
    `max_concurrent_pages` says; only the HTTP driver fetches in parallel.
    Playwright is imported lazily so HTTP-only installs still work.
    """

    def __init__(self, *, user_agent: str, options: Optional[PlaywrightHeadlessOptions] = None):
        self._user_agent = user_agent
        self._options = options or PlaywrightHeadlessOptions()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="playwright")
        self._lock = threading.Lock()
        self._playwright = None
        self._browser = None
        self._context = None
        self._closed = False

    @property
    def options(self) -> PlaywrightHeadlessOptions:
        return self._options

    def run(self, fn: Callable[..., Any], *args: Any) -> Any:
        """Run `fn(*args)` on the Playwright thread and return its result."""
        with self._lock:
            if self._closed:
                raise RuntimeError("Browser has been closed")
        return self._executor.submit(fn, *args).result()

    def _start(self) -> None:
        if self._context is not None:
            return
        try:
            from playwright.sync_api import sync_playwright  # type: ignore
        except Exception as e:
            raise RuntimeError(
                "Headless fetch requested but Playwright is not installed. "
                "Install 'playwright' and run 'python -m playwright install chromium'."
            ) from e

        self._playwright = sync_playwright().start()
        self._browser = self._playwright.chromium.launch(headless=self._options.headless)
        self._context = self._browser.new_context(user_agent=self._user_agent)
        logger.info("Launched headless Chromium")

    def _new_page(self):
        self._start()
        return self._context.new_page()

    def open_page(self) -> "PlaywrightPageDriver":
        return PlaywrightPageDriver(self, self.run(self._new_page))

    def _shutdown(self) -> None:
        for resource in (self._context, self._browser):
            if resource is None:
                continue
            try:
                resource.close()
            except Exception:
                logger.warning("Error closing Playwright resource", exc_info=True)
        if self._playwright is not None:
            self._playwright.stop()
        self._context = self._browser = self._playwright = None

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
        try:
            self._executor.submit(self._shutdown).result()
        finally:
            self._executor.shutdown(wait=True)


class PlaywrightPageDriver:
    def __init__(self, browser: PlaywrightBrowser, page):
        self._browser = browser
        self._page = page

    def _goto(self, url: str, timeout_ms: int) -> None:
        options = self._browser.options
        try:
            self._page.goto(url, wait_until=options.wait_until, timeout=timeout_ms)
        except Exception as e:
            raise NavigationError(url, e, transient=_is_transient_navigation_error(e)) from e
        if options.settle_ms > 0:
            self._page.wait_for_timeout(options.settle_ms)

    def navigate(self, url: str, timeout_ms: int) -> None:
        self._browser.run(self._goto, url, timeout_ms)

    def content(self) -> str:
        return self._browser.run(self._page.content)

    def close(self) -> None:
        try:
            self._browser.run(self._page.close)
        except Exception:
            logger.warning("Error closing page", exc_info=True)
