from __future__ import annotations

import logging
from typing import Optional, Protocol

from leadcrawl.domain.http_response import HttpResponse
from leadcrawl.services.http_service import HttpService

logger = logging.getLogger(__name__)


class PageDriver(Protocol):
    """One open page. Implementations raise `NavigationError` from `navigate`.

    Implementations: `HttpPageDriver` (requests) and
    `PlaywrightPageDriver` (headless-browser rendered HTML).
    """

    def navigate(self, url: str, timeout_ms: int) -> None: ...

    def content(self) -> str: ...

    def close(self) -> None: ...


class PageDriverSource(Protocol):
    """Hands out page drivers that share one browsing context or connection pool."""

    def open_page(self) -> PageDriver: ...

    def close(self) -> None: ...


class HttpPageDriver:
    def __init__(self, http_service: HttpService):
        self._http_service = http_service
        self._response: Optional[HttpResponse] = None

    def navigate(self, url: str, timeout_ms: int) -> None:
        self._response = self._http_service.fetch(url, timeout=timeout_ms / 1000)
        if not self._response.ok:
            # Content presence decides success, not the status code.
            logger.warning("Non-success status for %s: %s", url, self._response.status_code)
        if not self._response.is_html:
            logger.debug("Non-HTML content at %s: %s", url, self._response.content_type)

    def content(self) -> str:
        if self._response is None:
            raise RuntimeError("content() called before navigate()")
        return self._response.text or ""

    def close(self) -> None:
        self._response = None


class HttpPageSource:
    def __init__(self, http_service: HttpService):
        self._http_service = http_service

    def open_page(self) -> HttpPageDriver:
        return HttpPageDriver(self._http_service)

    def close(self) -> None:
        pass
