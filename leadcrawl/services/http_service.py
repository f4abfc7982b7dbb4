import requests
from typing import Callable, Optional

from leadcrawl.domain.http_response import HttpResponse
from leadcrawl.exceptions import NavigationError


class HttpService:
    """
    HTTP client wrapper for fetching web pages.

    Requires http_client callable for dependency injection, so tests can
    pass a Mock instead of patching requests.
    """

    def __init__(self, user_agent: str, http_client: Callable, timeout: float = 10):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client

    def fetch(self, url: str, timeout: Optional[float] = None) -> HttpResponse:
        """Fetch URL and return response with status code, body text, and Content-Type.

        Transport errors are wrapped in `NavigationError`; timeouts and
        connection errors are flagged transient so the governor retries them.
        """
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=timeout or self.timeout)
        except (requests.exceptions.Timeout, requests.exceptions.ConnectionError) as e:
            raise NavigationError(url, e, transient=True) from e
        except requests.exceptions.RequestException as e:
            raise NavigationError(url, e, transient=False) from e

        # Extract Content-Type if response has headers; let real exceptions bubble up.
        ct = None
        if hasattr(resp, 'headers'):
            ct = resp.headers.get('Content-Type')

        return HttpResponse(resp.status_code, resp.text, ct)
