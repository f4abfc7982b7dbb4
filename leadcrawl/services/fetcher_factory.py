from __future__ import annotations

from dataclasses import dataclass

from leadcrawl.services.page_driver import PageDriverSource


@dataclass(frozen=True)
class PageDriverFactory:
    http_source: PageDriverSource
    headless_source: PageDriverSource

    def get(self, fetch_mode: str) -> PageDriverSource:
        if fetch_mode is None or (isinstance(fetch_mode, str) and fetch_mode.strip() == ""):
            raise ValueError("fetch_mode is required")
        mode = fetch_mode.strip().lower()
        if mode == "http":
            return self.http_source
        if mode == "headless_chromium":
            return self.headless_source
        raise ValueError(f"Unknown fetch_mode: {fetch_mode!r}")

    def close(self) -> None:
        self.http_source.close()
        self.headless_source.close()
