from __future__ import annotations

from dataclasses import dataclass, fields, replace
from typing import Any, Optional


DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "mailto:",
    "tel:",
    "javascript:",
    "#",
    ".pdf",
    ".jpg",
    ".png",
    ".gif",
    ".css",
    ".js",
    ".xml",
    ".zip",
    ".rar",
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "linkedin.com",
    "youtube.com",
    "google.com",
    "amazon.com",
    "wikipedia.org",
)

DEFAULT_INCLUDE_PATTERNS: tuple[str, ...] = (
    "/about",
    "/about-us",
    "/profile",
    "/contact",
    "/contact-us",
    "/services",
    "/products",
    "/team",
    "/company",
    "/blog",
    "/news",
    "/careers",
)

# Regions removed before text extraction.
DEFAULT_REMOVAL_SELECTORS: tuple[str, ...] = (
    "script",
    "style",
    "noscript",
    "nav",
    "header",
    "footer",
    "iframe",
    ".navigation",
    ".menu",
    ".sidebar",
    ".ads",
    ".advertisement",
    ".social",
    ".comments",
    '[class*="cookie"]',
    '[class*="popup"]',
    '[class*="modal"]',
    ".breadcrumb",
)

# Main-content regions in priority order; the first match wins.
DEFAULT_CONTENT_SELECTORS: tuple[str, ...] = (
    "main",
    '[role="main"]',
    ".main-content",
    ".content",
    ".page-content",
    ".post-content",
    ".entry-content",
    "article",
    ".article",
)

FETCH_MODES = ("http", "headless_chromium")
MAX_CONCURRENT_PAGES_LIMIT = 3


@dataclass(frozen=True)
class CrawlSettings:
    """Immutable crawl configuration handed to every component constructor.

    One-off sessions derive a modified copy with `with_overrides()` instead
    of mutating shared flags.
    """

    max_depth: int = 1
    max_depth_limit: int = 3
    max_child_links_per_page: int = 100
    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    include_patterns: tuple[str, ...] = DEFAULT_INCLUDE_PATTERNS
    same_domain_only: bool = False
    classify_at_max_depth: bool = True
    fetch_mode: str = "headless_chromium"
    user_agent: str = "Mozilla/5.0 (compatible; LeadCrawl/0.1)"
    navigation_timeout_ms: int = 50_000
    settle_ms: int = 2_000
    min_content_length: int = 100
    request_delay_min_ms: int = 1_000
    request_delay_max_ms: int = 3_000
    depth_delay_ms: int = 2_000
    retry_attempts: int = 3
    retry_delay_ms: int = 2_000
    circuit_failure_threshold: int = 5
    circuit_cooldown_seconds: float = 60.0
    max_concurrent_pages: int = 1  # headless_chromium runs pages one at a time regardless
    removal_selectors: tuple[str, ...] = DEFAULT_REMOVAL_SELECTORS
    content_selectors: tuple[str, ...] = DEFAULT_CONTENT_SELECTORS
    output_dir: str = "./output"

    def __post_init__(self):
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.max_depth_limit < 0:
            raise ValueError("max_depth_limit must be >= 0")
        if self.max_child_links_per_page < 1:
            raise ValueError("max_child_links_per_page must be >= 1")
        if self.fetch_mode not in FETCH_MODES:
            raise ValueError(f"Unknown fetch_mode: {self.fetch_mode!r}")
        if self.request_delay_min_ms < 0 or self.request_delay_max_ms < self.request_delay_min_ms:
            raise ValueError("request delay window must satisfy 0 <= min <= max")
        if self.retry_attempts < 1:
            raise ValueError("retry_attempts must be >= 1")
        if self.circuit_failure_threshold < 1:
            raise ValueError("circuit_failure_threshold must be >= 1")
        if not 1 <= self.max_concurrent_pages <= MAX_CONCURRENT_PAGES_LIMIT:
            raise ValueError(f"max_concurrent_pages must be between 1 and {MAX_CONCURRENT_PAGES_LIMIT}")

    @classmethod
    def field_names(cls) -> set[str]:
        return {f.name for f in fields(cls)}

    def with_overrides(self, **overrides: Any) -> "CrawlSettings":
        return replace(self, **overrides)

    @classmethod
    def from_env(cls, base: Optional["CrawlSettings"] = None) -> "CrawlSettings":
        from leadcrawl import config as env

        base = base or cls()
        return replace(
            base,
            max_depth=env.get_int_env("LEADCRAWL_DEFAULT_DEPTH", base.max_depth),
            max_child_links_per_page=env.get_int_env("LEADCRAWL_MAX_CHILD_LINKS", base.max_child_links_per_page),
            fetch_mode=env.get_str_env("LEADCRAWL_FETCH_MODE", base.fetch_mode).strip().lower(),
            user_agent=env.get_str_env("USER_AGENT", base.user_agent),
            navigation_timeout_ms=env.get_int_env("LEADCRAWL_NAVIGATION_TIMEOUT_MS", base.navigation_timeout_ms),
            depth_delay_ms=env.get_int_env("LEADCRAWL_CHILD_DELAY_MS", base.depth_delay_ms),
            retry_attempts=env.get_int_env("LEADCRAWL_RETRY_ATTEMPTS", base.retry_attempts),
            retry_delay_ms=env.get_int_env("LEADCRAWL_RETRY_DELAY_MS", base.retry_delay_ms),
            max_concurrent_pages=env.get_int_env("LEADCRAWL_MAX_CONCURRENT_PAGES", base.max_concurrent_pages),
            same_domain_only=env.get_bool_env("LEADCRAWL_SAME_DOMAIN_ONLY", base.same_domain_only),
            output_dir=env.get_str_env("LEADCRAWL_OUTPUT_DIR", base.output_dir),
        )
