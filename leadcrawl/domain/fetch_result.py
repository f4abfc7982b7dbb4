from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, Optional

from leadcrawl.domain.crawl_node import CrawlNode


class ErrorKind(str, Enum):
    INVALID_URL = "invalid_url"
    EXCLUDED_BY_POLICY = "excluded_by_policy"
    NAVIGATION_FAILURE = "navigation_failure"
    INSUFFICIENT_CONTENT = "insufficient_content"
    EXTRACTION_FAILURE = "extraction_failure"
    CLASSIFIER_FAILURE = "classifier_failure"
    CIRCUIT_OPEN = "circuit_open"


class RawLink(NamedTuple):
    """An anchor as found in the document, before any filtering."""
    href: str
    anchor_text: str = ""
    title_attr: str = ""


@dataclass
class FetchResult:
    """Outcome of fetching one CrawlNode.

    `child_links` is filled in by the walker after classification; the fetch
    adapter never sets it.
    """

    node: CrawlNode
    success: bool
    text_content: str = ""
    raw_links: list[RawLink] = field(default_factory=list)
    error: Optional[ErrorKind] = None
    error_detail: Optional[str] = None
    child_links: list[str] = field(default_factory=list)

    @classmethod
    def failed(cls, node: CrawlNode, error: ErrorKind, detail: Optional[str] = None) -> "FetchResult":
        return cls(node=node, success=False, error=error, error_detail=detail)

    @property
    def url(self) -> str:
        return self.node.url

    @property
    def depth(self) -> int:
        return self.node.depth
