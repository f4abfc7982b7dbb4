from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from leadcrawl.utils.datetime_utils import utcnow


@dataclass(frozen=True)
class CrawlNode:
    """A unit of crawl work. `url` is canonical and unique within a session."""

    url: str
    depth: int
    parent_url: Optional[str] = None
    anchor_text: str = ""
    discovered_at: datetime = field(default_factory=utcnow)

    def __post_init__(self):
        if self.depth < 0:
            raise ValueError("depth must be >= 0")

    @classmethod
    def seed(cls, url: str) -> "CrawlNode":
        return cls(url=url, depth=0)

    def child(self, url: str, anchor_text: str = "") -> "CrawlNode":
        return CrawlNode(url=url, depth=self.depth + 1, parent_url=self.url, anchor_text=anchor_text)

    def __repr__(self):
        return f"<CrawlNode depth={self.depth} url={self.url}>"
