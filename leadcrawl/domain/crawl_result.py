"""Crawl result data models."""
from typing import NamedTuple

from leadcrawl.domain.fetch_result import FetchResult
from leadcrawl.domain.lead import Lead


class WalkResult(NamedTuple):
    """Everything the walker fetched, across all depths, in fetch order."""
    results: list[FetchResult]

    stopped: bool
    """True if the walk was stopped early via stop_event"""

    @property
    def fetched_urls(self) -> list[str]:
        return [r.node.url for r in self.results]


class AssemblyResult(NamedTuple):
    """Leads that survived cleaning, dedup and validation, plus diagnostics."""
    leads: list[Lead]
    duplicates: int
    rejected: int
    rejection_reasons: dict[str, int]
    fallback_pages: int
    classifier_failures: dict[str, int]


class CrawlReport(NamedTuple):
    """Result of a top-level lead crawl."""
    leads: list[Lead]
    fetch_results: list[FetchResult]
    failures: dict[str, int]
    duplicates: int
    rejected: int
    stopped: bool

    @property
    def pages_fetched(self) -> int:
        return sum(1 for r in self.fetch_results if r.success)
