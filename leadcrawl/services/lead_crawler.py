import logging
import threading
from collections import Counter
from typing import Iterable, Optional
from urllib.parse import urlsplit

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.crawl_node import CrawlNode
from leadcrawl.domain.crawl_result import CrawlReport
from leadcrawl.domain.lead import Lead
from leadcrawl.domain.search_result import SearchResult
from leadcrawl.exceptions import InvalidUrlError
from leadcrawl.services.crawl_walker import CrawlWalker
from leadcrawl.services.lead_assembler import LeadAssembler
from leadcrawl.services.link_classifier import ALLOWED_SCHEMES, canonicalize_url
from leadcrawl.services.search_result_filter import SearchResultFilter

logger = logging.getLogger(__name__)


class LeadCrawler:
    """Top-level entry point: seed URLs in, leads out.

    Collaborators are injected (see `leadcrawl.container`); this class only
    owns the order of operations: validate seeds, walk, assemble.
    """

    def __init__(
        self,
        *,
        walker: CrawlWalker,
        assembler: LeadAssembler,
        settings: CrawlSettings,
        search_filter: Optional[SearchResultFilter] = None,
    ):
        self.walker = walker
        self.assembler = assembler
        self.settings = settings
        self.search_filter = search_filter

    def effective_depth(self, max_depth: Optional[int]) -> int:
        if max_depth is None:
            max_depth = self.settings.max_depth
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if max_depth > self.settings.max_depth_limit:
            logger.warning(
                "Depth %d exceeds the limit of %d; clamping", max_depth, self.settings.max_depth_limit,
            )
            return self.settings.max_depth_limit
        return max_depth

    def seed_nodes(self, seed_urls: Iterable[str]) -> list[CrawlNode]:
        nodes = []
        for url in seed_urls:
            url = (url or "").strip()
            if urlsplit(url).scheme.lower() not in ALLOWED_SCHEMES:
                logger.warning("Skipping seed %r: not an http(s) URL", url)
                continue
            try:
                nodes.append(CrawlNode.seed(canonicalize_url(url)))
            except InvalidUrlError as e:
                logger.warning("Skipping seed: %s", e)
        return nodes

    def crawl(
        self,
        seed_urls: Iterable[str],
        max_depth: Optional[int] = None,
        keyword: str = "",
        stop_event: Optional[threading.Event] = None,
    ) -> CrawlReport:
        depth = self.effective_depth(max_depth)
        seeds = self.seed_nodes(seed_urls)
        if not seeds:
            logger.warning("No valid seed URLs; nothing to crawl")
            return CrawlReport([], [], {}, 0, 0, False)

        logger.info("Starting crawl of %d seed(s) to depth %d", len(seeds), depth)
        walk = self.walker.walk(seeds, depth, stop_event=stop_event)
        assembly = self.assembler.assemble(walk.results, keyword)

        failures: Counter = Counter(r.error.value for r in walk.results if not r.success and r.error is not None)
        failures.update(assembly.classifier_failures)
        if walk.stopped:
            logger.info("Crawl was stopped; returning partial results")
        return CrawlReport(
            leads=assembly.leads,
            fetch_results=walk.results,
            failures=dict(failures),
            duplicates=assembly.duplicates,
            rejected=assembly.rejected,
            stopped=walk.stopped,
        )

    def collect_leads(
        self,
        seed_urls: Iterable[str],
        max_depth: Optional[int] = None,
        keyword: str = "",
        stop_event: Optional[threading.Event] = None,
    ) -> list[Lead]:
        return self.crawl(seed_urls, max_depth, keyword, stop_event).leads

    def crawl_search_results(
        self,
        results: Iterable[SearchResult],
        keyword: str,
        max_depth: Optional[int] = None,
        stop_event: Optional[threading.Event] = None,
    ) -> CrawlReport:
        """Filter search results by relevance, then crawl the survivors."""
        results = list(results)
        if self.search_filter is not None:
            urls = [r.url for r in self.search_filter.filter(results, keyword)]
        else:
            urls = [r.url for r in results]
        return self.crawl(urls, max_depth, keyword, stop_event)
