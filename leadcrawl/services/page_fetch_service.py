import logging
import random
import time
from typing import Callable, Optional

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.crawl_node import CrawlNode
from leadcrawl.domain.fetch_result import ErrorKind, FetchResult
from leadcrawl.exceptions import InsufficientContentError
from leadcrawl.services.governor import Governor
from leadcrawl.services.html_text_extractor import HtmlContentExtractor
from leadcrawl.services.page_driver import PageDriverSource

logger = logging.getLogger(__name__)


class PageFetchService:
    """Fetch one CrawlNode and turn it into a FetchResult.

    Every outcome is reported as a FetchResult; nothing raises past
    `fetch_and_extract`. Navigation goes through the fetch governor so
    transient failures are retried before the page is given up on.
    """

    def __init__(
        self,
        driver_source: PageDriverSource,
        extractor: HtmlContentExtractor,
        governor: Governor,
        settings: CrawlSettings,
        sleep: Callable[[float], None] = time.sleep,
        rng: Optional[random.Random] = None,
    ):
        self.driver_source = driver_source
        self.extractor = extractor
        self.governor = governor
        self.settings = settings
        self._sleep = sleep
        self._rng = rng or random.Random()

    def _load(self, url: str) -> str:
        driver = self.driver_source.open_page()
        try:
            driver.navigate(url, self.settings.navigation_timeout_ms)
            return driver.content()
        finally:
            driver.close()

    def _check_content(self, url: str, text: str) -> None:
        if len(text) < self.settings.min_content_length:
            raise InsufficientContentError(url, len(text), self.settings.min_content_length)

    def _throttle(self) -> None:
        low = self.settings.request_delay_min_ms
        high = self.settings.request_delay_max_ms
        if high <= 0:
            return
        delay_ms = self._rng.uniform(low, high)
        logger.debug("Throttling %.0fms", delay_ms)
        self._sleep(delay_ms / 1000)

    def fetch_and_extract(self, node: CrawlNode) -> FetchResult:
        url = node.url
        logger.info("Fetching %s (depth %d)", url, node.depth)
        try:
            html = self.governor.call(lambda: self._load(url))
        except Exception as e:
            logger.warning("Navigation failed for %s: %s", url, e)
            return FetchResult.failed(node, ErrorKind.NAVIGATION_FAILURE, str(e))

        try:
            content = self.extractor.extract(html)
        except Exception as e:
            logger.exception("Error extracting content from %s", url)
            return FetchResult.failed(node, ErrorKind.EXTRACTION_FAILURE, str(e))

        try:
            self._check_content(url, content.text)
        except InsufficientContentError as e:
            logger.warning("%s", e)
            return FetchResult.failed(node, ErrorKind.INSUFFICIENT_CONTENT, str(e))

        length = len(content.text)
        logger.info(
            "Fetched %s: %d chars via %s, %d links", url, length, content.strategy, len(content.raw_links),
        )
        self._throttle()
        return FetchResult(node=node, success=True, text_content=content.text, raw_links=content.raw_links)
