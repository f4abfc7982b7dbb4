import logging
import threading
from collections import Counter, deque
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from typing import Optional, Sequence

from leadcrawl.domain.config import CrawlSettings
from leadcrawl.domain.crawl_node import CrawlNode
from leadcrawl.domain.crawl_result import WalkResult
from leadcrawl.domain.crawl_session import CrawlSession
from leadcrawl.domain.fetch_result import ErrorKind, FetchResult
from leadcrawl.domain.visited_tracker import VisitedTracker
from leadcrawl.exceptions import CrawlAlreadyRunningError
from leadcrawl.services.governor import Governor
from leadcrawl.services.link_classifier import LinkClassifier
from leadcrawl.services.page_fetch_service import PageFetchService

logger = logging.getLogger(__name__)


class CrawlWalker:
    """Depth-bounded breadth-first walk over classified child links.

    Each depth level is fetched on a small thread pool and fully settles
    before the next frontier is built. Only this walker's thread touches
    the visited set and the frontier; fetch workers just return results.
    URLs are marked visited when scheduled, not when fetched.
    """

    def __init__(
        self,
        *,
        fetch_service: PageFetchService,
        classifier: LinkClassifier,
        visited: VisitedTracker,
        settings: CrawlSettings,
        governor: Governor,
    ):
        self.fetch_service = fetch_service
        self.classifier = classifier
        self.visited = visited
        self.settings = settings
        self.governor = governor
        self._running = threading.Lock()

    def walk(
        self,
        seed_nodes: Sequence[CrawlNode],
        max_depth: int,
        stop_event: Optional[threading.Event] = None,
    ) -> WalkResult:
        if max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if not self._running.acquire(blocking=False):
            raise CrawlAlreadyRunningError("A walk is already running on this walker")
        try:
            return self._walk(seed_nodes, max_depth, CrawlSession(max_depth, stop_event))
        finally:
            self._running.release()

    def _schedule_seeds(self, seed_nodes: Sequence[CrawlNode]) -> list[CrawlNode]:
        frontier = []
        for node in seed_nodes:
            if node.url in self.visited:
                logger.debug("Skipping duplicate seed %s", node.url)
                continue
            self.visited.mark(node.url)
            frontier.append(node)
        return frontier

    def _walk(self, seed_nodes: Sequence[CrawlNode], max_depth: int, session: CrawlSession) -> WalkResult:
        self.visited.clear()
        frontier = self._schedule_seeds(seed_nodes)
        results: list[FetchResult] = []

        with ThreadPoolExecutor(max_workers=self.settings.max_concurrent_pages, thread_name_prefix="crawl") as pool:
            depth = 0
            while frontier:
                session.current_depth = depth
                logger.info("Depth %d/%d: %d page(s) to process", depth, max_depth, len(frontier))
                level = self._fetch_level(pool, frontier, session)
                results.extend(level)

                if session.is_stopped():
                    logger.info("Crawl stopped at depth %d", depth)
                    session.mark_stopped()
                    break

                if depth >= max_depth:
                    if self.settings.classify_at_max_depth:
                        for result in level:
                            if result.success:
                                self._select_children(result)
                    break

                frontier = self._next_frontier(level, session)
                if not frontier:
                    logger.info("No more pages to process after depth %d", depth)
                    break

                depth += 1
                self.governor.pause_between_depths(depth)

        logger.info(
            "Walk finished: %d fetched, %d failed, %d scheduled",
            session.pages_fetched, sum(session.failures.values()), session.links_scheduled,
        )
        return WalkResult(results, session.stopped)

    def _settle(self, future: Future, node: CrawlNode) -> FetchResult:
        try:
            return future.result()
        except Exception as e:
            logger.exception("Unexpected error fetching %s", node.url)
            return FetchResult.failed(node, ErrorKind.NAVIGATION_FAILURE, str(e))

    def _fetch_level(self, pool: ThreadPoolExecutor, frontier: list[CrawlNode], session: CrawlSession) -> list[FetchResult]:
        """Fetch one level with at most `max_concurrent_pages` fetches in flight.

        The stop event is checked before every submission: once it is set,
        nothing new starts and only in-flight fetches settle. Results are
        returned in frontier order.
        """
        window = self.settings.max_concurrent_pages
        pending = deque(enumerate(frontier))
        in_flight: dict[Future, tuple[int, CrawlNode]] = {}
        settled: dict[int, FetchResult] = {}

        while pending or in_flight:
            while pending and len(in_flight) < window:
                if session.is_stopped():
                    logger.info("Stop requested; %d page(s) at this depth not scheduled", len(pending))
                    pending.clear()
                    break
                index, node = pending.popleft()
                in_flight[pool.submit(self.fetch_service.fetch_and_extract, node)] = (index, node)
            if not in_flight:
                break
            done, _ = wait(in_flight, return_when=FIRST_COMPLETED)
            for future in done:
                index, node = in_flight.pop(future)
                settled[index] = self._settle(future, node)

        level = [settled[i] for i in sorted(settled)]
        for result in level:
            session.record(result)
        return level

    def _select_children(self, result: FetchResult) -> list[tuple[str, str]]:
        """Classify a page's raw links and keep the first accepted, unvisited ones.

        Fills `result.child_links`; does not mark anything visited.
        """
        cap = self.settings.max_child_links_per_page
        accepted: list[tuple[str, str]] = []
        seen: set[str] = set()
        rejected: Counter = Counter()

        for link in result.raw_links:
            if len(accepted) >= cap:
                break
            decision = self.classifier.classify(link.href, link.anchor_text, result.url)
            if not decision.accepted:
                rejected[decision.reason] += 1
                logger.debug("Rejected %r on %s: %s", link.href, result.url, decision.detail)
                continue
            if decision.url in seen or decision.url in self.visited:
                continue
            seen.add(decision.url)
            accepted.append((decision.url, link.anchor_text))

        result.child_links = [url for url, _ in accepted]
        logger.debug(
            "%s: %d child link(s) accepted of %d (%s)",
            result.url, len(accepted), len(result.raw_links), dict(rejected),
        )
        return accepted

    def _next_frontier(self, level: list[FetchResult], session: CrawlSession) -> list[CrawlNode]:
        frontier = []
        for result in level:
            if not result.success:
                continue
            for url, anchor_text in self._select_children(result):
                self.visited.mark(url)
                frontier.append(result.node.child(url, anchor_text))
        session.links_scheduled += len(frontier)
        return frontier
