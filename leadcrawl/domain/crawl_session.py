import threading
from collections import Counter
from typing import Optional

from leadcrawl.domain.fetch_result import ErrorKind, FetchResult


class CrawlSession:
    """
    State for a single walk: cancellation signal plus progress counters.

    The session is mutated only by the walker's own thread; fetch workers
    return FetchResults and never touch it.
    """

    def __init__(self, max_depth: int, stop_event: Optional[threading.Event] = None):
        self.max_depth = max_depth
        self.stop_event = stop_event if stop_event is not None else threading.Event()
        self.current_depth: int = 0
        self.pages_fetched: int = 0
        self.links_scheduled: int = 0
        self.failures: Counter = Counter()
        self.stopped: bool = False

    def record(self, result: FetchResult) -> None:
        if result.success:
            self.pages_fetched += 1
        elif result.error is not None:
            self.failures[result.error] += 1

    def failure_count(self, kind: ErrorKind) -> int:
        return self.failures.get(kind, 0)

    def is_stopped(self) -> bool:
        """Check if a stop has been requested."""
        return self.stop_event.is_set()

    def mark_stopped(self) -> None:
        self.stopped = True
        self.stop_event.set()
