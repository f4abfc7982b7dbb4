from typing import Iterable


class VisitedTracker:
    """
    Tracks which URLs have been scheduled or fetched during a crawl session.

    Entries are only ever added; `clear()` is the single way to forget them
    and is called once at the start of each top-level crawl. There is no
    eviction: forgetting a URL mid-session would allow it to be fetched twice.
    """

    def __init__(self, urls: Iterable[str] = ()):
        self._visited: set[str] = set(urls)

    def mark(self, url: str) -> None:
        """Mark a URL as visited. Marking twice is a no-op."""
        self._visited.add(url)

    def is_visited(self, url: str) -> bool:
        return url in self._visited

    def clear(self) -> None:
        self._visited.clear()

    def __contains__(self, url: object) -> bool:
        return url in self._visited

    def __len__(self) -> int:
        return len(self._visited)
