from typing import NamedTuple


class SearchResult(NamedTuple):
    """A search-engine hit considered as a crawl seed."""
    url: str
    title: str = ""
    snippet: str = ""


class ScoredSearchResult(NamedTuple):
    url: str
    title: str
    snippet: str
    score: int
    reason: str
