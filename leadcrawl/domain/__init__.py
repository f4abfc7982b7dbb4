"""Domain objects for leadcrawl - explicit re-exports to satisfy linters."""
from .config import CrawlSettings as CrawlSettings
from .crawl_node import CrawlNode as CrawlNode
from .fetch_result import ErrorKind as ErrorKind
from .fetch_result import FetchResult as FetchResult
from .fetch_result import RawLink as RawLink
from .lead import Lead as Lead
from .visited_tracker import VisitedTracker as VisitedTracker

__all__ = ["CrawlSettings", "CrawlNode", "ErrorKind", "FetchResult", "RawLink", "Lead", "VisitedTracker"]
