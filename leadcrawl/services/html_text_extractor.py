import logging
from typing import Callable, NamedTuple, Optional, Protocol, Sequence

from bs4 import BeautifulSoup

from leadcrawl.domain.config import DEFAULT_CONTENT_SELECTORS, DEFAULT_REMOVAL_SELECTORS
from leadcrawl.domain.fetch_result import RawLink

logger = logging.getLogger(__name__)


def clean_text(text: str) -> str:
    """Collapse runs of whitespace inside lines and drop blank lines."""
    lines = (" ".join(line.split()) for line in text.splitlines())
    return "\n".join(line for line in lines if line)


class ContentStrategy(Protocol):
    name: str

    def extract(self, soup: BeautifulSoup) -> Optional[str]: ...


class SelectorStrategy:
    """Text of the first element matching a CSS selector, or None if nothing matches."""

    def __init__(self, selector: str):
        self.selector = selector
        self.name = selector

    def extract(self, soup: BeautifulSoup) -> Optional[str]:
        element = soup.select_one(self.selector)
        if element is None:
            return None
        return clean_text(element.get_text(separator="\n"))


class WholeDocumentStrategy:
    name = "document"

    def extract(self, soup: BeautifulSoup) -> Optional[str]:
        root = soup.body or soup
        return clean_text(root.get_text(separator="\n"))


def strategies_from_selectors(selectors: Sequence[str]) -> list[ContentStrategy]:
    strategies: list[ContentStrategy] = [SelectorStrategy(s) for s in selectors if s]
    strategies.append(WholeDocumentStrategy())
    return strategies


class PageContent(NamedTuple):
    text: str
    raw_links: list[RawLink]
    strategy: str


class HtmlContentExtractor:
    """Turns a rendered DOM snapshot into boilerplate-free text plus raw anchors.

    Anchors are collected from the full document before any region is
    removed, and are returned unfiltered in document order.
    """

    def __init__(
        self,
        removal_selectors: Sequence[str] = DEFAULT_REMOVAL_SELECTORS,
        strategies: Optional[Sequence[ContentStrategy]] = None,
        soup_factory: Optional[Callable[[str], BeautifulSoup]] = None,
    ):
        self.removal_selectors = tuple(removal_selectors)
        self.strategies = list(strategies) if strategies is not None else strategies_from_selectors(DEFAULT_CONTENT_SELECTORS)
        self._soup_factory = soup_factory or (lambda html: BeautifulSoup(html, "html.parser"))

    def extract_links(self, soup: BeautifulSoup) -> list[RawLink]:
        links = []
        for a in soup.find_all("a", href=True):
            links.append(RawLink(
                href=a.get("href", "").strip(),
                anchor_text=" ".join(a.get_text(separator=" ").split()),
                title_attr=(a.get("title") or "").strip(),
            ))
        return links

    def _remove_boilerplate(self, soup: BeautifulSoup) -> None:
        for selector in self.removal_selectors:
            for element in soup.select(selector):
                element.decompose()

    def extract(self, html: Optional[str]) -> PageContent:
        if not html:
            return PageContent("", [], "empty")

        soup = self._soup_factory(html)
        raw_links = self.extract_links(soup)
        self._remove_boilerplate(soup)

        for strategy in self.strategies:
            text = strategy.extract(soup)
            if text is not None:
                logger.debug("Main content selected by %s (%d chars)", strategy.name, len(text))
                return PageContent(text, raw_links, strategy.name)
        return PageContent("", raw_links, "none")
