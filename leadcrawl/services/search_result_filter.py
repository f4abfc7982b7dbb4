import logging
from typing import Iterable, Optional

from leadcrawl.domain.search_result import ScoredSearchResult, SearchResult
from leadcrawl.services.gemini_classifier import GeminiContentClassifier
from leadcrawl.services.governor import Governor

logger = logging.getLogger(__name__)

RELEVANCE_THRESHOLD = 7
NEUTRAL_SCORE = 6


class SearchResultFilter:
    """Keeps the search results worth crawling for a keyword."""

    def __init__(self, classifier: Optional[GeminiContentClassifier] = None, governor: Optional[Governor] = None):
        if classifier is not None and governor is None:
            raise ValueError("a governor is required when a classifier is configured")
        self.classifier = classifier
        self.governor = governor

    def _score(self, result: SearchResult, keyword: str) -> ScoredSearchResult:
        outcome = self.governor.call_with_fallback(
            lambda: self.classifier.score_url_relevance(result.url, result.title, result.snippet, keyword),
            lambda: NEUTRAL_SCORE,
        )
        reason = "Fallback due to AI error" if outcome.used_fallback else "Scored by classifier"
        return ScoredSearchResult(result.url, result.title, result.snippet, outcome.value, reason)

    def filter(self, results: Iterable[SearchResult], keyword: str) -> list[ScoredSearchResult]:
        results = list(results)
        if self.classifier is None:
            logger.info("No content classifier configured; keeping all %d result(s)", len(results))
            return [
                ScoredSearchResult(r.url, r.title, r.snippet, NEUTRAL_SCORE, "No AI filtering available")
                for r in results
            ]

        scored = [self._score(r, keyword) for r in results]
        relevant = sorted((s for s in scored if s.score >= RELEVANCE_THRESHOLD), key=lambda s: s.score, reverse=True)
        logger.info("URL filtering completed: %d of %d result(s) relevant", len(relevant), len(results))
        return relevant
