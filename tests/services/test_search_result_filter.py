from unittest.mock import Mock

import pytest

from leadcrawl.domain import CrawlSettings
from leadcrawl.domain.search_result import SearchResult
from leadcrawl.exceptions import ClassifierError
from leadcrawl.services.governor import Governor
from leadcrawl.services.search_result_filter import NEUTRAL_SCORE, SearchResultFilter

RESULTS = [
    SearchResult("https://news.example.org/story", "Plumbing news", "An article"),
    SearchResult("https://acme-plumbing.com/", "Acme Plumbing", "Call us today"),
    SearchResult("https://directory.com/plumbers", "Plumber directory", "Local listings"),
]


def _governor():
    return Governor.for_classifier(CrawlSettings(retry_attempts=1), sleep=Mock())


def test_without_classifier_everything_passes_with_neutral_score():
    scored = SearchResultFilter().filter(RESULTS, "plumber")

    assert [s.url for s in scored] == [r.url for r in RESULTS]
    assert {s.score for s in scored} == {NEUTRAL_SCORE}
    assert scored[0].reason == "No AI filtering available"


def test_keeps_relevant_results_sorted_by_score():
    classifier = Mock()
    classifier.score_url_relevance.side_effect = [3, 8, 9]

    scored = SearchResultFilter(classifier, _governor()).filter(RESULTS, "plumber")

    assert [(s.url, s.score) for s in scored] == [
        ("https://directory.com/plumbers", 9),
        ("https://acme-plumbing.com/", 8),
    ]
    classifier.score_url_relevance.assert_any_call(
        "https://acme-plumbing.com/", "Acme Plumbing", "Call us today", "plumber",
    )


def test_scoring_failure_falls_back_below_threshold():
    classifier = Mock()
    classifier.score_url_relevance.side_effect = [ClassifierError("quota"), 7, 7]

    scored = SearchResultFilter(classifier, _governor()).filter(RESULTS, "plumber")

    assert [s.url for s in scored] == ["https://acme-plumbing.com/", "https://directory.com/plumbers"]
    assert all(s.reason == "Scored by classifier" for s in scored)


def test_classifier_requires_governor():
    with pytest.raises(ValueError):
        SearchResultFilter(classifier=Mock())
