import json
from types import SimpleNamespace
from unittest.mock import Mock

import pytest

from leadcrawl.exceptions import ClassifierError
from leadcrawl.services.gemini_classifier import (
    GeminiContentClassifier,
    build_content_classifier,
    split_into_batches,
    strip_code_fences,
)


class _FakeModel:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def generate_content(self, prompt, **kwargs):
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return SimpleNamespace(text=response)


def _classifier(model, **kwargs):
    return GeminiContentClassifier(model=model, sleep=Mock(), **kwargs)


def test_strip_code_fences():
    assert strip_code_fences('```json\n{"leads": []}\n```') == '{"leads": []}'
    assert strip_code_fences("") == ""


def test_split_into_batches():
    assert split_into_batches("a b c d e", 2) == ["a b", "c d", "e"]
    assert split_into_batches("", 2) == []


def test_classify_leads_parses_fenced_json():
    payload = {"leads": [
        {"name": "Jane Doe", "title": "Owner", "company": "Acme", "email": "jane@acme.com", "phone": None},
    ]}
    model = _FakeModel("```json\n" + json.dumps(payload) + "\n```")

    leads = _classifier(model).classify_leads("Jane Doe runs Acme", keyword="plumber", source_url="https://acme.com/")

    assert len(leads) == 1
    assert leads[0].name == "Jane Doe"
    assert leads[0].phone == ""
    assert leads[0].source_url == "https://acme.com/"
    assert leads[0].keyword == "plumber"
    assert 'Keyword: "plumber"' in model.prompts[0]


def test_long_content_is_batched_with_context_summary():
    model = _FakeModel(
        json.dumps({"leads": [{"name": "A", "email": "a@x.com"}], "context_summary": "Acme does plumbing"}),
        json.dumps({"leads": [{"name": "B", "email": "b@x.com"}], "context_summary": ""}),
    )
    classifier = _classifier(model, batch_words=3)

    leads = classifier.classify_leads("one two three four five", source_url="https://x.com/")

    assert [lead.name for lead in leads] == ["A", "B"]
    assert "PREVIOUS CONTEXT" not in model.prompts[0]
    assert "Acme does plumbing" in model.prompts[1]
    classifier._sleep.assert_called_once_with(1.0)


def test_single_prompt_is_truncated():
    model = _FakeModel('{"leads": []}')
    _classifier(model, max_prompt_chars=10).classify_leads("x" * 50)
    assert "x" * 10 in model.prompts[0]
    assert "x" * 11 not in model.prompts[0]


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"nothing": true}'])
def test_malformed_responses_raise_non_transient_error(raw):
    with pytest.raises(ClassifierError) as exc:
        _classifier(_FakeModel(raw)).classify_leads("text")
    assert exc.value.transient is False


def test_request_failures_carry_transient_flag():
    with pytest.raises(ClassifierError) as exc:
        _classifier(_FakeModel(TimeoutError("slow"))).classify_leads("text")
    assert exc.value.transient is True

    with pytest.raises(ClassifierError) as exc:
        _classifier(_FakeModel(ValueError("bad request"))).classify_leads("text")
    assert exc.value.transient is False


@pytest.mark.parametrize("raw,expected", [
    ('{"score": 8, "reason": "directory"}', 8),
    ('{"score": "9.5"}', 9),
    ('{"score": 42}', 10),
    ('{"score": -3}', 1),
])
def test_score_url_relevance_is_clamped(raw, expected):
    model = _FakeModel(raw)
    score = _classifier(model).score_url_relevance("https://acme.com/", "Acme", "", keyword="plumber")
    assert score == expected
    assert "Snippet: No snippet" in model.prompts[0]


def test_score_without_number_raises():
    with pytest.raises(ClassifierError):
        _classifier(_FakeModel('{"reason": "?"}')).score_url_relevance("https://acme.com/")


def test_requires_api_key_without_model():
    with pytest.raises(ValueError):
        GeminiContentClassifier(api_key=None)


def test_build_content_classifier_without_key_returns_none():
    assert build_content_classifier(None) is None
    assert build_content_classifier("") is None
