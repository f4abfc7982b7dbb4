import pytest

from leadcrawl.domain import CrawlSettings, ErrorKind
from leadcrawl.exceptions import InvalidUrlError
from leadcrawl.services.link_classifier import LinkClassifier, canonicalize_url, resolve_href

BASE = "https://example.com/"


@pytest.fixture
def classifier():
    return LinkClassifier(CrawlSettings())


@pytest.fixture
def strict_classifier():
    return LinkClassifier(CrawlSettings(same_domain_only=True))


def test_scenario_about_pdf_and_fragment(classifier):
    about = classifier.classify("/about", "About Us", BASE)
    pdf = classifier.classify("/x.pdf", "Download", BASE)
    top = classifier.classify("#top", "Top", BASE)

    assert about.accepted
    assert about.url == "https://example.com/about"
    assert not pdf.accepted
    assert pdf.reason is ErrorKind.EXCLUDED_BY_POLICY
    assert not top.accepted
    assert top.reason is ErrorKind.INVALID_URL


@pytest.mark.parametrize("href", [
    "javascript:void(0)",
    "mailto:sales@example.com",
    "tel:+15551234567",
    "ftp://example.com/file",
    "",
])
def test_non_navigable_hrefs_are_invalid(classifier, href):
    decision = classifier.classify(href, "Contact sales", BASE)
    assert decision.reason is ErrorKind.INVALID_URL
    assert decision.url is None


def test_resolves_relative_and_protocol_relative_hrefs(classifier):
    assert classifier.classify("team", "Our Team", "https://example.com/company/").url == "https://example.com/company/team"
    assert classifier.classify("//other.org/contact", "Contact", BASE).url == "https://other.org/contact"


def test_open_variant_accepts_cross_domain_links(classifier):
    decision = classifier.classify("https://partner.io/about", "Partner profile", BASE)
    assert decision.accepted


@pytest.mark.parametrize("href", [
    "https://www.facebook.com/acme",
    "https://example.com/style.css",
    "https://en.wikipedia.org/wiki/Acme",
    "https://example.com/files/archive.ZIP",
])
def test_exclude_patterns_reject(classifier, href):
    decision = classifier.classify(href, "Acme page link", BASE)
    assert not decision.accepted
    assert decision.reason is ErrorKind.EXCLUDED_BY_POLICY


def test_exclude_pattern_matches_anchor_text_case_insensitively(classifier):
    decision = classifier.classify("/share", "Follow us on Facebook.com", BASE)
    assert decision.reason is ErrorKind.EXCLUDED_BY_POLICY


@pytest.mark.parametrize("text", ["Go", "", "123", ">>", "Home", "NEXT", "more"])
def test_text_heuristics_reject(classifier, text):
    decision = classifier.classify("/somewhere", text, BASE)
    assert decision.reason is ErrorKind.EXCLUDED_BY_POLICY


def test_classification_is_idempotent(classifier):
    first = classifier.classify("/about", "About Us", BASE)
    second = classifier.classify("/about", "About Us", BASE)
    assert first == second


def test_strict_variant_rejects_other_hosts(strict_classifier):
    decision = strict_classifier.classify("https://partner.io/about", "About our partner", BASE)
    assert decision.reason is ErrorKind.EXCLUDED_BY_POLICY


def test_strict_variant_requires_include_keyword_or_descriptive_text(strict_classifier):
    assert strict_classifier.classify("/contact-us", "Reach", BASE).accepted
    assert strict_classifier.classify("/x", "Our staff", BASE).accepted
    assert strict_classifier.classify("/x", "Pricing plans for 2024", BASE).accepted
    assert not strict_classifier.classify("/x", "Pricing", BASE).accepted


def test_strict_variant_treats_subdomain_as_other_host(strict_classifier):
    decision = strict_classifier.classify("https://blog.example.com/about", "About us", BASE)
    assert not decision.accepted


def test_canonicalize_url():
    assert canonicalize_url("HTTPS://Example.COM:443/About?q=1#team") == "https://example.com/About?q=1"
    assert canonicalize_url("http://example.com") == "http://example.com/"
    assert canonicalize_url("http://example.com:8080/a") == "http://example.com:8080/a"


def test_canonicalize_rejects_non_http():
    with pytest.raises(InvalidUrlError):
        canonicalize_url("ftp://example.com/")
    with pytest.raises(InvalidUrlError):
        canonicalize_url("https:///nohost")


def test_resolve_href_rejects_fragment_only():
    with pytest.raises(InvalidUrlError):
        resolve_href("#section", BASE)
