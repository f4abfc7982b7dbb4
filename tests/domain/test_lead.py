import pytest

from leadcrawl.domain import CrawlNode, Lead


def test_from_mapping_accepts_aliases_and_drops_unknown_keys():
    lead = Lead.from_mapping(
        {"fullName": "Jane Doe", "email": "jane@acme.com", "reviewCount": 12, "linkedin": "x", "phone": None},
        source_url="https://acme.com/",
    )
    assert lead.name == "Jane Doe"
    assert lead.review_count == "12"
    assert lead.phone == ""
    assert lead.source_url == "https://acme.com/"
    assert not hasattr(lead, "linkedin")


def test_has_listing_fields():
    assert not Lead(name="A").has_listing_fields()
    assert Lead(name="A", address="1 Main St").has_listing_fields()


def test_crawl_node_child_increments_depth():
    seed = CrawlNode.seed("https://example.com/")
    child = seed.child("https://example.com/about", "About Us")
    assert child.depth == 1
    assert child.parent_url == "https://example.com/"
    assert child.anchor_text == "About Us"
    assert seed.parent_url is None


def test_crawl_node_rejects_negative_depth():
    with pytest.raises(ValueError):
        CrawlNode(url="https://example.com/", depth=-1)
