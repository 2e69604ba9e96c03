import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from teaser.extractors import (
    CompositeMetadataExtractor,
    DateExtractor,
    ExcerptExtractor,
    TaxonomyExtractor,
    TitleExtractor,
    extract_frontmatter,
    has_frontmatter,
    parse_date,
)

POST = Path("_posts/2017-04-13-hello.md")


def test_extract_frontmatter_variants():
    data, body = extract_frontmatter("---\ntitle: Hi\n---\nBody")
    assert data == {"title": "Hi"}
    assert body == "Body"

    data, body = extract_frontmatter("---\n---\nBody")
    assert data == {}
    assert body == "Body"
    assert has_frontmatter("---\n---\nBody")

    text = "---\ntitle: [unclosed\n---\nBody"
    assert extract_frontmatter(text) == ({}, text)
    assert extract_frontmatter("---\n- a\n---\nBody")[0] == {}
    assert extract_frontmatter("No front matter") == ({}, "No front matter")
    assert not has_frontmatter("Text\n---\n")


def test_parse_date_accepts_jekyll_style_strings():
    parsed = parse_date("2017-04-13 10:00:00 +0200")
    assert parsed.utcoffset() == timedelta(hours=2)
    assert parse_date("2017-04-13") == datetime(2017, 4, 13)
    assert parse_date("April 13, 2017") == datetime(2017, 4, 13)
    assert parse_date("2017-04-13 10:00 AM") == datetime(2017, 4, 13, 10, 0)
    assert parse_date("Thu, 13 Apr 2017 08:30:00 +0000").utcoffset() == timedelta(0)
    with pytest.raises(ValueError):
        parse_date("someday")


def test_title_comes_from_front_matter_only():
    extractor = TitleExtractor()
    assert extractor.extract("# Heading", POST, {"title": "Hello"}) == {"title": "Hello"}
    assert extractor.extract("# Heading", POST, {}) == {"title": None}
    assert extractor.extract("", POST, {"title": ""}) == {"title": None}


def test_date_precedence(tmp_path):
    extractor = DateExtractor(timezone.utc)
    from_front_matter = extractor.extract("", POST, {"date": "2018-01-02 03:04:05"})["date"]
    assert from_front_matter == datetime(2018, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    assert extractor.extract("", POST, {})["date"] == datetime(2017, 4, 13, tzinfo=timezone.utc)

    undated = tmp_path / "undated.md"
    undated.write_text("x", encoding="utf-8")
    with pytest.raises(ValueError):
        extractor.extract("", undated, {})

    os.utime(undated, (1_500_000_000, 1_500_000_000))
    draft_date = DateExtractor(timezone.utc, allow_mtime=True).extract("", undated, {})["date"]
    assert draft_date == datetime.fromtimestamp(1_500_000_000, tz=timezone.utc)


def test_taxonomy_accepts_lists_and_strings():
    result = TaxonomyExtractor().extract("", POST, {"tags": "ps xml", "category": "PowerShell"})
    assert result == {"tags": ("ps", "xml"), "categories": ("PowerShell",)}


def test_excerpt_splits_on_first_separator():
    extractor = ExcerptExtractor()
    result = extractor.extract("\nFirst para.\n\nSecond para.\n", POST, {})
    assert result == {"excerpt_source": "First para.", "excerpt_is_content": False}

    single = extractor.extract("\nOnly paragraph.\n\n", POST, {})
    assert single == {"excerpt_source": "Only paragraph.", "excerpt_is_content": True}


def test_excerpt_overrides():
    extractor = ExcerptExtractor()
    body = "Intro\nstill intro\n<!--more-->\nRest"
    custom = extractor.extract(body, POST, {"excerpt_separator": "<!--more-->"})
    assert custom["excerpt_source"] == "Intro\nstill intro"
    explicit = extractor.extract(body, POST, {"excerpt": "Hand written"})
    assert explicit == {"excerpt_source": "Hand written", "excerpt_is_content": False}


def test_composite_runs_front_matter_first():
    text = "---\ntitle: Hello\ntags: [ps]\n---\nOne.\n\nTwo."
    meta = CompositeMetadataExtractor().extract(text, POST)
    assert meta["frontmatter"]["title"] == "Hello"
    assert meta["title"] == "Hello"
    assert meta["tags"] == ("ps",)
    assert meta["date"] == datetime(2017, 4, 13, tzinfo=timezone.utc)
    assert meta["excerpt_source"] == "One."
