from datetime import datetime, timezone

import pytest

from teaser.collections import PostCollection, TagCollection
from teaser.content import Post


def make_post(slug, day, tags=(), categories=(), draft=False):
    return Post(
        title=slug.title(),
        url=f"/{slug}.html",
        date=datetime(2017, 4, day, tzinfo=timezone.utc),
        content=slug,
        excerpt=slug,
        slug=slug,
        tags=tags,
        categories=categories,
        draft=draft,
    )


@pytest.fixture
def posts():
    return PostCollection(
        [
            make_post("alpha", 1, tags=("ps",)),
            make_post("gamma", 3, categories=("internals",), draft=True),
            make_post("beta", 2, tags=("ps", "xml")),
        ]
    )


def test_sequence_behaviour(posts):
    assert len(posts) == 3
    assert posts[0].slug == "alpha"
    assert isinstance(posts[1:], PostCollection)
    assert [p.slug for p in posts[1:]] == ["gamma", "beta"]
    assert posts.first.slug == "alpha"
    assert PostCollection().first is None


def test_sorted_newest_first(posts):
    assert [p.slug for p in posts.sorted()] == ["gamma", "beta", "alpha"]
    assert [p.slug for p in posts.sorted(reverse=False)] == ["alpha", "beta", "gamma"]
    assert [p.slug for p in posts.latest(2)] == ["gamma", "beta"]
    # the original order is untouched
    assert [p.slug for p in posts] == ["alpha", "gamma", "beta"]


def test_window(posts):
    assert [p.slug for p in posts.window(0, 2)] == ["alpha", "gamma"]
    assert [p.slug for p in posts.window(2, 3)] == ["beta"]
    assert list(posts.window(5, 3)) == []
    assert len(posts.window(1)) == 2
    with pytest.raises(ValueError):
        posts.window(-1, 3)
    with pytest.raises(ValueError):
        posts.window(0, -3)


def test_filters(posts):
    assert [p.slug for p in posts.with_tag("xml")] == ["beta"]
    assert [p.slug for p in posts.in_category("internals")] == ["gamma"]
    assert [p.slug for p in posts.drafts()] == ["gamma"]
    assert [p.slug for p in posts.published()] == ["alpha", "beta"]


def test_tag_collection(posts):
    tags = TagCollection({"ps": [posts[0], posts[2]]})
    assert list(tags) == ["ps"]
    assert len(tags) == 1
    assert isinstance(tags["ps"], PostCollection)
    assert [p.slug for p in tags["ps"]] == ["alpha", "beta"]
    assert tags.get("missing") is None
    assert list(tags.keys()) == ["ps"]
