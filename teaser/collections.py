from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping, Sequence
from datetime import datetime, timezone
from itertools import islice
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import Post

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class PostCollection(Sequence["Post"]):
    """Read-only ordered sequence of posts for templates and code.

    The collection keeps whatever order it was built with; ``sorted()``
    returns a new collection.
    """

    def __init__(self, posts: Iterable[Post] = ()):
        self._posts = tuple(posts)

    def __iter__(self) -> Iterator[Post]:
        return iter(self._posts)

    def __len__(self) -> int:
        return len(self._posts)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return PostCollection(self._posts[item])
        return self._posts[item]

    def __eq__(self, other) -> bool:
        if isinstance(other, PostCollection):
            return self._posts == other._posts
        return NotImplemented

    __hash__ = None

    @property
    def first(self) -> Post | None:
        """The first post, or None for an empty collection."""
        return self._posts[0] if self._posts else None

    def window(self, offset: int = 0, limit: int | None = None) -> PostCollection:
        """Return posts ``[offset, offset + limit)``, stopping at the end.

        Raises:
            ValueError: If offset or limit is negative.
        """
        if offset < 0:
            raise ValueError(f"offset must be >= 0, got {offset}")
        if limit is not None and limit < 0:
            raise ValueError(f"limit must be >= 0, got {limit}")
        stop = None if limit is None else offset + limit
        return PostCollection(islice(self._posts, offset, stop))

    def with_tag(self, tag: str) -> PostCollection:
        return PostCollection(p for p in self._posts if tag in p.tags)

    def in_category(self, category: str) -> PostCollection:
        return PostCollection(p for p in self._posts if category in p.categories)

    def drafts(self) -> PostCollection:
        return PostCollection(p for p in self._posts if p.draft)

    def published(self) -> PostCollection:
        return PostCollection(p for p in self._posts if not p.draft)

    def sorted(self, reverse: bool = True) -> PostCollection:
        """Sort posts by date, then by slug.

        Args:
            reverse: If True (default), newest first.
        """

        def sort_key(p: Post):
            date = p.date
            if date is None:
                date = _EPOCH
            elif date.tzinfo is None:
                date = date.replace(tzinfo=timezone.utc)
            return (date, p.slug)

        return PostCollection(sorted(self._posts, key=sort_key, reverse=reverse))

    def latest(self, count: int = 3) -> PostCollection:
        return self.sorted().window(0, count)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"PostCollection({len(self._posts)} posts)"


class TagCollection(Mapping[str, PostCollection]):
    """Mapping of tag name to PostCollection."""

    def __init__(self, mapping: Mapping[str, Iterable[Post]]):
        self._mapping = {k: PostCollection(v) for k, v in mapping.items()}

    def __getitem__(self, key: str) -> PostCollection:
        return self._mapping[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"TagCollection({len(self._mapping)} tags)"
