"""Post teaser rendering.

Two renderers produce the HTML fragments a blog index is built from:

- PostRenderer renders one post as title link, publish date, excerpt and,
  when the excerpt does not cover the whole post, a "Read more..." link.
- PostListRenderer applies PostRenderer to a window of a post collection.

Both are pure: the same posts and root URL always give the same markup.
Missing post fields degrade to empty output instead of raising.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from datetime import tzinfo
from itertools import islice
from typing import TYPE_CHECKING

from markupsafe import Markup

from .utils import format_date, join_root_url

if TYPE_CHECKING:
    from .content import Post

DEFAULT_DATE_FORMAT = "%m-%d-%Y"
DEFAULT_LIMIT = 3

HEADING_TEMPLATE = Markup('<h2 class="post-title"><a href="{href}">{title}</a></h2>')
DATE_TEMPLATE = Markup('<p class="post-date">Published: {date}</p>')
EXCERPT_TEMPLATE = Markup('<div class="content">{excerpt}</div>')
READ_MORE_TEMPLATE = Markup('<a class="read-more" href="{href}">Read more...</a>')


class PostRenderer:
    """Renders a single post teaser.

    Attributes:
        root_url: Prefix for post links.
        date_format: strftime pattern for the publish date.
        tz: Optional timezone aware dates are converted to before formatting.
    """

    def __init__(
        self,
        root_url: str = "",
        date_format: str = DEFAULT_DATE_FORMAT,
        tz: tzinfo | None = None,
    ):
        self.root_url = root_url or ""
        self.date_format = date_format
        self.tz = tz

    def href(self, post: Post) -> str:
        return join_root_url(self.root_url, getattr(post, "url", "") or "")

    def render(self, post: Post | None) -> Markup:
        """Render one post.

        Args:
            post: The post, or None when there are no posts.

        Returns:
            Markup fragment. For None only an empty excerpt block is emitted.
        """
        if post is None:
            return EXCERPT_TEMPLATE.format(excerpt="")

        parts: list[Markup] = []
        title = getattr(post, "title", None)
        if title:
            href = self.href(post)
            parts.append(HEADING_TEMPLATE.format(href=href, title=title))
            date = format_date(getattr(post, "date", None), self.date_format, self.tz)
            parts.append(DATE_TEMPLATE.format(date=date))

        excerpt = getattr(post, "excerpt", "") or ""
        content = getattr(post, "content", "") or ""
        # Excerpt and content are HTML produced by our own Markdown renderer.
        parts.append(EXCERPT_TEMPLATE.format(excerpt=Markup(excerpt)))
        # Same check as Post.has_more, done on attributes so any post-like object works.
        if excerpt != content:
            parts.append(READ_MORE_TEMPLATE.format(href=self.href(post)))
        return Markup("\n").join(parts)


class PostListRenderer:
    """Renders a window of posts with a PostRenderer.

    Attributes:
        post_renderer: Renderer applied to every post in the window.
    """

    def __init__(self, post_renderer: PostRenderer | None = None):
        self.post_renderer = post_renderer or PostRenderer()

    def iter_fragments(
        self, posts: Iterable[Post], offset: int = 0, limit: int = DEFAULT_LIMIT
    ) -> Iterator[Markup]:
        """Yield one fragment per post in ``[offset, offset + limit)``.

        Stops early when the collection runs out.

        Raises:
            ValueError: If offset or limit is negative.
        """
        if offset < 0 or limit < 0:
            raise ValueError(f"offset and limit must be >= 0, got {offset}, {limit}")
        for post in islice(posts, offset, offset + limit):
            yield self.post_renderer.render(post)

    def render(
        self, posts: Iterable[Post], offset: int = 0, limit: int = DEFAULT_LIMIT
    ) -> Markup:
        """Render the window as one fragment, posts in collection order."""
        return Markup("\n").join(self.iter_fragments(posts, offset, limit))
