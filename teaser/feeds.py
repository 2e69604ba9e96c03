"""Feed generation for Teaser.

Feeds are written after pages so they can list every post and page URL.
Both generators need an absolute site ``url`` in the config and are skipped
without one.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Writes sitemap.xml.
    RSSGenerator: Writes rss.xml with post excerpts.
    FeedRegistry: Runs every registered generator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any

from markupsafe import escape

from .utils import join_root_url

if TYPE_CHECKING:
    from .content import Page, Post

RFC822 = "%a, %d %b %Y %H:%M:%S %z"


def _site_base(site: dict[str, Any]) -> str:
    base = str(site.get("url") or "").rstrip("/")
    if not base:
        return ""
    root_url = str(site.get("root_url") or "")
    if root_url.startswith(("http://", "https://")):
        return root_url.rstrip("/")
    return join_root_url(base, root_url).rstrip("/")


class FeedGenerator(ABC):
    """Base class for feed generators."""

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename such as 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(
        self, posts: Iterable[Post], pages: Iterable[Page], site: dict[str, Any]
    ) -> str | None:
        """Return feed text, or None when the feed cannot be generated."""
        ...

    def write(
        self,
        output_dir: Path,
        posts: Iterable[Post],
        pages: Iterable[Page],
        site: dict[str, Any],
    ) -> bool:
        """Generate and write the feed.

        Returns:
            True if the feed was written, False if skipped.
        """
        content = self.generate(posts, pages, site)
        if content is None:
            return False
        (output_dir / self.filename).write_text(content, encoding="utf-8")
        return True


class SitemapGenerator(FeedGenerator):
    """sitemap.xml listing every post and page."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(
        self, posts: Iterable[Post], pages: Iterable[Page], site: dict[str, Any]
    ) -> str | None:
        base_url = _site_base(site)
        if not base_url:
            return None
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for post in posts:
            lastmod = post.date.strftime("%Y-%m-%d") if post.date else ""
            lines.append(
                f"  <url><loc>{escape(base_url + post.url)}</loc>"
                f"<lastmod>{lastmod}</lastmod></url>"
            )
        for page in pages:
            lines.append(f"  <url><loc>{escape(base_url + page.url)}</loc></url>")
        lines.append("</urlset>")
        return "\n".join(lines)


class RSSGenerator(FeedGenerator):
    """RSS 2.0 feed of posts, newest first, with excerpts as descriptions."""

    @property
    def filename(self) -> str:
        return "rss.xml"

    def generate(
        self, posts: Iterable[Post], pages: Iterable[Page], site: dict[str, Any]
    ) -> str | None:
        base_url = _site_base(site)
        if not base_url:
            return None
        title = site.get("title") or "Teaser Feed"
        items = []
        for post in posts:
            link = escape(base_url + post.url)
            pub_date = post.date.strftime(RFC822) if post.date else ""
            items.append(
                f"<item><title>{escape(post.title or post.slug)}</title>"
                f"<link>{link}</link><guid>{link}</guid>"
                f"<description>{escape(post.excerpt)}</description>"
                f"<pubDate>{pub_date}</pubDate></item>"
            )
        build_date = datetime.now(timezone.utc).strftime(RFC822)
        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{escape(title)}</title>",
            f"<link>{escape(base_url)}/</link>",
            f"<description>{escape(site.get('tagline') or title)}</description>",
            f"<lastBuildDate>{build_date}</lastBuildDate>",
        ]
        rss.extend(items)
        rss.append("</channel></rss>")
        return "\n".join(rss)


class FeedRegistry:
    """Runs registered feed generators in order."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    def generate_all(
        self,
        output_dir: Path,
        posts: Iterable[Post],
        pages: Iterable[Page],
        site: dict[str, Any],
    ) -> list[str]:
        """Write every feed and return the filenames that were written."""
        posts_list = list(posts)
        pages_list = list(pages)
        generated = []
        for generator in self._generators:
            if generator.write(output_dir, posts_list, pages_list, site):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry() -> FeedRegistry:
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator())
    return registry
