"""Content loading for Teaser.

Posts live under ``_posts/`` (and ``_drafts/`` when drafts are enabled) and
are named ``YYYY-MM-DD-slug.md``. Every other file outside underscore and
dot directories is either a page (it opens with front matter) or a static
file that is copied as is.

Key classes:
- Post: Immutable record for a blog post.
- Page: A templated, non-post page.
- PermalinkBuilder: Expands permalink patterns into post URLs.
- PostLoader: Builds Post instances and returns them newest first.
- PageLoader: Splits the site tree into pages and static files.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

from .collections import PostCollection
from .errors import BuildError
from .extractors import create_post_extractor, extract_frontmatter, has_frontmatter
from .renderers import RendererRegistry, default_renderer_registry
from .utils import clean_url, is_html, is_internal_path, is_markdown, slugify

PERMALINK_STYLES = {
    "date": "/:categories/:year/:month/:day/:title.html",
    "pretty": "/:categories/:year/:month/:day/:title/",
    "ordinal": "/:categories/:year/:y_day/:title.html",
    "none": "/:categories/:title.html",
}

PERMALINK_TOKEN_RE = re.compile(r":([a-z_]+)")

POST_SUFFIXES = (".md", ".markdown", ".html")


@dataclass(frozen=True)
class Post:
    """A single blog post.

    Attributes:
        title: Title from front matter, or None when the post is untitled.
        url: Site-relative URL path.
        date: Publish date in the site timezone.
        content: Rendered HTML of the whole post.
        excerpt: Rendered HTML of the leading part of the post. The same
            string as ``content`` when the post has nothing more to reveal.
        slug: URL slug derived from the filename.
        tags: Tags from front matter.
        categories: Categories from front matter.
        layout: Layout name used to wrap the post page.
        draft: Whether the post came from ``_drafts``.
        path: Source file.
        body: Raw source after front matter.
        front_matter: Parsed front matter.
    """

    title: str | None
    url: str
    date: datetime | None
    content: str
    excerpt: str
    slug: str = ""
    tags: tuple[str, ...] = ()
    categories: tuple[str, ...] = ()
    layout: str | None = "post"
    draft: bool = False
    path: Path | None = None
    body: str = ""
    front_matter: dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def has_more(self) -> bool:
        """True when the excerpt does not show the whole post."""
        return self.excerpt != self.content

    def as_context(self) -> dict[str, Any]:
        """Return the ``page`` variables for rendering this post's page."""
        context = dict(self.front_matter)
        context.update(
            title=self.title,
            url=self.url,
            date=self.date,
            content=self.content,
            excerpt=self.excerpt,
            slug=self.slug,
            tags=list(self.tags),
            categories=list(self.categories),
            layout=self.layout,
            draft=self.draft,
        )
        return context


@dataclass
class Page:
    """A non-post page rendered through the template engine.

    Attributes:
        title: Title from front matter (may be None).
        url: Site-relative URL path.
        source: Template source after front matter.
        front_matter: Parsed front matter.
        path: Source file.
        source_type: "markdown" or "html".
    """

    title: str | None
    url: str
    source: str
    front_matter: dict[str, Any]
    path: Path
    source_type: str

    @property
    def layout(self) -> str | None:
        return self.front_matter.get("layout")

    def as_context(self) -> dict[str, Any]:
        context = dict(self.front_matter)
        context.update(title=self.title, url=self.url, layout=self.layout)
        return context


class PermalinkBuilder:
    """Expands permalink patterns such as ``/:year/:month/:day/:title.html``.

    Named styles (date, pretty, ordinal, none) map to their patterns. Empty
    segments collapse, so a post without categories drops that segment.
    """

    def __init__(self, pattern: str = "date"):
        self.pattern = PERMALINK_STYLES.get(pattern, pattern)

    def build(
        self,
        slug: str,
        date: datetime | None,
        categories: tuple[str, ...] = (),
        pattern: str | None = None,
    ) -> str:
        """Return the URL for a post.

        Args:
            slug: Post slug.
            date: Post date; date tokens expand to empty strings without one.
            categories: Post categories.
            pattern: Optional per-post pattern overriding the site pattern.
        """
        template = PERMALINK_STYLES.get(pattern, pattern) if pattern else self.pattern
        values = {
            "title": slug,
            "slug": slug,
            "categories": "/".join(slugify(c) for c in categories),
            "year": date.strftime("%Y") if date else "",
            "month": date.strftime("%m") if date else "",
            "day": date.strftime("%d") if date else "",
            "i_month": str(date.month) if date else "",
            "i_day": str(date.day) if date else "",
            "short_year": date.strftime("%y") if date else "",
            "y_day": date.strftime("%j") if date else "",
        }

        def repl(match: re.Match) -> str:
            return values.get(match.group(1), match.group(0))

        return clean_url(PERMALINK_TOKEN_RE.sub(repl, template))


class PostLoader:
    """Loads posts from ``_posts`` (and optionally ``_drafts``).

    Attributes:
        project_root: Root directory of the blog.
        tz: Site timezone.
        excerpt_separator: Default excerpt separator.
        permalinks: Permalink builder.
        renderer_registry: Renderers for post bodies.
    """

    def __init__(
        self,
        project_root: Path,
        tz: tzinfo = timezone.utc,
        excerpt_separator: str = "\n\n",
        permalink: str = "date",
        renderer_registry: RendererRegistry | None = None,
    ):
        self.project_root = project_root
        self.tz = tz
        self.excerpt_separator = excerpt_separator
        self.permalinks = PermalinkBuilder(permalink)
        self.renderer_registry = renderer_registry or default_renderer_registry

    def iter_files(self, include_drafts: bool = False) -> list[Path]:
        """Return post source files, posts first, then drafts."""
        folders = ["_posts", "_drafts"] if include_drafts else ["_posts"]
        files: list[Path] = []
        for folder in folders:
            root = self.project_root / folder
            if not root.is_dir():
                continue
            for path in sorted(root.rglob("*")):
                if path.is_dir() or path.name.startswith((".", "_")):
                    continue
                if path.suffix.lower() in POST_SUFFIXES:
                    files.append(path)
        return files

    def load(self, include_drafts: bool = False) -> PostCollection:
        """Load every published post, newest first.

        Raises:
            BuildError: If a post cannot be read or has no usable date.
        """
        posts: list[Post] = []
        for path in self.iter_files(include_drafts):
            draft = "_drafts" in path.relative_to(self.project_root).parts
            post = self.build(path, draft=draft)
            if post is not None:
                posts.append(post)
        return PostCollection(posts).sorted()

    def build(self, path: Path, draft: bool = False) -> Post | None:
        """Build a Post from a source file.

        Returns:
            The Post, or None when front matter says ``published: false``.

        Raises:
            BuildError: If the file cannot be turned into a post.
        """
        try:
            raw = path.read_text(encoding="utf-8")
            extractor = create_post_extractor(
                self.tz, self.excerpt_separator, allow_mtime=draft
            )
            meta = extractor.extract(raw, path)
        except (OSError, ValueError) as exc:
            raise BuildError(path, str(exc), exc) from exc

        frontmatter: dict[str, Any] = meta["frontmatter"]
        if frontmatter.get("published") is False:
            return None

        renderer = self.renderer_registry.get_renderer(path)
        body = meta["body"]
        content = renderer.render(body) if renderer else body
        if meta["excerpt_is_content"]:
            excerpt = content
        else:
            source = meta["excerpt_source"]
            excerpt = renderer.render(source) if renderer else source

        slug = slugify(str(frontmatter.get("slug") or path.stem))
        url = self.permalinks.build(
            slug,
            meta["date"],
            meta["categories"],
            pattern=frontmatter.get("permalink"),
        )
        layout = frontmatter.get("layout", "post")
        return Post(
            title=meta["title"],
            url=url,
            date=meta["date"],
            content=content,
            excerpt=excerpt,
            slug=slug,
            tags=meta["tags"],
            categories=meta["categories"],
            layout=layout,
            draft=draft,
            path=path,
            body=body,
            front_matter=frontmatter,
        )


class PageLoader:
    """Splits the site tree into templated pages and static files.

    Attributes:
        project_root: Root directory of the blog.
        exclude: Relative paths (or first path components) to skip.
    """

    def __init__(self, project_root: Path, exclude: list[str] | None = None):
        self.project_root = project_root
        self.exclude = set(exclude or [])

    def iter_files(self) -> list[Path]:
        files: list[Path] = []
        for path in sorted(self.project_root.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.project_root)
            if is_internal_path(rel):
                continue
            if rel.as_posix() in self.exclude or rel.parts[0] in self.exclude:
                continue
            files.append(path)
        return files

    def load(self) -> tuple[list[Page], list[Path]]:
        """Return (pages, static files)."""
        pages: list[Page] = []
        static: list[Path] = []
        for path in self.iter_files():
            if not (is_markdown(path) or is_html(path)):
                static.append(path)
                continue
            text = path.read_text(encoding="utf-8")
            if not has_frontmatter(text):
                static.append(path)
                continue
            pages.append(self.build(path, text))
        return pages, static

    def build(self, path: Path, text: str) -> Page:
        frontmatter, source = extract_frontmatter(text)
        rel = path.relative_to(self.project_root)
        title = frontmatter.get("title")
        permalink = frontmatter.get("permalink")
        url = clean_url(str(permalink)) if permalink else self.derive_url(rel)
        return Page(
            title=str(title) if title not in (None, "") else None,
            url=url,
            source=source,
            front_matter=frontmatter,
            path=path,
            source_type="markdown" if is_markdown(path) else "html",
        )

    @staticmethod
    def derive_url(rel: Path) -> str:
        """Derive a page URL from its path relative to the project root.

        ``index.html`` maps to its directory; Markdown pages become ``.html``.
        """
        if is_markdown(rel):
            rel = rel.with_suffix(".html")
        if rel.name == "index.html":
            parent = rel.parent.as_posix()
            return "/" if parent == "." else f"/{parent}/"
        return f"/{rel.as_posix()}"

