"""Template rendering engine for Teaser.

Jinja2 renders pages, post pages and layouts. Layouts live in ``_layouts``
and may carry their own front matter naming a parent layout, so a post can
be wrapped by ``post`` and then by ``default``. Includes resolve from
``_includes`` (for example ``{% include "JB/setup" %}``).

Key classes:
- FrontMatterLoader: FileSystemLoader that strips front matter from templates.
- TemplateEngine: Renders pages and layouts and exposes the listing helpers.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import timezone, tzinfo
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from pygments.formatters import HtmlFormatter

from .collections import PostCollection, TagCollection
from .content import Page, Post
from .errors import LayoutError
from .extractors import FRONTMATTER_RE, extract_frontmatter
from .listing import DEFAULT_DATE_FORMAT, DEFAULT_LIMIT, PostListRenderer, PostRenderer
from .renderers import MarkdownRenderer
from .utils import format_date, join_root_url

__all__ = ["FrontMatterLoader", "LayoutError", "TemplateEngine"]

LAYOUT_SUFFIXES = (".html", ".jinja", ".html.jinja", "")
NO_LAYOUT = ("none", "null", "false")


class FrontMatterLoader(FileSystemLoader):
    """FileSystemLoader that hides YAML front matter from Jinja.

    The front matter block is replaced by blank lines so template line
    numbers in error messages still match the file.
    """

    def get_source(self, environment: Environment, template: str):
        source, filename, uptodate = super().get_source(environment, template)
        match = FRONTMATTER_RE.match(source)
        if match:
            source = "\n" * source[: match.end()].count("\n") + source[match.end() :]
        return source, filename, uptodate

    def front_matter(self, environment: Environment, template: str) -> dict[str, Any]:
        """Return the parsed front matter of ``template`` (empty if none)."""
        source, _, _ = super().get_source(environment, template)
        frontmatter, _ = extract_frontmatter(source)
        return frontmatter


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        project_root: Blog root containing ``_layouts`` and ``_includes``.
        site: Site configuration and data exposed as ``site``.
        root_url: Prefix for generated links.
        tz: Site timezone used by the ``date_format`` filter.
        env: Jinja2 environment.
        posts: Posts, newest first.
        tags: Tag index.
    """

    def __init__(
        self,
        project_root: Path,
        site: dict[str, Any] | None = None,
        root_url: str | None = None,
        tz: tzinfo = timezone.utc,
        date_format: str | None = None,
    ):
        self.project_root = project_root
        self.site: dict[str, Any] = dict(site or {})
        self.root_url = (root_url if root_url is not None else self.site.get("root_url")) or ""
        self.tz = tz
        self.date_format = date_format or self.site.get("date_format") or DEFAULT_DATE_FORMAT
        self.loader = FrontMatterLoader(
            [
                project_root / "_includes",
                project_root,
            ]
        )
        self.env = Environment(
            loader=self.loader,
            autoescape=select_autoescape(["html", "xml", "jinja"], default=True),
            enable_async=False,
        )
        self.post_renderer = PostRenderer(self.root_url, self.date_format, self.tz)
        self.list_renderer = PostListRenderer(self.post_renderer)
        self.markdown = MarkdownRenderer()
        self.posts = PostCollection()
        self.tags = TagCollection({})
        self._install_globals()

    def _install_globals(self) -> None:
        self.site["posts"] = self.posts
        self.site["tags"] = self.tags
        self.env.globals["site"] = self.site
        self.env.globals["posts"] = self.posts
        self.env.globals["tags"] = self.tags
        self.env.globals["root_url"] = self.root_url
        self.env.globals["BASE_PATH"] = self.root_url
        self.env.globals["url_for"] = self._url_for
        self.env.globals["render_post"] = self._render_post
        self.env.globals["render_post_list"] = self._render_post_list
        self.env.globals["pygments_css"] = self._pygments_css
        self.env.filters["date_format"] = self._date_format

    def update_collections(
        self, posts: Iterable[Post], tags: Mapping[str, Iterable[Post]]
    ) -> None:
        """Replace the post and tag collections seen by templates.

        Args:
            posts: Posts in the order listings should use (newest first).
            tags: Mapping of tag names to posts.
        """
        self.posts = posts if isinstance(posts, PostCollection) else PostCollection(posts)
        self.tags = TagCollection(tags)
        self._install_globals()

    @staticmethod
    def _pygments_css() -> Markup:
        """Return Pygments CSS for the ``.highlight`` class."""
        return Markup(HtmlFormatter().get_style_defs(".highlight"))

    def _url_for(self, path: str) -> str:
        if path.startswith(("http://", "https://", "//")):
            return path
        return join_root_url(self.root_url, path if path.startswith("/") else f"/{path}")

    def _date_format(self, value, pattern: str | None = None) -> str:
        return format_date(value, pattern or self.date_format, self.tz)

    def _render_post(self, post: Post | None = None) -> Markup:
        """Template helper: render one teaser, the newest post by default."""
        if post is None:
            post = self.posts.first
        return self.post_renderer.render(post)

    def _render_post_list(
        self,
        posts: Iterable[Post] | None = None,
        offset: int = 0,
        limit: int = DEFAULT_LIMIT,
    ) -> Markup:
        """Template helper: render a window of teasers, all posts by default."""
        if posts is None:
            posts = self.posts
        return self.list_renderer.render(posts, offset=offset, limit=limit)

    def has_layout(self, layout: str) -> bool:
        try:
            self._find_layout(layout)
        except LayoutError:
            return False
        return True

    def _find_layout(self, layout: str) -> str:
        for suffix in LAYOUT_SUFFIXES:
            name = f"_layouts/{layout}{suffix}"
            if (self.project_root / name).is_file():
                return name
        raise LayoutError(f"Layout not found: {layout}")

    def render_layout(self, content: str, front_matter: Mapping[str, Any]) -> str:
        """Wrap ``content`` in the layout chain named by ``front_matter``.

        Each layout sees ``content`` (the inner HTML), ``page`` (the page
        variables) and ``layout`` (its own front matter). A layout whose
        front matter names another layout is wrapped again.

        Args:
            content: Rendered HTML body.
            front_matter: Page variables; ``layout`` picks the first layout.

        Returns:
            Fully rendered page. Content without a layout is returned as is.

        Raises:
            LayoutError: If a named layout is missing or layouts form a cycle.
        """
        rendered = str(content)
        layout = front_matter.get("layout")
        seen: list[str] = []
        while layout and str(layout).lower() not in NO_LAYOUT:
            layout = str(layout)
            if layout in seen:
                chain = " -> ".join(seen + [layout])
                raise LayoutError(f"Layout cycle: {chain}")
            seen.append(layout)
            name = self._find_layout(layout)
            template = self.env.get_template(name)
            layout_vars = self.loader.front_matter(self.env, name)
            rendered = template.render(
                content=Markup(rendered), page=front_matter, layout=layout_vars
            )
            layout = layout_vars.get("layout")
        return rendered

    def render_page(self, page: Page) -> str:
        """Render a page: evaluate its body as a template, then apply its layout."""
        context = page.as_context()
        body = self.env.from_string(page.source).render(page=context)
        if page.source_type == "markdown":
            body = self.markdown.render(body)
        context["content"] = body
        return self.render_layout(body, context)

    def render_post_page(self, post: Post) -> str:
        """Render a post's own page through its layout.

        The implicit ``post`` layout is skipped when the site does not define
        it; a layout named in front matter must exist.
        """
        context = post.as_context()
        if (
            "layout" not in post.front_matter
            and context.get("layout")
            and not self.has_layout(str(context["layout"]))
        ):
            print(f"Layout '{context['layout']}' not found; rendering {post.url} without it.")
            context["layout"] = None
        return self.render_layout(post.content, context)

    def render_string(self, template: str, context: dict[str, Any]) -> str:
        """Render a template string with extra context."""
        return self.env.from_string(template).render(**context)
