"""Content renderers for Teaser.

Key classes:
- MarkdownRenderer: Renders Markdown to HTML with Pygments highlighting.
- HTMLRenderer: Passes through HTML content.
- RendererRegistry: Picks a renderer for a source path.
"""

from __future__ import annotations

import re
from pathlib import Path

import mistune
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from .utils import is_html, is_markdown


def _generate_heading_id(text: str) -> str:
    """Generate a URL-friendly ID from heading text."""
    slug = re.sub(r"<[^>]+>", "", text).lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[-\s]+", "-", slug)
    return slug.strip("-")


class _HighlightRenderer(mistune.HTMLRenderer):
    """Markdown HTML renderer with heading anchors and Pygments code blocks."""

    def __init__(self):
        super().__init__(escape=False)
        self._heading_id_counts: dict[str, int] = {}

    def heading(self, text: str, level: int, **attrs) -> str:
        base_id = _generate_heading_id(text)
        if base_id in self._heading_id_counts:
            self._heading_id_counts[base_id] += 1
            heading_id = f"{base_id}-{self._heading_id_counts[base_id]}"
        else:
            self._heading_id_counts[base_id] = 0
            heading_id = base_id
        return f'<h{level} id="{heading_id}">{text}</h{level}>\n'

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a fenced code block, highlighted when the language is known.

        Args:
            code: The code content.
            info: Fence info string; its first word names the language
                (e.g. 'powershell', 'xml').
        """
        lang = info.split()[0] if info and info.strip() else ""
        if lang:
            try:
                lexer = get_lexer_by_name(lang, stripall=True)
            except ClassNotFound:
                lexer = None
            if lexer is not None:
                formatter = HtmlFormatter(nowrap=False, cssclass="highlight")
                return highlight(code, lexer, formatter)
        escaped = code.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        lang_class = f' class="language-{lang}"' if lang else ""
        return f"<pre><code{lang_class}>{escaped}</code></pre>\n"


class MarkdownRenderer:
    """Renders Markdown content to HTML."""

    plugins = ["strikethrough", "footnotes", "table", "url"]

    @property
    def source_type(self) -> str:
        return "markdown"

    def can_render(self, path: Path) -> bool:
        return is_markdown(path)

    def render(self, content: str) -> str:
        """Render Markdown source to HTML.

        A fresh mistune instance is used per call so heading ids and
        footnotes never leak between documents.
        """
        markdown = mistune.create_markdown(
            renderer=_HighlightRenderer(), plugins=self.plugins
        )
        return markdown(content)


class HTMLRenderer:
    """Passes through HTML content unchanged."""

    @property
    def source_type(self) -> str:
        return "html"

    def can_render(self, path: Path) -> bool:
        return is_html(path)

    def render(self, content: str) -> str:
        return content


class RendererRegistry:
    """Registry for content renderers.

    Renderers are consulted in registration order.
    """

    def __init__(self):
        self._renderers: list = []
        self.register(MarkdownRenderer())
        self.register(HTMLRenderer())

    def register(self, renderer) -> None:
        self._renderers.append(renderer)

    def get_renderer(self, path: Path):
        """Return the first renderer that can handle ``path``, or None."""
        for renderer in self._renderers:
            if renderer.can_render(path):
                return renderer
        return None


default_renderer_registry = RendererRegistry()
