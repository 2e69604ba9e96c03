"""Protocol definitions for Teaser.

These protocols describe the seams between content loading, rendering and
layout so alternative implementations (and test fakes) can be swapped in.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ContentRenderer(Protocol):
    """Renders one kind of source text (Markdown, HTML) to HTML."""

    @abstractmethod
    def can_render(self, path: Path) -> bool:
        """Check if this renderer can handle the given file."""
        ...

    @abstractmethod
    def render(self, content: str) -> str:
        """Render source text to HTML."""
        ...

    @property
    @abstractmethod
    def source_type(self) -> str:
        """Return the source type identifier (e.g., 'markdown', 'html')."""
        ...


@runtime_checkable
class MetadataExtractor(Protocol):
    """Extracts one kind of metadata from a post body and its front matter."""

    @abstractmethod
    def extract(
        self, body: str, path: Path, frontmatter: dict[str, Any]
    ) -> dict[str, Any]:
        """Return a dictionary of extracted metadata."""
        ...


@runtime_checkable
class LayoutRenderer(Protocol):
    """Wraps rendered content in shared page chrome.

    The listing renderers only produce fragments; whatever embeds them in a
    full page implements this protocol.
    """

    @abstractmethod
    def render_layout(self, content: str, front_matter: Mapping[str, Any]) -> str:
        """Wrap ``content`` in the layout named by ``front_matter['layout']``.

        Args:
            content: Rendered HTML body.
            front_matter: Page variables, including ``layout``.

        Returns:
            The full rendered page.
        """
        ...
