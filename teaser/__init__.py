"""Teaser static blog generator.

Teaser builds a Jekyll-style blog: Markdown posts in ``_posts`` with YAML
front matter, Jinja2 layouts and includes, and an index that lists post
teasers (title, publish date, excerpt and a "Read more..." link when the
excerpt does not show the whole post).

The main entry point is the CLI module.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
