"""Site building for Teaser.

Loads configuration and data, reads posts and pages, renders them through
the template engine and writes the output tree.

Key functions:
- build_site: Build the whole blog.
- load_config: Load ``_config.yml`` over DEFAULT_CONFIG.
- load_data: Load YAML files from ``_data``.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

import yaml
from jinja2 import TemplateSyntaxError

from .collections import PostCollection
from .content import Page, PageLoader, PostLoader
from .errors import BuildError, LayoutError
from .feeds import create_default_feed_registry
from .static import copy_static_files
from .templates import TemplateEngine
from .utils import build_tags_index, ensure_clean_dir, resolve_timezone

CONFIG_FILES = ("_config.yml", "_config.yaml")

DEFAULT_CONFIG: dict[str, Any] = {
    "title": "",
    "tagline": "",
    "author": "",
    "url": "",
    "root_url": "",
    "output_dir": "_site",
    "permalink": "date",
    "excerpt_separator": "\n\n",
    "timezone": "UTC",
    "date_format": "%m-%d-%Y",
    "port": 4000,
    "exclude": ["node_modules", "README.md"],
}


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        posts: Posts in listing order (newest first).
        pages: Non-post pages.
        output_dir: Directory the site was written to.
        site: Site variables exposed to templates.
    """

    posts: PostCollection
    pages: list[Page]
    output_dir: Path
    site: dict[str, Any]


def config_path(project_root: Path) -> Path:
    for name in CONFIG_FILES:
        candidate = project_root / name
        if candidate.exists():
            return candidate
    return project_root / CONFIG_FILES[0]


def load_config(project_root: Path) -> dict[str, Any]:
    """Load site configuration from ``_config.yml``.

    Args:
        project_root: Root directory of the blog.

    Returns:
        Configuration with defaults applied.

    Raises:
        BuildError: If the config file is not valid YAML.
    """
    config = dict(DEFAULT_CONFIG)
    path = config_path(project_root)
    if path.exists():
        try:
            with open(path, encoding="utf-8") as f:
                loaded = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise BuildError(path, f"Invalid YAML: {exc}", exc) from exc
        if isinstance(loaded, dict):
            config.update(loaded)
    return config


def load_data(project_root: Path) -> dict[str, Any]:
    """Load YAML files in ``_data`` keyed by file stem."""
    data_dir = project_root / "_data"
    data: dict[str, Any] = {}
    if not data_dir.exists():
        return data
    paths = sorted([*data_dir.glob("*.yml"), *data_dir.glob("*.yaml")])
    for path in paths:
        with open(path, encoding="utf-8") as f:
            data[path.stem] = yaml.safe_load(f)
    return data


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    clean_output: bool = True,
    output_dir_override: Path | None = None,
) -> BuildResult:
    """Build the entire blog.

    Args:
        project_root: Root directory of the blog.
        include_drafts: Whether to include posts from ``_drafts``.
        root_url: Optional link prefix overriding the config value.
        clean_output: Whether to wipe the output directory before building.
        output_dir_override: Optional output directory instead of config output_dir.

    Returns:
        BuildResult with posts, pages, output directory and site variables.

    Raises:
        BuildError: If any source file fails to load or render.
    """
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    try:
        tz = resolve_timezone(config.get("timezone"))
    except ValueError as exc:
        raise BuildError(config_path(project_root), str(exc), exc) from exc

    output_dir = output_dir_override or (project_root / config["output_dir"])
    if clean_output:
        ensure_clean_dir(output_dir)
    else:
        output_dir.mkdir(parents=True, exist_ok=True)

    posts = PostLoader(
        project_root,
        tz=tz,
        excerpt_separator=str(config.get("excerpt_separator") or "\n\n"),
        permalink=str(config.get("permalink") or "date"),
    ).load(include_drafts=include_drafts)
    tags = build_tags_index(posts)

    exclude = list(config.get("exclude") or [])
    exclude.append(str(config["output_dir"]))
    if output_dir.is_relative_to(project_root) and output_dir != project_root:
        exclude.append(output_dir.relative_to(project_root).parts[0])
    pages, static_files = PageLoader(project_root, exclude).load()

    site = dict(config)
    site["data"] = load_data(project_root)
    site["pages"] = pages
    engine = TemplateEngine(project_root, site, root_url=config["root_url"], tz=tz)
    engine.update_collections(posts, tags)

    for post in posts:
        rendered = _render(post.path, engine.render_post_page, post)
        _write_output(output_dir, post.url, rendered, post.path)
    for page in pages:
        rendered = _render(page.path, engine.render_page, page)
        _write_output(output_dir, page.url, rendered, page.path)

    copy_static_files(project_root, output_dir, static_files)
    create_default_feed_registry().generate_all(output_dir, posts, pages, site)
    return BuildResult(posts=posts, pages=pages, output_dir=output_dir, site=site)


def _render(source_path: Path, render: Callable[[Any], str], item: Any) -> str:
    """Run ``render(item)`` and attach the source file to any failure."""
    try:
        return render(item)
    except TemplateSyntaxError as exc:
        raise BuildError(
            source_path,
            f"Template syntax error on line {exc.lineno}: {exc.message}",
            exc,
        ) from exc
    except LayoutError as exc:
        raise BuildError(source_path, str(exc), exc) from exc
    except Exception as exc:
        raise BuildError(source_path, _format_error_message(exc), exc) from exc


def _format_error_message(exc: Exception) -> str:
    """Format an exception into a user-friendly error message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"
    return f"{error_type}: {error_msg}"


def output_path_for(
    output_dir: Path, url: str, source_path: Path | None = None
) -> Path:
    """Map a site URL to the file it is written to.

    Directory URLs and extensionless URLs get an ``index.html``.

    Raises:
        BuildError: If the URL resolves outside ``output_dir``.
    """
    rel = url.strip("/")
    if not rel or url.endswith("/") or not PurePosixPath(rel).suffix:
        target = output_dir / rel / "index.html"
    else:
        target = output_dir / rel
    if not target.resolve().is_relative_to(output_dir.resolve()):
        raise BuildError(
            source_path or output_dir, f"URL {url!r} points outside the output directory"
        )
    return target


def _write_output(
    output_dir: Path, url: str, rendered: str, source_path: Path | None = None
) -> None:
    target = output_path_for(output_dir, url, source_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "w", encoding="utf-8") as f:
        f.write(rendered)
