"""Utility functions for Teaser.

String, path and date helpers shared across the codebase.

Key functions:
    slugify: Convert filenames or titles to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from a YYYY-MM-DD filename prefix.
    format_date: Format a timestamp with a strftime pattern.
    resolve_timezone: Map a configured timezone name to a tzinfo.
    join_root_url: Join a root URL and a path without doubling slashes.
    clean_url: Normalize a site URL path, dropping empty, dot and dot-dot segments.
    build_tags_index: Build index of posts by tags.
    ensure_clean_dir: Ensure a directory exists and is empty.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Iterable
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from zoneinfo import ZoneInfo

DATE_PREFIX_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})-(.+)$")


def slugify(name: str) -> str:
    """Convert a filename stem or title to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.

    Returns:
        URL-friendly slug.

    Examples:
        >>> slugify("2017-04-13-Creating Cmdlets")
        'creating-cmdlets'
    """
    cleaned = name
    match = DATE_PREFIX_RE.match(cleaned)
    if match:
        cleaned = match.group(4)
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or "index"


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'
    """
    base = Path(filename).stem
    match = DATE_PREFIX_RE.match(base)
    if match:
        base = match.group(4)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> datetime | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        Naive datetime at midnight if a valid prefix is found, None otherwise.
    """
    match = DATE_PREFIX_RE.match(name)
    if not match:
        return None
    try:
        return datetime(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError:
        return None


def resolve_timezone(name: str | None) -> tzinfo:
    """Return the tzinfo for a configured timezone name.

    ``UTC`` (and an empty value) map to ``datetime.timezone.utc`` so the
    default policy works without a system tz database.

    Raises:
        ValueError: If the name is not a known IANA timezone.
    """
    if not name or str(name).upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(str(name))
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {name}") from exc


def localize(value: date | datetime, tz: tzinfo) -> datetime:
    """Attach or convert ``value`` to the site timezone.

    Naive values are taken to already be site-local; aware values are
    converted. Plain dates become midnight.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    return value.astimezone(tz)


def format_date(
    value: date | datetime | None, pattern: str = "%m-%d-%Y", tz: tzinfo | None = None
) -> str:
    """Format a timestamp with a strftime pattern.

    Args:
        value: Date or datetime to format. None yields an empty string.
        pattern: strftime pattern.
        tz: Optional timezone to convert aware datetimes into before formatting.

    Returns:
        Formatted date string.

    Examples:
        >>> format_date(datetime(2017, 4, 13))
        '04-13-2017'
    """
    if value is None:
        return ""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day)
    if tz is not None and value.tzinfo is not None:
        value = value.astimezone(tz)
    return value.strftime(pattern)


def clean_url(url: str) -> str:
    """Normalize a site URL path.

    Empty, ``.`` and ``..`` segments are dropped so a URL can never climb
    out of the output directory. A trailing slash is kept.

    Examples:
        >>> clean_url("/../blog/.//hello.html")
        '/blog/hello.html'

        >>> clean_url("docs/")
        '/docs/'
    """
    segments = [s for s in url.split("/") if s not in ("", ".", "..")]
    cleaned = "/" + "/".join(segments)
    if url.endswith("/") and segments:
        cleaned += "/"
    return cleaned


def join_root_url(root_url: str, path: str) -> str:
    """Join a root URL and a path, avoiding double slashes.

    Examples:
        >>> join_root_url('', '/hello')
        '/hello'

        >>> join_root_url('https://example.com/blog/', 'hello')
        'https://example.com/blog/hello'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"


def as_list(value) -> list[str]:
    """Normalize a front matter list field.

    Accepts a list, a space separated string, or nothing.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return value.split()
    return [str(item) for item in value]


def build_tags_index(posts: Iterable) -> dict[str, list]:
    """Build an index mapping tags to lists of posts containing that tag.

    Args:
        posts: Iterable of objects with a 'tags' attribute.

    Returns:
        Dictionary mapping tag names to lists of posts, in input order.
    """
    tags: dict[str, list] = {}
    for post in posts:
        for tag in post.tags:
            tags.setdefault(tag, []).append(post)
    return tags


def ensure_clean_dir(path: Path) -> None:
    """Ensure a directory exists and is empty."""
    if path.exists():
        shutil.rmtree(str(path), ignore_errors=True)
        if path.exists():
            # Fallback for stubborn directories
            for item in path.rglob("*"):
                if item.is_file():
                    item.unlink()
            for item in sorted(
                [p for p in path.rglob("*") if p.is_dir()], reverse=True
            ):
                item.rmdir()
            path.rmdir()
    path.mkdir(parents=True, exist_ok=True)


def is_internal_path(path: Path) -> bool:
    """Check if any component starts with ``_`` or ``.``.

    Internal paths hold layouts, includes, posts, data and the build output.
    """
    return any(part.startswith(("_", ".")) for part in path.parts)


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file."""
    return path.suffix.lower() in (".md", ".markdown")


def is_html(path: Path) -> bool:
    """Check if a path is an HTML file."""
    return path.suffix.lower() in (".html", ".htm")
