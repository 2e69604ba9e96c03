"""Metadata extractors for Teaser.

Each extractor pulls one kind of post metadata out of a source file. They
are combined by CompositeMetadataExtractor, which runs FrontmatterExtractor
first and hands the parsed front matter to the rest.

Key classes:
- FrontmatterExtractor: Splits YAML front matter from the body.
- TitleExtractor: Title from front matter only; posts may be untitled.
- DateExtractor: Date from front matter, filename prefix or file mtime.
- TaxonomyExtractor: Tags and categories.
- ExcerptExtractor: Source text of the excerpt.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timezone, tzinfo
from pathlib import Path
from typing import Any

import yaml
from dateutil import parser as date_parser

from .utils import as_list, extract_date_from_name, localize

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(.*?)^---[ \t]*(?:\r?\n|\Z)", re.DOTALL | re.MULTILINE
)


def has_frontmatter(text: str) -> bool:
    """Return True if ``text`` opens with a front matter block."""
    return FRONTMATTER_RE.match(text) is not None


def extract_frontmatter(text: str) -> tuple[dict[str, Any], str]:
    """Extract YAML frontmatter from content.

    Invalid or non-mapping YAML is treated as no front matter at all.

    Args:
        text: Raw file content.

    Returns:
        Tuple of (frontmatter dict, remaining content).
    """
    match = FRONTMATTER_RE.match(text)
    if not match:
        return {}, text
    try:
        data = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError:
        return {}, text
    if not isinstance(data, dict):
        return {}, text
    return data, text[match.end() :]


def parse_date(value: Any) -> datetime:
    """Coerce a front matter date value to a datetime.

    PyYAML already turns most timestamps into date/datetime objects; strings
    it leaves alone (``2017-04-13 10:00:00 +0000``, ``April 13, 2017``) go
    through dateutil.

    Raises:
        ValueError: If the value cannot be read as a date.
    """
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    text = str(value).strip()
    try:
        return date_parser.parse(text)
    except (ValueError, OverflowError) as exc:
        raise ValueError(f"Invalid date: {value!r}") from exc


class FrontmatterExtractor:
    """Splits YAML front matter (between --- markers) from the body."""

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        frontmatter, body = extract_frontmatter(content)
        return {"frontmatter": frontmatter, "body": body}


class TitleExtractor:
    """Takes the title from front matter only.

    Posts without a ``title`` key stay untitled so listings can omit the
    heading for them.
    """

    def extract(
        self, body: str, path: Path, frontmatter: dict[str, Any]
    ) -> dict[str, Any]:
        title = frontmatter.get("title")
        return {"title": str(title) if title not in (None, "") else None}


class DateExtractor:
    """Extracts the publish date.

    Order: front matter ``date``, then a YYYY-MM-DD filename prefix, then
    (drafts only) the file modification time. The result is localized to
    the site timezone.

    Attributes:
        tz: Site timezone.
        allow_mtime: Whether the mtime fallback is allowed.
    """

    def __init__(self, tz: tzinfo = timezone.utc, allow_mtime: bool = False):
        self.tz = tz
        self.allow_mtime = allow_mtime

    def extract(
        self, body: str, path: Path, frontmatter: dict[str, Any]
    ) -> dict[str, Any]:
        """Extract the date.

        Raises:
            ValueError: If the front matter date is malformed, or no date
                source exists and the mtime fallback is disabled.
        """
        raw = frontmatter.get("date")
        if raw is not None:
            return {"date": localize(parse_date(raw), self.tz)}
        found = extract_date_from_name(path.stem)
        if found is None and self.allow_mtime:
            found = datetime.fromtimestamp(path.stat().st_mtime, tz=self.tz)
        if found is None:
            raise ValueError(
                "Post has no date; use a YYYY-MM-DD- filename prefix or a 'date' key"
            )
        return {"date": localize(found, self.tz)}


class TaxonomyExtractor:
    """Reads ``tags`` and ``categories`` (list or space separated string)."""

    def extract(
        self, body: str, path: Path, frontmatter: dict[str, Any]
    ) -> dict[str, Any]:
        categories = as_list(frontmatter.get("categories"))
        if not categories and frontmatter.get("category"):
            categories = as_list(frontmatter.get("category"))
        return {
            "tags": tuple(as_list(frontmatter.get("tags"))),
            "categories": tuple(categories),
        }


class ExcerptExtractor:
    """Finds the excerpt source text of a post.

    An explicit front matter ``excerpt`` wins. Otherwise the body is cut at
    the first excerpt separator (front matter ``excerpt_separator``, else the
    site default). When the separator does not occur the excerpt is the
    whole body and ``excerpt_is_content`` is set.
    """

    def __init__(self, separator: str = "\n\n"):
        self.separator = separator

    def extract(
        self, body: str, path: Path, frontmatter: dict[str, Any]
    ) -> dict[str, Any]:
        explicit = frontmatter.get("excerpt")
        if explicit is not None:
            return {"excerpt_source": str(explicit), "excerpt_is_content": False}
        separator = str(frontmatter.get("excerpt_separator") or self.separator)
        text = body.strip()
        head, found, _ = text.partition(separator)
        if not found:
            return {"excerpt_source": text, "excerpt_is_content": True}
        return {"excerpt_source": head.strip(), "excerpt_is_content": False}


class CompositeMetadataExtractor:
    """Combines metadata extractors.

    FrontmatterExtractor always runs first; every other extractor receives
    the body and the parsed front matter. Later results override earlier ones.
    """

    def __init__(self, extractors: list | None = None):
        self._frontmatter = FrontmatterExtractor()
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                TaxonomyExtractor(),
                ExcerptExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, content: str, path: Path) -> dict[str, Any]:
        """Extract all metadata from a source file's text.

        Args:
            content: Raw source text including front matter.
            path: Path to the source file.

        Returns:
            Dictionary with 'frontmatter', 'body' and every extractor's keys.
        """
        result = self._frontmatter.extract(content, path)
        for extractor in self._extractors:
            result.update(extractor.extract(result["body"], path, result["frontmatter"]))
        return result


def create_post_extractor(
    tz: tzinfo, separator: str, allow_mtime: bool = False
) -> CompositeMetadataExtractor:
    """Build the extractor chain configured for a site."""
    return CompositeMetadataExtractor(
        [
            TitleExtractor(),
            DateExtractor(tz, allow_mtime=allow_mtime),
            TaxonomyExtractor(),
            ExcerptExtractor(separator),
        ]
    )
