"""Static file copying for Teaser.

Anything in the site tree that is not a post, a page, or internal (underscore
or dot prefixed) is copied into the output directory unchanged.
"""

from __future__ import annotations

import shutil
from collections.abc import Iterable
from pathlib import Path


def copy_static_files(
    project_root: Path, output_dir: Path, files: Iterable[Path]
) -> list[Path]:
    """Copy ``files`` into ``output_dir`` keeping their relative layout.

    Args:
        project_root: Root the files are relative to.
        output_dir: Build output directory.
        files: Absolute paths of static files.

    Returns:
        Destination paths that were written.
    """
    written: list[Path] = []
    for source in files:
        dest = output_dir / source.relative_to(project_root)
        dest.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, dest)
        written.append(dest)
    return written
