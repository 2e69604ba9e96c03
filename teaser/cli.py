"""Command-line interface for Teaser.

Commands:
- new: Scaffold a new blog.
- build: Build the blog into the output directory.
- serve: Run the preview server with rebuild on change.
- post: Create a new dated post in ``_posts``.
- page: Create a new page with front matter.
"""

from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .utils import slugify, titleize

_SCAFFOLD_DIR = Path(__file__).parent / "scaffold"


@click.group()
@click.version_option(version=__version__, prog_name="teaser")
def cli():
    """Teaser static blog generator."""


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new blog."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New blog created at {target}")


@cli.command()
@click.option("--drafts", is_flag=True, help="Include posts from _drafts")
@click.option("--root-url", default=None, help="Prefix for generated links (overrides _config.yml)")
def build(drafts: bool, root_url: str | None):
    """Build the blog into the output directory."""
    project_root = Path.cwd()
    from .build import build_site
    from .errors import BuildError

    try:
        result = build_site(project_root, include_drafts=drafts, root_url=root_url)
    except BuildError as exc:
        try:
            rel_path = exc.source_path.relative_to(project_root)
        except ValueError:
            rel_path = exc.source_path
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        click.echo(click.style(f"  File: {rel_path}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.posts)} posts and {len(result.pages)} pages into {result.output_dir}"
    )


@cli.command()
@click.option("--drafts", is_flag=True, help="Include posts from _drafts")
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the preview server (overrides _config.yml)",
)
def serve(drafts: bool, port: int | None):
    """Run the preview server with rebuild on change."""
    project_root = Path.cwd()
    from .server import PreviewServer

    server = PreviewServer(project_root, port=port)
    server.start(include_drafts=drafts)


@cli.command()
@click.argument("title", required=False)
@click.option("--tags", default="", help="Space separated tags")
@click.option("--draft", is_flag=True, help="Create the post in _drafts without a date prefix")
def post(title: str | None, tags: str, draft: bool):
    """Create a new post."""
    project_root = Path.cwd()
    if title is None:
        title = questionary.text(
            "Post title:",
            validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
            style=_questionary_style(),
        ).ask()
        if title is None:
            raise click.Abort()
    title = title.strip()
    if not title:
        raise click.ClickException("Post title cannot be empty")

    slug = slugify(title)
    if draft:
        target = project_root / "_drafts" / f"{slug}.md"
    else:
        today = datetime.now().strftime("%Y-%m-%d")
        target = project_root / "_posts" / f"{today}-{slug}.md"
        existing = _existing_post_slugs(project_root / "_posts")
        if slug in existing:
            raise click.ClickException(
                f"A post with slug '{slug}' already exists: {existing[slug].name}"
            )
    if target.exists():
        raise click.ClickException(f"File already exists: {target.relative_to(project_root)}")

    frontmatter = {"layout": "post", "title": title, "tags": tags.split()}
    _write_with_frontmatter(target, frontmatter, "")
    click.echo(f"Created {target.relative_to(project_root)}")


@cli.command()
@click.argument("name")
@click.option("--title", default=None, help="Page title (defaults to the name)")
def page(name: str, title: str | None):
    """Create a new page with front matter."""
    project_root = Path.cwd()
    rel = Path(name)
    if rel.suffix.lower() not in (".md", ".html"):
        rel = rel / "index.html"
    target = project_root / rel
    if target.exists():
        raise click.ClickException(f"File already exists: {rel.as_posix()}")
    page_title = title or titleize(rel.parent.name if rel.name == "index.html" else rel.stem)
    frontmatter = {"layout": "page", "title": page_title}
    _write_with_frontmatter(target, frontmatter, "")
    click.echo(f"Created {rel.as_posix()}")


def _existing_post_slugs(folder: Path) -> dict[str, Path]:
    """Map slug to path for every post in ``folder``."""
    slugs: dict[str, Path] = {}
    if folder.exists():
        for path in folder.iterdir():
            if path.is_file():
                slugs[slugify(path.stem)] = path
    return slugs


def _write_with_frontmatter(target: Path, frontmatter: dict, body: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    header = yaml.safe_dump(frontmatter, sort_keys=False, allow_unicode=True)
    target.write_text(f"---\n{header}---\n\n{body}", encoding="utf-8")


def _questionary_style():
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
        ]
    )


def _scaffold(root: Path) -> None:
    """Copy the starter blog into ``root``."""
    for src_path in _SCAFFOLD_DIR.rglob("*"):
        if src_path.is_dir():
            continue
        dest_path = root / src_path.relative_to(_SCAFFOLD_DIR)
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)


def main():
    """Entry point for the CLI application."""
    cli()
