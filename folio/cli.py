"""Command-line interface for Folio.

Commands:
- build: Build the site into the output directory.
- new: Scaffold a new Folio project.
- post: Create a new post interactively.
"""

from __future__ import annotations

import logging
import shutil
from datetime import date
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import load_config
from .content import DRAFTS_DIR, POSTS_DIR
from .errors import FolioError
from .utils import slugify

# Path to the project skeleton used by ``folio new``
_SKELETON_DIR = Path(__file__).parent / "skeleton"


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("-v", "--verbose", is_flag=True, help="Show debug logging")
def cli(verbose: bool):
    """Folio static site builder."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
@click.option(
    "--source",
    "source_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Content directory (overrides folio.yaml source_dir)",
)
@click.option(
    "--output",
    "output_dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (overrides folio.yaml output_dir)",
)
@click.option("--drafts", is_flag=True, help="Include draft content")
@click.option("--root-url", help="Absolute base URL for links (overrides folio.yaml root_url)")
def build(source_dir: Path | None, output_dir: Path | None, drafts: bool, root_url: str | None):
    """Build the site into the output directory."""
    project_root = Path.cwd()
    from .build import build_site

    try:
        result = build_site(
            project_root,
            include_drafts=drafts,
            root_url=root_url,
            source_dir=source_dir,
            output_dir=output_dir,
        )
    except FolioError as exc:
        click.echo(click.style("Build failed:", fg="red", bold=True), err=True)
        display = _display_path(exc.source_path, project_root)
        click.echo(click.style(f"  File: {display}", fg="yellow"), err=True)
        click.echo(click.style(f"  Error: {exc.message}", fg="white"), err=True)
        raise SystemExit(1) from None
    click.echo(
        f"Built {len(result.documents)} documents ({len(result.pages)} pages) "
        f"into {result.output_dir}"
    )


@cli.command()
@click.argument("name")
def new(name: str):
    """Scaffold a new Folio project."""
    target = Path(name).resolve()
    if target.exists() and any(target.iterdir()):
        raise click.ClickException(
            f"Refusing to initialize into non-empty directory: {target}"
        )
    _scaffold(target)
    click.echo(f"New Folio site created at {target}")


@cli.command()
def post():
    """Create a new post interactively."""
    project_root = Path.cwd()
    try:
        config = load_config(project_root)
    except FolioError as exc:
        raise click.ClickException(str(exc)) from None
    source_dir = project_root / config["source_dir"]
    if not source_dir.exists():
        raise click.ClickException(
            f"No {config['source_dir']}/ directory found. Run this command from a Folio project root."
        )

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    tags = questionary.text(
        "Tags (space separated):",
        style=_questionary_style(),
    ).ask()
    if tags is None:
        raise click.Abort()

    draft = questionary.confirm(
        "Save as draft?",
        default=False,
        style=_questionary_style(),
    ).ask()
    if draft is None:
        raise click.Abort()

    today = date.today()
    slug = slugify(title, default="untitled")
    if draft:
        target_dir = source_dir / DRAFTS_DIR
        filename = f"{slug}.md"
    else:
        target_dir = source_dir / POSTS_DIR
        filename = f"{today.isoformat()}-{slug}.md"
    target_path = target_dir / filename

    existing = _get_existing_slugs(source_dir / POSTS_DIR) | _get_existing_slugs(
        source_dir / DRAFTS_DIR
    )
    if slug in existing:
        raise click.ClickException(f"A post with slug '{slug}' already exists")

    target_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(
        _new_post_text(title, tags.split(), today), encoding="utf-8"
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


def _new_post_text(title: str, tags: list[str], published: date) -> str:
    header = {"layout": "post", "title": title, "date": published, "tags": tags}
    front_matter = yaml.safe_dump(header, sort_keys=False, allow_unicode=True)
    return f"---\n{front_matter}---\n\n"


def _get_existing_slugs(folder: Path) -> set[str]:
    """Get set of existing slugs in a folder."""
    slugs = set()
    if folder.exists():
        for f in folder.iterdir():
            if f.is_file() and f.suffix == ".md":
                slugs.add(slugify(f.stem))
    return slugs


def _display_path(path: Path, project_root: Path) -> Path:
    try:
        return path.resolve().relative_to(project_root.resolve())
    except ValueError:
        return path


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()


def _scaffold(root: Path) -> None:
    """Copy the project skeleton into ``root``.

    The sample post is renamed to carry today's date.
    """
    today = date.today().isoformat()
    for src_path in sorted(_SKELETON_DIR.rglob("*")):
        if src_path.is_dir():
            continue
        rel_path = src_path.relative_to(_SKELETON_DIR)
        if rel_path.parent.name == POSTS_DIR and src_path.name.startswith("welcome"):
            rel_path = rel_path.with_name(f"{today}-{src_path.name}")
        dest_path = root / rel_path
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(src_path, dest_path)
