"""Utility functions for Folio.

String and path helpers used throughout the codebase.

Key functions:
    slugify: Convert filenames and tag names to URL slugs.
    titleize: Convert filenames to human-readable titles.
    extract_date_from_name: Extract date from a YYYY-MM-DD filename prefix.
    strip_date_prefix: Remove a YYYY-MM-DD prefix from a filename stem.
    first_paragraph: Plain-text first paragraph of a Markdown body.
    is_markdown: Check if a path is a Markdown file.
"""

from __future__ import annotations

import re
from datetime import date
from pathlib import Path

MARKDOWN_SUFFIXES = (".md", ".markdown")


def _split_date_prefix(name: str) -> tuple[list[str], str]:
    parts = name.split("-")
    if len(parts) >= 4 and all(p.isdigit() for p in parts[:3]):
        return parts[:3], "-".join(parts[3:])
    return [], name


def strip_date_prefix(name: str) -> str:
    """Remove a leading ``YYYY-MM-DD-`` from a filename stem.

    Examples:
        >>> strip_date_prefix("2024-01-15-hello-world")
        'hello-world'
    """
    return _split_date_prefix(name)[1]


def slugify(name: str, default: str = "index") -> str:
    """Convert a filename stem or label to a slug, dropping any date prefix.

    Args:
        name: Filename stem or free text.
        default: Value returned when nothing slug-worthy remains.

    Returns:
        URL-friendly slug.
    """
    cleaned = strip_date_prefix(name)
    cleaned = re.sub(r"[^\w]+", "-", cleaned, flags=re.UNICODE).replace("_", "-")
    cleaned = re.sub(r"-{2,}", "-", cleaned)
    cleaned = cleaned.strip("-").lower()
    return cleaned or default


def titleize(filename: str) -> str:
    """Convert a filename to a human-readable title.

    Removes date prefixes (YYYY-MM-DD), replaces hyphens and underscores
    with spaces, and capitalizes each word.

    Examples:
        >>> titleize("2024-01-15-hello-world.md")
        'Hello World'

        >>> titleize("getting-started.md")
        'Getting Started'
    """
    base = strip_date_prefix(Path(filename).stem)
    words = re.split(r"[\s\-_]+", base)
    return " ".join(word.capitalize() for word in words if word) or "Untitled"


def extract_date_from_name(name: str) -> date | None:
    """Extract a date from a filename with YYYY-MM-DD prefix.

    Args:
        name: Filename stem (without extension).

    Returns:
        date object if a valid date prefix is found, None otherwise.

    Examples:
        >>> extract_date_from_name("2024-01-15-hello-world")
        datetime.date(2024, 1, 15)

        >>> extract_date_from_name("hello-world") is None
        True
    """
    parts = name.split("-")
    if len(parts) >= 3 and all(p.isdigit() for p in parts[:3]):
        try:
            return date(int(parts[0]), int(parts[1]), int(parts[2]))
        except ValueError:
            return None
    return None


def first_paragraph(text: str) -> str:
    """Return the first prose paragraph of a Markdown body as plain text.

    Headings, images, fenced code and horizontal rules are skipped, inline
    HTML tags are stripped and whitespace is collapsed.
    """
    paragraphs = [p.strip() for p in text.split("\n\n") if p.strip()]
    for para in paragraphs:
        if para.startswith("#"):
            continue
        if para.startswith(("![", "```", "~~~", "---", "<!--")):
            continue
        para = re.sub(r"<[^>]+>", "", para)
        collapsed = " ".join(para.split())
        if collapsed:
            return collapsed
    return ""


def truncate(text: str, limit: int = 160) -> str:
    """Truncate text on a word boundary, appending an ellipsis when cut."""
    if len(text) <= limit:
        return text
    cut = text[:limit].rsplit(" ", 1)[0].rstrip(",;:.")
    return f"{cut}…"


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file (case-insensitive)."""
    return path.suffix.lower() in MARKDOWN_SUFFIXES

