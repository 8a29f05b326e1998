"""Metadata extractors for Folio.

A content file is a YAML front-matter block followed by a Markdown body.
``split_front_matter`` separates the two; each extractor then turns one part
of the raw metadata into a typed document field, raising
``MalformedDocument`` when the header holds something it cannot use.

Key classes:
- TitleExtractor: Title from front matter or filename.
- DateExtractor: Publish date from front matter or filename prefix.
- TagExtractor: Tags from a YAML list or whitespace-separated string.
- LayoutExtractor: Layout name, falling back to the configured default.
- DescriptionExtractor: Excerpt and description from the body.
- PublishingExtractor: Draft state and permalink override.
- CompositeMetadataExtractor: Runs all of the above and merges results.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from datetime import date, datetime
from pathlib import Path
from typing import Any

import yaml

from .errors import MalformedDocument
from .utils import extract_date_from_name, first_paragraph, titleize, truncate

FRONTMATTER_RE = re.compile(
    r"\A---[ \t]*\r?\n(?P<header>.*?)^---[ \t]*(?:\r?\n|\Z)",
    re.DOTALL | re.MULTILINE,
)
ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}")


def split_front_matter(text: str, path: Path) -> tuple[dict[str, Any], str]:
    """Split raw file content into its front matter and body.

    Args:
        text: Raw file content.
        path: Path to the source file, used for error reporting.

    Returns:
        Tuple of (front matter dict, remaining body).

    Raises:
        MalformedDocument: If the block is missing, unterminated, not valid
            YAML, or not a mapping.
    """
    text = text.lstrip("\ufeff")
    if not re.match(r"---[ \t]*\r?\n", text):
        raise MalformedDocument(path, "Missing front matter block (expected leading '---')")
    match = FRONTMATTER_RE.match(text)
    if not match:
        raise MalformedDocument(path, "Front matter block is not closed with '---'")
    try:
        data = yaml.safe_load(match.group("header"))
    except yaml.YAMLError as exc:
        raise MalformedDocument(path, f"Invalid YAML in front matter: {exc}", exc) from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise MalformedDocument(
            path, f"Front matter must be a mapping, got {type(data).__name__}"
        )
    return data, text[match.end() :]


class TitleExtractor:
    """Uses ``title`` from the header, else titleizes the filename."""

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        value = metadata.get("title")
        if value is None or value == "":
            return {"title": titleize(path.name)}
        if isinstance(value, (dict, list, bool)):
            raise MalformedDocument(path, "'title' must be a string")
        return {"title": str(value).strip()}


class DateExtractor:
    """Extracts the publish date.

    Looks at the ``date`` header first, then at a YYYY-MM-DD filename
    prefix. A document with neither is malformed.
    """

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        value = metadata.get("date")
        if value is None:
            parsed = extract_date_from_name(path.stem)
            if parsed is None:
                raise MalformedDocument(
                    path, "Missing publish date: add 'date' or a YYYY-MM-DD- filename prefix"
                )
            return {"date": parsed}
        return {"date": self._coerce(value, path)}

    def _coerce(self, value: Any, path: Path) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        if isinstance(value, str) and ISO_DATE_RE.match(value.strip()):
            try:
                return date.fromisoformat(value.strip()[:10])
            except ValueError as exc:
                raise MalformedDocument(path, f"Invalid date: {value!r}", exc) from exc
        raise MalformedDocument(path, f"Unparsable date: {value!r}")


class TagExtractor:
    """Extracts tags from ``tags`` (or the single-tag alias ``tag``).

    Accepts a YAML list or a whitespace-separated string. Duplicates are
    dropped; header order is kept.
    """

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        raw = metadata.get("tags", metadata.get("tag"))
        if raw is None:
            return {"tags": ()}
        if isinstance(raw, str):
            items: list[Any] = raw.split()
        elif isinstance(raw, list):
            items = raw
        else:
            raise MalformedDocument(path, "'tags' must be a list or a string")
        tags: list[str] = []
        for item in items:
            if isinstance(item, (dict, list)) or item is None:
                raise MalformedDocument(path, f"Invalid tag: {item!r}")
            tag = str(item).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return {"tags": tuple(tags)}


class LayoutExtractor:
    """Reads ``layout``, defaulting to the configured layout name."""

    def __init__(self, default_layout: str = "post"):
        self.default_layout = default_layout

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        value = metadata.get("layout")
        if value is None or value == "":
            return {"layout": self.default_layout}
        if not isinstance(value, str):
            raise MalformedDocument(path, "'layout' must be a string")
        return {"layout": value.strip()}


class DescriptionExtractor:
    """Derives the excerpt and description.

    The excerpt is the first prose paragraph of the body. The description
    is the ``description`` header when present, else the excerpt truncated
    to 160 characters.
    """

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        excerpt = first_paragraph(body)
        description = metadata.get("description")
        if description is None:
            description = truncate(excerpt)
        return {"excerpt": excerpt, "description": str(description).strip()}


class PublishingExtractor:
    """Reads ``published`` and ``permalink``."""

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        published = metadata.get("published", True)
        if not isinstance(published, bool):
            raise MalformedDocument(path, "'published' must be true or false")
        permalink = metadata.get("permalink")
        if permalink is not None:
            if not isinstance(permalink, str) or not permalink.startswith("/"):
                raise MalformedDocument(path, "'permalink' must be a path starting with '/'")
        return {"published": published, "permalink": permalink}


class CompositeMetadataExtractor:
    """Combines multiple metadata extractors.

    Runs every extractor over the same header and body and merges their
    results. Later extractors can override earlier ones.
    """

    def __init__(self, extractors: list | None = None, default_layout: str = "post"):
        if extractors is None:
            self._extractors = [
                TitleExtractor(),
                DateExtractor(),
                TagExtractor(),
                LayoutExtractor(default_layout),
                DescriptionExtractor(),
                PublishingExtractor(),
            ]
        else:
            self._extractors = list(extractors)

    def add_extractor(self, extractor) -> None:
        self._extractors.append(extractor)

    def extract(self, metadata: Mapping[str, Any], body: str, path: Path) -> dict[str, Any]:
        result: dict[str, Any] = {}
        for extractor in self._extractors:
            result.update(extractor.extract(metadata, body, path))
        return result
