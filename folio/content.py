"""Content discovery and the Document model.

This module finds content files under the source directory and turns each
one into an immutable ``Document``.

Key classes:
- Document: Frozen dataclass for one article (metadata + Markdown body).
- FileContentLoader: Walks the source tree and classifies files.
- UrlDeriver: Expands permalink patterns into output URLs.
- DocumentBuilder: Reads one file and builds its Document.
- DocumentSource: Lazy, restartable iterable of Documents.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from types import MappingProxyType
from typing import Any

from .errors import IOFailure, MalformedDocument
from .extractors import CompositeMetadataExtractor, split_front_matter
from .utils import is_markdown, slugify

logger = logging.getLogger(__name__)

POSTS_DIR = "_posts"
DRAFTS_DIR = "_drafts"


@dataclass(frozen=True)
class Document:
    """One source article.

    Attributes:
        title: Human-readable title.
        date: Publish date.
        tags: Unique tag names in header order.
        body: Markdown body text, without the front matter.
        layout: Layout template name.
        url: Output URL path (e.g. ``/posts/hello-world/``).
        slug: URL-friendly slug derived from the filename.
        path: Path to the source file.
        folder: URL folder the document belongs to (``posts`` for _posts).
        filename: Name of the source file.
        excerpt: First prose paragraph of the body, as plain text.
        description: Short summary for listings and feeds.
        draft: Whether this is a draft.
        metadata: Front matter exactly as parsed, read-only.
    """

    title: str
    date: date
    tags: tuple[str, ...]
    body: str
    layout: str
    url: str
    slug: str
    path: Path
    folder: str = ""
    filename: str = ""
    excerpt: str = ""
    description: str = ""
    draft: bool = False
    metadata: Mapping[str, Any] = field(default_factory=dict, hash=False, compare=False)

    def __post_init__(self):
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def group(self) -> str:
        """First component of the folder, e.g. ``posts``."""
        return self.folder.split("/", 1)[0] if self.folder else ""


def url_folder(rel: Path) -> str:
    """Return the URL folder for a source path relative to the content root.

    ``_posts`` and ``_drafts`` both publish under ``posts``.
    """
    parts = list(rel.parent.parts)
    if parts and parts[0] in (POSTS_DIR, DRAFTS_DIR):
        parts[0] = "posts"
    return "/".join(parts)


class FileContentLoader:
    """Walks the source directory and sorts files into documents and static files.

    Directories starting with ``_`` are internal (layouts, partials, ...)
    except ``_posts``, which always holds content, and ``_drafts``, which
    holds content only when drafts are requested. Hidden files and
    directories are ignored.

    Attributes:
        source_dir: Directory containing site content.
    """

    def __init__(self, source_dir: Path):
        self.source_dir = source_dir

    def _walk(self) -> Iterator[tuple[Path, Path]]:
        for path in sorted(self.source_dir.rglob("*")):
            if path.is_dir():
                continue
            rel = path.relative_to(self.source_dir)
            if any(part.startswith(".") for part in rel.parts):
                continue
            yield path, rel

    @staticmethod
    def _content_dirs(rel: Path) -> tuple[str, ...] | None:
        dirs = rel.parts[:-1]
        if dirs and dirs[0] in (POSTS_DIR, DRAFTS_DIR):
            dirs = dirs[1:]
        if any(part.startswith("_") for part in dirs):
            return None
        return dirs

    def iter_files(self, include_drafts: bool = False) -> Iterator[Path]:
        """Yield Markdown content files in sorted path order.

        Args:
            include_drafts: Whether to include ``_drafts/`` and ``_``-prefixed files.
        """
        for path, rel in self._walk():
            if not is_markdown(path) or self._content_dirs(rel) is None:
                continue
            if self.is_draft_path(rel) and not include_drafts:
                continue
            yield path

    def iter_static_files(self) -> Iterator[Path]:
        """Yield non-Markdown files that are published verbatim."""
        for path, rel in self._walk():
            if is_markdown(path) or rel.name.startswith("_"):
                continue
            if rel.parts[0] in (POSTS_DIR, DRAFTS_DIR) and len(rel.parts) > 1:
                continue
            if self._content_dirs(rel) is None:
                continue
            yield path

    @staticmethod
    def is_draft_path(rel: Path) -> bool:
        return rel.name.startswith("_") or (len(rel.parts) > 1 and rel.parts[0] == DRAFTS_DIR)


class UrlDeriver:
    """Expands permalink patterns into URL paths.

    Supported tokens: ``:folder``, ``:year``, ``:month``, ``:day``, ``:slug``.
    A document named ``index`` takes its folder URL.
    """

    TOKEN_RE = re.compile(r":(folder|year|month|day|slug)\b")

    def __init__(self, pattern: str = "/:folder/:slug/"):
        self.pattern = pattern

    def derive(self, folder: str, slug: str, published: date, permalink: str | None = None) -> str:
        """Derive the URL for a document.

        Args:
            folder: URL folder of the document.
            slug: URL-friendly slug.
            published: Publish date.
            permalink: Per-document override from front matter.

        Returns:
            Normalized URL path.
        """
        if permalink:
            return normalize_url(permalink)
        values = {
            "folder": folder,
            "year": f"{published.year:04d}",
            "month": f"{published.month:02d}",
            "day": f"{published.day:02d}",
            "slug": "" if slug == "index" else slug,
        }
        expanded = self.TOKEN_RE.sub(lambda m: values[m.group(1)], self.pattern)
        return normalize_url(expanded)


def normalize_url(url: str) -> str:
    """Collapse repeated slashes and add leading/trailing slashes.

    URLs naming a file (``/feed.xml``, ``/about.html``) keep no trailing slash.
    """
    url = re.sub(r"/{2,}", "/", f"/{url.strip()}")
    last = url.rsplit("/", 1)[-1]
    if last and "." not in last:
        url = f"{url}/"
    return url


class DocumentBuilder:
    """Builds Document objects from source files.

    Attributes:
        source_dir: Directory containing site content.
        metadata_extractor: Composite metadata extractor.
        url_deriver: URL deriver instance.
    """

    def __init__(
        self,
        source_dir: Path,
        metadata_extractor: CompositeMetadataExtractor | None = None,
        url_deriver: UrlDeriver | None = None,
    ):
        self.source_dir = source_dir
        self.metadata_extractor = metadata_extractor or CompositeMetadataExtractor()
        self.url_deriver = url_deriver or UrlDeriver()

    def build(self, path: Path, draft: bool = False) -> Document:
        """Read a source file and build its Document.

        Args:
            path: Path to the source file.
            draft: Whether the file's location marks it as a draft.

        Raises:
            MalformedDocument: If the front matter is missing or invalid.
            IOFailure: If the file cannot be read.
        """
        rel = path.relative_to(self.source_dir)
        try:
            raw = path.read_text(encoding="utf-8")
        except UnicodeDecodeError as exc:
            raise MalformedDocument(path, "File is not valid UTF-8", exc) from exc
        except OSError as exc:
            raise IOFailure.from_os_error(exc, path) from exc

        metadata, body = split_front_matter(raw, path)
        fields = self.metadata_extractor.extract(metadata, body, path)
        folder = url_folder(rel)
        slug = slugify(path.stem)
        url = self.url_deriver.derive(folder, slug, fields["date"], fields.get("permalink"))
        if any(part in (".", "..") for part in url.split("/")):
            raise MalformedDocument(path, f"URL {url!r} escapes the output directory")
        logger.debug("Loaded %s -> %s", rel, url)

        return Document(
            title=fields["title"],
            date=fields["date"],
            tags=fields["tags"],
            body=body,
            layout=fields["layout"],
            url=url,
            slug=slug,
            path=path,
            folder=folder,
            filename=path.name,
            excerpt=fields.get("excerpt", ""),
            description=fields.get("description", ""),
            draft=draft or not fields.get("published", True),
            metadata=metadata,
        )


class DocumentSource:
    """Lazy, finite, restartable sequence of Documents.

    Every iteration walks the source directory again and reads files one
    at a time, in sorted path order. Unpublished documents are skipped
    unless drafts are included.

    Attributes:
        source_dir: Directory containing site content.
        include_drafts: Whether drafts are yielded.
    """

    def __init__(
        self,
        source_dir: Path,
        include_drafts: bool = False,
        content_loader: FileContentLoader | None = None,
        document_builder: DocumentBuilder | None = None,
    ):
        self.source_dir = source_dir
        self.include_drafts = include_drafts
        self._content_loader = content_loader or FileContentLoader(source_dir)
        self._document_builder = document_builder or DocumentBuilder(source_dir)

    def __iter__(self) -> Iterator[Document]:
        for path in self._content_loader.iter_files(self.include_drafts):
            rel = path.relative_to(self.source_dir)
            document = self._document_builder.build(
                path, draft=FileContentLoader.is_draft_path(rel)
            )
            if document.draft and not self.include_drafts:
                logger.debug("Skipping unpublished %s", rel)
                continue
            yield document
