"""Site building for Folio.

This module runs the whole pipeline in one synchronous pass: load
configuration and data, read every document, render every page, then
write pages, feeds and assets through an ``OutputStage``. Any error stops
the build before anything is published.

Key functions:
- build_site: Build the entire site.
- load_documents: Read and sort all documents under a content root.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Any

from .assets import ASSETS_DIR, AssetPipeline, iter_asset_files
from .collections import DocumentCollection, TagCollection
from .config import load_config, load_data
from .content import DocumentBuilder, DocumentSource, FileContentLoader, UrlDeriver
from .errors import ConfigError, IOFailure, MalformedDocument
from .extractors import CompositeMetadataExtractor
from .feeds import create_default_feed_registry
from .html_utils import absolutize_html_urls
from .listings import ListingBuilder
from .output import OutputStage, RenderedPage
from .templates import TemplateEngine

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Result of a site build.

    Attributes:
        documents: All documents, newest first.
        pages: Every page written (documents and listings).
        output_dir: Directory where the site was published.
        data: Global site data dictionary.
        feeds: Feed filenames that were written.
        assets: Asset and pass-through files, relative to the output directory.
    """

    documents: DocumentCollection
    pages: list[RenderedPage]
    output_dir: Path
    data: dict[str, Any]
    feeds: list[str] = field(default_factory=list)
    assets: list[Path] = field(default_factory=list)


def load_documents(
    source_dir: Path, config: dict[str, Any], include_drafts: bool = False
) -> DocumentCollection:
    """Read every document under ``source_dir``.

    Fails on the first malformed file.
    """
    builder = DocumentBuilder(
        source_dir,
        metadata_extractor=CompositeMetadataExtractor(
            default_layout=str(config.get("default_layout") or "post")
        ),
        url_deriver=UrlDeriver(str(config.get("permalink") or "/:folder/:slug/")),
    )
    source = DocumentSource(source_dir, include_drafts=include_drafts, document_builder=builder)
    return DocumentCollection(source)


def check_urls(documents: DocumentCollection, reserved: set[str]) -> None:
    """Ensure every document has its own URL.

    Raises:
        MalformedDocument: If two documents share a URL, or a document
            takes a URL used by a generated listing page.
    """
    seen: dict[str, Path] = {}
    for doc in sorted(documents, key=lambda d: d.path.as_posix()):
        if doc.url in reserved:
            raise MalformedDocument(
                doc.path, f"URL {doc.url} is used by a generated listing page"
            )
        if doc.url in seen:
            raise MalformedDocument(
                doc.path, f"URL {doc.url} is also produced by {seen[doc.url]}"
            )
        seen[doc.url] = doc.path


def check_output_paths(
    documents: DocumentCollection,
    listing_urls: Iterable[str],
    source_dir: Path,
    feed_files: Iterable[str],
    asset_files: Iterable[Path],
) -> None:
    """Ensure no two outputs are written to the same file.

    Documents may not land on a feed file or under ``assets/``. Pass-through
    files from the content root may not replace any page, feed or asset.

    Raises:
        MalformedDocument: If a document would overwrite another output.
        IOFailure: If a pass-through file would overwrite another output.
    """
    claimed: dict[PurePosixPath, str] = {}
    for name in feed_files:
        claimed[PurePosixPath(name)] = f"the generated {name}"
    for rel in asset_files:
        claimed[PurePosixPath(rel.as_posix())] = f"the asset {rel.as_posix()}"
    for url in listing_urls:
        claimed[RenderedPage(url, "").relative_path] = f"the listing page {url}"

    for doc in sorted(documents, key=lambda d: d.path.as_posix()):
        target = RenderedPage(doc.url, "").relative_path
        if target in claimed:
            raise MalformedDocument(doc.path, f"URL {doc.url} would overwrite {claimed[target]}")
        if target.parts[0] == ASSETS_DIR.name:
            raise MalformedDocument(doc.path, f"URL {doc.url} is inside the assets directory")
        claimed[target] = f"the page built from {doc.path}"

    for path in FileContentLoader(source_dir).iter_static_files():
        target = PurePosixPath(path.relative_to(source_dir).as_posix())
        if target in claimed:
            raise IOFailure(path, f"File would overwrite {claimed[target]}")


def _resolve(project_root: Path, value: Path | str) -> Path:
    path = Path(value)
    return (path if path.is_absolute() else project_root / path).resolve()


def _check_directories(project_root: Path, source_dir: Path, output_dir: Path) -> None:
    if output_dir in (project_root.resolve(), source_dir):
        raise ConfigError(output_dir, "Output directory must not be the project or content root")
    if output_dir in source_dir.parents:
        raise ConfigError(output_dir, "Output directory must not contain the content directory")
    if source_dir in output_dir.parents:
        raise ConfigError(output_dir, "Output directory must not be inside the content directory")


def build_site(
    project_root: Path,
    include_drafts: bool = False,
    root_url: str | None = None,
    source_dir: Path | None = None,
    output_dir: Path | None = None,
) -> BuildResult:
    """Build the entire static site.

    Args:
        project_root: Root directory of the project (holds folio.yaml).
        include_drafts: Whether to include drafts and unpublished documents.
        root_url: Optional base URL to absolutize links with.
        source_dir: Content directory, overriding ``source_dir`` in config.
        output_dir: Output directory, overriding ``output_dir`` in config.

    Returns:
        BuildResult describing what was published.

    Raises:
        FolioError: Any malformed document, missing layout, template or
            I/O error. The previous output directory is left unchanged.
    """
    project_root = Path(project_root)
    config = load_config(project_root)
    if root_url is not None:
        config["root_url"] = root_url
    source = _resolve(project_root, source_dir or config["source_dir"])
    output = _resolve(project_root, output_dir or config["output_dir"])
    if not source.is_dir():
        raise IOFailure(source, "Content directory not found")
    _check_directories(project_root, source, output)

    data = load_data(_resolve(project_root, config["data_dir"]))
    resolved_root = str(config.get("root_url") or "")
    if resolved_root:
        data.setdefault("root_url", resolved_root)

    documents = load_documents(source, config, include_drafts=include_drafts)
    tags = TagCollection(documents)
    logger.info("Loaded %d documents with %d tags from %s", len(documents), len(tags), source)

    engine = TemplateEngine(source, data, root_url=resolved_root)
    engine.update_collections(documents, tags)
    listings = ListingBuilder(engine, source, config, data)
    listing_urls = listings.reserved_urls(documents, tags)
    check_urls(documents, listing_urls)
    feed_registry = create_default_feed_registry(int(config.get("feed_limit") or 0))
    assets_dir = _resolve(project_root, config["assets_dir"])
    check_output_paths(
        documents,
        listing_urls,
        source,
        feed_registry.filenames,
        [ASSETS_DIR / p.relative_to(assets_dir) for p in iter_asset_files(assets_dir)],
    )

    pages = [RenderedPage(url=doc.url, html=engine.render_document(doc)) for doc in documents]
    listing_pages = listings.build_all(documents, tags)
    pages.extend(listing_pages)

    with OutputStage(output) as stage:
        for page in pages:
            html = absolutize_html_urls(page.html, resolved_root) if resolved_root else page.html
            stage.write_page(RenderedPage(url=page.url, html=html))
        feeds = feed_registry.generate_all(
            stage, documents, data, extra_urls=[p.url for p in listing_pages]
        )
        assets = AssetPipeline(assets_dir, source, stage.path).run()

    logger.info("Built %d pages into %s", len(pages), output)
    return BuildResult(
        documents=documents,
        pages=pages,
        output_dir=output,
        data=data,
        feeds=feeds,
        assets=assets,
    )
