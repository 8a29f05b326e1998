"""Aggregate pages for Folio.

Besides one page per document, every build writes:

- the chronological index at ``/`` (split into ``/page/N/`` when
  ``paginate`` is set),
- one page per tag at ``/tags/<tag-slug>/``,
- a tag index at ``/tags/``.

Each is rendered through a layout (``index``, ``tag``, ``tags`` by default)
with a ``Listing`` as ``page``.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .collections import DocumentCollection, TagCollection
from .output import RenderedPage
from .templates import TemplateEngine


@dataclass(frozen=True)
class Listing:
    """Template context for an aggregate page.

    Attributes:
        title: Page title.
        url: URL path of this page.
        documents: Documents listed on this page, newest first.
        number: 1-based page number within a paginated listing.
        total: Number of pages in the listing.
        previous_url: URL of the newer page, if any.
        next_url: URL of the older page, if any.
        tag: Tag name for tag pages.
    """

    title: str
    url: str
    documents: DocumentCollection
    number: int = 1
    total: int = 1
    previous_url: str | None = None
    next_url: str | None = None
    tag: str | None = None


def index_url(number: int) -> str:
    return "/" if number == 1 else f"/page/{number}/"


class ListingBuilder:
    """Renders the index, tag and tag-index pages.

    Attributes:
        engine: Template engine used for rendering.
        layouts_dir: Reported as the source of errors in listing layouts.
        config: Build configuration.
        data: Site data.
    """

    def __init__(
        self,
        engine: TemplateEngine,
        source_dir: Path,
        config: dict[str, Any],
        data: dict[str, Any],
    ):
        self.engine = engine
        self.layouts_dir = source_dir / "_layouts"
        self.config = config
        self.data = data

    def build_all(
        self, documents: DocumentCollection, tags: TagCollection
    ) -> list[RenderedPage]:
        pages = self.index_pages(documents)
        if tags:
            pages.extend(self.tag_pages(tags))
            pages.append(self.tags_index(tags))
        return pages

    def reserved_urls(self, documents: DocumentCollection, tags: TagCollection) -> set[str]:
        """URLs the listings will occupy, for collision checks."""
        per_page = int(self.config.get("paginate") or 0)
        urls = {index_url(n) for n in range(1, len(documents.paginate(per_page)) + 1)}
        if tags:
            urls.add("/tags/")
            urls.update(tags.url(tag) for tag in tags)
        return urls

    def index_pages(self, documents: DocumentCollection) -> list[RenderedPage]:
        per_page = int(self.config.get("paginate") or 0)
        chunks = documents.paginate(per_page)
        total = len(chunks)
        title = str(self.data.get("title") or "Home")
        pages = []
        for number, chunk in enumerate(chunks, start=1):
            listing = Listing(
                title=title,
                url=index_url(number),
                documents=chunk,
                number=number,
                total=total,
                previous_url=index_url(number - 1) if number > 1 else None,
                next_url=index_url(number + 1) if number < total else None,
            )
            pages.append(self._render(self.config.get("index_layout", "index"), listing))
        return pages

    def tag_pages(self, tags: TagCollection) -> list[RenderedPage]:
        pages = []
        for tag, documents in tags.items():
            listing = Listing(
                title=f"Tagged: {tag}",
                url=tags.url(tag),
                documents=documents,
                tag=tag,
            )
            pages.append(self._render(self.config.get("tag_layout", "tag"), listing))
        return pages

    def tags_index(self, tags: TagCollection) -> RenderedPage:
        all_docs = DocumentCollection({d.path: d for docs in tags.values() for d in docs}.values())
        listing = Listing(title="Tags", url="/tags/", documents=all_docs)
        return self._render(self.config.get("tags_layout", "tags"), listing)

    def _render(self, layout: str, listing: Listing) -> RenderedPage:
        html = self.engine.render_layout(layout, self.layouts_dir, page=listing)
        return RenderedPage(url=listing.url, html=html)
