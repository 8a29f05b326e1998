"""Feed generation for Folio.

Generates ``sitemap.xml`` and an RSS 2.0 ``feed.xml`` from the site's
documents. Both need an absolute base URL, taken from ``url`` in the site
data; without it no feed is written.

Feeds contain no wall-clock timestamps: ``lastBuildDate`` is the newest
document's date, so identical sources give identical feeds.

Classes:
    FeedGenerator: Base class for feed generators.
    SitemapGenerator: Generates sitemap.xml.
    RSSGenerator: Generates feed.xml.
    FeedRegistry: Registry for managing feed generators.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Sequence
from datetime import date
from typing import TYPE_CHECKING, Any

from .html_utils import escape_html, join_root_url

if TYPE_CHECKING:
    from .content import Document
    from .output import OutputStage

logger = logging.getLogger(__name__)


def rfc822_date(value: date) -> str:
    """Format a date for RSS, independent of the current locale."""
    days = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
    months = ("Jan", "Feb", "Mar", "Apr", "May", "Jun",
              "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
    return (
        f"{days[value.weekday()]}, {value.day:02d} {months[value.month - 1]} "
        f"{value.year:04d} 00:00:00 +0000"
    )


def _base_url(data: dict[str, Any]) -> str:
    return str(data.get("url") or "").rstrip("/")


class FeedGenerator(ABC):
    """Base class for feed generators.

    Subclasses name their output file and build its content; ``write``
    puts it into the build's staging directory.
    """

    @property
    @abstractmethod
    def filename(self) -> str:
        """Output filename, such as 'sitemap.xml'."""
        ...

    @abstractmethod
    def generate(
        self,
        documents: Sequence[Document],
        data: dict[str, Any],
        extra_urls: Sequence[str] = (),
    ) -> str | None:
        """Generate feed content.

        Args:
            documents: Documents, newest first.
            data: Site data containing the base URL.
            extra_urls: Additional URL paths (listing pages).

        Returns:
            Feed content, or None if the feed cannot be generated.
        """
        ...

    def write(
        self,
        stage: OutputStage,
        documents: Sequence[Document],
        data: dict[str, Any],
        extra_urls: Sequence[str] = (),
    ) -> bool:
        content = self.generate(documents, data, extra_urls)
        if content is None:
            logger.debug("Skipping %s: no 'url' in site data", self.filename)
            return False
        stage.write_text(self.filename, content)
        return True


class SitemapGenerator(FeedGenerator):
    """Generates sitemap.xml following the sitemaps.org protocol."""

    @property
    def filename(self) -> str:
        return "sitemap.xml"

    def generate(self, documents, data, extra_urls=()):
        base_url = _base_url(data)
        if not base_url:
            return None
        newest = documents[0].date if documents else None
        lines = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        ]
        for url in extra_urls:
            loc = escape_html(join_root_url(base_url, url))
            lastmod = f"<lastmod>{newest.isoformat()}</lastmod>" if newest else ""
            lines.append(f"  <url><loc>{loc}</loc>{lastmod}</url>")
        for doc in documents:
            loc = escape_html(join_root_url(base_url, doc.url))
            lines.append(
                f"  <url><loc>{loc}</loc><lastmod>{doc.date.isoformat()}</lastmod></url>"
            )
        lines.append("</urlset>")
        return "\n".join(lines) + "\n"


class RSSGenerator(FeedGenerator):
    """Generates an RSS 2.0 feed of the newest documents.

    Uses ``title`` and ``description`` from site data for the channel.
    """

    def __init__(self, limit: int = 20):
        self.limit = limit

    @property
    def filename(self) -> str:
        return "feed.xml"

    def generate(self, documents, data, extra_urls=()):
        base_url = _base_url(data)
        if not base_url:
            return None
        title = escape_html(str(data.get("title", "Folio Feed")))
        description = escape_html(str(data.get("description", "")))
        recent = list(documents)[: self.limit] if self.limit > 0 else list(documents)

        rss = [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<rss version="2.0"><channel>',
            f"<title>{title}</title>",
            f"<link>{escape_html(base_url)}/</link>",
            f"<description>{description}</description>",
        ]
        if recent:
            rss.append(f"<lastBuildDate>{rfc822_date(recent[0].date)}</lastBuildDate>")
        for doc in recent:
            link = escape_html(join_root_url(base_url, doc.url))
            categories = "".join(f"<category>{escape_html(t)}</category>" for t in doc.tags)
            rss.append(
                f"<item><title>{escape_html(doc.title)}</title><link>{link}</link>"
                f"<guid>{link}</guid>"
                f"<description>{escape_html(doc.description or doc.title)}</description>"
                f"{categories}<pubDate>{rfc822_date(doc.date)}</pubDate></item>"
            )
        rss.append("</channel></rss>")
        return "\n".join(rss) + "\n"


class FeedRegistry:
    """Registry for managing feed generators."""

    def __init__(self) -> None:
        self._generators: list[FeedGenerator] = []

    def register(self, generator: FeedGenerator) -> None:
        self._generators.append(generator)

    @property
    def filenames(self) -> list[str]:
        """Files the registered generators may write."""
        return [g.filename for g in self._generators]

    def generate_all(
        self,
        stage: OutputStage,
        documents: Iterable[Document],
        data: dict[str, Any],
        extra_urls: Sequence[str] = (),
    ) -> list[str]:
        """Generate all registered feeds.

        Returns:
            List of filenames that were written.
        """
        docs = list(documents)
        generated = []
        for generator in self._generators:
            if generator.write(stage, docs, data, extra_urls):
                generated.append(generator.filename)
        return generated


def create_default_feed_registry(feed_limit: int = 20) -> FeedRegistry:
    """Create a registry with the sitemap and RSS generators."""
    registry = FeedRegistry()
    registry.register(SitemapGenerator())
    registry.register(RSSGenerator(limit=feed_limit))
    return registry
