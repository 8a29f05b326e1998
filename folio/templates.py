"""Template rendering engine for Folio.

This module uses Jinja2 to wrap rendered document bodies and listings in
layouts. Layouts are looked up in ``<source>/_layouts`` first and then in
the built-in layouts shipped with the package (``base``, ``index``,
``tag``, ``tags``); partials live in ``<source>/_partials``.

Key class:
- TemplateEngine: Resolves layouts and renders pages with site context.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date
from pathlib import Path
from typing import Any

from jinja2 import (
    ChoiceLoader,
    Environment,
    FileSystemLoader,
    Template,
    TemplateNotFound,
    TemplateSyntaxError,
    select_autoescape,
)
from jinja2 import TemplateError as JinjaTemplateError
from markupsafe import Markup

from .collections import DocumentCollection, TagCollection
from .content import Document
from .errors import MissingTemplate, TemplateError
from .html_utils import join_root_url
from .renderers import MarkdownRenderer, pygments_css

logger = logging.getLogger(__name__)

BUILTIN_LAYOUTS_DIR = Path(__file__).parent / "layouts"
LAYOUT_SUFFIXES = (".html.jinja", ".jinja", ".html")


def format_date(value: date, fmt: str = "%Y-%m-%d") -> str:
    """Jinja filter: ``{{ page.date | date("%B %d, %Y") }}``."""
    return value.strftime(fmt)


def _format_error_message(exc: Exception) -> str:
    """Format a template exception into a user-friendly message."""
    error_type = type(exc).__name__
    error_msg = str(exc)
    if isinstance(exc, TemplateSyntaxError):
        return f"Template syntax error on line {exc.lineno}: {exc.message}"
    if error_type == "UndefinedError":
        return f"Undefined variable: {error_msg}"
    if error_type == "TypeError":
        return f"Type error: {error_msg}"
    if error_type == "AttributeError":
        return f"Attribute error: {error_msg}"
    return f"{error_type}: {error_msg}"


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Attributes:
        source_dir: Directory containing ``_layouts`` and ``_partials``.
        data: Global site data.
        root_url: Optional base URL for ``url_for``.
        env: Jinja2 environment.
        documents: All documents, newest first.
        tags: Tag index.
    """

    def __init__(
        self,
        source_dir: Path,
        data: dict[str, Any],
        root_url: str = "",
        renderer: MarkdownRenderer | None = None,
    ):
        self.source_dir = source_dir
        self.data = data
        self.root_url = root_url or ""
        self.renderer = renderer or MarkdownRenderer()
        self.env = Environment(
            loader=ChoiceLoader(
                [
                    FileSystemLoader([source_dir / "_layouts", source_dir / "_partials"]),
                    FileSystemLoader(BUILTIN_LAYOUTS_DIR),
                ]
            ),
            autoescape=select_autoescape(["html", "xml", "html.jinja", "jinja"]),
            keep_trailing_newline=True,
        )
        self.documents = DocumentCollection([])
        self.tags = TagCollection([])
        self._install_globals()

    def _install_globals(self) -> None:
        self.env.filters["date"] = format_date
        self.env.globals["data"] = self.data
        self.env.globals["documents"] = self.documents
        self.env.globals["tags"] = self.tags
        self.env.globals["url_for"] = self._url_for
        self.env.globals["tag_url"] = self._tag_url
        self.env.globals["pygments_css"] = pygments_css

    def update_collections(
        self, documents: Iterable[Document], tags: TagCollection | None = None
    ) -> None:
        """Replace the document and tag collections seen by templates."""
        self.documents = (
            documents if isinstance(documents, DocumentCollection) else DocumentCollection(documents)
        )
        self.tags = tags if tags is not None else TagCollection(self.documents)
        self.env.globals["documents"] = self.documents
        self.env.globals["tags"] = self.tags

    def _url_for(self, path: str) -> str:
        """Generate a URL for a path, applying root_url if configured."""
        if path.startswith(("http://", "https://", "//")):
            return path
        path = path if path.startswith("/") else f"/{path}"
        return join_root_url(self.root_url, path) if self.root_url else path

    def _tag_url(self, tag: str) -> str:
        return self._url_for(self.tags.url(tag))

    def layout_candidates(self, layout: str) -> list[str]:
        return [f"{layout}{suffix}" for suffix in LAYOUT_SUFFIXES]

    def get_layout(self, layout: str, source_path: Path) -> Template:
        """Resolve a layout name to a compiled template.

        Args:
            layout: Layout name, e.g. ``post``.
            source_path: File that asked for the layout, for error reporting.

        Raises:
            MissingTemplate: If no candidate file exists.
            TemplateError: If the layout fails to compile.
        """
        candidates = self.layout_candidates(layout)
        for name in candidates:
            try:
                template = self.env.get_template(name)
            except TemplateNotFound:
                continue
            except JinjaTemplateError as exc:
                path = Path(getattr(exc, "filename", None) or source_path)
                raise TemplateError(path, _format_error_message(exc), exc) from exc
            logger.debug("Layout '%s' resolved to %s", layout, template.filename)
            return template
        raise MissingTemplate(source_path, layout, candidates)

    def render_body(self, document: Document) -> Markup:
        """Render a document's Markdown body to safe HTML."""
        return Markup(self.renderer.render(document.body))

    def render_document(self, document: Document) -> str:
        """Render a document with its layout.

        Output depends only on the document, the layout and the site
        collections: rendering the same inputs twice is byte-identical.
        """
        template = self.get_layout(document.layout, document.path)
        return self._render(
            template,
            document.path,
            page=document,
            page_content=self.render_body(document),
        )

    def render_layout(self, layout: str, source_path: Path, **context: Any) -> str:
        """Render an arbitrary layout (used by listing pages)."""
        template = self.get_layout(layout, source_path)
        return self._render(template, source_path, **context)

    def _render(self, template: Template, source_path: Path, **context: Any) -> str:
        context.setdefault("page_content", Markup(""))
        try:
            return template.render(
                data=self.data,
                documents=self.documents,
                tags=self.tags,
                **context,
            )
        except TemplateNotFound as exc:
            raise TemplateError(source_path, f"Template not found: {exc.name}", exc) from exc
        except JinjaTemplateError as exc:
            raise TemplateError(source_path, _format_error_message(exc), exc) from exc
        except (TypeError, AttributeError, ValueError, KeyError) as exc:
            raise TemplateError(source_path, _format_error_message(exc), exc) from exc

