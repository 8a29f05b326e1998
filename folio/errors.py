"""Error taxonomy for Folio builds.

Every error raised by the build pipeline carries the path of the file that
caused it, so the CLI can point the author straight at the problem. All of
them are fatal: the build stops and nothing is published.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class FolioError(Exception):
    """Error during site build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
        original_error: The original exception that was caught, if any.
    """

    def __init__(
        self,
        source_path: Path,
        message: str,
        original_error: Exception | None = None,
    ):
        self.source_path = Path(source_path)
        self.message = message
        self.original_error = original_error
        super().__init__(f"{source_path}: {message}")


class MalformedDocument(FolioError):
    """A content file has no usable front matter or invalid metadata."""


class MissingTemplate(FolioError):
    """A document or listing references a layout that does not exist.

    Attributes:
        layout: The layout name that was requested.
        searched: Template names that were tried.
    """

    def __init__(self, source_path: Path, layout: str, searched: Sequence[str]):
        self.layout = layout
        self.searched = list(searched)
        super().__init__(
            source_path,
            f"Layout '{layout}' not found (tried: {', '.join(self.searched)})",
        )


class IOFailure(FolioError):
    """Reading a source file or writing output failed."""

    @classmethod
    def from_os_error(cls, exc: OSError, fallback: Path) -> IOFailure:
        """Wrap an ``OSError``, preferring the filename it reports."""
        path = Path(exc.filename) if exc.filename else fallback
        reason = exc.strerror or str(exc)
        return cls(path, reason, exc)


class ConfigError(FolioError):
    """The project configuration file is unreadable or malformed."""


class TemplateError(FolioError):
    """A Jinja2 layout failed to compile or render."""
