"""Output staging and publishing.

A build never writes into the live output directory. Pages, feeds and
assets go to a hidden staging directory next to it; when everything has
been written the staging directory replaces the output directory in one
rename. If the build fails the staging directory is removed and the
previous output stays as it was.

Key classes:
- RenderedPage: A URL and its rendered HTML.
- OutputStage: Context manager owning the staging directory.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from .errors import IOFailure

logger = logging.getLogger(__name__)


def _current_umask() -> int:
    umask = os.umask(0)
    os.umask(umask)
    return umask


@dataclass(frozen=True)
class RenderedPage:
    """A rendered page ready to be written.

    Attributes:
        url: URL path; a trailing slash means ``<url>/index.html``.
        html: Rendered HTML.
    """

    url: str
    html: str

    @property
    def relative_path(self) -> PurePosixPath:
        url_path = self.url.strip("/")
        if not url_path:
            return PurePosixPath("index.html")
        if self.url.endswith("/"):
            return PurePosixPath(url_path) / "index.html"
        return PurePosixPath(url_path)


class OutputStage:
    """Owns the staging directory for one build.

    Use as a context manager: the staging directory is created on enter,
    published on a clean exit and discarded when an exception escapes.

    Attributes:
        output_dir: Final output directory.
        path: Staging directory, set while the stage is open.
    """

    def __init__(self, output_dir: Path):
        self.output_dir = output_dir
        self.path: Path | None = None

    def __enter__(self) -> OutputStage:
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.publish()
        else:
            self.discard()

    def open(self) -> Path:
        parent = self.output_dir.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
            self.path = Path(
                tempfile.mkdtemp(prefix=f".{self.output_dir.name}-staging-", dir=parent)
            )
            # mkdtemp creates 0700; the published directory gets the usual umask mode.
            self.path.chmod(0o777 & ~_current_umask())
        except OSError as exc:
            raise IOFailure.from_os_error(exc, parent) from exc
        logger.debug("Staging build in %s", self.path)
        return self.path

    def _require_open(self) -> Path:
        if self.path is None:
            raise RuntimeError("OutputStage is not open")
        return self.path

    def write_page(self, page: RenderedPage) -> Path:
        """Write a rendered page under the staging directory."""
        return self.write_text(page.relative_path, page.html)

    def write_text(self, relative: PurePosixPath | str, text: str) -> Path:
        target = self._require_open() / relative
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with open(target, "w", encoding="utf-8", newline="\n") as f:
                f.write(text)
        except OSError as exc:
            raise IOFailure.from_os_error(exc, target) from exc
        return target

    def publish(self) -> None:
        """Replace the output directory with the staging directory."""
        staging = self._require_open()
        backup: Path | None = None
        try:
            if self.output_dir.exists():
                backup = Path(
                    tempfile.mkdtemp(
                        prefix=f".{self.output_dir.name}-old-", dir=self.output_dir.parent
                    )
                )
                backup.rmdir()
                self.output_dir.rename(backup)
            staging.rename(self.output_dir)
        except OSError as exc:
            if backup is not None and backup.exists() and not self.output_dir.exists():
                backup.rename(self.output_dir)
            self.discard()
            raise IOFailure.from_os_error(exc, self.output_dir) from exc
        self.path = None
        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)
        logger.info("Published build to %s", self.output_dir)

    def discard(self) -> None:
        """Remove the staging directory, leaving the output untouched."""
        if self.path is not None and self.path.exists():
            shutil.rmtree(self.path, ignore_errors=True)
            logger.debug("Discarded staging directory %s", self.path)
        self.path = None
