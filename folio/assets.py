"""Asset pipeline for Folio.

Copies the project's ``assets/`` directory into ``<output>/assets/`` and
passes non-document files from the content root (``CNAME``,
``favicon.ico``, images in content folders) through unchanged.

Key classes:
- ImageProcessor: Re-saves raster images with Pillow's optimizer.
- JSProcessor: Minifies JavaScript with rjsmin.
- StaticAssetProcessor: Copies anything else.
- AssetProcessorRegistry: Picks the highest-priority processor per file.
- AssetPipeline: Runs the registry over the asset and content trees.
"""

from __future__ import annotations

import logging
import shutil
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from PIL import Image
from rjsmin import jsmin

from .content import FileContentLoader
from .errors import IOFailure

logger = logging.getLogger(__name__)

ASSETS_DIR = Path("assets")


class BaseAssetProcessor(ABC):
    """Base class for asset processors."""

    @property
    @abstractmethod
    def priority(self) -> int:
        """Return processor priority (higher = checked first)."""
        ...

    @abstractmethod
    def can_process(self, path: Path) -> bool: ...

    @abstractmethod
    def process(self, source: Path, dest: Path) -> None:
        """Write the processed form of ``source`` to ``dest``."""
        ...

    def ensure_dest_dir(self, dest: Path) -> None:
        dest.parent.mkdir(parents=True, exist_ok=True)


class ImageProcessor(BaseAssetProcessor):
    """Optimizes PNG, JPEG and WebP files using Pillow.

    Files Pillow cannot read or re-encode (unknown format, truncated data)
    are copied unchanged.
    """

    SUPPORTED_EXTENSIONS = {".png", ".jpg", ".jpeg", ".webp"}

    @property
    def priority(self) -> int:
        return 100

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() in self.SUPPORTED_EXTENSIONS

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        try:
            with Image.open(source) as img:
                img.save(dest, optimize=True)
        except OSError as exc:
            logger.warning("Cannot optimize %s (%s); copying as-is", source, exc)
            dest.unlink(missing_ok=True)
            shutil.copyfile(source, dest)


class JSProcessor(BaseAssetProcessor):
    """Minifies JavaScript files; ``*.min.js`` files are copied."""

    @property
    def priority(self) -> int:
        return 80

    def can_process(self, path: Path) -> bool:
        return path.suffix.lower() == ".js" and not path.name.endswith(".min.js")

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        with open(source, encoding="utf-8") as f_in:
            minified = jsmin(f_in.read())
        with open(dest, "w", encoding="utf-8", newline="\n") as f_out:
            f_out.write(minified)


class StaticAssetProcessor(BaseAssetProcessor):
    """Copies files without modification (fallback processor)."""

    @property
    def priority(self) -> int:
        return 0

    def can_process(self, path: Path) -> bool:
        return True

    def process(self, source: Path, dest: Path) -> None:
        self.ensure_dest_dir(dest)
        shutil.copyfile(source, dest)


class AssetProcessorRegistry:
    """Registry of asset processors, ordered by priority."""

    def __init__(self):
        self._processors: list[BaseAssetProcessor] = []

    def register(self, processor: BaseAssetProcessor) -> None:
        self._processors.append(processor)
        self._processors.sort(key=lambda p: p.priority, reverse=True)

    def get_processor(self, path: Path) -> BaseAssetProcessor | None:
        for processor in self._processors:
            if processor.can_process(path):
                return processor
        return None

    def process(self, source: Path, dest: Path) -> bool:
        """Process a file; returns False if no processor accepts it."""
        processor = self.get_processor(source)
        if processor is None:
            return False
        try:
            processor.process(source, dest)
        except OSError as exc:
            raise IOFailure.from_os_error(exc, source) from exc
        except UnicodeDecodeError as exc:
            raise IOFailure(source, "File is not valid UTF-8", exc) from exc
        return True


def iter_asset_files(assets_dir: Path) -> Iterator[Path]:
    """Yield the non-hidden files under ``assets_dir`` in sorted order."""
    if not assets_dir.exists():
        return
    for item in sorted(assets_dir.rglob("*")):
        rel = item.relative_to(assets_dir)
        if item.is_dir() or any(part.startswith(".") for part in rel.parts):
            continue
        yield item


def create_default_registry() -> AssetProcessorRegistry:
    registry = AssetProcessorRegistry()
    registry.register(ImageProcessor())
    registry.register(JSProcessor())
    registry.register(StaticAssetProcessor())
    return registry


class AssetPipeline:
    """Copies assets and pass-through files into the build output.

    Attributes:
        assets_dir: Directory containing source assets.
        source_dir: Content root, scanned for pass-through files.
        output_dir: Directory where files are written (the staging directory).
        processor_registry: Registry of asset processors.
    """

    def __init__(
        self,
        assets_dir: Path,
        source_dir: Path,
        output_dir: Path,
        processor_registry: AssetProcessorRegistry | None = None,
    ):
        self.assets_dir = assets_dir
        self.source_dir = source_dir
        self.output_dir = output_dir
        self.processor_registry = processor_registry or create_default_registry()

    def run(self) -> list[Path]:
        """Process every asset and pass-through file.

        Returns:
            Output paths relative to the output directory, in sorted order.
        """
        written: list[Path] = []
        for item in iter_asset_files(self.assets_dir):
            rel = ASSETS_DIR / item.relative_to(self.assets_dir)
            if self.processor_registry.process(item, self.output_dir / rel):
                written.append(rel)

        copier = StaticAssetProcessor()
        for item in FileContentLoader(self.source_dir).iter_static_files():
            rel = item.relative_to(self.source_dir)
            try:
                copier.process(item, self.output_dir / rel)
            except OSError as exc:
                raise IOFailure.from_os_error(exc, item) from exc
            written.append(rel)
        logger.debug("Copied %d asset files", len(written))
        return written
