"""Folio static site builder.

This package turns a directory of Markdown articles with YAML front matter
into a directory of static HTML pages, tag pages, feeds and assets.

The main entry point is the CLI module, which provides commands for
scaffolding new projects, creating posts and building sites.
"""

__all__ = ["__version__"]
__version__ = "0.3.0"
