"""Live-preview core for Markdown documents.

This package renders Markdown into a cached intermediate tree and a
presentable BeautifulSoup tree, re-highlights search matches over the cached
tree without re-parsing, drives keyboard-navigable pickers, and tracks the
current heading of a scrolled document. The ``mdpreview`` console script wraps
the same pipeline.

Exports
-------
- ``app``: Cyclopts application entry for subcommands.
- ``main``: Convenience function that invokes the Cyclopts app.

Examples
--------
>>> from mdpreview import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

from .cli import app, main

__all__ = ["app", "main"]
