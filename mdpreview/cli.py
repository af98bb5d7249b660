"""Cyclopts CLI entrypoint for previewing, searching, and outlining Markdown.

The ``mdpreview`` console script defined here renders a Markdown file through
the same pipeline a live preview uses, optionally highlighting a search query,
and can print the heading outline or a match summary. Typical usage is
``mdpreview render notes.md --query TODO --output notes.html``.

Examples
--------
Render a document with the third match of "foo" marked as current:

>>> from mdpreview.cli import app
>>> app.run(
...     ["render", "notes.md", "--query", "foo", "--index", "2"]
... )  # doctest: +SKIP

Print the outline as JSON:

>>> from mdpreview.cli import main
>>> main()  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
import msgspec.json as msgspec_json
from cyclopts import App, Parameter
from jinja2 import Environment, FileSystemLoader, select_autoescape

from ._constants import ARTICLE_CLASS
from .config import PreviewConfig, load_preview_config
from .highlight import match_spans
from .outline import headings_from_tree
from .preview import PreviewDocument
from .renderer import RenderFailure, stylesheet

if typ.TYPE_CHECKING:
    from bs4.element import Tag

    from .renderer import RenderResult

TEMPLATES_DIR = Path(__file__).parent / "templates"

app = App(name="mdpreview", config=cyclopts.config.Env("MDPREVIEW_", command=False))  # type: ignore[unknown-argument]


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _load_document(
    path: Path, config: PreviewConfig
) -> tuple[PreviewDocument, RenderResult]:
    """Render ``path`` into a preview document or exit with the failing stage."""
    document = PreviewDocument.from_config(config)
    text = path.read_text(encoding="utf-8")
    try:
        result = asyncio.run(document.load(text))
    except RenderFailure as exc:
        print(f"error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    if result is None:  # pragma: no cover - a single load is never superseded
        msg = f"Render of '{path}' was superseded."
        raise RuntimeError(msg)
    return document, result


def _match_context(span: Tag) -> str:
    """Return the text of the nearest non-span ancestor of a match."""
    container = span.find_parent(lambda tag: tag.name != "span")
    return (container or span).get_text()


def _encode_json(payload: object) -> str:
    return msgspec_json.format(msgspec_json.encode(payload), indent=2).decode("utf-8")


def build_page(
    document: PreviewDocument,
    result: RenderResult,
    *,
    config: PreviewConfig,
    title: str,
) -> str:
    """Render the standalone HTML page for a previewed document."""
    env = Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=select_autoescape(["html", "xml", "jinja"]),
        trim_blocks=True,
        lstrip_blocks=True,
    )
    template = env.get_template("preview.jinja")
    return template.render(
        title=str(result.front_matter.get("title") or title),
        body=str(document.presentable),
        pygments_css=stylesheet(config.render.pygments_style),
        article_class=ARTICLE_CLASS,
        search_class=config.search.class_name,
        current_class=config.search.current_class_name,
        query=document.query,
        match_count=document.match_count if document.query else None,
    )


@app.command(help="Render a Markdown file to a standalone HTML page.")
def render(
    path: typ.Annotated[Path, Parameter(help="Markdown file to render")],
    *,
    query: typ.Annotated[
        str | None, Parameter(help="Highlight every occurrence of this text")
    ] = None,
    index: typ.Annotated[
        int | None, Parameter(help="0-based match to mark as current")
    ] = None,
    output: typ.Annotated[
        Path | None, Parameter(help="Write the page here instead of stdout")
    ] = None,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to preview config (YAML)")
    ] = None,
    verbose: bool = False,
) -> None:
    """Render ``path`` and write or print the resulting HTML page.

    Parameters
    ----------
    path : Path
        Markdown document to render.
    query : str or None, optional
        Case-sensitive search text to highlight.
    index : int or None, optional
        Match to mark as current; out-of-range values are clamped to the last
        match.
    output : Path or None, optional
        Destination file; the page is printed to stdout when ``None``.
    config : Path or None, optional
        Preview configuration file; built-in defaults when ``None``.
    verbose : bool, optional
        Emit debug logging on stderr.

    Raises
    ------
    SystemExit
        With status 1 when rendering fails.
    """
    _configure_logging(verbose)
    preview_config = load_preview_config(config)
    document, result = _load_document(path, preview_config)
    if query:
        document.search(query)
        document.select_match(index)
        print(f"{document.match_count} matches", file=sys.stderr)

    page = build_page(document, result, config=preview_config, title=path.stem)
    if output is None:
        print(page)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(page, encoding="utf-8")
    print(f"wrote {_format_path(output)}")


@app.command(help="Print the heading outline of a Markdown file.")
def outline(
    path: typ.Annotated[Path, Parameter(help="Markdown file to outline")],
    *,
    as_json: typ.Annotated[
        bool, Parameter(name="--json", help="Emit the outline as JSON")
    ] = False,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to preview config (YAML)")
    ] = None,
    verbose: bool = False,
) -> None:
    """Print the headings of ``path`` indented by level, or as JSON."""
    _configure_logging(verbose)
    preview_config = load_preview_config(config)
    _document, result = _load_document(path, preview_config)
    headings = headings_from_tree(
        result.intermediate_tree, levels=preview_config.outline.levels
    )
    if as_json:
        print(_encode_json([{"level": h.level, "text": h.text} for h in headings]))
        return
    for heading in headings:
        print(f"{'  ' * (heading.level - 1)}{heading.text}")


@app.command(help="Summarize the matches of a query in a Markdown file.")
def search(
    path: typ.Annotated[Path, Parameter(help="Markdown file to search")],
    query: typ.Annotated[str, Parameter(help="Case-sensitive text to find")],
    *,
    config: typ.Annotated[
        Path | None, Parameter(help="Path to preview config (YAML)")
    ] = None,
    verbose: bool = False,
) -> None:
    """Print a JSON summary of every match of ``query`` in document order."""
    _configure_logging(verbose)
    preview_config = load_preview_config(config)
    document, _result = _load_document(path, preview_config)
    document.search(query)
    matches = []
    if document.presentable is not None:
        spans = match_spans(
            document.presentable,
            class_name=preview_config.search.class_name,
            current_class_name=preview_config.search.current_class_name,
        )
        matches = [
            {"index": position, "context": _match_context(span)}
            for position, span in enumerate(spans)
        ]
    print(
        _encode_json(
            {"query": query, "match_count": document.match_count, "matches": matches}
        )
    )


def main() -> None:
    """Invoke the Cyclopts application that powers the ``mdpreview`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
