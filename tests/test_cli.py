"""Tests for the ``mdpreview`` CLI commands.

The command functions are called directly with ``capsys`` capturing their
output, which keeps the tests independent of Cyclopts' argument parsing.
"""

from __future__ import annotations

from pathlib import Path

import msgspec.json as msgspec_json
import pytest
from bs4 import BeautifulSoup

from mdpreview import cli
from mdpreview.renderer import pipeline

DOCUMENT = """---
title: Field Notes
---
# Intro

foo **bar** foo

## Details

```python
print("foo")
```
"""


@pytest.fixture
def document_path(tmp_path: Path) -> Path:
    path = tmp_path / "notes.md"
    path.write_text(DOCUMENT, encoding="utf-8")
    return path


def test_render_prints_page(
    document_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    cli.render(document_path)
    captured = capsys.readouterr()
    soup = BeautifulSoup(captured.out, "html.parser")
    assert soup.title.get_text() == "Field Notes"
    article = soup.find("article", class_="markdown-body")
    assert article is not None
    assert article.h1.get_text() == "Intro"
    assert article.select_one("pre.codehilite") is not None
    assert soup.find("footer") is None


def test_render_with_query_marks_current_match(
    document_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    output = tmp_path / "out" / "notes.html"
    cli.render(document_path, query="foo", index=1, output=output)
    captured = capsys.readouterr()
    assert "3 matches" in captured.err
    assert "wrote" in captured.out

    soup = BeautifulSoup(output.read_text(encoding="utf-8"), "html.parser")
    spans = soup.select("article span.search-text, article span.search-text-current")
    assert [span["class"] for span in spans] == [
        ["search-text"],
        ["search-text-current"],
        ["search-text"],
    ]
    assert "3 matches" in soup.footer.get_text()


def test_render_failure_exits_with_stage(
    document_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    def _boom(_text: str) -> str:
        msg = "markdown exploded"
        raise ValueError(msg)

    monkeypatch.setattr(pipeline, "markdown_to_html", _boom)
    with pytest.raises(SystemExit) as excinfo:
        cli.render(document_path)
    assert excinfo.value.code == 1
    assert "parse stage failed" in capsys.readouterr().err


def test_outline_text(document_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.outline(document_path)
    assert capsys.readouterr().out.splitlines() == ["Intro", "  Details"]


def test_outline_json(document_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.outline(document_path, as_json=True)
    assert msgspec_json.decode(capsys.readouterr().out) == [
        {"level": 1, "text": "Intro"},
        {"level": 2, "text": "Details"},
    ]


def test_outline_respects_configured_levels(
    document_path: Path, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    config = tmp_path / "preview.yaml"
    config.write_text("outline:\n  levels: [2]\n", encoding="utf-8")
    cli.outline(document_path, config=config)
    assert capsys.readouterr().out.splitlines() == ["  Details"]


def test_search_summary(document_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    cli.search(document_path, "foo")
    payload = msgspec_json.decode(capsys.readouterr().out)
    assert payload["query"] == "foo"
    assert payload["match_count"] == 3
    assert [match["index"] for match in payload["matches"]] == [0, 1, 2]
    assert payload["matches"][0]["context"] == "foo bar foo"
