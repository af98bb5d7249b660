"""Behaviour tests for stepping through search matches in a preview.

The scenarios in ``search_navigation.feature`` load Markdown into a
``PreviewDocument``, run a search, and move the current match forward and
backward, asserting on the highlight spans of the presentable tree with
BeautifulSoup.

Usage
-----
Run ``pytest tests/bdd/test_search_navigation.py -v``. Rendering happens
in-process through ``asyncio.run``, so no fixtures beyond ``scenario_state``
are required.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from pytest_bdd import given, parsers, scenarios, then, when

from mdpreview.highlight import match_spans
from mdpreview.preview import PreviewDocument

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "search_navigation.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _document(scenario_state: dict[str, object]) -> PreviewDocument:
    document = scenario_state["document"]
    assert isinstance(document, PreviewDocument)
    return document


@given(parsers.parse('a preview of "{text}"'))
def given_preview(scenario_state: dict[str, object], text: str) -> None:
    """Load ``text`` into a fresh preview document."""
    document = PreviewDocument()
    asyncio.run(document.load(text))
    scenario_state["document"] = document
    scenario_state["plain"] = str(document.presentable)


@when(parsers.parse('I search for "{query}"'))
def when_search(scenario_state: dict[str, object], query: str) -> None:
    _document(scenario_state).search(query)


@when("I move to the next match")
def when_next(scenario_state: dict[str, object]) -> None:
    _document(scenario_state).next_match()


@when("I move to the previous match")
def when_previous(scenario_state: dict[str, object]) -> None:
    _document(scenario_state).previous_match()


@when(parsers.parse('the document is edited to "{text}"'))
def when_edited(scenario_state: dict[str, object], text: str) -> None:
    asyncio.run(_document(scenario_state).load(text))


@then(parsers.parse("{count:d} matches are highlighted"))
def then_match_count(scenario_state: dict[str, object], count: int) -> None:
    document = _document(scenario_state)
    assert document.presentable is not None
    assert document.match_count == count
    assert len(match_spans(document.presentable)) == count


@then("no match is current")
def then_no_current(scenario_state: dict[str, object]) -> None:
    document = _document(scenario_state)
    assert document.presentable is not None
    assert document.presentable.find("span", class_="search-text-current") is None


@then(parsers.parse("match {number:d} is current"))
def then_current(scenario_state: dict[str, object], number: int) -> None:
    """Assert the ``number``-th (1-based) highlight span is the current one."""
    document = _document(scenario_state)
    assert document.presentable is not None
    classes = [span["class"] for span in match_spans(document.presentable)]
    current = [
        index for index, names in enumerate(classes) if "search-text-current" in names
    ]
    assert current == [number - 1], f"expected match {number} current, got {classes}"


@then("the preview equals the unsearched render")
def then_unchanged(scenario_state: dict[str, object]) -> None:
    assert str(_document(scenario_state).presentable) == scenario_state["plain"]
