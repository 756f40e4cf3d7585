from __future__ import annotations

import pytest

from docassist.models.page import BoundingBox, PageContent, TextRegion
from docassist.retrieval.citation_search import (
    ELLIPSIS,
    extract_citation,
    find_page_for_text,
    fold_case,
    search_with_citations,
)

from conftest import make_pages

BUDGET_PAGE = (
    "Quarterly overview of the finance team and all of its activities: "
    "the budget for Q1 was $500,000 and it was approved in March by the board."
)


@pytest.fixture
def report_pages() -> list[PageContent]:
    return make_pages(
        "Cover page",
        "Table of contents",
        "Introduction to the year",
        "Staffing changes",
        BUDGET_PAGE,
    )


def _strip_ellipsis(text: str) -> str:
    if text.startswith(ELLIPSIS):
        text = text[len(ELLIPSIS):]
    if text.endswith(ELLIPSIS):
        text = text[: -len(ELLIPSIS)]
    return text


def test_single_match_on_page_five(report_pages: list[PageContent]) -> None:
    results = search_with_citations("budget", report_pages, 5)

    assert len(results) == 1
    chunk = results[0]
    assert chunk.page_number == 5
    assert "budget" in chunk.text
    assert chunk.text.startswith(ELLIPSIS)
    assert chunk.end_index - chunk.start_index == len("budget")
    assert BUDGET_PAGE[chunk.start_index:chunk.end_index] == "budget"


def test_match_at_page_start_has_no_leading_ellipsis() -> None:
    results = search_with_citations("budget", make_pages("Budget approved."), 5)
    assert not results[0].text.startswith(ELLIPSIS)
    assert results[0].text == "Budget approved."


def test_search_is_case_insensitive(report_pages: list[PageContent]) -> None:
    assert search_with_citations("BUDGET FOR Q1", report_pages)[0].page_number == 5


@pytest.mark.parametrize("query", ["budget", "the", "a", "was approved", "q1"])
def test_every_excerpt_is_literal_page_text(report_pages: list[PageContent], query: str) -> None:
    by_number = {page.page_number: page for page in report_pages}
    for chunk in search_with_citations(query, report_pages, 50):
        excerpt = _strip_ellipsis(chunk.text).lower()
        assert excerpt in by_number[chunk.page_number].content.lower()


@pytest.mark.parametrize("limit", [0, 1, 2, 3, 7])
def test_result_cap(limit: int) -> None:
    pages = make_pages("tax " * 20, "tax " * 20)
    assert len(search_with_citations("tax", pages, limit)) <= limit


def test_overlapping_occurrences_are_reported() -> None:
    results = search_with_citations("aa", make_pages("aaaa"), 10)
    assert [chunk.start_index for chunk in results] == [0, 1, 2]


def test_negative_limit_is_rejected() -> None:
    with pytest.raises(ValueError):
        search_with_citations("x", make_pages("x"), -1)


def test_empty_query_finds_nothing(report_pages: list[PageContent]) -> None:
    assert search_with_citations("   ", report_pages) == []


def test_pages_are_searched_in_page_order() -> None:
    pages = list(reversed(make_pages("note one", "note two", "note three")))
    results = search_with_citations("note", pages, 5)
    assert [chunk.page_number for chunk in results] == [1, 2, 3]


def test_word_fallback_for_long_queries() -> None:
    pages = make_pages("Project plan", "The deadline: March 1 for all submissions.")

    results = search_with_citations("what is the deadline?", pages, 5)

    assert len(results) == 1
    assert results[0].page_number == 2
    assert "deadline: March 1" in results[0].text


def test_no_word_fallback_for_short_queries() -> None:
    pages = make_pages("The deadline is near.")
    assert search_with_citations("final deadline", pages, 5) == []


def test_no_word_fallback_when_phrase_found_anywhere() -> None:
    pages = make_pages("the quarterly budget report", "budget items listed here")

    results = search_with_citations("the quarterly budget", pages, 5)

    assert [chunk.page_number for chunk in results] == [1]


def test_fallback_uses_wider_trailing_window() -> None:
    content = "x" * 100 + "deadline" + "y" * 100
    results = search_with_citations("when is the deadline", make_pages(content), 1)

    text = _strip_ellipsis(results[0].text)
    assert text == "x" * 30 + "deadline" + "y" * 80


def test_bounding_box_comes_from_region() -> None:
    bbox = BoundingBox(x=10, y=20, width=100, height=12)
    page = PageContent(
        page_number=1,
        content="intro\nrevenue grew",
        width=595,
        height=842,
        regions=[
            TextRegion(char_start=0, char_end=5, bbox=BoundingBox(x=0, y=0, width=5, height=5)),
            TextRegion(char_start=6, char_end=18, bbox=bbox),
        ],
    )

    chunk = search_with_citations("revenue", [page])[0]

    assert chunk.bounding_box == bbox
    assert chunk.page_width == 595
    assert chunk.page_height == 842


def test_find_page_for_text(report_pages: list[PageContent]) -> None:
    assert find_page_for_text("Staffing", report_pages) == 4
    assert find_page_for_text("missing words", report_pages) is None


def test_extract_citation_uses_wide_window(report_pages: list[PageContent]) -> None:
    chunk = extract_citation("approved in march", report_pages)
    assert chunk is not None
    assert chunk.page_number == 5
    assert not chunk.text.endswith(ELLIPSIS)
    assert extract_citation("", report_pages) is None


def test_fold_case_keeps_length() -> None:
    text = "İstanbul ẞtraße ÅNGSTRÖM"
    assert len(fold_case(text)) == len(text)
    assert fold_case("ÅNGSTRÖM") == "ångström"


def test_offsets_survive_length_changing_lowercase() -> None:
    page = PageContent(
        page_number=1,
        content="İstanbul budget approved",
        regions=[
            TextRegion(char_start=0, char_end=8, bbox=BoundingBox(x=0, y=0, width=40, height=10)),
            TextRegion(char_start=9, char_end=24, bbox=BoundingBox(x=0, y=20, width=90, height=10)),
        ],
    )

    chunk = search_with_citations("BUDGET", [page])[0]
    cited = extract_citation("budget", [page])

    assert page.content[chunk.start_index:chunk.end_index] == "budget"
    assert chunk.bounding_box == BoundingBox(x=0, y=20, width=90, height=10)
    assert cited is not None
    assert page.content[cited.start_index:cited.end_index] == "budget"
    assert find_page_for_text("istanbul budget", [page]) is None
    assert find_page_for_text("İstanbul budget", [page]) == 1
