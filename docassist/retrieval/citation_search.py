"""Literal, page-attributed search used to ground answers in source text.

Matching is exact substring matching on case-folded text. Folding never
changes the length of the text, so match offsets index the page content. There is no
stemming, fuzzy matching or scoring: every hit must be literally present on
the page it is attributed to.
"""

from __future__ import annotations

import logging
import string
from typing import Iterable, Iterator, List, Optional, Sequence

from docassist.models.citation import CitedChunk
from docassist.models.page import PageContent

logger = logging.getLogger(__name__)

ELLIPSIS = "..."
LEADING_CONTEXT = 50
TRAILING_CONTEXT = 50
FALLBACK_LEADING_CONTEXT = 30
FALLBACK_TRAILING_CONTEXT = 80
MIN_FALLBACK_WORDS = 3
MIN_FALLBACK_WORD_LENGTH = 4
QUERY_PUNCTUATION = string.punctuation + "¿¡«»“”‘’"


def fold_case(text: str) -> str:
    """Lowercase ``text`` one character at a time, keeping its length.

    Characters whose lowercase form is longer (such as ``"İ"``) are kept as is.
    """
    folded = []
    for char in text:
        lowered = char.lower()
        folded.append(lowered if len(lowered) == 1 else char)
    return "".join(folded)


def iter_occurrences(haystack: str, needle: str) -> Iterator[int]:
    """Yield every start index of ``needle``; each search resumes at index + 1."""
    index = haystack.find(needle)
    while index != -1:
        yield index
        index = haystack.find(needle, index + 1)


def build_chunk(
    page: PageContent, start: int, length: int, leading: int, trailing: int
) -> CitedChunk:
    """Window ``leading``/``trailing`` characters around a match on ``page``."""
    content = page.content
    start = min(start, len(content))
    end = min(start + length, len(content))
    window_start = max(0, start - leading)
    window_end = min(len(content), end + trailing)

    text = content[window_start:window_end]
    if window_start > 0:
        text = ELLIPSIS + text
    if window_end < len(content):
        text = text + ELLIPSIS

    region = page.region_at(start)
    return CitedChunk(
        text=text,
        page_number=page.page_number,
        start_index=start,
        end_index=end,
        bounding_box=region.bbox if region else None,
        page_width=page.width,
        page_height=page.height,
    )


def fallback_terms(normalized_query: str) -> List[str]:
    """Distinct query words of four or more characters, in query order."""
    terms: List[str] = []
    for raw in normalized_query.split():
        word = raw.strip(QUERY_PUNCTUATION)
        if len(word) >= MIN_FALLBACK_WORD_LENGTH and word not in terms:
            terms.append(word)
    return terms


def _collect(
    pages: Iterable[PageContent],
    terms: Sequence[str],
    max_results: int,
    leading: int,
    trailing: int,
) -> List[CitedChunk]:
    results: List[CitedChunk] = []
    for page in pages:
        lowered = fold_case(page.content)
        for term in terms:
            for index in iter_occurrences(lowered, term):
                results.append(build_chunk(page, index, len(term), leading, trailing))
                if len(results) >= max_results:
                    return results
    return results


def search_with_citations(
    query: str, pages: Sequence[PageContent], max_results: int = 5
) -> List[CitedChunk]:
    """Find ``query`` across ``pages`` and return at most ``max_results`` excerpts.

    The exact phrase is tried first on every page. Only when it is found
    nowhere, and the query has more than two words, each longer query word
    is searched on its own. An empty list means "not found" and is a valid
    answer.
    """
    if max_results < 0:
        raise ValueError("max_results must be non-negative")
    normalized = fold_case(query).strip()
    if not normalized or max_results == 0:
        return []

    ordered = sorted(pages, key=lambda page: page.page_number)
    results = _collect(ordered, [normalized], max_results, LEADING_CONTEXT, TRAILING_CONTEXT)
    if results or len(normalized.split()) < MIN_FALLBACK_WORDS:
        return results

    terms = fallback_terms(normalized)
    logger.debug("No exact match for %r; trying words %s", normalized, terms)
    return _collect(
        ordered, terms, max_results, FALLBACK_LEADING_CONTEXT, FALLBACK_TRAILING_CONTEXT
    )


def find_page_for_text(text: str, pages: Sequence[PageContent]) -> Optional[int]:
    """Page number of the first page containing ``text``, if any."""
    needle = fold_case(text).strip()
    if not needle:
        return None
    for page in pages:
        if needle in fold_case(page.content):
            return page.page_number
    return None


def extract_citation(
    text: str, pages: Sequence[PageContent], context_chars: int = 100
) -> Optional[CitedChunk]:
    """First occurrence of ``text`` with ``context_chars`` of context on each side."""
    needle = fold_case(text).strip()
    if not needle:
        return None
    for page in pages:
        index = fold_case(page.content).find(needle)
        if index != -1:
            return build_chunk(page, index, len(needle), context_chars, context_chars)
    return None
