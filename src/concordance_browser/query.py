"""Document list filtering: fuzzy title match and year range."""

from __future__ import annotations

import re
from collections.abc import Iterable

from rapidfuzz import fuzz

from concordance_browser.models import CorpusDocument, Registry, YearRange

FUZZY_SCORE_CUTOFF = 60  # Minimum score (0-100) to include in results


def matches_title(doc: CorpusDocument, text: str) -> bool:
    """Return True when the title fuzzily matches ``text`` (or text is blank)."""
    needle = text.strip().lower()
    if not needle:
        return True
    haystack = f"{doc.title} {doc.id}".lower()
    if needle in haystack:
        return True
    return fuzz.WRatio(needle, haystack) >= FUZZY_SCORE_CUTOFF


def filter_documents(
    documents: Iterable[CorpusDocument],
    text: str = "",
    year_range: YearRange | None = None,
) -> list[CorpusDocument]:
    """Return the documents visible under a title filter and year range, in order."""
    return [
        doc
        for doc in documents
        if (year_range is None or year_range.contains(doc.year)) and matches_title(doc, text)
    ]


def documents_in_range(registry: Registry, year_range: YearRange | None) -> list[CorpusDocument]:
    """Return registry documents inside the year range (unknown years always pass)."""
    return filter_documents(registry, "", year_range)


_YEAR_RANGE_PATTERN = re.compile(r"^\s*(\d+)?\s*(?:(-|\.\.)\s*(\d+)?)?\s*$")


def parse_year_range_text(text: str) -> YearRange | None:
    """Parse ``1990-2020``, ``1990-``, ``-2020``, ``1990..2020`` or a single year.

    Returns None for blank input (no year filter).

    Raises:
        ValueError: If the text is not a year range or the bounds are reversed.
    """
    if not text.strip():
        return None
    match = _YEAR_RANGE_PATTERN.match(text)
    if match is None:
        raise ValueError(f"Not a year range: {text.strip()!r}")
    start_text, separator, end_text = match.groups()
    start = int(start_text) if start_text else None
    if separator is None:
        end = start
    else:
        end = int(end_text) if end_text else None
    if start is None and end is None:
        raise ValueError(f"Not a year range: {text.strip()!r}")
    if start is not None and end is not None and start > end:
        raise ValueError(f"Year range is reversed: {start} > {end}")
    return YearRange(start=start, end=end)


def format_year_range(year_range: YearRange | None) -> str:
    """Render a year range the way parse_year_range_text reads it."""
    if year_range is None:
        return ""
    start = "" if year_range.start is None else str(year_range.start)
    end = "" if year_range.end is None else str(year_range.end)
    if start and start == end:
        return start
    return f"{start}-{end}"


__all__ = [
    "FUZZY_SCORE_CUTOFF",
    "documents_in_range",
    "filter_documents",
    "format_year_range",
    "matches_title",
    "parse_year_range_text",
]
