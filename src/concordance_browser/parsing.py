"""Corpus table parsing, year/URN normalization, and concordance markup flattening."""

from __future__ import annotations

import csv
import html
import io
import logging
import math
import re
from html.parser import HTMLParser
from typing import Any

from concordance_browser.errors import CorpusError
from concordance_browser.models import (
    CORPUS_COLUMNS,
    LEGACY_ID_COLUMN,
    CorpusDocument,
    Registry,
)

logger = logging.getLogger(__name__)

# Candidate delimiters, in tie-break order
TABLE_DELIMITERS = (",", ";", "\t", "|")

# Leading base-10 integer: "1890-1891" reads as 1890
_LEADING_INT_PATTERN = re.compile(r"^\s*([+-]?\d+)")


def parse_year(value: Any) -> int | None:
    """Parse a year cell.

    Accepts an int, an integral finite float, or a string starting with a
    base-10 integer. Returns None for anything else.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        return None
    if not isinstance(value, str):
        return None
    match = _LEADING_INT_PATTERN.match(value)
    if match is None:
        return None
    return int(match.group(1))


def normalize_urn(urn: str) -> str:
    """Trim surrounding whitespace from a URN."""
    return urn.strip()


def decode_table_bytes(data: bytes) -> str:
    """Decode a corpus table as UTF-8, stripping a leading byte-order mark."""
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise CorpusError(f"Corpus table is not valid UTF-8: {e}") from e


def detect_delimiter(text: str) -> str:
    """Pick the delimiter that occurs most often in the header line."""
    header = next((line for line in text.splitlines() if line.strip()), "")
    best = TABLE_DELIMITERS[0]
    best_count = 0
    for candidate in TABLE_DELIMITERS:
        count = header.count(candidate)
        if count > best_count:
            best, best_count = candidate, count
    return best


def _resolve_columns(header: list[str]) -> dict[str, int]:
    """Map required column names to header positions."""
    positions: dict[str, int] = {}
    for index, name in enumerate(header):
        positions.setdefault(name.strip(), index)
    if "id" not in positions and LEGACY_ID_COLUMN in positions:
        positions["id"] = positions[LEGACY_ID_COLUMN]
    missing = [name for name in CORPUS_COLUMNS if name not in positions]
    if missing:
        raise CorpusError(f"Corpus table is missing required column(s): {', '.join(missing)}")
    return {name: positions[name] for name in CORPUS_COLUMNS}


def parse_corpus_table(text: str) -> list[CorpusDocument]:
    """Parse delimited corpus text into documents, in row order.

    Parsing is strict: a row whose field count differs from the header, or
    an unterminated quoted field, raises CorpusError. Blank lines are
    skipped. Rows with an empty id are dropped. A repeated id keeps the
    first row.
    """
    reader = csv.reader(io.StringIO(text), delimiter=detect_delimiter(text), strict=True)
    documents: list[CorpusDocument] = []
    seen_ids: set[str] = set()
    try:
        header: list[str] | None = None
        for row in reader:
            if not row:
                continue
            if header is None:
                header = row
                columns = _resolve_columns(header)
                continue
            if len(row) != len(header):
                raise CorpusError(
                    f"Corpus table line {reader.line_num}: expected {len(header)} fields, "
                    f"found {len(row)}"
                )
            doc_id = row[columns["id"]].strip()
            if not doc_id:
                continue
            if doc_id in seen_ids:
                logger.warning("Duplicate corpus id %r on line %d ignored", doc_id, reader.line_num)
                continue
            seen_ids.add(doc_id)
            documents.append(
                CorpusDocument(
                    id=doc_id,
                    urn=normalize_urn(row[columns["urn"]]),
                    year=parse_year(row[columns["year"]]),
                    title=row[columns["title"]].strip(),
                )
            )
    except csv.Error as e:
        raise CorpusError(f"Corpus table line {reader.line_num}: {e}") from e

    if header is None:
        raise CorpusError("Corpus table is empty (no header row)")
    return documents


def build_registry(data: bytes) -> Registry:
    """Decode and parse corpus table bytes into a Registry."""
    documents = parse_corpus_table(decode_table_bytes(data))
    logger.info("Parsed %d corpus documents", len(documents))
    return Registry(documents)


class _MarkupTextExtractor(HTMLParser):
    """Collect the text content of a concordance markup fragment."""

    _BREAK_TAGS = frozenset({"br", "p", "div", "li"})

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self._pieces: list[str] = []

    def handle_starttag(self, tag: str, _attrs: list[tuple[str, str | None]]) -> None:
        if tag in self._BREAK_TAGS:
            self._pieces.append(" ")

    def handle_endtag(self, tag: str) -> None:
        if tag in self._BREAK_TAGS:
            self._pieces.append(" ")

    def handle_data(self, data: str) -> None:
        self._pieces.append(data)

    def get_text(self) -> str:
        return "".join(self._pieces)


def flatten_markup(markup: str) -> str:
    """Flatten concordance markup to plain text.

    Tags are stripped, residual character entities decoded, and whitespace
    runs collapsed to single spaces.
    """
    if not markup:
        return ""
    parser = _MarkupTextExtractor()
    parser.feed(markup)
    parser.close()
    return " ".join(html.unescape(parser.get_text()).split())


__all__ = [
    "TABLE_DELIMITERS",
    "build_registry",
    "decode_table_bytes",
    "detect_delimiter",
    "flatten_markup",
    "normalize_urn",
    "parse_corpus_table",
    "parse_year",
]
