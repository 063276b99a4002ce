"""Concordance request building and response normalization.

The concordance service answers in one of two encodings:

* row form: a JSON array of ``{docid?, dhlabid?, urn?, conc?}`` records;
* column form: a JSON object mapping each field name to an index-keyed
  mapping, e.g. ``{"docid": {"0": 7}, "conc": {"0": "<b>a</b>"}}``.

Both are resolved once, at the normalization boundary, into a sequence of
CanonicalRow. Nothing downstream sees the original shape.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any
from urllib.parse import quote, urlencode

from concordance_browser.errors import NoValidIdsError, SearchServiceError
from concordance_browser.models import (
    UNKNOWN_TITLE,
    ConcordanceHit,
    ConcordanceRequest,
    Registry,
)
from concordance_browser.parsing import normalize_urn

logger = logging.getLogger(__name__)

NB_ITEMS_URL = "https://www.nb.no/items/"

# Fields read from either response form; in column form their index keys define the rows
RESPONSE_FIELDS = ("docid", "dhlabid", "urn", "conc")
_INTEGER_ID_PATTERN = re.compile(r"^[+-]?\d+$")


@dataclass(slots=True, frozen=True)
class CanonicalRow:
    """One response row with unset fields as None."""

    docid: Any = None
    dhlabid: Any = None
    urn: Any = None
    conc: Any = None


@dataclass(slots=True, frozen=True)
class RowForm:
    records: Sequence[Any]


@dataclass(slots=True, frozen=True)
class ColumnForm:
    columns: Mapping[str, Any]


ResponseForm = RowForm | ColumnForm


# ============================================================================
# Request building
# ============================================================================


def coerce_document_id(doc_id: str) -> int | None:
    """Coerce a corpus id to the integer the service expects, or None."""
    candidate = doc_id.strip()
    if not _INTEGER_ID_PATTERN.match(candidate):
        return None
    return int(candidate)


def build_concordance_request(query: str, doc_ids: Iterable[str]) -> ConcordanceRequest:
    """Build a request for the trimmed query over the given document ids.

    Ids that are not base-10 integers are dropped.

    Raises:
        NoValidIdsError: If no id survives integer coercion.
    """
    dhlabids: list[int] = []
    for doc_id in doc_ids:
        value = coerce_document_id(doc_id)
        if value is None:
            logger.debug("Dropping non-numeric document id %r from request", doc_id)
            continue
        dhlabids.append(value)
    if not dhlabids:
        raise NoValidIdsError()
    return ConcordanceRequest(query=query.strip(), dhlabids=tuple(dhlabids))


# ============================================================================
# Response normalization
# ============================================================================


def classify_response(payload: Any) -> ResponseForm:
    """Resolve a decoded JSON payload into its response form.

    Raises:
        SearchServiceError: If the payload is neither a list nor an object.
    """
    if payload is None:
        return RowForm(records=[])
    if isinstance(payload, list):
        return RowForm(records=payload)
    if isinstance(payload, dict):
        return ColumnForm(columns=payload)
    raise SearchServiceError(f"Unexpected concordance response type: {type(payload).__name__}")


def _index_sort_key(key: str) -> tuple[int, int, str]:
    """Sort numeric index keys numerically, then any others lexicographically."""
    try:
        return (0, int(key), "")
    except ValueError:
        return (1, 0, key)


def _normalize_rows(form: RowForm) -> list[CanonicalRow]:
    rows: list[CanonicalRow] = []
    for record in form.records:
        if not isinstance(record, dict):
            logger.debug("Skipping non-object concordance record: %r", record)
            continue
        rows.append(CanonicalRow(**{name: record.get(name) for name in RESPONSE_FIELDS}))
    return rows


def _normalize_columns(form: ColumnForm) -> list[CanonicalRow]:
    columns: dict[str, dict[str, Any]] = {}
    for name in RESPONSE_FIELDS:
        column = form.columns.get(name)
        if isinstance(column, dict):
            columns[name] = {str(key): value for key, value in column.items()}
        elif isinstance(column, list):
            columns[name] = {str(i): value for i, value in enumerate(column)}
        else:
            columns[name] = {}

    index_keys: set[str] = set().union(*columns.values())

    return [
        CanonicalRow(**{name: columns[name].get(key) for name in RESPONSE_FIELDS})
        for key in sorted(index_keys, key=_index_sort_key)
    ]


def normalize_response(payload: Any) -> list[CanonicalRow]:
    """Normalize either response form to an ordered list of CanonicalRow."""
    form = classify_response(payload)
    if isinstance(form, RowForm):
        return _normalize_rows(form)
    return _normalize_columns(form)


# ============================================================================
# Hit mapping
# ============================================================================


def _id_to_str(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def resolve_book_id(row: CanonicalRow) -> str:
    """Return the row's document id, preferring ``docid`` over ``dhlabid``."""
    if row.docid is not None:
        return _id_to_str(row.docid)
    if row.dhlabid is not None:
        return _id_to_str(row.dhlabid)
    return ""


def build_document_url(urn: str, query: str) -> str:
    """Build the National Library viewer URL for a URN, or "" without one."""
    urn = normalize_urn(urn)
    if not urn:
        return ""
    url = NB_ITEMS_URL + quote(urn, safe="")
    if query:
        url += "?" + urlencode({"searchText": query})
    return url


def map_hits(rows: Iterable[CanonicalRow], registry: Registry, query: str) -> list[ConcordanceHit]:
    """Join canonical rows against the registry to produce hits."""
    hits: list[ConcordanceHit] = []
    for row in rows:
        book_id = resolve_book_id(row)
        meta = registry.get(book_id)
        remote_urn = row.urn if isinstance(row.urn, str) else ""
        urn = normalize_urn(remote_urn) or (meta.urn if meta else "")
        hits.append(
            ConcordanceHit(
                book_id=book_id,
                urn=urn,
                concordance_markup=row.conc if isinstance(row.conc, str) else "",
                title=(meta.title if meta and meta.title else UNKNOWN_TITLE),
                year=meta.year if meta else None,
                document_url=build_document_url(urn, query),
            )
        )
    return hits


__all__ = [
    "CanonicalRow",
    "ColumnForm",
    "RowForm",
    "build_concordance_request",
    "build_document_url",
    "classify_response",
    "coerce_document_id",
    "map_hits",
    "normalize_response",
    "resolve_book_id",
]
