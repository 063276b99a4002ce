"""Data models and constants for the Concordance Browser application."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

# Application identity: the platformdirs config directory name
CONFIG_APP_NAME = "concordance-browser"

# Manifest defaults (used when the manifest omits a field or leaves it blank)
DEFAULT_APP_NAME = "Vågnes Konkordans"
DEFAULT_CONCORDANCE_URL = "https://api.nb.no/dhlab/conc"
DEFAULT_METADATA_FILE = "Øyvind_Vågnes - Korpus.csv"
DEFAULT_MANIFEST_FILE = "app.manifest.json"

# Concordance request parameters
CONCORDANCE_WINDOW = 20
CONCORDANCE_LIMIT = 1000
CONCORDANCE_HTML_FORMATTING = True

# Display placeholders
UNKNOWN_TITLE = "Unknown title"
UNKNOWN_YEAR = "unknown year"

# Corpus table columns (case-sensitive)
CORPUS_COLUMNS = ("id", "urn", "year", "title")
LEGACY_ID_COLUMN = "dhlabid"


@dataclass(slots=True, frozen=True)
class CorpusDocument:
    """One document of the corpus table."""

    id: str
    urn: str = ""
    year: int | None = None
    title: str = ""

    @property
    def display_title(self) -> str:
        return self.title or UNKNOWN_TITLE


class Registry:
    """Ordered, immutable collection of corpus documents with O(1) id lookup."""

    __slots__ = ("_by_id", "_documents")

    def __init__(self, documents: Iterable[CorpusDocument] = ()) -> None:
        self._documents: tuple[CorpusDocument, ...] = tuple(documents)
        self._by_id: dict[str, CorpusDocument] = {doc.id: doc for doc in self._documents}
        if len(self._by_id) != len(self._documents):
            raise ValueError("Registry documents must have unique ids")

    def __len__(self) -> int:
        return len(self._documents)

    def __iter__(self) -> Iterator[CorpusDocument]:
        return iter(self._documents)

    def __bool__(self) -> bool:
        return bool(self._documents)

    def __contains__(self, doc_id: object) -> bool:
        return doc_id in self._by_id

    def __repr__(self) -> str:
        return f"Registry({len(self._documents)} documents)"

    @property
    def documents(self) -> tuple[CorpusDocument, ...]:
        return self._documents

    def ids(self) -> list[str]:
        """Return document ids in table order."""
        return [doc.id for doc in self._documents]

    def get(self, doc_id: str) -> CorpusDocument | None:
        return self._by_id.get(doc_id)

    def year_bounds(self) -> tuple[int, int] | None:
        """Return (min_year, max_year) over documents with a known year."""
        years = [doc.year for doc in self._documents if doc.year is not None]
        if not years:
            return None
        return min(years), max(years)


@dataclass(slots=True, frozen=True)
class YearRange:
    """Inclusive year bounds. Documents with an unknown year always match."""

    start: int | None = None
    end: int | None = None

    def contains(self, year: int | None) -> bool:
        if year is None:
            return True
        if self.start is not None and year < self.start:
            return False
        if self.end is not None and year > self.end:
            return False
        return True


@dataclass(slots=True, frozen=True)
class AppManifest:
    """Per-corpus application manifest (``app.manifest.json``)."""

    app_name: str = DEFAULT_APP_NAME
    concordance_url: str = DEFAULT_CONCORDANCE_URL
    metadata_file: str = DEFAULT_METADATA_FILE


@dataclass(slots=True, frozen=True)
class LoadedCorpus:
    """Result of a successful corpus load."""

    manifest: AppManifest
    registry: Registry
    warnings: tuple[str, ...] = ()


@dataclass(slots=True, frozen=True)
class ConcordanceRequest:
    """Body of a concordance search request."""

    query: str
    dhlabids: tuple[int, ...]
    window: int = CONCORDANCE_WINDOW
    limit: int = CONCORDANCE_LIMIT
    html_formatting: bool = CONCORDANCE_HTML_FORMATTING

    def to_payload(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "dhlabids": list(self.dhlabids),
            "window": self.window,
            "limit": self.limit,
            "html_formatting": self.html_formatting,
        }


@dataclass(slots=True, frozen=True)
class ConcordanceHit:
    """One concordance occurrence joined with corpus metadata."""

    book_id: str
    urn: str
    concordance_markup: str  # Rendered verbatim, never re-escaped
    title: str
    year: int | None
    document_url: str

    @property
    def year_label(self) -> str:
        return str(self.year) if self.year is not None else UNKNOWN_YEAR


@dataclass(slots=True)
class SessionState:
    """Persisted browsing state restored on the next launch."""

    last_query: str = ""
    excluded_ids: list[str] = field(default_factory=list)
    year_from: int | None = None
    year_to: int | None = None


@dataclass(slots=True)
class UserConfig:
    """User configuration persisted in the platform config directory."""

    export_dir: str = ""
    manifest_path: str = ""
    session: SessionState = field(default_factory=SessionState)
    version: int = 1
