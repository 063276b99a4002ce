"""Internal service layer: corpus loading, concordance search, catalog lookups."""

from concordance_browser.services.catalog_service import (
    fetch_thumbnail_url,
    parse_thumbnail_response,
)
from concordance_browser.services.concordance_service import fetch_concordance
from concordance_browser.services.corpus_service import (
    load_corpus,
    load_corpus_from_manifest,
    read_source,
    resolve_table_location,
)

__all__ = [
    "fetch_concordance",
    "fetch_thumbnail_url",
    "load_corpus",
    "load_corpus_from_manifest",
    "parse_thumbnail_response",
    "read_source",
    "resolve_table_location",
]
