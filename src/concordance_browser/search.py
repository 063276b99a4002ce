"""Search orchestration: preconditions, request, normalization, registry join."""

from __future__ import annotations

import logging

import httpx

from concordance_browser.concordance import (
    build_concordance_request,
    map_hits,
    normalize_response,
)
from concordance_browser.errors import (
    EmptyCorpusError,
    EmptyQueryError,
    EmptySelectionError,
)
from concordance_browser.models import (
    ConcordanceHit,
    ConcordanceRequest,
    Registry,
    YearRange,
)
from concordance_browser.query import documents_in_range
from concordance_browser.selection import SelectionManager
from concordance_browser.services.interfaces import ConcordanceService, DefaultConcordanceService

logger = logging.getLogger(__name__)


def included_document_ids(
    registry: Registry,
    selection: SelectionManager,
    year_range: YearRange | None = None,
) -> list[str]:
    """Return ids of selected documents inside the year range, in registry order."""
    return selection.included(doc.id for doc in documents_in_range(registry, year_range))


def prepare_search(
    query: str,
    registry: Registry,
    selection: SelectionManager,
    year_range: YearRange | None = None,
) -> ConcordanceRequest:
    """Validate preconditions and build the concordance request.

    Raises:
        EmptyQueryError: If the query is blank.
        EmptyCorpusError: If the registry is empty.
        EmptySelectionError: If no document is included.
        NoValidIdsError: If no included id is numeric.
    """
    if not query.strip():
        raise EmptyQueryError()
    if not registry:
        raise EmptyCorpusError()
    doc_ids = included_document_ids(registry, selection, year_range)
    if not doc_ids:
        raise EmptySelectionError()
    return build_concordance_request(query, doc_ids)


class SearchOrchestrator:
    """Run concordance searches against the remote service."""

    def __init__(self, url: str, service: ConcordanceService | None = None) -> None:
        self.url = url
        self._service = service or DefaultConcordanceService()

    async def search(
        self,
        query: str,
        registry: Registry,
        selection: SelectionManager,
        *,
        client: httpx.AsyncClient | None = None,
        year_range: YearRange | None = None,
    ) -> list[ConcordanceHit]:
        """Search the included documents and return hits in response order.

        Precondition failures raise before any network call; service
        failures raise SearchServiceError.
        """
        request = prepare_search(query, registry, selection, year_range)
        payload = await self._service.fetch_concordance(client=client, url=self.url, request=request)
        rows = normalize_response(payload)
        hits = map_hits(rows, registry, request.query)
        logger.info(
            "Search %r over %d document(s) returned %d hit(s)",
            request.query,
            len(request.dhlabids),
            len(hits),
        )
        return hits


__all__ = [
    "SearchOrchestrator",
    "included_document_ids",
    "prepare_search",
]
