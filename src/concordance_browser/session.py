"""Coordinating state for one browsing session.

CorpusSession owns the Registry, the selection flags, the thumbnail cache and
the latest hit list. Loads and searches are tagged with a generation token;
a completion whose token is no longer current is discarded instead of
overwriting state that belongs to a newer operation.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

import httpx

from concordance_browser.errors import ConcordanceBrowserError
from concordance_browser.models import (
    AppManifest,
    ConcordanceHit,
    CorpusDocument,
    LoadedCorpus,
    Registry,
    YearRange,
)
from concordance_browser.query import filter_documents
from concordance_browser.search import SearchOrchestrator, included_document_ids
from concordance_browser.selection import SelectionManager
from concordance_browser.services.interfaces import AppServices, build_default_app_services
from concordance_browser.thumbnails import ThumbnailResolver

logger = logging.getLogger(__name__)


class CorpusSession:
    """Single owner of corpus, selection, thumbnail, and result state."""

    def __init__(self, services: AppServices | None = None) -> None:
        self.services = services or build_default_app_services()
        self.manifest = AppManifest()
        self.registry = Registry()
        self.selection = SelectionManager()
        self.thumbnails = ThumbnailResolver(self.services.catalog.fetch_thumbnail_url)
        self.hits: list[ConcordanceHit] = []
        self.last_query = ""
        self.last_error: str | None = None
        self.load_warnings: list[str] = []
        self.loading = False
        self.searching = False
        self._load_generation = 0
        self._search_generation = 0
        self._closed = False

    # ------------------------------------------------------------------
    # Generation tokens
    # ------------------------------------------------------------------

    @property
    def closed(self) -> bool:
        return self._closed

    def begin_load(self) -> int:
        """Start a load, superseding any load still in flight."""
        self._load_generation += 1
        self.loading = True
        self.last_error = None
        self.load_warnings = []
        return self._load_generation

    def is_current_load(self, token: int) -> bool:
        return not self._closed and token == self._load_generation

    def begin_search(self) -> int:
        """Start a search, superseding any search still in flight."""
        self._search_generation += 1
        self.searching = True
        return self._search_generation

    def is_current_search(self, token: int) -> bool:
        return not self._closed and token == self._search_generation

    def close(self) -> None:
        """Invalidate every in-flight operation."""
        self._closed = True
        self._load_generation += 1
        self._search_generation += 1
        self.loading = False
        self.searching = False
        self.thumbnails.cancel_all()

    # ------------------------------------------------------------------
    # Commits
    # ------------------------------------------------------------------

    def commit_load(self, token: int, loaded: LoadedCorpus) -> bool:
        """Install a loaded corpus. Returns False for a superseded token."""
        if not self.is_current_load(token):
            logger.debug("Discarding superseded corpus load (token %d)", token)
            return False
        self.manifest = loaded.manifest
        self.registry = loaded.registry
        self.load_warnings = list(loaded.warnings)
        if self.registry:
            self.selection.initialize(self.registry.ids())
        self.loading = False
        return True

    def fail_load(self, token: int, error: Exception) -> bool:
        """Record a failed load; the registry is left empty."""
        if not self.is_current_load(token):
            return False
        self.registry = Registry()
        self.last_error = str(error)
        self.loading = False
        return True

    def commit_search(self, token: int, query: str, hits: list[ConcordanceHit]) -> bool:
        """Replace the hit list. Returns False for a superseded token."""
        if not self.is_current_search(token):
            logger.debug("Discarding superseded search result (token %d)", token)
            return False
        self.hits = list(hits)
        self.last_query = query.strip()
        self.last_error = None
        self.searching = False
        return True

    def fail_search(self, token: int, error: Exception) -> bool:
        """Clear the hit list and record the error."""
        if not self.is_current_search(token):
            return False
        self.hits = []
        self.last_error = str(error)
        self.searching = False
        return True

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    async def load(
        self,
        manifest_location: str,
        *,
        client: httpx.AsyncClient | None = None,
        table_location: str | None = None,
    ) -> bool:
        """Load the corpus and commit it if still current.

        Returns True when a registry was committed. Failures are recorded in
        ``last_error`` rather than raised.
        """
        token = self.begin_load()
        try:
            loaded = await self.services.corpus.load_corpus(
                manifest_location=manifest_location,
                client=client,
                table_location=table_location,
            )
        except ConcordanceBrowserError as e:
            logger.warning("Corpus load failed: %s", e)
            self.fail_load(token, e)
            return False
        return self.commit_load(token, loaded)

    async def search(
        self,
        query: str,
        *,
        client: httpx.AsyncClient | None = None,
        year_range: YearRange | None = None,
    ) -> bool:
        """Run a search over the current registry snapshot.

        Returns True when a new hit list was committed. Failures clear the
        hit list and are recorded in ``last_error``.
        """
        token = self.begin_search()
        orchestrator = SearchOrchestrator(self.manifest.concordance_url, self.services.concordance)
        try:
            hits = await orchestrator.search(
                query,
                self.registry,
                self.selection,
                client=client,
                year_range=year_range,
            )
        except ConcordanceBrowserError as e:
            self.fail_search(token, e)
            return False
        return self.commit_search(token, query, hits)

    async def resolve_thumbnails(
        self,
        client: httpx.AsyncClient,
        on_resolved: Callable[[str, str], None] | None = None,
    ) -> dict[str, str]:
        """Resolve thumbnails for the current registry, bound to this load."""
        token = self._load_generation
        return await self.thumbnails.resolve(
            self.registry,
            client,
            is_current=lambda: self.is_current_load(token),
            on_resolved=on_resolved,
        )

    # ------------------------------------------------------------------
    # Derived views (recomputed on every read)
    # ------------------------------------------------------------------

    def visible_documents(
        self, text: str = "", year_range: YearRange | None = None
    ) -> list[CorpusDocument]:
        return filter_documents(self.registry, text, year_range)

    def included_ids(self, year_range: YearRange | None = None) -> list[str]:
        return included_document_ids(self.registry, self.selection, year_range)


__all__ = ["CorpusSession"]
