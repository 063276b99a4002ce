"""Service interfaces + default adapters for app-level dependency injection."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

import httpx

from concordance_browser.models import ConcordanceRequest, LoadedCorpus
from concordance_browser.services import catalog_service as _catalog
from concordance_browser.services import concordance_service as _concordance
from concordance_browser.services import corpus_service as _corpus


@runtime_checkable
class ConcordanceService(Protocol):
    """Interface for the remote concordance search."""

    async def fetch_concordance(
        self,
        *,
        client: httpx.AsyncClient | None,
        url: str,
        request: ConcordanceRequest,
    ) -> Any:
        """POST a request and return the decoded JSON payload."""
        ...


@runtime_checkable
class CatalogService(Protocol):
    """Interface for catalog thumbnail lookups."""

    async def fetch_thumbnail_url(self, urn: str, client: httpx.AsyncClient) -> str | None:
        """Return a thumbnail URL for a URN, or None."""
        ...


@runtime_checkable
class CorpusService(Protocol):
    """Interface for loading the manifest and corpus table."""

    async def load_corpus(
        self,
        *,
        manifest_location: str,
        client: httpx.AsyncClient | None,
        table_location: str | None,
    ) -> LoadedCorpus:
        """Load the corpus named by a manifest."""
        ...


class DefaultConcordanceService:
    """Default adapter that delegates to the function-based concordance service."""

    async def fetch_concordance(
        self,
        *,
        client: httpx.AsyncClient | None,
        url: str,
        request: ConcordanceRequest,
    ) -> Any:
        return await _concordance.fetch_concordance(client=client, url=url, request=request)


class DefaultCatalogService:
    """Default adapter that delegates to the function-based catalog client."""

    async def fetch_thumbnail_url(self, urn: str, client: httpx.AsyncClient) -> str | None:
        return await _catalog.fetch_thumbnail_url(urn, client)


class DefaultCorpusService:
    """Default adapter that delegates to the function-based corpus loader."""

    async def load_corpus(
        self,
        *,
        manifest_location: str,
        client: httpx.AsyncClient | None,
        table_location: str | None,
    ) -> LoadedCorpus:
        return await _corpus.load_corpus_from_manifest(
            manifest_location,
            client=client,
            table_location=table_location,
        )


@dataclass(slots=True)
class AppServices:
    """Aggregated service interfaces consumed by the app layer."""

    concordance: ConcordanceService
    catalog: CatalogService
    corpus: CorpusService


def build_default_app_services() -> AppServices:
    """Build default app services backed by the function-based modules."""
    return AppServices(
        concordance=DefaultConcordanceService(),
        catalog=DefaultCatalogService(),
        corpus=DefaultCorpusService(),
    )


__all__ = [
    "AppServices",
    "CatalogService",
    "ConcordanceService",
    "CorpusService",
    "build_default_app_services",
]
