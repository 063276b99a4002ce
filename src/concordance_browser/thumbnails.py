"""Per-document thumbnail resolution with a session-lifetime cache."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable, Mapping

import httpx

from concordance_browser.models import CorpusDocument
from concordance_browser.parsing import normalize_urn
from concordance_browser.services.catalog_service import fetch_thumbnail_url

logger = logging.getLogger(__name__)

ThumbnailFetcher = Callable[[str, httpx.AsyncClient], Awaitable[str | None]]


class ThumbnailResolver:
    """Resolve catalog thumbnails for documents, at most once per id.

    The cache only grows: a recorded URL is never replaced. A lookup that
    finds no image leaves the id uncached so a later call retries it.
    Concurrent calls for an id share one lookup; each caller decides on its
    own whether to commit the result.
    """

    def __init__(self, fetch: ThumbnailFetcher = fetch_thumbnail_url) -> None:
        self._fetch = fetch
        self._cache: dict[str, str] = {}
        self._inflight: dict[str, asyncio.Task[str | None]] = {}

    @property
    def cache(self) -> Mapping[str, str]:
        return self._cache

    def get(self, doc_id: str) -> str | None:
        return self._cache.get(doc_id)

    def is_inflight(self, doc_id: str) -> bool:
        return doc_id in self._inflight

    def cancel_all(self) -> None:
        """Cancel every lookup still in flight."""
        for task in list(self._inflight.values()):
            task.cancel()
        self._inflight.clear()

    async def _fetch_one(self, doc: CorpusDocument, client: httpx.AsyncClient) -> str | None:
        try:
            return await self._fetch(normalize_urn(doc.urn), client)
        except httpx.HTTPError:
            logger.warning("Thumbnail lookup for %s failed", doc.id, exc_info=True)
            return None
        finally:
            self._inflight.pop(doc.id, None)

    def _claim(
        self, documents: Iterable[CorpusDocument], client: httpx.AsyncClient
    ) -> list[tuple[CorpusDocument, asyncio.Task[str | None]]]:
        """Start or join a lookup for each uncached document with a URN."""
        batch: list[tuple[CorpusDocument, asyncio.Task[str | None]]] = []
        for doc in documents:
            if not normalize_urn(doc.urn) or doc.id in self._cache:
                continue
            task = self._inflight.get(doc.id)
            if task is None:
                task = asyncio.ensure_future(self._fetch_one(doc, client))
                self._inflight[doc.id] = task
            batch.append((doc, task))
        return batch

    async def _await_lookup(
        self,
        doc: CorpusDocument,
        task: asyncio.Task[str | None],
        is_current: Callable[[], bool] | None,
        on_resolved: Callable[[str, str], None] | None,
    ) -> str | None:
        # Shielded so one caller's cancellation leaves the shared lookup running
        url = await asyncio.shield(task)
        if not url:
            return None
        if is_current is not None and not is_current():
            logger.debug("Discarding thumbnail for %s from a superseded load", doc.id)
            return None
        self._cache.setdefault(doc.id, url)
        if on_resolved is not None:
            on_resolved(doc.id, self._cache[doc.id])
        return self._cache[doc.id]

    async def resolve(
        self,
        documents: Iterable[CorpusDocument],
        client: httpx.AsyncClient,
        *,
        is_current: Callable[[], bool] | None = None,
        on_resolved: Callable[[str, str], None] | None = None,
    ) -> dict[str, str]:
        """Look up thumbnails for uncached documents concurrently.

        Documents without a URN or already cached are skipped. A document
        whose lookup is already in flight joins that lookup instead of
        issuing another request. Each result is committed as it arrives,
        unless ``is_current`` reports the caller has been superseded.

        Returns:
            The ``id -> url`` entries resolved by this call.
        """
        batch = self._claim(documents, client)
        if not batch:
            return {}
        logger.debug("Resolving %d thumbnail(s)", len(batch))
        results = await asyncio.gather(
            *(self._await_lookup(doc, task, is_current, on_resolved) for doc, task in batch)
        )
        return {doc.id: url for (doc, _), url in zip(batch, results, strict=True) if url}


__all__ = ["ThumbnailFetcher", "ThumbnailResolver"]
