"""Tests for ThumbnailResolver caching and in-flight deduplication."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from concordance_browser.models import CorpusDocument
from concordance_browser.thumbnails import ThumbnailResolver


@pytest.mark.asyncio
async def test_resolves_and_caches(registry):
    fetch = AsyncMock(side_effect=lambda urn, client: f"https://img.test/{urn}.jpg")
    resolver = ThumbnailResolver(fetch)

    resolved = await resolver.resolve(registry, MagicMock())

    # Document 300 has no URN and is never looked up
    assert set(resolved) == {"100", "200"}
    assert fetch.await_count == 2
    assert resolver.get("100") == "https://img.test/URN:NBN:no-nb_digibok_2008010300001.jpg"
    assert resolver.get("300") is None


@pytest.mark.asyncio
async def test_cached_documents_not_requested_again(registry):
    fetch = AsyncMock(return_value="https://img.test/a.jpg")
    resolver = ThumbnailResolver(fetch)

    await resolver.resolve(registry, MagicMock())
    second = await resolver.resolve(registry, MagicMock())

    assert second == {}
    assert fetch.await_count == 2


@pytest.mark.asyncio
async def test_no_image_is_retried_later(make_document):
    fetch = AsyncMock(side_effect=[None, "https://img.test/b.jpg"])
    resolver = ThumbnailResolver(fetch)
    doc = make_document()

    assert await resolver.resolve([doc], MagicMock()) == {}
    assert resolver.get(doc.id) is None
    assert await resolver.resolve([doc], MagicMock()) == {doc.id: "https://img.test/b.jpg"}


@pytest.mark.asyncio
async def test_transport_error_reads_as_no_image(make_document):
    fetch = AsyncMock(side_effect=httpx.ConnectError("boom"))
    resolver = ThumbnailResolver(fetch)
    doc = make_document()

    assert await resolver.resolve([doc], MagicMock()) == {}
    assert resolver.is_inflight(doc.id) is False


@pytest.mark.asyncio
async def test_concurrent_resolves_share_one_lookup(make_document):
    gate = asyncio.Event()

    async def slow_fetch(urn, client):
        await gate.wait()
        return "https://img.test/slow.jpg"

    fetch = AsyncMock(side_effect=slow_fetch)
    resolver = ThumbnailResolver(fetch)
    doc = make_document()

    first = asyncio.create_task(resolver.resolve([doc], MagicMock()))
    await asyncio.sleep(0)
    assert resolver.is_inflight(doc.id) is True
    second = asyncio.create_task(resolver.resolve([doc], MagicMock()))
    await asyncio.sleep(0)
    gate.set()

    expected = {doc.id: "https://img.test/slow.jpg"}
    assert await first == expected
    assert await second == expected
    assert resolver.is_inflight(doc.id) is False
    assert fetch.await_count == 1


@pytest.mark.asyncio
async def test_superseded_results_are_not_committed(make_document):
    fetch = AsyncMock(return_value="https://img.test/a.jpg")
    resolver = ThumbnailResolver(fetch)
    on_resolved = MagicMock()

    result = await resolver.resolve(
        [make_document()],
        MagicMock(),
        is_current=lambda: False,
        on_resolved=on_resolved,
    )

    assert result == {}
    assert resolver.cache == {}
    on_resolved.assert_not_called()


@pytest.mark.asyncio
async def test_on_resolved_called_per_document(registry):
    fetch = AsyncMock(return_value="https://img.test/a.jpg")
    resolver = ThumbnailResolver(fetch)
    on_resolved = MagicMock()

    await resolver.resolve(registry, MagicMock(), on_resolved=on_resolved)

    assert sorted(call.args[0] for call in on_resolved.call_args_list) == ["100", "200"]


@pytest.mark.asyncio
async def test_urn_is_trimmed_before_lookup():
    fetch = AsyncMock(return_value=None)
    resolver = ThumbnailResolver(fetch)

    await resolver.resolve([CorpusDocument(id="1", urn="  URN:A  ")], MagicMock())

    assert fetch.await_args.args[0] == "URN:A"


@pytest.mark.asyncio
async def test_joined_lookup_commits_for_current_caller(make_document):
    gate = asyncio.Event()

    async def slow_fetch(urn, client):
        await gate.wait()
        return "https://img.test/a.jpg"

    fetch = AsyncMock(side_effect=slow_fetch)
    resolver = ThumbnailResolver(fetch)
    doc = make_document()

    stale = asyncio.create_task(resolver.resolve([doc], MagicMock(), is_current=lambda: False))
    await asyncio.sleep(0)
    current = asyncio.create_task(resolver.resolve([doc], MagicMock(), is_current=lambda: True))
    await asyncio.sleep(0)
    gate.set()

    assert await stale == {}
    assert await current == {doc.id: "https://img.test/a.jpg"}
    assert resolver.get(doc.id) == "https://img.test/a.jpg"
    assert fetch.await_count == 1


@pytest.mark.asyncio
async def test_cancel_all_stops_pending_lookups(make_document):
    started = asyncio.Event()

    async def hanging_fetch(urn, client):
        started.set()
        await asyncio.Event().wait()

    resolver = ThumbnailResolver(AsyncMock(side_effect=hanging_fetch))
    doc = make_document()
    pending = asyncio.create_task(resolver.resolve([doc], MagicMock()))
    await started.wait()

    resolver.cancel_all()

    with pytest.raises(asyncio.CancelledError):
        await pending
    assert resolver.is_inflight(doc.id) is False
