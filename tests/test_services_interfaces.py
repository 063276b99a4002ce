"""Tests for service protocol adapters."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from concordance_browser.models import ConcordanceRequest
from concordance_browser.services.interfaces import (
    CatalogService,
    ConcordanceService,
    CorpusService,
    build_default_app_services,
)


def test_default_services_satisfy_protocols():
    services = build_default_app_services()
    assert isinstance(services.concordance, ConcordanceService)
    assert isinstance(services.catalog, CatalogService)
    assert isinstance(services.corpus, CorpusService)


@pytest.mark.asyncio
async def test_concordance_adapter_delegates():
    services = build_default_app_services()
    request = ConcordanceRequest(query="hav", dhlabids=(1,))
    client = MagicMock()
    with patch(
        "concordance_browser.services.concordance_service.fetch_concordance",
        new=AsyncMock(return_value=[]),
    ) as fetch:
        assert await services.concordance.fetch_concordance(
            client=client, url="u", request=request
        ) == []
    fetch.assert_awaited_once_with(client=client, url="u", request=request)


@pytest.mark.asyncio
async def test_catalog_adapter_delegates():
    services = build_default_app_services()
    client = MagicMock()
    with patch(
        "concordance_browser.services.catalog_service.fetch_thumbnail_url",
        new=AsyncMock(return_value="M"),
    ) as fetch:
        assert await services.catalog.fetch_thumbnail_url("URN:A", client) == "M"
    fetch.assert_awaited_once_with("URN:A", client)


@pytest.mark.asyncio
async def test_corpus_adapter_delegates():
    services = build_default_app_services()
    sentinel = object()
    with patch(
        "concordance_browser.services.corpus_service.load_corpus_from_manifest",
        new=AsyncMock(return_value=sentinel),
    ) as load:
        result = await services.corpus.load_corpus(
            manifest_location="m.json", client=None, table_location="t.csv"
        )
    assert result is sentinel
    load.assert_awaited_once_with("m.json", client=None, table_location="t.csv")
