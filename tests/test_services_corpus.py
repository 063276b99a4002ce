"""Tests for corpus loading from manifest + table sources."""

from __future__ import annotations

import json
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from concordance_browser.errors import ConfigError, CorpusError
from concordance_browser.models import AppManifest
from concordance_browser.services.corpus_service import (
    is_url,
    load_corpus,
    load_corpus_from_manifest,
    read_source,
    resolve_table_location,
)

TABLE = b"id,urn,year,title\n1,URN:A,2001,Hav\n2,URN:B,2002,Fjell\n"


class TestResolveTableLocation:
    def test_relative_to_local_manifest(self, tmp_path):
        manifest = str(tmp_path / "app.manifest.json")
        assert resolve_table_location(manifest, "korpus.csv") == str(tmp_path / "korpus.csv")

    def test_relative_to_remote_manifest_is_quoted(self):
        location = resolve_table_location(
            "https://corpus.test/app/app.manifest.json", "Øyvind_Vågnes - Korpus.csv"
        )
        assert location == (
            "https://corpus.test/app/%C3%98yvind_V%C3%A5gnes%20-%20Korpus.csv"
        )

    def test_absolute_url_kept(self, tmp_path):
        url = "https://other.test/k.csv"
        assert resolve_table_location(str(tmp_path / "m.json"), url) == url


def test_is_url():
    assert is_url("https://x.test/a") is True
    assert is_url("http://x.test/a") is True
    assert is_url("/home/me/a.csv") is False
    assert is_url("C:\\data\\a.csv") is False


@pytest.mark.asyncio
async def test_read_source_local(tmp_path):
    path = tmp_path / "t.csv"
    path.write_bytes(TABLE)
    assert await read_source(str(path)) == TABLE


@pytest.mark.asyncio
async def test_read_source_url_raises_for_status():
    response = MagicMock()
    response.raise_for_status = MagicMock(
        side_effect=httpx.HTTPStatusError("404", request=MagicMock(), response=MagicMock())
    )
    client = MagicMock()
    client.get = AsyncMock(return_value=response)
    with pytest.raises(httpx.HTTPStatusError):
        await read_source("https://x.test/t.csv", client)


def test_load_corpus_from_bytes():
    manifest = json.dumps({"appName": "Korpus"}).encode()
    loaded = load_corpus(manifest, TABLE)
    assert loaded.manifest.app_name == "Korpus"
    assert loaded.registry.ids() == ["1", "2"]


def test_load_corpus_without_manifest_uses_defaults():
    assert load_corpus(None, TABLE).manifest == AppManifest()


class TestLoadCorpusFromManifest:
    @pytest.mark.asyncio
    async def test_local_manifest_and_table(self, corpus_dir):
        loaded = await load_corpus_from_manifest(str(corpus_dir / "app.manifest.json"))
        assert loaded.manifest.app_name == "Test Konkordans"
        assert loaded.manifest.concordance_url == "https://conc.example.test/conc"
        assert loaded.registry.ids() == ["100", "200", "300"]
        assert loaded.registry.get("300").year is None
        assert loaded.warnings == ()

    @pytest.mark.asyncio
    async def test_missing_manifest_falls_back_to_defaults(self, tmp_path):
        table = tmp_path / "korpus.csv"
        table.write_bytes(TABLE)
        loaded = await load_corpus_from_manifest(
            str(tmp_path / "missing.json"), table_location=str(table)
        )
        assert loaded.manifest == AppManifest()
        assert len(loaded.warnings) == 1
        assert len(loaded.registry) == 2

    @pytest.mark.asyncio
    async def test_strict_manifest_raises(self, tmp_path):
        (tmp_path / "m.json").write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigError):
            await load_corpus_from_manifest(str(tmp_path / "m.json"), strict_manifest=True)

    @pytest.mark.asyncio
    async def test_missing_table_raises_corpus_error(self, corpus_dir):
        (corpus_dir / "korpus.csv").unlink()
        with pytest.raises(CorpusError, match="Could not read corpus file"):
            await load_corpus_from_manifest(str(corpus_dir / "app.manifest.json"))

    @pytest.mark.asyncio
    async def test_malformed_table_raises_corpus_error(self, corpus_dir):
        (corpus_dir / "korpus.csv").write_text("id,urn,year,title\n1,2\n", encoding="utf-8")
        with pytest.raises(CorpusError, match="line 2"):
            await load_corpus_from_manifest(str(corpus_dir / "app.manifest.json"))

    @pytest.mark.asyncio
    async def test_remote_sources(self):
        manifest = json.dumps({"corpus": {"metadataFile": "k.csv"}}).encode()
        responses = {
            "https://corpus.test/app.manifest.json": manifest,
            "https://corpus.test/k.csv": TABLE,
        }

        async def get(url, timeout):
            return SimpleNamespace(content=responses[url], raise_for_status=lambda: None)

        client = MagicMock()
        client.get = AsyncMock(side_effect=get)

        loaded = await load_corpus_from_manifest(
            "https://corpus.test/app.manifest.json", client=client
        )

        assert loaded.registry.ids() == ["1", "2"]
        assert [call.args[0] for call in client.get.await_args_list] == list(responses)


def test_default_manifest_file_name_resolves(tmp_path):
    location = resolve_table_location(
        str(tmp_path / "app.manifest.json"), AppManifest().metadata_file
    )
    assert Path(location).name == "Øyvind_Vågnes - Korpus.csv"
