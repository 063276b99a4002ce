"""Shared test fixtures for Concordance Browser tests."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from concordance_browser.models import (
    ConcordanceHit,
    CorpusDocument,
    Registry,
    UserConfig,
)

SAMPLE_TABLE = (
    "id,urn,year,title\n"
    "100,URN:NBN:no-nb_digibok_2008010300001,1998,Hav og himmel\n"
    "200,URN:NBN:no-nb_digibok_2010020400002,2004,Fjellet\n"
    "300,,unknown,\n"
)

SAMPLE_MANIFEST = {
    "appName": "Test Konkordans",
    "api": {"concordanceUrl": "https://conc.example.test/conc"},
    "corpus": {"metadataFile": "korpus.csv"},
}


# ── Factories ────────────────────────────────────────────────────────────────


@pytest.fixture
def make_document():
    """Factory fixture for creating CorpusDocument instances with sensible defaults."""

    def _make(
        doc_id: str = "100",
        urn: str = "URN:NBN:no-nb_digibok_2008010300001",
        year: int | None = 1998,
        title: str = "Hav og himmel",
    ) -> CorpusDocument:
        return CorpusDocument(id=doc_id, urn=urn, year=year, title=title)

    return _make


@pytest.fixture
def make_hit():
    """Factory fixture for creating ConcordanceHit instances."""

    def _make(
        book_id: str = "100",
        urn: str = "URN:NBN:no-nb_digibok_2008010300001",
        concordance_markup: str = "det store <b>hav</b> ligger",
        title: str = "Hav og himmel",
        year: int | None = 1998,
        document_url: str = "https://www.nb.no/items/URN%3ANBN%3Ano-nb_digibok_2008010300001?searchText=hav",
    ) -> ConcordanceHit:
        return ConcordanceHit(
            book_id=book_id,
            urn=urn,
            concordance_markup=concordance_markup,
            title=title,
            year=year,
            document_url=document_url,
        )

    return _make


@pytest.fixture
def registry(make_document) -> Registry:
    """Three-document registry: two dated with URNs, one without URN or year."""
    return Registry(
        [
            make_document(),
            make_document(
                doc_id="200",
                urn="URN:NBN:no-nb_digibok_2010020400002",
                year=2004,
                title="Fjellet",
            ),
            make_document(doc_id="300", urn="", year=None, title=""),
        ]
    )


@pytest.fixture
def sample_config():
    """Factory fixture for creating UserConfig with optional overrides."""

    def _make(**kwargs: Any) -> UserConfig:
        return UserConfig(**kwargs)

    return _make


@pytest.fixture
def corpus_dir(tmp_path) -> Path:
    """Create a manifest + corpus table pair on disk and return the directory."""
    (tmp_path / "app.manifest.json").write_text(
        json.dumps(SAMPLE_MANIFEST), encoding="utf-8"
    )
    (tmp_path / "korpus.csv").write_text(SAMPLE_TABLE, encoding="utf-8")
    return tmp_path


@pytest.fixture
def config_path(tmp_path):
    """Redirect the user config file into tmp_path."""
    path = tmp_path / "config" / "config.json"
    with patch("concordance_browser.config.get_config_path", return_value=path):
        yield path
