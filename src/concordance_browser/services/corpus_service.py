"""Corpus loading: read the manifest and corpus table, build the registry.

Sources are local paths or ``http(s)`` URLs. The table location named by the
manifest is resolved relative to the manifest's own location.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from urllib.parse import quote, urljoin, urlparse

import httpx

from concordance_browser.config import parse_manifest
from concordance_browser.errors import ConfigError, CorpusError
from concordance_browser.models import AppManifest, LoadedCorpus
from concordance_browser.parsing import build_registry

logger = logging.getLogger(__name__)

SOURCE_REQUEST_TIMEOUT = 30  # seconds


def is_url(location: str) -> bool:
    return urlparse(location).scheme in ("http", "https")


def resolve_table_location(manifest_location: str, metadata_file: str) -> str:
    """Resolve the corpus table path/URL relative to the manifest."""
    if is_url(metadata_file):
        return metadata_file
    if is_url(manifest_location):
        return urljoin(manifest_location, quote(metadata_file))
    return str(Path(manifest_location).expanduser().parent / metadata_file)


async def read_source(location: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Read raw bytes from a local path or URL.

    Raises:
        OSError: If a local file cannot be read.
        httpx.HTTPError: On transport failure or non-success status.
    """
    if not is_url(location):
        path = Path(location).expanduser()
        return await asyncio.to_thread(path.read_bytes)

    if client is not None:
        response = await client.get(location, timeout=SOURCE_REQUEST_TIMEOUT)
    else:
        async with httpx.AsyncClient() as tmp_client:
            response = await tmp_client.get(location, timeout=SOURCE_REQUEST_TIMEOUT)
    response.raise_for_status()
    return response.content


def load_corpus(manifest_data: bytes | None, table_data: bytes) -> LoadedCorpus:
    """Build a LoadedCorpus from manifest and table bytes.

    A missing manifest (``None``) applies the built-in defaults.

    Raises:
        ConfigError: If the manifest cannot be parsed.
        CorpusError: If the table is malformed.
    """
    manifest = parse_manifest(manifest_data) if manifest_data is not None else AppManifest()
    return LoadedCorpus(manifest=manifest, registry=build_registry(table_data))


async def load_manifest(
    location: str,
    client: httpx.AsyncClient | None = None,
) -> AppManifest:
    """Read and parse the manifest at ``location``.

    Raises:
        ConfigError: If the manifest cannot be read or parsed.
    """
    try:
        data = await read_source(location, client)
    except (OSError, httpx.HTTPError) as e:
        raise ConfigError(f"Could not read manifest {location}: {e}") from e
    return parse_manifest(data)


async def load_corpus_from_manifest(
    manifest_location: str,
    *,
    client: httpx.AsyncClient | None = None,
    table_location: str | None = None,
    strict_manifest: bool = False,
) -> LoadedCorpus:
    """Load the manifest and the corpus table it names.

    Unless ``strict_manifest`` is set, a manifest that cannot be read or
    parsed falls back to the defaults and the problem is reported in
    ``LoadedCorpus.warnings``.

    Raises:
        ConfigError: Manifest failure with ``strict_manifest=True``.
        CorpusError: If the table cannot be read or parsed.
    """
    warnings: list[str] = []
    try:
        manifest = await load_manifest(manifest_location, client)
    except ConfigError as e:
        if strict_manifest:
            raise
        logger.warning("Using default manifest: %s", e)
        warnings.append(str(e))
        manifest = AppManifest()

    table = table_location or resolve_table_location(manifest_location, manifest.metadata_file)
    try:
        table_data = await read_source(table, client)
    except (OSError, httpx.HTTPError) as e:
        raise CorpusError(f"Could not read corpus file {table}: {e}") from e

    registry = build_registry(table_data)
    logger.info("Loaded corpus %r: %d documents from %s", manifest.app_name, len(registry), table)
    return LoadedCorpus(manifest=manifest, registry=registry, warnings=tuple(warnings))


__all__ = [
    "is_url",
    "load_corpus",
    "load_corpus_from_manifest",
    "load_manifest",
    "read_source",
    "resolve_table_location",
]
