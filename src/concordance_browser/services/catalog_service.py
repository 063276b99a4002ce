"""National Library catalog client for document thumbnails.

All functions accept an httpx.AsyncClient and never raise: a failed lookup
reads as "no image" so callers can retry later.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from concordance_browser.parsing import normalize_urn

logger = logging.getLogger(__name__)

CATALOG_API_URL = "https://api.nb.no/catalog/v1/items"
CATALOG_REQUEST_TIMEOUT = 15  # seconds

# Link names in preference order
THUMBNAIL_PREFERENCE = ("thumbnail_medium", "thumbnail_small", "thumbnail_large")


def _link_href(links: dict[str, Any], name: str) -> str:
    link = links.get(name)
    if not isinstance(link, dict):
        return ""
    href = link.get("href")
    return href if isinstance(href, str) else ""


def parse_thumbnail_response(payload: Any) -> str | None:
    """Return the preferred thumbnail URL from a catalog search payload."""
    if not isinstance(payload, dict):
        return None
    embedded = payload.get("_embedded")
    if not isinstance(embedded, dict):
        return None
    items = embedded.get("items")
    if not isinstance(items, list):
        return None
    for item in items:
        if not isinstance(item, dict):
            continue
        links = item.get("_links")
        if not isinstance(links, dict):
            continue
        for name in THUMBNAIL_PREFERENCE:
            href = _link_href(links, name)
            if href:
                return href
    return None


async def fetch_thumbnail_url(
    urn: str,
    client: httpx.AsyncClient,
    timeout: int = CATALOG_REQUEST_TIMEOUT,
) -> str | None:
    """Look up a thumbnail URL for a URN. Returns None on any failure."""
    urn = normalize_urn(urn)
    if not urn:
        return None
    try:
        response = await client.get(CATALOG_API_URL, params={"q": urn}, timeout=timeout)
    except httpx.HTTPError:
        logger.warning("Catalog lookup for %s failed", urn, exc_info=True)
        return None
    if response.status_code != 200:
        logger.info("Catalog lookup for %s returned %d", urn, response.status_code)
        return None
    try:
        payload = response.json()
    except ValueError:
        logger.warning("Catalog lookup for %s returned invalid JSON", urn, exc_info=True)
        return None
    return parse_thumbnail_response(payload)


__all__ = [
    "CATALOG_API_URL",
    "THUMBNAIL_PREFERENCE",
    "fetch_thumbnail_url",
    "parse_thumbnail_response",
]
