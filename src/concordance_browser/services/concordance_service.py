"""Concordance search service: one POST to the remote concordance endpoint."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from concordance_browser.errors import SearchServiceError
from concordance_browser.models import ConcordanceRequest

logger = logging.getLogger(__name__)

CONCORDANCE_TIMEOUT = 60  # seconds
CONCORDANCE_USER_AGENT = "concordance-browser/1.0"


async def _post(
    client: httpx.AsyncClient,
    url: str,
    payload: dict[str, Any],
    timeout_seconds: int,
) -> httpx.Response:
    return await client.post(
        url,
        json=payload,
        headers={"User-Agent": CONCORDANCE_USER_AGENT},
        timeout=timeout_seconds,
    )


async def fetch_concordance(
    *,
    client: httpx.AsyncClient | None,
    url: str,
    request: ConcordanceRequest,
    timeout_seconds: int = CONCORDANCE_TIMEOUT,
) -> Any:
    """POST a concordance request and return the decoded JSON payload.

    Raises:
        SearchServiceError: On transport failure, non-success status, or an
            undecodable body.
    """
    payload = request.to_payload()
    logger.debug(
        "Concordance request to %s: query=%r, %d document(s)",
        url,
        request.query,
        len(request.dhlabids),
    )
    try:
        if client is not None:
            response = await _post(client, url, payload, timeout_seconds)
        else:
            async with httpx.AsyncClient() as tmp_client:
                response = await _post(tmp_client, url, payload, timeout_seconds)
    except httpx.HTTPError as e:
        logger.warning("Concordance request failed: %s", e, exc_info=True)
        raise SearchServiceError(f"The search could not reach the service ({e}).") from e

    if not response.is_success:
        logger.warning("Concordance service returned %d", response.status_code)
        raise SearchServiceError(
            f"The search failed ({response.status_code}).", status_code=response.status_code
        )
    try:
        return response.json()
    except ValueError as e:
        logger.warning("Concordance service returned invalid JSON", exc_info=True)
        raise SearchServiceError("The search service returned an unreadable response.") from e


__all__ = [
    "CONCORDANCE_TIMEOUT",
    "fetch_concordance",
]
