# SPDX-License-Identifier: AGPL-3.0-or-later
"""One-shot fetch of the upstream analytics payload."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .errors import UpstreamTransportError
from .settings import UpstreamSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UpstreamResponse:
    """Status line and undecoded-by-contract text body of the upstream reply."""

    status: int
    status_text: str
    text: str


def fetch_upstream(
    url: str,
    *,
    settings: Optional[UpstreamSettings] = None,
    client: Optional[httpx.Client] = None,
) -> UpstreamResponse:
    """GET *url* and return its body as text.

    Non-success statuses raise :class:`UpstreamTransportError` with the
    upstream status and body attached; connection failures and timeouts raise
    it without a status.
    """

    settings = settings or UpstreamSettings()
    if not url:
        raise ValueError("url is required")
    headers = {"User-Agent": settings.user_agent}
    params = {"authkey": settings.auth_key} if settings.auth_key and "authkey=" not in url else None
    logger.info("Fetching upstream payload from %s", httpx.URL(url).host)
    owns_client = client is None
    http = client or httpx.Client(timeout=settings.timeout, follow_redirects=True)
    try:
        response = http.get(url, headers=headers, params=params)
    except httpx.HTTPError as exc:
        logger.error("Upstream request failed: %s", exc)
        raise UpstreamTransportError(f"Upstream request failed: {exc}") from exc
    finally:
        if owns_client:
            http.close()

    text = response.text
    logger.info("Upstream answered %s with %d chars", response.status_code, len(text))
    logger.debug("Upstream body contains data_header=%s data_content=%s",
                 "data_header" in text, "data_content" in text)
    if not response.is_success:
        raise UpstreamTransportError(
            f"Upstream request failed with status {response.status_code}",
            status=response.status_code,
            body=text,
        )
    return UpstreamResponse(
        status=response.status_code,
        status_text=response.reason_phrase,
        text=text,
    )


__all__ = ["UpstreamResponse", "fetch_upstream"]
