"""
Downloader for ABN Lookup pages.

This module fetches the raw HTML of the public ABN Lookup page for one
canonical ABN and translates every transport-level problem into
`UpstreamUnavailableError`.

Public API
----------
- build_lookup_url(base_url, abn) -> str
- download_abn_page(fetcher, abn, settings) -> str
- is_not_found_page(html, markers) -> bool

Notes
-----
No retry or backoff is attempted. Redirects are followed; only a final 200
with a non-empty body counts as success.
"""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import urlencode

import requests

from mxm.abnchecker.common.http_adapter import FetchRequest, PageFetcher
from mxm.abnchecker.config.settings import CheckerSettings
from mxm.abnchecker.sources.abr.common.errors import UpstreamUnavailableError

logger = logging.getLogger(__name__)


def build_lookup_url(base_url: str, abn: str) -> str:
    """`https://abr.business.gov.au/ABN/View?abn=51824753556`"""
    sep = "&" if "?" in base_url else "?"
    return f"{base_url}{sep}{urlencode({'abn': abn})}"


def download_abn_page(
    fetcher: PageFetcher,
    abn: str,
    settings: CheckerSettings,
) -> str:
    """
    Fetch the ABN Lookup page for `abn` and return it as text.

    Parameters
    ----------
    fetcher
        Any `PageFetcher` (normally `HttpRequestsAdapter`).
    abn
        Canonical 11-digit ABN.
    settings
        Supplies the lookup URL, request headers and timeout.

    Returns
    -------
    str
        The page body decoded as UTF-8 with replacement.

    Raises
    ------
    UpstreamUnavailableError
        On a transport failure, a non-200 status, or an empty body.
    """
    url = build_lookup_url(settings.lookup_url, abn)
    request = FetchRequest(
        url=url,
        headers=settings.request_headers(),
        timeout=settings.timeout,
        allow_redirects=True,
    )
    logger.debug("Fetching %s", url)

    try:
        result = fetcher.fetch(request)
    except requests.HTTPError as e:
        status = e.response.status_code if e.response is not None else None
        raise UpstreamUnavailableError(
            f"ABN Lookup returned HTTP {status} for {abn}", status=status
        ) from e
    except requests.RequestException as e:
        raise UpstreamUnavailableError(f"ABN Lookup request failed: {e}") from e

    if result.status != 200:
        raise UpstreamUnavailableError(
            f"ABN Lookup returned HTTP {result.status} for {abn}",
            status=result.status,
        )
    if not result.data:
        raise UpstreamUnavailableError(
            f"ABN Lookup returned an empty page for {abn}", status=result.status
        )

    return result.data.decode("utf-8", errors="replace")


def is_not_found_page(html: str, markers: Iterable[str]) -> bool:
    """True when the page carries one of the register's "no such ABN" messages."""
    return any(marker and marker in html for marker in markers)


__all__ = ["build_lookup_url", "download_abn_page", "is_not_found_page"]
