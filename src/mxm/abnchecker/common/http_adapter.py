"""
Requests-backed page fetcher for mxm-abnchecker.

`HttpRequestsAdapter` owns one `requests.Session` configured with the
registry headers, proxy and TLS flag, and turns a `FetchRequest` into a
`FetchResult` (body bytes plus status, final URL and response headers).
Status policy and decoding belong to the ABN downloader, not here.

Notes
-----
- Response headers are copied into a plain ``dict[str, str]``.
- ``requests`` exceptions (including ``HTTPError`` from ``raise_for_status``)
  propagate unchanged.
- A session is not safe to share across threads; build one adapter per
  worker.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import timedelta
from types import MappingProxyType, TracebackType
from typing import Any, Mapping, Optional, Protocol, Type

import requests
from requests import Response, Session

DEFAULT_USER_AGENT = "mxm-abnchecker/0.1 (contact@moneyexmachina.com)"


@dataclass(frozen=True)
class FetchRequest:
    """A single HTTP request description."""

    url: str
    method: str = "GET"
    params: Mapping[str, str] = field(default_factory=dict)
    headers: Mapping[str, str] = field(default_factory=dict)
    timeout: Optional[float] = None
    allow_redirects: bool = True


@dataclass(frozen=True)
class FetchResult:
    """Raw body plus transport metadata for one completed request."""

    data: bytes
    status: int
    url: str
    content_type: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)
    elapsed_ms: Optional[int] = None


class PageFetcher(Protocol):
    """Anything that can turn a ``FetchRequest`` into a ``FetchResult``."""

    def fetch(self, request: FetchRequest) -> FetchResult: ...


def _elapsed_ms(resp: Response) -> Optional[int]:
    """Round-trip time in whole milliseconds, or None when requests did not time it."""
    elapsed: Optional[timedelta] = getattr(resp, "elapsed", None)
    if elapsed is None:
        return None
    return round(elapsed.total_seconds() * 1000)


def _as_str_headers(headers: Mapping[str, Any]) -> dict[str, str]:
    return {str(name): str(value) for name, value in headers.items()}


class HttpRequestsAdapter:
    """Single-session HTTP client used for ABN Lookup page requests.

    Parameters
    ----------
    user_agent:
        Session ``User-Agent``; a ``User-Agent`` in `default_headers` wins.
    default_timeout:
        Seconds to wait when the `FetchRequest` carries no timeout.
    default_headers:
        Extra session headers (the registry Referer, Accept, ...).
    proxies:
        ``requests`` proxy mapping, e.g. from `ProxySettings.to_requests_proxies`.
    verify:
        TLS certificate verification flag.
    """

    default_headers: Mapping[str, str]

    def __init__(
        self,
        *,
        user_agent: str = DEFAULT_USER_AGENT,
        default_timeout: float = 30.0,
        default_headers: Optional[Mapping[str, str]] = None,
        proxies: Optional[Mapping[str, str]] = None,
        verify: bool = True,
    ) -> None:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": user_agent,
                "Accept": "*/*",
                "Accept-Encoding": "gzip, deflate",
                "Connection": "keep-alive",
                **dict(default_headers or {}),
            }
        )
        if proxies:
            session.proxies.update(dict(proxies))
        session.verify = verify

        self._session: Session = session
        self._default_timeout = float(default_timeout)
        self.default_headers = MappingProxyType(_as_str_headers(session.headers))

    @property
    def verify(self) -> bool:
        return bool(self._session.verify)

    @property
    def proxies(self) -> Mapping[str, str]:
        return MappingProxyType(dict(self._session.proxies))

    def fetch(self, request: FetchRequest) -> FetchResult:
        """Perform the HTTP request and return the result.

        Raises
        ------
        ValueError
            If ``request.url`` is empty.
        requests.HTTPError
            If the response status indicates an HTTP error (4xx/5xx).
        requests.RequestException
            Any transport failure (connection, timeout, proxy, TLS).
        """
        if not request.url:
            raise ValueError(
                "HttpRequestsAdapter.fetch: request.url must be a non-empty string."
            )

        timeout = float(request.timeout or self._default_timeout)
        resp: Response = self._session.request(
            method=request.method.upper(),
            url=request.url,
            params=dict(request.params),
            headers=dict(request.headers),
            timeout=timeout,
            allow_redirects=request.allow_redirects,
        )
        resp.raise_for_status()

        return FetchResult(
            data=resp.content,
            status=resp.status_code,
            url=resp.url,
            content_type=resp.headers.get("Content-Type"),
            headers=_as_str_headers(resp.headers),
            elapsed_ms=_elapsed_ms(resp),
        )

    def describe(self) -> str:
        """One-line summary for debug logs."""
        proxied = " via proxy" if self._session.proxies else ""
        return f"HTTP adapter via 'requests'{proxied} (verify={self.verify})"

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> "HttpRequestsAdapter":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()
