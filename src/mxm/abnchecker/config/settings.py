"""
Typed settings for an ABN lookup.

`CheckerSettings` is the explicit configuration value handed to the lookup
orchestrator. It is built from the OmegaConf tree by
`mxm.abnchecker.config.config.load_checker_settings`, or constructed directly
(tests, embedding applications). Defaults mirror the shipped `default.yaml`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from urllib.parse import quote

from mxm.abnchecker.common.caching import CachePolicy

ABR_LOOKUP_URL = "https://abr.business.gov.au/ABN/View"
DEFAULT_REFERER = "https://abr.business.gov.au/"
DEFAULT_BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
DEFAULT_ACCEPT = "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8"
DEFAULT_ACCEPT_LANGUAGE = "en-US,en;q=0.9"
DEFAULT_NOT_FOUND_MARKERS: tuple[str, ...] = ("Invalid ABN/ACN",)

PROXY_SCHEMES = ("http", "https", "socks4", "socks5", "socks5h")


@dataclass(frozen=True)
class ProxySettings:
    """Outbound proxy: `address` is host:port, `credentials` is "user:password"."""

    address: str
    scheme: str = "http"
    credentials: str | None = None

    def __post_init__(self) -> None:
        if self.scheme not in PROXY_SCHEMES:
            raise ValueError(
                f"Unsupported proxy scheme {self.scheme!r}; "
                f"expected one of {', '.join(PROXY_SCHEMES)}"
            )

    def proxy_url(self) -> str:
        if not self.credentials:
            return f"{self.scheme}://{self.address}"
        user, _, password = self.credentials.partition(":")
        auth = quote(user, safe="")
        if password:
            auth = f"{auth}:{quote(password, safe='')}"
        return f"{self.scheme}://{auth}@{self.address}"

    def to_requests_proxies(self) -> dict[str, str]:
        url = self.proxy_url()
        return {"http": url, "https": url}


@dataclass(frozen=True)
class CheckerSettings:
    lookup_url: str = ABR_LOOKUP_URL
    referer: str = DEFAULT_REFERER
    user_agent: str = DEFAULT_BROWSER_USER_AGENT
    accept: str = DEFAULT_ACCEPT
    accept_language: str = DEFAULT_ACCEPT_LANGUAGE
    timeout: float = 30.0
    verify_tls: bool = True
    proxy: ProxySettings | None = None
    cache: CachePolicy = field(default_factory=CachePolicy)
    not_found_markers: tuple[str, ...] = DEFAULT_NOT_FOUND_MARKERS

    def request_headers(self) -> dict[str, str]:
        """Headers sent with every registry request."""
        return {
            "Referer": self.referer,
            "User-Agent": self.user_agent,
            "Accept": self.accept,
            "Accept-Language": self.accept_language,
        }


__all__ = [
    "ABR_LOOKUP_URL",
    "CheckerSettings",
    "ProxySettings",
]
