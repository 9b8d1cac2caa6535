"""
Bootstrap the HTTP transport for mxm-abnchecker.

This module builds the requests-based `HttpRequestsAdapter` from typed
`CheckerSettings` (or straight from the OmegaConf tree). It performs **no
implicit side effects on import**; callers build an adapter from an explicit
entry point (CLI, script, or test) once the config is loaded.

Configuration
-------------
The adapter is configured under:

    sources.abr.http

Example (`default.yaml`):

    sources:
      abr:
        http:
          referer: "https://abr.business.gov.au/"
          user_agent: "Mozilla/5.0 ..."
          timeout: 30.0
          verify_tls: true
          proxy:
            address: "proxy.internal:3128"
            scheme: "http"
            credentials: "user:secret"

Behavior & guarantees
---------------------
- Proxy settings are applied only when `proxy.address` is set.
- The registry headers (Referer, User-Agent, Accept, Accept-Language) become
  session defaults; per-request headers still win.
- With `strict=False`, a missing `sources.abr.http` node falls back to the
  built-in defaults instead of raising.

Usage
-----
    from mxm.abnchecker.config.config import load_abnchecker_config
    from mxm.abnchecker.bootstrap import build_http_adapter_from_config

    cfg = load_abnchecker_config()
    with build_http_adapter_from_config(cfg) as adapter:
        ...
"""

from __future__ import annotations

import logging

from omegaconf import DictConfig

from mxm.abnchecker.common.http_adapter import HttpRequestsAdapter
from mxm.abnchecker.config.config import ConfigError, load_checker_settings
from mxm.abnchecker.config.settings import CheckerSettings

logger = logging.getLogger(__name__)


def build_http_adapter(settings: CheckerSettings) -> HttpRequestsAdapter:
    """Create an adapter carrying the registry headers, timeout, proxy and TLS flag."""
    proxies = settings.proxy.to_requests_proxies() if settings.proxy else None
    adapter = HttpRequestsAdapter(
        user_agent=settings.user_agent,
        default_timeout=settings.timeout,
        default_headers=settings.request_headers(),
        proxies=proxies,
        verify=settings.verify_tls,
    )
    logger.debug("Built %s", adapter.describe())
    return adapter


def build_http_adapter_from_config(
    cfg: DictConfig, strict: bool = False
) -> HttpRequestsAdapter:
    """
    Build the adapter from `sources.abr` config.
    Falls back to default settings when the node is missing, unless `strict`.
    """
    try:
        settings = load_checker_settings(cfg)
    except ConfigError as e:
        if strict:
            raise RuntimeError("Adapter config missing: sources.abr.http") from e
        logger.warning("Using default HTTP settings: %s", e)
        settings = CheckerSettings()
    return build_http_adapter(settings)
