"""
mxm.abnchecker.sources.abr.lookup.api

Public entry point for ABN lookups.

Behavior:
- Validates and canonicalizes the ABN (separators are ignored).
- Serves a cached record while it is younger than the cache TTL.
- Otherwise fetches the ABN Lookup page, rejects "Invalid ABN/ACN" pages,
  normalizes the rest into an `AbnRecord` and writes it to the cache.
- Every failure comes back as a structured `LookupResult`; nothing raises
  out of `AbnChecker.lookup`.
"""

from __future__ import annotations

import logging
from types import TracebackType
from typing import Optional, Type

from omegaconf import DictConfig

from mxm.abnchecker.bootstrap import build_http_adapter
from mxm.abnchecker.common.http_adapter import HttpRequestsAdapter, PageFetcher
from mxm.abnchecker.config.config import load_checker_settings
from mxm.abnchecker.config.settings import CheckerSettings
from mxm.abnchecker.sources.abr.common.errors import (
    AbnCheckerError,
    InputError,
    UpstreamUnavailableError,
)
from mxm.abnchecker.sources.abr.common.models import (
    AbnRecord,
    ErrorCode,
    LookupResult,
)
from mxm.abnchecker.sources.abr.lookup.downloader import (
    download_abn_page,
    is_not_found_page,
)
from mxm.abnchecker.sources.abr.lookup.parser import parse_abn_record
from mxm.abnchecker.sources.abr.lookup.persistence import RecordCache
from mxm.abnchecker.sources.abr.lookup.validator import normalize_abn

logger = logging.getLogger(__name__)


class AbnChecker:
    """
    Lookup orchestrator: validate, cache check, fetch, content check, parse,
    cache write.

    Args:
        settings: Explicit configuration; defaults to `CheckerSettings()`.
        fetcher: Page fetcher; built from `settings` when omitted (and then
            owned and closed by this checker).
        cache: Record cache; built from `settings.cache` when omitted and
            caching is enabled there.
    """

    def __init__(
        self,
        settings: CheckerSettings | None = None,
        *,
        fetcher: PageFetcher | None = None,
        cache: RecordCache | None = None,
    ) -> None:
        self._settings = settings or CheckerSettings()

        self._owned_adapter: HttpRequestsAdapter | None = None
        if fetcher is None:
            self._owned_adapter = build_http_adapter(self._settings)
            fetcher = self._owned_adapter
        self._fetcher: PageFetcher = fetcher

        if cache is None and self._settings.cache.enabled:
            cache = RecordCache.from_policy(self._settings.cache)
        self._cache: RecordCache | None = cache

    @property
    def settings(self) -> CheckerSettings:
        return self._settings

    @property
    def cache(self) -> RecordCache | None:
        return self._cache

    def lookup(
        self, raw_abn: str | None, *, force_refresh: bool = False
    ) -> LookupResult:
        """
        Look up one ABN.

        Returns:
            `LookupResult.ok(record, "cached" | "fresh")` on success, else a
            failure carrying NO_IDENTIFIER, INVALID_FORMAT, NOT_FOUND or
            UPSTREAM_UNAVAILABLE.
        """
        try:
            abn = normalize_abn(raw_abn)
        except InputError as e:
            return LookupResult.fail(e.code, str(e))

        if self._cache is not None and not force_refresh:
            cached = self._cache.get(abn)
            if cached is not None:
                return LookupResult.ok(cached, "cached")

        try:
            html = download_abn_page(self._fetcher, abn, self._settings)
        except UpstreamUnavailableError as e:
            logger.error("ABN %s: %s", abn, e)
            return LookupResult.fail(e.code, str(e))
        except AbnCheckerError as e:
            return LookupResult.fail(e.code, str(e))
        except Exception as e:
            logger.exception("ABN %s: unexpected fetch failure", abn)
            return LookupResult.fail(
                ErrorCode.UPSTREAM_UNAVAILABLE, f"ABN Lookup request failed: {e}"
            )

        if is_not_found_page(html, self._settings.not_found_markers):
            logger.warning("ABN %s is not registered", abn)
            return LookupResult.fail(
                ErrorCode.NOT_FOUND, f"{abn} is not a registered ABN"
            )

        record = parse_abn_record(html, abn)
        self._store(record)
        logger.info("Looked up ABN %s (%s)", abn, record.entity_name or "no name")
        return LookupResult.ok(record, "fresh")

    def check_abn(self, raw_abn: str | None) -> AbnRecord | None:
        """Return the record for `raw_abn`, or None for any failure."""
        return self.lookup(raw_abn).record

    def _store(self, record: AbnRecord) -> None:
        if self._cache is None:
            return
        try:
            self._cache.put(record)
        except (OSError, TypeError, ValueError) as e:
            logger.warning("Could not cache ABN %s: %s", record.abn, e)

    def close(self) -> None:
        if self._owned_adapter is not None:
            self._owned_adapter.close()

    def __enter__(self) -> "AbnChecker":
        return self

    def __exit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc_val: Optional[BaseException],
        exc_tb: Optional[TracebackType],
    ) -> None:
        self.close()


def lookup_abn(
    cfg: DictConfig,
    raw_abn: str | None,
    *,
    force_refresh: bool = False,
) -> LookupResult:
    """One-shot lookup using settings resolved from an OmegaConf config tree."""
    with AbnChecker(load_checker_settings(cfg)) as checker:
        return checker.lookup(raw_abn, force_refresh=force_refresh)


__all__ = ["AbnChecker", "lookup_abn"]
