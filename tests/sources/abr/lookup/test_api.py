"""
End-to-end tests for `AbnChecker.lookup` with a fake fetcher and a
temporary cache directory.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Optional

import pytest
import requests
from omegaconf import DictConfig

from mxm.abnchecker.common.caching import CachePolicy
from mxm.abnchecker.common.http_adapter import FetchRequest, FetchResult
from mxm.abnchecker.config.config import load_abnchecker_config
from mxm.abnchecker.config.settings import CheckerSettings
from mxm.abnchecker.sources.abr.common.models import (
    AbnRecord,
    ErrorCode,
    LookupResult,
)
from mxm.abnchecker.sources.abr.lookup.api import AbnChecker, lookup_abn
from mxm.abnchecker.sources.abr.lookup.persistence import RecordCache

DATA_DIR = Path(__file__).parent.parent / "data"
SAMPLE_HTML = (DATA_DIR / "sample_abn.html").read_bytes()
NOT_FOUND_HTML = (DATA_DIR / "not_found.html").read_bytes()

ABN = "51824753556"

# --- test doubles ------------------------------------------------------------


class _FakeFetcher:
    def __init__(
        self,
        *,
        data: bytes = SAMPLE_HTML,
        status: int = 200,
        raise_on_fetch: Optional[Exception] = None,
    ) -> None:
        self.data = data
        self.status = status
        self.raise_on_fetch = raise_on_fetch
        self.requests: list[FetchRequest] = []
        self.closed = False

    def close(self) -> None:
        self.closed = True

    def fetch(self, request: FetchRequest) -> FetchResult:
        self.requests.append(request)
        if self.raise_on_fetch is not None:
            raise self.raise_on_fetch
        return FetchResult(data=self.data, status=self.status, url=request.url)


class _ReadOnlyCache(RecordCache):
    def put(self, record: AbnRecord) -> Path:
        raise PermissionError(f"read-only cache: {self.path_for(record.abn)}")


def _settings(tmp_path: Path, *, enabled: bool = True) -> CheckerSettings:
    return CheckerSettings(
        cache=CachePolicy(enabled=enabled, cache_dir=tmp_path, ttl_seconds=3600)
    )


def _checker(tmp_path: Path, fetcher: _FakeFetcher) -> AbnChecker:
    return AbnChecker(_settings(tmp_path), fetcher=fetcher)


# --- success paths -----------------------------------------------------------


def test_fresh_lookup_parses_and_caches(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)

    result = checker.lookup("51 824 753 556")

    assert result.success is True
    assert result.origin == "fresh"
    assert result.error is None
    record = result.record
    assert record is not None
    assert record.abn == ABN
    assert record.entity_name == "HARBOURSIDE TRADING PTY LTD"
    assert fetcher.requests[0].url.endswith("?abn=51824753556")
    assert (tmp_path / "abn_51824753556.json").is_file()


def test_second_lookup_is_served_from_cache(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)

    fresh = checker.lookup(ABN)
    cached = checker.lookup("51-824-753-556")

    assert cached.origin == "cached"
    assert cached.record == fresh.record
    assert len(fetcher.requests) == 1


def test_stale_entry_triggers_refetch(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)
    checker.lookup(ABN)

    path = tmp_path / "abn_51824753556.json"
    old = path.stat().st_mtime - 7200
    os.utime(path, (old, old))

    result = checker.lookup(ABN)
    assert result.origin == "fresh"
    assert len(fetcher.requests) == 2


def test_force_refresh_bypasses_cache(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)
    checker.lookup(ABN)

    result = checker.lookup(ABN, force_refresh=True)
    assert result.origin == "fresh"
    assert len(fetcher.requests) == 2


def test_disabled_cache_never_reads_or_writes(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = AbnChecker(_settings(tmp_path, enabled=False), fetcher=fetcher)

    assert checker.cache is None
    assert checker.lookup(ABN).origin == "fresh"
    assert checker.lookup(ABN).origin == "fresh"
    assert list(tmp_path.iterdir()) == []


def test_cache_write_failure_still_succeeds(
    tmp_path: Path, caplog: pytest.LogCaptureFixture
) -> None:
    checker = AbnChecker(
        _settings(tmp_path),
        fetcher=_FakeFetcher(),
        cache=_ReadOnlyCache(tmp_path),
    )
    with caplog.at_level("WARNING"):
        result = checker.lookup(ABN)

    assert result.success is True
    assert result.origin == "fresh"
    assert "Could not cache ABN 51824753556" in caplog.text


def test_wrong_shape_cache_entry_is_refetched(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)
    (tmp_path / "abn_51824753556.json").write_text(
        json.dumps({"abn": ABN, "registration_status": "Active"}), encoding="utf-8"
    )

    result = checker.lookup(ABN)

    assert result.success is True
    assert result.origin == "fresh"
    assert len(fetcher.requests) == 1
    assert checker.lookup(ABN).origin == "cached"


def test_check_abn_returns_record_or_none(tmp_path: Path) -> None:
    checker = _checker(tmp_path, _FakeFetcher())
    record = checker.check_abn(ABN)
    assert record is not None and record.abn == ABN
    assert checker.check_abn("123") is None


# --- failure paths -----------------------------------------------------------


@pytest.mark.parametrize("raw", [None, "", "  "])
def test_missing_identifier(tmp_path: Path, raw: str | None) -> None:
    fetcher = _FakeFetcher()
    result = _checker(tmp_path, fetcher).lookup(raw)

    assert result.success is False
    assert result.error is not None
    assert result.error.code is ErrorCode.NO_IDENTIFIER
    assert fetcher.requests == []


@pytest.mark.parametrize("raw", ["1234", "518247535561", "not an abn"])
def test_invalid_format(tmp_path: Path, raw: str) -> None:
    fetcher = _FakeFetcher()
    result = _checker(tmp_path, fetcher).lookup(raw)

    assert result.error is not None
    assert result.error.code is ErrorCode.INVALID_FORMAT
    assert fetcher.requests == []


def test_not_found_page_is_never_cached(tmp_path: Path) -> None:
    fetcher = _FakeFetcher(data=NOT_FOUND_HTML)
    checker = _checker(tmp_path, fetcher)

    first = checker.lookup(ABN)
    second = checker.lookup(ABN)

    assert first.error is not None
    assert first.error.code is ErrorCode.NOT_FOUND
    assert first.record is None
    assert second.error is not None and second.error.code is ErrorCode.NOT_FOUND
    assert len(fetcher.requests) == 2
    assert list(tmp_path.iterdir()) == []


@pytest.mark.parametrize(
    "fetcher",
    [
        _FakeFetcher(raise_on_fetch=requests.ConnectionError("refused")),
        _FakeFetcher(status=500),
        _FakeFetcher(data=b""),
    ],
)
def test_upstream_failures(tmp_path: Path, fetcher: _FakeFetcher) -> None:
    result = _checker(tmp_path, fetcher).lookup(ABN)

    assert result.success is False
    assert result.error is not None
    assert result.error.code is ErrorCode.UPSTREAM_UNAVAILABLE
    assert list(tmp_path.iterdir()) == []


def test_unexpected_fetch_error_is_contained(tmp_path: Path) -> None:
    fetcher = _FakeFetcher(raise_on_fetch=RuntimeError("boom"))
    result = _checker(tmp_path, fetcher).lookup(ABN)

    assert result.error is not None
    assert result.error.code is ErrorCode.UPSTREAM_UNAVAILABLE
    assert "boom" in result.error.message


def test_stale_cache_is_not_served_when_upstream_fails(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    checker = _checker(tmp_path, fetcher)
    checker.lookup(ABN)

    path = tmp_path / "abn_51824753556.json"
    os.utime(path, (0, 0))
    fetcher.raise_on_fetch = requests.Timeout("slow")

    result = checker.lookup(ABN)
    assert result.error is not None
    assert result.error.code is ErrorCode.UPSTREAM_UNAVAILABLE


# --- result shape ------------------------------------------------------------


def test_result_json_shapes(tmp_path: Path) -> None:
    checker = _checker(tmp_path, _FakeFetcher())

    ok = checker.lookup(ABN).to_json()
    assert ok["success"] is True
    assert ok["origin"] == "fresh"
    assert isinstance(ok["data"], dict) and ok["data"]["abn"] == ABN

    failed = checker.lookup("12").to_json()
    assert failed == {
        "success": False,
        "error": {
            "code": "INVALID_FORMAT",
            "message": "Malformed ABN '12': expected 11 digits",
        },
    }


def test_failed_result_without_error_cannot_render() -> None:
    with pytest.raises(ValueError):
        LookupResult(success=False).to_json()


# --- construction ------------------------------------------------------------


def test_owned_adapter_is_closed(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    closed: list[bool] = []
    monkeypatch.setattr(
        "mxm.abnchecker.common.http_adapter.HttpRequestsAdapter.close",
        lambda self: closed.append(True),
    )
    with AbnChecker(_settings(tmp_path)):
        pass
    assert closed == [True]


def test_injected_fetcher_is_not_closed(tmp_path: Path) -> None:
    fetcher = _FakeFetcher()
    with _checker(tmp_path, fetcher) as checker:
        checker.lookup(ABN)
    assert fetcher.closed is False


def test_lookup_abn_from_config(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    fetcher = _FakeFetcher()
    monkeypatch.setattr(
        "mxm.abnchecker.sources.abr.lookup.api.build_http_adapter",
        lambda _settings: fetcher,
    )
    cfg: DictConfig = load_abnchecker_config(
        overrides={"sources": {"abr": {"cache": {"dir": str(tmp_path)}}}}
    )

    result = lookup_abn(cfg, ABN)

    assert result.origin == "fresh"
    assert (tmp_path / "abn_51824753556.json").is_file()
    assert fetcher.requests[0].headers["Referer"] == "https://abr.business.gov.au/"
    assert fetcher.closed is True
