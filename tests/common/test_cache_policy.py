from __future__ import annotations

from pathlib import Path

import pytest

from mxm.abnchecker.common.caching import (
    DEFAULT_TTL_SECONDS,
    CachePolicy,
    resolve_cache_dir,
    resolve_ttl_seconds,
)


def test_resolve_ttl_seconds_default_and_strings() -> None:
    assert resolve_ttl_seconds(None) == DEFAULT_TTL_SECONDS == 86400.0
    assert resolve_ttl_seconds("3600") == 3600.0
    assert resolve_ttl_seconds(0) == 0.0


def test_resolve_ttl_seconds_rejects_negative() -> None:
    with pytest.raises(ValueError):
        resolve_ttl_seconds(-1)


def test_resolve_cache_dir_expands_home(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOME", "/home/tester")
    assert resolve_cache_dir("~/abn") == Path("/home/tester/abn")
    assert resolve_cache_dir(None) == Path(
        "/home/tester/.cache/mxm-abnchecker/abn-cache"
    )


def test_cache_policy_defaults() -> None:
    policy = CachePolicy()
    assert policy.enabled is True
    assert policy.ttl_seconds == 86400.0
    assert policy.cache_dir.name == "abn-cache"
