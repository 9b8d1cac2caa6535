from __future__ import annotations

from pathlib import Path

import pytest


@pytest.fixture(autouse=True)
def isolated_cache_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """
    Point the packaged config's cache directory at a per-test temp dir so no
    test ever touches ~/.cache/mxm-abnchecker.
    """
    home = tmp_path / "cache-home"
    monkeypatch.setenv("MXM_ABNCHECKER_CACHE_DIR", str(home))
    return home
