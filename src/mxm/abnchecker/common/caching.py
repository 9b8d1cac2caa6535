from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_TTL_SECONDS: float = 86400.0
DEFAULT_CACHE_DIR: Path = Path("~/.cache/mxm-abnchecker/abn-cache")


@dataclass(frozen=True)
class CachePolicy:
    """Record caching policy resolved from config."""

    enabled: bool = True
    cache_dir: Path = field(default_factory=lambda: resolve_cache_dir(None))
    ttl_seconds: float = DEFAULT_TTL_SECONDS


def resolve_cache_dir(value: str | Path | None) -> Path:
    """Expand `~` in the configured cache directory; None -> package default."""
    raw = Path(value) if value else DEFAULT_CACHE_DIR
    return raw.expanduser()


def resolve_ttl_seconds(value: float | int | str | None) -> float:
    """
    Convert a configured TTL to seconds.
    - None      → 86400 (one day)
    - "3600"    → 3600.0
    - negatives → ValueError
    """
    if value is None:
        return DEFAULT_TTL_SECONDS
    ttl = float(value)
    if ttl < 0:
        raise ValueError(f"ttl_seconds must be >= 0, got {value!r}")
    return ttl
