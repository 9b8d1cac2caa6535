"""
File cache for normalized ABN records.

Layout (under `cache_dir`):
    abn_<ABN>.json     # one AbnRecordJSON per canonical ABN

Notes:
- Freshness comes from the file's modification time; there is no index and
  no expiry field inside the document.
- An entry is fresh while `now - mtime < ttl_seconds`; older entries are
  reported as absent but never deleted.
- No locking: concurrent writers for the same ABN race and the last
  completed write wins.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, cast

from mxm.abnchecker.common.caching import DEFAULT_TTL_SECONDS, CachePolicy
from mxm.abnchecker.common.file_io import read_json, write_json
from mxm.abnchecker.common.types import JSONLike
from mxm.abnchecker.sources.abr.common.models import AbnRecord, AbnRecordJSON
from mxm.abnchecker.sources.abr.lookup.validator import is_valid_abn_format

logger = logging.getLogger(__name__)


def cache_key(abn: str) -> str:
    """Deterministic storage key for a canonical ABN ("abn_51824753556")."""
    if not is_valid_abn_format(abn):
        raise ValueError(f"cache key requires a canonical ABN, got {abn!r}")
    return f"abn_{abn}"


class RecordCache:
    """
    Time-bounded record cache backed by one JSON file per ABN.

    Usage:
        cache = RecordCache(Path("~/.cache/abn").expanduser(), ttl_seconds=86400)
        cache.put(record)
        cache.get("51824753556")  # AbnRecord or None
    """

    def __init__(
        self,
        cache_dir: Path,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._cache_dir = cache_dir
        self._ttl_seconds = float(ttl_seconds)
        self._clock = clock

    @classmethod
    def from_policy(cls, policy: CachePolicy) -> "RecordCache":
        return cls(policy.cache_dir, policy.ttl_seconds)

    @property
    def cache_dir(self) -> Path:
        return self._cache_dir

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def path_for(self, abn: str) -> Path:
        return self._cache_dir / f"{cache_key(abn)}.json"

    def is_fresh(self, path: Path) -> bool:
        try:
            mtime = path.stat().st_mtime
        except OSError:
            return False
        return (self._clock() - mtime) < self._ttl_seconds

    def get(self, abn: str) -> AbnRecord | None:
        """Return the cached record, or None when missing, stale or unreadable."""
        path = self.path_for(abn)
        if not self.is_fresh(path):
            logger.debug("Cache miss for ABN %s", abn)
            return None
        try:
            data = read_json(path)
            if not isinstance(data, dict):
                raise ValueError("cache entry is not a JSON object")
            record = AbnRecord.from_json(cast(AbnRecordJSON, data))
        except (OSError, ValueError, TypeError) as e:
            # json.JSONDecodeError is a ValueError
            logger.warning("Ignoring unreadable cache entry %s: %s", path, e)
            return None
        if record.abn != abn:
            logger.warning("Cache entry %s holds ABN %s, ignoring", path, record.abn)
            return None
        logger.debug("Cache hit for ABN %s", abn)
        return record

    def put(self, record: AbnRecord) -> Path:
        """
        Write `record` under its ABN, replacing any previous entry.

        Raises:
            ValueError: If the record's ABN is not canonical.
            OSError: If the cache directory or file cannot be written.
        """
        path = self.path_for(record.abn)
        return write_json(path, cast(JSONLike, record.to_json()))
