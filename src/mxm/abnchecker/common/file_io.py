"""
JSON documents on disk, UTF-8 only.

`write_json` renders the whole document first (so a `TypeError` for an
unserializable value leaves any existing file untouched), writes it to a
hidden sibling temp file and moves that into place with `os.replace`.
Readers therefore see either the old document or the new one. Output is
indented by two spaces and keeps non-ASCII characters as-is.

Errors from `json` and the filesystem propagate to the caller.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import cast

from mxm.abnchecker.common.types import JSONLike

__all__ = ["read_json", "write_json"]


def write_json(path: Path, data: JSONLike) -> Path:
    """Atomically replace `path` with `data`; missing parent dirs are created."""
    text = json.dumps(data, ensure_ascii=False, indent=2)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(f".{path.name}.{os.getpid()}.tmp")
    try:
        tmp.write_text(text, encoding="utf-8", newline="\n")
        os.replace(tmp, path)
    finally:
        tmp.unlink(missing_ok=True)
    return path


def read_json(path: Path) -> JSONLike:
    return cast(JSONLike, json.loads(path.read_text(encoding="utf-8")))
