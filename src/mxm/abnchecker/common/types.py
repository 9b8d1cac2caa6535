"""
Shared typing utilities for mxm-abnchecker.

`JSONLike` is a recursive alias for any value the standard `json` module can
round-trip. Records are rendered into this shape before they are cached or
printed.

- `JSONScalar` covers primitive JSON values.
- `JSONObj` is a JSON object with string keys.

Examples
--------
Valid:
    {"abn": "51824753556", "location": {"state_code": "NSW", "postcode": "2000"}}

Invalid:
    {"retrieved_at": datetime.now()}  # convert to ISO-8601 first
"""

from __future__ import annotations

from typing import TypeAlias

JSONScalar: TypeAlias = str | int | float | bool | None
JSONLike: TypeAlias = JSONScalar | list["JSONLike"] | dict[str, "JSONLike"]
JSONObj: TypeAlias = dict[str, JSONLike]

__all__ = ["JSONScalar", "JSONLike", "JSONObj"]
