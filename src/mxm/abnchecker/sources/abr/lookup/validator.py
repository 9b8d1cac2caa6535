"""
ABN format validation.

Only the format is checked (11 digits once separators are stripped). The
register's own check-digit algorithm is not applied, so a well-formed but
unissued ABN passes here and is rejected later by the lookup page itself.
"""

from __future__ import annotations

import re

from mxm.abnchecker.sources.abr.common.errors import (
    InvalidAbnFormatError,
    MissingAbnError,
)

ABN_LENGTH = 11

_NON_DIGITS = re.compile(r"[^0-9]")


def strip_abn(raw: str) -> str:
    """Remove every character that is not an ASCII decimal digit."""
    return _NON_DIGITS.sub("", raw)


def is_valid_abn_format(abn: str) -> bool:
    return len(abn) == ABN_LENGTH and abn.isascii() and abn.isdigit()


def normalize_abn(raw: str | None) -> str:
    """
    Return the canonical 11-digit ABN for `raw`.

    "51 824 753 556" and "51-824-753-556" both normalize to "51824753556".

    Raises:
        MissingAbnError: If `raw` is None or blank.
        InvalidAbnFormatError: If the stripped value is not exactly 11 digits.
    """
    if raw is None or not str(raw).strip():
        raise MissingAbnError()
    abn = strip_abn(str(raw))
    if not is_valid_abn_format(abn):
        raise InvalidAbnFormatError(str(raw))
    return abn
