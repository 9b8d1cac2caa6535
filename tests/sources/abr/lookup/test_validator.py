from __future__ import annotations

import pytest

from mxm.abnchecker.sources.abr.common.errors import (
    InputError,
    InvalidAbnFormatError,
    MissingAbnError,
)
from mxm.abnchecker.sources.abr.common.models import ErrorCode
from mxm.abnchecker.sources.abr.lookup.validator import (
    is_valid_abn_format,
    normalize_abn,
    strip_abn,
)


@pytest.mark.parametrize(
    "raw",
    ["51824753556", "51 824 753 556", "51-824-753-556", " 51.824.753.556 "],
)
def test_normalize_abn_strips_separators(raw: str) -> None:
    assert normalize_abn(raw) == "51824753556"


@pytest.mark.parametrize("raw", [None, "", "   "])
def test_missing_abn(raw: str | None) -> None:
    with pytest.raises(MissingAbnError) as exc:
        normalize_abn(raw)
    assert exc.value.code is ErrorCode.NO_IDENTIFIER


@pytest.mark.parametrize("raw", ["1234", "518247535560", "ABN", "5182475355x"])
def test_malformed_abn(raw: str) -> None:
    with pytest.raises(InvalidAbnFormatError) as exc:
        normalize_abn(raw)
    assert exc.value.code is ErrorCode.INVALID_FORMAT
    assert exc.value.raw == raw


def test_input_errors_are_value_errors() -> None:
    with pytest.raises(ValueError):
        normalize_abn("12")
    assert issubclass(MissingAbnError, InputError)


def test_non_ascii_digits_are_not_digits() -> None:
    # Arabic-Indic digits would pass str.isdigit() on their own
    assert strip_abn("٥١٨٢٤٧٥٣٥٥٦") == ""
    assert not is_valid_abn_format("٥١٨٢٤٧٥٣٥٥٦")
    assert is_valid_abn_format("51824753556")
