"""
Exception hierarchy for ABN lookups.

Input and upstream failures are exceptions; they are translated into a
structured `LookupResult` at the orchestrator boundary. A page that reports
the ABN as unregistered is a normal (negative) outcome, not an exception.
"""

from __future__ import annotations

from mxm.abnchecker.sources.abr.common.models import ErrorCode


class AbnCheckerError(Exception):
    """Base class for errors surfaced as a structured lookup failure."""

    code: ErrorCode = ErrorCode.UPSTREAM_UNAVAILABLE


class InputError(AbnCheckerError, ValueError):
    code = ErrorCode.INVALID_FORMAT


class MissingAbnError(InputError):
    code = ErrorCode.NO_IDENTIFIER

    def __init__(self, message: str = "No ABN supplied") -> None:
        super().__init__(message)


class InvalidAbnFormatError(InputError):
    code = ErrorCode.INVALID_FORMAT

    def __init__(self, raw: str) -> None:
        super().__init__(f"Malformed ABN {raw!r}: expected 11 digits")
        self.raw = raw


class UpstreamUnavailableError(AbnCheckerError):
    """The registry page could not be retrieved (transport or status failure)."""

    code = ErrorCode.UPSTREAM_UNAVAILABLE

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


__all__ = [
    "AbnCheckerError",
    "InputError",
    "InvalidAbnFormatError",
    "MissingAbnError",
    "UpstreamUnavailableError",
]
