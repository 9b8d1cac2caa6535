"""
Model definitions for ABN lookups.

`AbnRecord` is the normalized, immutable result of parsing one ABN Lookup
page. `AbnRecordJSON` is its wire/cache shape: every field the page did not
provide is omitted rather than emitted as null, so readers must treat a
missing key as "unknown".
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Literal, Mapping, TypedDict, cast

from mxm.abnchecker.common.types import JSONLike, JSONObj

Origin = Literal["cached", "fresh"]


class RegistrationStatusJSON(TypedDict, total=False):
    status: str
    effective_date: str  # YYYY-MM-DD


class EntityTypeJSON(TypedDict, total=False):
    type_name: str  # e.g. "Australian Private Company"
    type_code: str  # numeric id from the EntityTypeDescription link


class TaxRegistrationJSON(TypedDict, total=False):
    registered: bool
    effective_date: str


class LocationJSON(TypedDict, total=False):
    state_code: str  # NSW, VIC, ACT, ...
    postcode: str


class AbnRecordJSON(TypedDict, total=False):
    abn: str  # canonical 11-digit identifier, always present
    entity_name: str
    registration_status: RegistrationStatusJSON
    entity_type: EntityTypeJSON
    tax_registration: TaxRegistrationJSON
    location: LocationJSON
    retrieved_at: str  # ISO8601 timestamp of when normalization happened


@dataclass(frozen=True)
class RegistrationStatus:
    status: str
    effective_date: date | None = None


@dataclass(frozen=True)
class EntityType:
    type_name: str
    type_code: str


@dataclass(frozen=True)
class TaxRegistration:
    registered: bool = False
    effective_date: date | None = None


@dataclass(frozen=True)
class Location:
    state_code: str
    postcode: str


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso_date(value: date | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_date(value: object) -> date | None:
    if not isinstance(value, str) or not value:
        return None
    return date.fromisoformat(value)


def _sub_object(data: Mapping[str, object], key: str) -> Mapping[str, Any]:
    value = data.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a JSON object, got {type(value).__name__}")
    return value


def drop_empty(value: JSONLike) -> JSONLike:
    """Recursively remove None, "" and empty containers (False and 0 are kept)."""
    if isinstance(value, dict):
        out: dict[str, JSONLike] = {}
        for k, v in value.items():
            cleaned = drop_empty(v)
            if cleaned is None or cleaned == "" or cleaned == {} or cleaned == []:
                continue
            out[k] = cleaned
        return out
    if isinstance(value, list):
        items = [drop_empty(v) for v in value]
        return [v for v in items if v is not None and v != "" and v != {} and v != []]
    return value


@dataclass(frozen=True)
class AbnRecord:
    abn: str
    entity_name: str | None = None
    registration_status: RegistrationStatus | None = None
    entity_type: EntityType | None = None
    tax_registration: TaxRegistration = field(default_factory=TaxRegistration)
    location: Location | None = None
    retrieved_at: datetime = field(default_factory=_utc_now)

    def to_json(self) -> AbnRecordJSON:
        """Render the wire/cache shape with absent fields omitted."""
        raw: JSONObj = {
            "abn": self.abn,
            "entity_name": self.entity_name,
            "registration_status": (
                {
                    "status": self.registration_status.status,
                    "effective_date": _iso_date(
                        self.registration_status.effective_date
                    ),
                }
                if self.registration_status
                else None
            ),
            "entity_type": (
                {
                    "type_name": self.entity_type.type_name,
                    "type_code": self.entity_type.type_code,
                }
                if self.entity_type
                else None
            ),
            "tax_registration": {
                "registered": self.tax_registration.registered,
                "effective_date": _iso_date(self.tax_registration.effective_date),
            },
            "location": (
                {
                    "state_code": self.location.state_code,
                    "postcode": self.location.postcode,
                }
                if self.location
                else None
            ),
            "retrieved_at": self.retrieved_at.isoformat(),
        }
        return cast(AbnRecordJSON, drop_empty(raw))

    @classmethod
    def from_json(cls, data: AbnRecordJSON) -> "AbnRecord":
        """Rebuild a record from `to_json` output.

        Raises:
            ValueError: If `abn` is missing, a sub-record is not an object, or a
                date/timestamp is malformed.
        """
        abn = data.get("abn")
        if not isinstance(abn, str) or not abn:
            raise ValueError("record missing abn")

        status_raw = _sub_object(data, "registration_status")
        status = status_raw.get("status")
        registration_status = (
            RegistrationStatus(
                status=status,
                effective_date=_parse_date(status_raw.get("effective_date")),
            )
            if status
            else None
        )

        type_raw = _sub_object(data, "entity_type")
        type_name = type_raw.get("type_name")
        type_code = type_raw.get("type_code")
        entity_type = (
            EntityType(type_name=type_name, type_code=type_code)
            if type_name and type_code
            else None
        )

        tax_raw = _sub_object(data, "tax_registration")
        tax_registration = TaxRegistration(
            registered=bool(tax_raw.get("registered", False)),
            effective_date=_parse_date(tax_raw.get("effective_date")),
        )

        loc_raw = _sub_object(data, "location")
        state_code = loc_raw.get("state_code")
        postcode = loc_raw.get("postcode")
        location = (
            Location(state_code=state_code, postcode=postcode)
            if state_code and postcode
            else None
        )

        retrieved_raw = data.get("retrieved_at")
        retrieved_at = (
            datetime.fromisoformat(retrieved_raw) if retrieved_raw else _utc_now()
        )

        return cls(
            abn=abn,
            entity_name=data.get("entity_name") or None,
            registration_status=registration_status,
            entity_type=entity_type,
            tax_registration=tax_registration,
            location=location,
            retrieved_at=retrieved_at,
        )


class ErrorCode(str, Enum):
    NO_IDENTIFIER = "NO_IDENTIFIER"
    INVALID_FORMAT = "INVALID_FORMAT"
    NOT_FOUND = "NOT_FOUND"
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


@dataclass(frozen=True)
class LookupFailure:
    code: ErrorCode
    message: str


@dataclass(frozen=True)
class LookupResult:
    """Outcome of one lookup: a record with its origin, or a structured error."""

    success: bool
    record: AbnRecord | None = None
    error: LookupFailure | None = None
    origin: Origin | None = None

    @classmethod
    def ok(cls, record: AbnRecord, origin: Origin) -> "LookupResult":
        return cls(success=True, record=record, origin=origin)

    @classmethod
    def fail(cls, code: ErrorCode, message: str) -> "LookupResult":
        return cls(success=False, error=LookupFailure(code=code, message=message))

    def to_json(self) -> JSONObj:
        if self.success and self.record is not None:
            return {
                "success": True,
                "data": cast(JSONLike, self.record.to_json()),
                "origin": self.origin,
            }
        if self.error is None:
            raise ValueError("failed LookupResult carries no error")
        return {
            "success": False,
            "error": {"code": self.error.code.value, "message": self.error.message},
        }


__all__ = [
    "AbnRecord",
    "AbnRecordJSON",
    "EntityType",
    "ErrorCode",
    "Location",
    "LookupFailure",
    "LookupResult",
    "Origin",
    "RegistrationStatus",
    "TaxRegistration",
    "drop_empty",
]
