"""
HTML parser for ABN Lookup pages.

This module turns the raw fragments located by `extractors.py` into a typed
`AbnRecord`. Each field is normalized independently: a field that is
missing or unparseable is left absent and never stops the others.

Helpers (`normalize_registration_status`, `normalize_entity_type`,
`normalize_tax_registration`, `normalize_location`) are factored out for
granular testing.

Dates on the page are English, day-month-year ("23 Oct 2013"); no other
locale is attempted.
"""

from __future__ import annotations

import html
import logging
import re
from datetime import date, datetime, timezone

from dateutil import parser as date_parser

from mxm.abnchecker.sources.abr.common.models import (
    AbnRecord,
    EntityType,
    Location,
    RegistrationStatus,
    TaxRegistration,
)
from mxm.abnchecker.sources.abr.lookup.extractors import (
    Document,
    RawFragments,
    extract_fragments,
)

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"[\s\u00a0]+")
_STATUS_TOKEN = re.compile(r"^([A-Za-z]+)")
_STATUS_DATE = re.compile(r"(\d{1,2})\s+([A-Za-z]+)\s+(\d{4})")
_ENTITY_TYPE_CODE = re.compile(r"EntityTypeDescription\?Id=(\d+)")
_GST_REGISTERED = re.compile(r"Registered\s+from\s+(.+)")
_STATE_POSTCODE = re.compile(r"([A-Z]{2,3})\s+(\d{4})")

_MONTH_FORMATS = ("%d %b %Y", "%d %B %Y")


def parse_abn_record(
    markup: Document, abn: str, *, retrieved_at: datetime | None = None
) -> AbnRecord:
    """
    Parse an ABN Lookup HTML page into an `AbnRecord`.

    Args:
        markup: Raw HTML (or an already parsed document) of the lookup page.
        abn: Canonical 11-digit ABN the page was requested for.
        retrieved_at: Normalization timestamp; defaults to now (UTC).

    Returns:
        An `AbnRecord` holding whichever fields the page provided.
    """
    return normalize_record(extract_fragments(markup), abn, retrieved_at=retrieved_at)


def normalize_record(
    fragments: RawFragments, abn: str, *, retrieved_at: datetime | None = None
) -> AbnRecord:
    record = AbnRecord(
        abn=abn,
        entity_name=(fragments.entity_name or "").strip() or None,
        registration_status=normalize_registration_status(fragments.abn_status),
        entity_type=normalize_entity_type(
            fragments.entity_type_label, fragments.entity_type_href
        ),
        tax_registration=normalize_tax_registration(fragments.gst_status),
        location=normalize_location(fragments.locality),
        retrieved_at=retrieved_at or datetime.now(timezone.utc),
    )
    logger.debug("Normalized ABN %s: %s", abn, record)
    return record


# ----------------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------------


def clean_text(text: str | None) -> str:
    """Decode entities, collapse all whitespace (incl. NBSP) to single spaces, trim."""
    if not text:
        return ""
    decoded = html.unescape(text)
    return _WHITESPACE.sub(" ", decoded).strip()


def parse_status_date(day: str, month: str, year: str) -> date | None:
    """Parse "<d> <Mon|Month> <yyyy>"; returns None for an unknown month or day."""
    try:
        cleaned = f"{int(day):02d} {month.strip()} {year.strip()}"
    except ValueError:
        return None
    for fmt in _MONTH_FORMATS:
        try:
            return datetime.strptime(cleaned, fmt).date()
        except ValueError:
            continue
    return None


def normalize_registration_status(text: str | None) -> RegistrationStatus | None:
    """
    "Active from 23 Oct 2013" → RegistrationStatus("Active", 2013-10-23).

    The status is the leading alphabetic run; the date may appear anywhere
    after it. No status token means no record at all.
    """
    cleaned = clean_text(text)
    status_match = _STATUS_TOKEN.match(cleaned)
    if not status_match:
        return None

    effective_date: date | None = None
    date_match = _STATUS_DATE.search(cleaned)
    if date_match:
        effective_date = parse_status_date(*date_match.groups())
    return RegistrationStatus(
        status=status_match.group(1), effective_date=effective_date
    )


def normalize_entity_type(label: str | None, href: str | None) -> EntityType | None:
    """Label and numeric code come from the same link; both or neither."""
    type_name = clean_text(label)
    code_match = _ENTITY_TYPE_CODE.search(href or "")
    if not type_name or not code_match:
        return None
    return EntityType(type_name=type_name, type_code=code_match.group(1))


def normalize_tax_registration(text: str | None) -> TaxRegistration:
    """
    "Registered from 01 Jul 2000" → TaxRegistration(True, 2000-07-01).

    Anything else (e.g. "Not currently registered for GST") leaves
    `registered` False. A matching phrase whose date cannot be read still
    counts as registered, just without a date.
    """
    match = _GST_REGISTERED.search(text or "")
    if not match:
        return TaxRegistration()

    phrase = clean_text(match.group(1))
    try:
        effective = date_parser.parse(phrase, dayfirst=True).date()
    except (ValueError, OverflowError):
        logger.debug("Unreadable GST registration date %r", phrase)
        effective = None
    return TaxRegistration(registered=True, effective_date=effective)


def normalize_location(text: str | None) -> Location | None:
    """State code and postcode, e.g. "SYDNEY NSW 2000" → Location("NSW", "2000")."""
    match = _STATE_POSTCODE.search(text or "")
    if not match:
        return None
    return Location(state_code=match.group(1), postcode=match.group(2))


__all__ = [
    "clean_text",
    "normalize_entity_type",
    "normalize_location",
    "normalize_record",
    "normalize_registration_status",
    "normalize_tax_registration",
    "parse_abn_record",
    "parse_status_date",
]
