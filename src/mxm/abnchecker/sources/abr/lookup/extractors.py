"""
Field extraction for ABN Lookup pages.

The lookup page lays its facts out as a details table (`<th>` label cell,
`<td>` value cell) plus a few schema.org-tagged spans. This module locates
those positions and returns their raw trimmed text; turning that text into
typed values is `parser.py`'s job.

Matching is first-match in document order. Missing or malformed markup
yields `None`, never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union, cast

from bs4 import BeautifulSoup, ParserRejectedMarkup, Tag


@dataclass(frozen=True)
class LabelledCell:
    """First `<td>` of the first `<tr>` whose `<th>` text contains `label`.

    With `link=True` the locator points at the first `<a>` inside that cell.
    """

    label: str
    link: bool = False


@dataclass(frozen=True)
class ItemProp:
    """First element `<tag itemprop="name">`."""

    name: str
    tag: str = "span"


Locator = Union[LabelledCell, ItemProp]
Document = Union[BeautifulSoup, str]

LEGAL_NAME = ItemProp("legalName")
ABN_STATUS = LabelledCell("ABN status")
ENTITY_TYPE = LabelledCell("Entity type", link=True)
GST_STATUS = LabelledCell("Goods & Services Tax")
ADDRESS_LOCALITY = ItemProp("addressLocality")


@dataclass(frozen=True)
class RawFragments:
    """Unprocessed text found at each position of interest."""

    entity_name: str | None = None
    abn_status: str | None = None
    entity_type_label: str | None = None
    entity_type_href: str | None = None
    gst_status: str | None = None
    locality: str | None = None


def load_document(markup: str) -> BeautifulSoup:
    """Parse markup leniently; rejected markup becomes an empty document."""
    try:
        return BeautifulSoup(markup, "html.parser")
    except ParserRejectedMarkup:
        return BeautifulSoup("", "html.parser")


def _as_document(doc: Document) -> BeautifulSoup:
    return load_document(doc) if isinstance(doc, str) else doc


def _labelled_cells(soup: BeautifulSoup, label: str) -> list[Tag]:
    cells: list[Tag] = []
    for row in cast(list[Tag], soup.find_all("tr")):
        headers = cast(list[Tag], row.find_all("th", recursive=False))
        if not any(label in th.get_text() for th in headers):
            continue
        cells.extend(cast(list[Tag], row.find_all("td", recursive=False)))
    return cells


def find_node(doc: Document, locator: Locator) -> Tag | None:
    """Return the first node addressed by `locator`, or None."""
    soup = _as_document(doc)

    if isinstance(locator, ItemProp):
        found = soup.find(locator.tag, attrs={"itemprop": locator.name})
        return found if isinstance(found, Tag) else None

    for cell in _labelled_cells(soup, locator.label):
        if not locator.link:
            return cell
        anchor = cell.find("a", recursive=False)
        if isinstance(anchor, Tag):
            return anchor
    return None


def extract(doc: Document, locator: Locator) -> str | None:
    """Trimmed text content of the first matching node."""
    node = find_node(doc, locator)
    if node is None:
        return None
    return node.get_text().strip()


def extract_link_target(doc: Document, locator: Locator) -> str | None:
    """`href` of the first matching node (the node itself must be a link)."""
    node = find_node(doc, locator)
    if node is None:
        return None
    href = node.get("href")
    if isinstance(href, list):
        href = " ".join(href)
    return href or None


def extract_fragments(doc: Document) -> RawFragments:
    """Collect every position the normalizer needs from one parsed page."""
    soup = _as_document(doc)
    return RawFragments(
        entity_name=extract(soup, LEGAL_NAME),
        abn_status=extract(soup, ABN_STATUS),
        entity_type_label=extract(soup, ENTITY_TYPE),
        entity_type_href=extract_link_target(soup, ENTITY_TYPE),
        gst_status=extract(soup, GST_STATUS),
        locality=extract(soup, ADDRESS_LOCALITY),
    )


__all__ = [
    "ABN_STATUS",
    "ADDRESS_LOCALITY",
    "ENTITY_TYPE",
    "GST_STATUS",
    "LEGAL_NAME",
    "ItemProp",
    "LabelledCell",
    "Locator",
    "RawFragments",
    "extract",
    "extract_fragments",
    "extract_link_target",
    "find_node",
    "load_document",
]
