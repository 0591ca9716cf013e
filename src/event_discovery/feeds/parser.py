"""XML parsing for the venue and event feeds.

Documents are parsed into an attributed tree with xmltodict. Attributes are
prefixed with `@_`, so `<venue id="1">` becomes `{"@_id": "1"}`.

XML has no notion of a list. A collection with one child parses to a bare
mapping instead of a one-element list, which would make iteration walk the
record's keys. The record tags are therefore always forced to lists.

After parsing, each record is validated into its model. A malformed document,
a missing root element or a record without its required fields is a
`ParseFailure`. Nothing is silently dropped.
"""

from __future__ import annotations

import logging
from typing import Any, TypeVar
from xml.parsers.expat import ExpatError

import xmltodict
from pydantic import BaseModel, ValidationError

from event_discovery.errors import ParseFailure
from event_discovery.models.venue import EventRecord, VenueRecord

logger = logging.getLogger(__name__)

ATTRIBUTE_PREFIX = "@_"

VENUES_ROOT = "venues"
VENUE_TAG = "venue"
EVENTS_ROOT = "events"
EVENT_TAG = "event"

RecordT = TypeVar("RecordT", bound=BaseModel)


def parse_xml(url: str, document: bytes | str) -> dict[str, Any]:
    """Parse an XML document into a tree of dicts.

    Args:
        url: Source URL, used for error reporting
        document: Document body. Bytes are decoded per the XML declaration

    Raises:
        ParseFailure: If the document is not well-formed
    """
    if not document or not document.strip():
        raise ParseFailure(url, "empty document")

    try:
        tree = xmltodict.parse(
            document,
            attr_prefix=ATTRIBUTE_PREFIX,
            force_list=(VENUE_TAG, EVENT_TAG),
        )
    except (ExpatError, ValueError) as e:
        logger.error(f"Malformed XML from {url}: {e}")
        raise ParseFailure(url, e) from e

    return tree


def _collection(url: str, tree: dict[str, Any], root: str, tag: str) -> list[Any]:
    """Return the record list under `<root><tag/>...</root>`."""
    if root not in tree:
        found = next(iter(tree), None)
        raise ParseFailure(url, f"expected root element <{root}>, found <{found}>")

    body = tree[root]
    if body is None:
        # <events/> or <events></events>
        return []
    if not isinstance(body, dict):
        raise ParseFailure(url, f"unexpected content in <{root}>")

    records = body.get(tag, [])
    if not isinstance(records, list):
        records = [records]
    return records


def _validate(url: str, records: list[Any], model: type[RecordT], tag: str) -> list[RecordT]:
    validated: list[RecordT] = []
    for index, record in enumerate(records):
        if not isinstance(record, dict):
            raise ParseFailure(url, f"<{tag}> #{index} has no fields")
        try:
            validated.append(model.model_validate(record))
        except ValidationError as e:
            logger.error(f"Invalid <{tag}> #{index} in {url}: {e}")
            raise ParseFailure(url, f"<{tag}> #{index}: {e}") from e
    return validated


def parse_venues(url: str, document: bytes | str) -> list[VenueRecord]:
    """Parse the venue feed into records, in document order."""
    tree = parse_xml(url, document)
    records = _collection(url, tree, VENUES_ROOT, VENUE_TAG)
    venues = _validate(url, records, VenueRecord, VENUE_TAG)
    logger.debug(f"Parsed {len(venues)} venues from {url}")
    return venues


def parse_events(url: str, document: bytes | str) -> list[EventRecord]:
    """Parse the event feed into records, in document order."""
    tree = parse_xml(url, document)
    records = _collection(url, tree, EVENTS_ROOT, EVENT_TAG)
    events = _validate(url, records, EventRecord, EVENT_TAG)
    logger.debug(f"Parsed {len(events)} events from {url}")
    return events
