from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import List, Optional

import requests
from icalendar import Calendar, Component

from .errors import ConfigurationError, ParseError
from .models import SourceEvent

URL_SCHEMES = ("http://", "https://", "webcal://")


def read_feed(source: str, timeout: float = 30) -> bytes:
    if not source:
        raise ConfigurationError("missing ICS file")
    if source.startswith(URL_SCHEMES):
        url = source.replace("webcal://", "https://", 1)
        logging.info("Downloading ICS feed %s", url)
        try:
            response = requests.get(url, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise ConfigurationError(f"Cannot open {source}: {exc}") from exc
        return response.content
    try:
        return Path(source).expanduser().read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"Cannot open {source}: {exc}") from exc


def _text(component: Component, name: str):
    value = component.get(name)
    if isinstance(value, list):
        return [str(v) for v in value]
    return None if value is None else str(value)


def _decoded(component: Component, name: str, types: tuple):
    if name not in component:
        return None
    try:
        value = component.decoded(name)
    except (ValueError, TypeError) as exc:
        raise ParseError(f"Invalid {name} in event {component.get('UID')}: {exc}") from exc
    # Unparseable values come back as raw text.
    if not isinstance(value, types):
        raise ParseError(f"Invalid {name} in event {component.get('UID')}: {value!r}")
    return value


def _sequence(component: Component) -> Optional[int]:
    value = component.get("SEQUENCE")
    if value is None:
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ParseError(f"Invalid SEQUENCE in event {component.get('UID')}: {value!r}") from exc


def _recurrence_id(component: Component) -> Optional[str]:
    value = component.get("RECURRENCE-ID")
    if value is None:
        return None
    return value.to_ical().decode("utf-8")


def _attendees(component: Component) -> List[str]:
    value = component.get("ATTENDEE")
    if value is None:
        return []
    if not isinstance(value, list):
        value = [value]
    return [str(a).lower().removeprefix("mailto:") for a in value]


def source_event_from_component(component: Component) -> SourceEvent:
    uid = component.get("UID")
    if component.errors:
        raise ParseError(f"Invalid properties in event {uid}: {component.errors}")
    start = _decoded(component, "DTSTART", (dt.date,))
    if start is None:
        raise ParseError(f"Event {uid} has no DTSTART")
    end = _decoded(component, "DTEND", (dt.date,))
    if end is None and "DURATION" in component:
        end = start + _decoded(component, "DURATION", (dt.timedelta,))
    return SourceEvent(
        uid=str(uid) if uid is not None else "",
        recurrence_id=_recurrence_id(component),
        sequence=_sequence(component),
        summary=_text(component, "SUMMARY"),
        description=_text(component, "DESCRIPTION"),
        location=_text(component, "LOCATION"),
        status=_text(component, "STATUS"),
        transparency=_text(component, "TRANSP"),
        start=start,
        end=end,
        attendees=_attendees(component),
    )


def parse_calendar(content: bytes) -> List[SourceEvent]:
    try:
        calendars = Calendar.from_ical(content, multiple=True)
    except ValueError as exc:
        raise ParseError(f"Malformed ICS content: {exc}") from exc
    if not calendars:
        raise ParseError("No calendar found in ICS content")
    if len(calendars) > 1:
        raise ConfigurationError("Can't process ICS file with multiple calendars")
    events = [source_event_from_component(c) for c in calendars[0].walk("VEVENT")]
    logging.info("Parsed %d events from ICS feed", len(events))
    return events


def load_source_events(source: str, timeout: float = 30) -> List[SourceEvent]:
    return parse_calendar(read_feed(source, timeout=timeout))
