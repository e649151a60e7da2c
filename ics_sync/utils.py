from __future__ import annotations

import base64
import datetime as dt
import hashlib
from typing import List, Optional, Union
from zoneinfo import ZoneInfo

from .errors import ParseError
from .models import STATUSES, NormalizedEvent, SourceEvent, Value

# Google accepts event ids made of base32hex characters, 5 to 1024 long.
ID_MIN_LENGTH = 5
ID_MAX_LENGTH = 1024

COMPARED_FIELDS = ("id", "title", "status", "description", "location", "transparency", "start", "end")


def flatten(value: Value) -> str:
    if value is None:
        return ""
    if isinstance(value, (list, tuple)):
        return "".join(str(v) for v in value)
    return str(value)


def _b32hex(data: bytes) -> str:
    return base64.b32hexencode(data).decode("ascii").rstrip("=").lower()


def generate_id(uid: Optional[str], recurrence_id: Optional[str], sequence: Optional[int]) -> str:
    parts = [uid, recurrence_id, sequence]
    joined = "".join("" if p is None else str(p) for p in parts).encode("utf-8")
    encoded = _b32hex(joined)
    if len(encoded) > ID_MAX_LENGTH:
        encoded = _b32hex(hashlib.sha1(joined).digest())
    return encoded.ljust(ID_MIN_LENGTH, "0")


def to_utc(value: Union[dt.datetime, dt.date, None], tz: ZoneInfo) -> Optional[dt.datetime]:
    if value is None:
        return None
    if not isinstance(value, dt.datetime):
        value = dt.datetime.combine(value, dt.time.min)
    if value.tzinfo is None:
        # Floating time, read it in the calendar's own zone.
        value = value.replace(tzinfo=tz)
    return value.astimezone(dt.timezone.utc)


def normalize_status(value: Value) -> str:
    status = flatten(value).strip().lower()
    if not status:
        return "confirmed"
    if status not in STATUSES:
        raise ParseError(f"Event status must be one of {', '.join(STATUSES)}, got '{status}'")
    return status


def normalize_transparency(value: Value) -> str:
    if value is False or flatten(value).strip().lower() == "opaque":
        return "opaque"
    return "transparent"


def normalize(event: SourceEvent, tz: ZoneInfo) -> NormalizedEvent:
    return NormalizedEvent(
        id=generate_id(event.uid, event.recurrence_id, event.sequence),
        title=flatten(event.summary),
        description=flatten(event.description),
        location=flatten(event.location),
        status=normalize_status(event.status),
        transparency=normalize_transparency(event.transparency),
        start=to_utc(event.start, tz),
        end=to_utc(event.end, tz),
        all_day=not isinstance(event.start, dt.datetime),
    )


def _field(event: NormalizedEvent, name: str):
    if name == "end":
        return event.effective_end
    return getattr(event, name)


def changed_fields(a: NormalizedEvent, b: NormalizedEvent) -> List[str]:
    return [name for name in COMPARED_FIELDS if _field(a, name) != _field(b, name)]


def events_equal(a: NormalizedEvent, b: NormalizedEvent) -> bool:
    for name in COMPARED_FIELDS:
        if _field(a, name) != _field(b, name):
            return False
    return True
