from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union
from zoneinfo import ZoneInfo

Scalar = Union[str, int, bool]
# An ICS property may appear once or repeat, so text fields are either.
Value = Union[Scalar, Sequence[Scalar], None]

STATUSES = ("confirmed", "tentative", "cancelled")
CANCELLED = "cancelled"
DEFAULT_DURATION = dt.timedelta(hours=1)
ALL_DAY_DURATION = dt.timedelta(days=1)


@dataclass
class SourceEvent:
    uid: str
    start: Union[dt.datetime, dt.date]
    recurrence_id: Optional[str] = None
    sequence: Optional[int] = None
    summary: Value = None
    description: Value = None
    location: Value = None
    status: Value = None
    transparency: Value = None
    end: Union[dt.datetime, dt.date, None] = None
    attendees: List[str] = field(default_factory=list)


@dataclass
class NormalizedEvent:
    id: str
    title: str
    start: Optional[dt.datetime]
    end: Optional[dt.datetime] = None
    description: str = ""
    location: str = ""
    status: str = "confirmed"
    transparency: str = "transparent"
    all_day: bool = False

    @property
    def effective_end(self) -> Optional[dt.datetime]:
        if self.end is not None:
            return self.end
        if self.start is None:
            return None
        if self.all_day:
            return self.start + ALL_DAY_DURATION
        return self.start + DEFAULT_DURATION

    @property
    def cancelled(self) -> bool:
        return self.status == CANCELLED

    def to_gcal_body(self, tz: ZoneInfo) -> dict:
        body = {
            "id": self.id,
            "status": self.status,
            "summary": self.title,
            "transparency": self.transparency,
            "start": _time_body(self.start, tz, self.all_day),
            "end": _time_body(self.effective_end, tz, self.all_day),
        }
        if self.location:
            body["location"] = self.location
        if self.description:
            body["description"] = self.description
        return body

    @classmethod
    def from_gcal(cls, item: dict, tz: ZoneInfo) -> "NormalizedEvent":
        start = item.get("start") or {}
        return cls(
            id=item["id"],
            title=item.get("summary", ""),
            start=parse_gcal_time(start, tz),
            end=parse_gcal_time(item.get("end"), tz),
            description=item.get("description", ""),
            location=item.get("location", ""),
            status=item.get("status", "confirmed"),
            # Google leaves the field out for opaque events.
            transparency=item.get("transparency", "opaque"),
            all_day="date" in start,
        )

    def __str__(self) -> str:
        return f"{self.id} [{self.status}] {self.title!r} {self.start} - {self.effective_end}"


@dataclass
class SyncResult:
    idempotent: int = 0
    created: int = 0
    updated: int = 0
    restored: int = 0
    removed: int = 0
    cancelled_in_source: int = 0

    @property
    def total(self) -> int:
        return self.idempotent + self.created + self.updated + self.restored


def _time_body(value: Optional[dt.datetime], tz: ZoneInfo, all_day: bool) -> dict:
    if value is None:
        return {}
    if all_day:
        return {"date": value.astimezone(tz).date().isoformat()}
    return {"dateTime": value.isoformat()}


def parse_gcal_time(value: Optional[dict], tz: ZoneInfo) -> Optional[dt.datetime]:
    if not value:
        return None
    if "dateTime" in value:
        parsed = dt.datetime.fromisoformat(value["dateTime"].replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=tz)
        return parsed.astimezone(dt.timezone.utc)
    if "date" in value:
        day = dt.date.fromisoformat(value["date"])
        return dt.datetime.combine(day, dt.time.min, tzinfo=tz).astimezone(dt.timezone.utc)
    return None
