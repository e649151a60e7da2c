"""Shared fixtures: an in-memory Google calendar and event factories."""
import copy
import datetime as dt
from zoneinfo import ZoneInfo

import pytest

from ics_sync.config import SyncConfig
from ics_sync.models import SourceEvent

UTC = ZoneInfo("UTC")


class FakeCalendar:
    """Remote calendar kept in memory, recording every mutating call."""

    def __init__(self, items=None, timezone=UTC):
        self.timezone = timezone
        self.items = {}
        for item in items or []:
            self.items[item["id"]] = copy.deepcopy(item)
        self.calls = []

    def list_all_events(self, calendar_id):
        self.calls.append(("list", None))
        return [copy.deepcopy(item) for item in self.items.values()]

    def create_event(self, calendar_id, event):
        self.calls.append(("create", event.id))
        body = event.to_gcal_body(self.timezone)
        self.items[event.id] = body
        return copy.deepcopy(body)

    def update_event(self, calendar_id, event_id, event):
        self.calls.append(("update", event_id))
        body = event.to_gcal_body(self.timezone)
        self.items[event_id] = body
        return copy.deepcopy(body)

    def delete_event(self, calendar_id, event_id):
        self.calls.append(("delete", event_id))
        self.items[event_id]["status"] = "cancelled"

    def mutations(self, kind=None):
        return [c for c in self.calls if c[0] != "list" and (kind is None or c[0] == kind)]


def make_source_event(uid="event-1", **kwargs):
    fields = {
        "summary": "Team meeting",
        "description": "Weekly sync",
        "location": "Room 101",
        "start": dt.datetime(2024, 1, 15, 10, 0, tzinfo=dt.timezone.utc),
        "end": dt.datetime(2024, 1, 15, 11, 0, tzinfo=dt.timezone.utc),
        "transparency": "OPAQUE",
    }
    fields.update(kwargs)
    return SourceEvent(uid=uid, **fields)


def make_remote_item(event_id, **kwargs):
    item = {
        "id": event_id,
        "status": "confirmed",
        "summary": "Team meeting",
        "description": "Weekly sync",
        "location": "Room 101",
        "start": {"dateTime": "2024-01-15T10:00:00+00:00"},
        "end": {"dateTime": "2024-01-15T11:00:00+00:00"},
    }
    item.update(kwargs)
    return item


@pytest.fixture
def sync_config():
    return SyncConfig(calendar_id="test@group.calendar.google.com", timezone=UTC)


@pytest.fixture
def source_event():
    return make_source_event()
