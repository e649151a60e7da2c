from __future__ import annotations

import logging
from typing import Dict, Iterable, Protocol

from .config import SyncConfig
from .models import NormalizedEvent, SourceEvent, SyncResult
from .utils import changed_fields, events_equal, normalize


class RemoteCalendar(Protocol):
    def list_all_events(self, calendar_id: str) -> list[dict]: ...

    def create_event(self, calendar_id: str, event: NormalizedEvent) -> dict: ...

    def update_event(self, calendar_id: str, event_id: str, event: NormalizedEvent) -> dict: ...

    def delete_event(self, calendar_id: str, event_id: str) -> None: ...


class Reconciler:
    """Make a Google calendar mirror an ICS feed."""

    def __init__(self, client: RemoteCalendar, config: SyncConfig) -> None:
        self.client = client
        self.config = config

    @property
    def calendar_id(self) -> str:
        return self.config.calendar_id

    def snapshot(self) -> Dict[str, NormalizedEvent]:
        remote: Dict[str, NormalizedEvent] = {}
        for item in self.client.list_all_events(self.calendar_id):
            event = NormalizedEvent.from_gcal(item, self.config.timezone)
            # Ids are unique on Google's side; keep the first if not.
            remote.setdefault(event.id, event)
        return remote

    def sync(self, source_events: Iterable[SourceEvent]) -> SyncResult:
        result = SyncResult()
        # Invalid source events fail before any remote call.
        mocks = [normalize(e, self.config.timezone) for e in source_events]
        remote = self.snapshot()

        for mock in mocks:
            if mock.cancelled:
                result.cancelled_in_source += 1

            match = remote.pop(mock.id, None)
            if match is None:
                logging.debug("Created: %s", mock)
                self.client.create_event(self.calendar_id, mock)
                result.created += 1
            elif events_equal(mock, match):
                result.idempotent += 1
            else:
                if match.cancelled:
                    logging.debug("Restored: %s", mock)
                    result.restored += 1
                else:
                    logging.debug("Updated: %s (%s)", mock, ", ".join(changed_fields(mock, match)))
                    result.updated += 1
                self.client.update_event(self.calendar_id, match.id, mock)

        for event in remote.values():
            if event.cancelled:
                continue
            logging.debug("Delete: %s", event)
            self.client.delete_event(self.calendar_id, event.id)
            result.removed += 1

        logging.info(
            "Sync complete. %d unchanged, %d created, %d updated, %d restored, %d removed, "
            "%d cancelled in source",
            result.idempotent,
            result.created,
            result.updated,
            result.restored,
            result.removed,
            result.cancelled_in_source,
        )
        return result

    def purge(self) -> int:
        logging.debug("Purge events on %s...", self.calendar_id)
        deleted = 0
        for event in self.snapshot().values():
            if event.cancelled:
                continue
            logging.debug("Delete: %s", event)
            self.client.delete_event(self.calendar_id, event.id)
            deleted += 1
        logging.info("Purge complete. %d event(s) deleted.", deleted)
        return deleted
