from __future__ import annotations

import argparse
import logging
from typing import Optional, Sequence

from ics_sync.config import get_settings
from ics_sync.errors import ConfigurationError, SyncError
from ics_sync.gcal import GoogleCalendarClient, build_service
from ics_sync.parser import load_source_events
from ics_sync.sync import Reconciler


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="ics-sync", description="Sync an ICS feed to Google Calendar")
    parser.add_argument("-f", "--file", dest="ics_file", help="ICS file to sync: local path or http[s] url")
    parser.add_argument("-c", "--calendar-id", dest="calendar_id", help="Google calendar ID")
    parser.add_argument(
        "-p", "--purge", action="store_true", help="Remove all Google calendar events and exit"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> None:
    settings = get_settings(calendar_id=args.calendar_id, ics_file=args.ics_file)
    config = settings.sync_config()

    # Read the feed before touching the remote calendar.
    source_events = None
    if not args.purge:
        source_events = load_source_events(settings.ics_file, timeout=settings.http_timeout)

    service = build_service(settings)
    client = GoogleCalendarClient(service, timezone=settings.timezone)
    if not client.calendar_exists(config.calendar_id):
        raise ConfigurationError(f"{config.calendar_id} does not exist")

    reconciler = Reconciler(client, config)
    if args.purge:
        reconciler.purge()
        return
    result = reconciler.sync(source_events)
    logging.debug("ICS size: %d, processed: %d", len(source_events), result.total)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )
    logging.getLogger("googleapiclient.discovery_cache").setLevel(logging.ERROR)

    try:
        run(args)
    except SyncError as exc:
        payload = getattr(exc, "payload", "")
        logging.error("%s: %s%s", type(exc).__name__, exc, f"\n{payload}" if payload else "")
        return 1

    logging.info("Done")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
