"""Tests for the command line entry point."""
import os
from unittest.mock import patch

import pytest

import main
from conftest import FakeCalendar, make_remote_item
from test_parser import SAMPLE_ICS


@pytest.fixture
def ics_file(tmp_path):
    path = tmp_path / "calendar.ics"
    path.write_bytes(SAMPLE_ICS)
    return str(path)


@pytest.fixture
def remote():
    calendar = FakeCalendar([make_remote_item("orphan1"), make_remote_item("orphan2", status="cancelled")])
    calendar.calendar_exists = lambda calendar_id: calendar_id != "missing"
    return calendar


@pytest.fixture
def patched_google(remote):
    with patch.dict(os.environ, {}, clear=False):
        os.environ.pop("CALENDAR_ID", None)
        os.environ.pop("ICS_FILE", None)
        with patch("main.build_service") as build_service, patch(
            "main.GoogleCalendarClient", return_value=remote
        ):
            yield build_service


class TestMain:
    """Test cases for main."""

    def test_sync(self, patched_google, remote, ics_file):
        assert main.main(["-c", "primary", "-f", ics_file]) == 0

        assert len(remote.mutations("create")) == 3
        assert remote.mutations("delete") == [("delete", "orphan1")]

    def test_purge(self, patched_google, remote):
        assert main.main(["--calendar-id", "primary", "--purge", "--verbose"]) == 0

        assert remote.mutations() == [("delete", "orphan1")]

    def test_missing_calendar_id(self, patched_google, ics_file):
        assert main.main(["-f", ics_file]) == 1
        patched_google.assert_not_called()

    def test_missing_ics_file(self, patched_google):
        assert main.main(["-c", "primary"]) == 1
        patched_google.assert_not_called()

    def test_unknown_calendar(self, patched_google, remote, ics_file):
        assert main.main(["-c", "missing", "-f", ics_file]) == 1
        assert remote.mutations() == []

    def test_parse_error_stops_before_remote_calls(self, patched_google, tmp_path):
        path = tmp_path / "broken.ics"
        path.write_bytes(b"this is not a calendar")

        assert main.main(["-c", "primary", "-f", str(path)]) == 1
        patched_google.assert_not_called()

    def test_malformed_property_stops_before_remote_calls(self, patched_google, tmp_path):
        path = tmp_path / "broken.ics"
        path.write_bytes(SAMPLE_ICS.replace(b"DTEND:20240115T110000Z", b"DTEND:garbage"))

        assert main.main(["-c", "primary", "-f", str(path)]) == 1
        patched_google.assert_not_called()
