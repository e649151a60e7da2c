from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

from .errors import ConfigurationError

load_dotenv()

DEFAULT_TIMEZONE = "UTC"


@dataclass(frozen=True)
class SyncConfig:
    calendar_id: str
    timezone: ZoneInfo


@dataclass
class Settings:
    calendar_id: str
    ics_file: str
    timezone: ZoneInfo
    google_client_secrets: str
    google_token_file: str
    http_timeout: float = 30.0

    def sync_config(self) -> SyncConfig:
        if not self.calendar_id:
            raise ConfigurationError("missing option calendar_id")
        return SyncConfig(calendar_id=self.calendar_id, timezone=self.timezone)


def get_timezone() -> ZoneInfo:
    tz_name = os.getenv("TIMEZONE", DEFAULT_TIMEZONE)
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        logging.warning("Invalid TIMEZONE %s, falling back to %s", tz_name, DEFAULT_TIMEZONE)
        return ZoneInfo(DEFAULT_TIMEZONE)


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be a number, got '{raw}'") from exc


def get_settings(calendar_id: Optional[str] = None, ics_file: Optional[str] = None) -> Settings:
    settings = Settings(
        calendar_id=calendar_id or os.getenv("CALENDAR_ID", ""),
        ics_file=ics_file or os.getenv("ICS_FILE", ""),
        timezone=get_timezone(),
        google_client_secrets=os.getenv("GOOGLE_CLIENT_SECRETS", "credentials.json"),
        google_token_file=os.path.expanduser(os.getenv("GOOGLE_TOKEN_FILE", "token.json")),
        http_timeout=_get_float("HTTP_TIMEOUT", 30.0),
    )
    if not settings.calendar_id:
        logging.warning("CALENDAR_ID is not set")
    return settings
