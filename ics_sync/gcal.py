from __future__ import annotations

import json
import logging
import os
import time
from typing import Callable, List, Optional
from urllib.parse import parse_qs, urlparse
from zoneinfo import ZoneInfo

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from .config import Settings
from .errors import AuthorizationError, ConfigurationError, NotFound, RateLimited, RequestFailed, SyncError
from .models import NormalizedEvent
from .retry import call_with_backoff

SCOPES = ["https://www.googleapis.com/auth/calendar"]
REDIRECT_URI = "http://localhost"
RATE_LIMIT_REASONS = {"rateLimitExceeded", "userRateLimitExceeded"}


class Authorizer:
    def __init__(self, client_secrets_file: str, token_file: str) -> None:
        if not os.path.exists(client_secrets_file):
            raise ConfigurationError(
                f"Credentials file '{client_secrets_file}' not found. "
                "Download it from the Google Cloud Console."
            )
        self.token_file = token_file
        self.flow = InstalledAppFlow.from_client_secrets_file(
            client_secrets_file, SCOPES, redirect_uri=REDIRECT_URI
        )

    def authorize_url(self) -> str:
        url, _ = self.flow.authorization_url(access_type="offline", prompt="consent")
        return url

    def login_with_code(self, code: str) -> str:
        code = _extract_code(code)
        try:
            self.flow.fetch_token(code=code)
        except Exception as exc:
            raise AuthorizationError(f"Authorization code was rejected: {exc}") from exc
        creds = self.flow.credentials
        save_credentials(creds, self.token_file)
        return creds.refresh_token


def _extract_code(value: str) -> str:
    # Accept the whole redirect URL as pasted from the browser.
    value = value.strip()
    if value.startswith("http"):
        codes = parse_qs(urlparse(value).query).get("code")
        if codes:
            return codes[0]
    return value


def save_credentials(creds: Credentials, token_file: str) -> None:
    with open(token_file, "w") as token:
        token.write(creds.to_json())
    logging.info("Token saved to %s", token_file)


def load_credentials(settings: Settings, prompt: Callable[[str], str] = input) -> Credentials:
    creds = None
    if os.path.exists(settings.google_token_file):
        try:
            creds = Credentials.from_authorized_user_file(settings.google_token_file, SCOPES)
        except ValueError as exc:
            logging.warning("Ignoring unreadable token file %s: %s", settings.google_token_file, exc)
    if creds and creds.valid:
        return creds
    if creds and creds.refresh_token:
        try:
            creds.refresh(Request())
        except RefreshError as exc:
            raise AuthorizationError(f"Unable to refresh access token: {exc}") from exc
        save_credentials(creds, settings.google_token_file)
        return creds

    authorizer = Authorizer(settings.google_client_secrets, settings.google_token_file)
    print("Visit the following web page in your browser and approve access.")
    print(authorizer.authorize_url())
    authorizer.login_with_code(prompt("\nPaste the code (or the whole redirect URL) here: "))
    return authorizer.flow.credentials


def build_service(settings: Settings, prompt: Callable[[str], str] = input):
    creds = load_credentials(settings, prompt=prompt)
    return build("calendar", "v3", credentials=creds, cache_discovery=False)


def _error_reasons(payload: str) -> tuple[set, set]:
    try:
        error = json.loads(payload).get("error", {})
    except (ValueError, AttributeError):
        return set(), set()
    if not isinstance(error, dict):
        return set(), set()
    details = error.get("errors") or []
    reasons = {d.get("reason") for d in details if isinstance(d, dict)}
    domains = {d.get("domain") for d in details if isinstance(d, dict)}
    return reasons, domains


def translate_http_error(exc: HttpError) -> SyncError:
    status = exc.resp.status
    payload = exc.content.decode("utf-8", "replace") if isinstance(exc.content, bytes) else str(exc.content)
    reasons, domains = _error_reasons(payload)
    if status == 429 or (status == 403 and (reasons & RATE_LIMIT_REASONS or "usageLimits" in domains)):
        return RateLimited("Rate limit exceeded", status=status, payload=payload)
    if status == 404:
        return NotFound("Not found", status=status, payload=payload)
    if status == 401:
        return AuthorizationError(f"Authorization failed: {payload}")
    return RequestFailed(f"Request failed with status {status}", status=status, payload=payload)


class GoogleCalendarClient:
    def __init__(self, service, timezone: ZoneInfo, sleep: Callable[[float], None] = time.sleep) -> None:
        self.service = service
        self.timezone = timezone
        self._sleep = sleep

    def _send(self, request):
        try:
            return request.execute()
        except HttpError as exc:
            raise translate_http_error(exc) from exc
        except RefreshError as exc:
            raise AuthorizationError(f"Unable to refresh access token: {exc}") from exc

    def _execute(self, request):
        return call_with_backoff(self._send, request, sleep=self._sleep)

    def calendar_exists(self, calendar_id: str) -> bool:
        try:
            self._execute(self.service.calendars().get(calendarId=calendar_id))
        except NotFound:
            return False
        return True

    def list_all_events(self, calendar_id: str) -> List[dict]:
        events: List[dict] = []
        page_token: Optional[str] = None
        while True:
            result = self._execute(
                self.service.events().list(
                    calendarId=calendar_id,
                    showDeleted=True,
                    maxResults=2500,
                    pageToken=page_token,
                )
            )
            events.extend(result.get("items", []))
            page_token = result.get("nextPageToken")
            if not page_token:
                break
        logging.info("Found %d events in %s (deleted included)", len(events), calendar_id)
        return events

    def create_event(self, calendar_id: str, event: NormalizedEvent) -> dict:
        body = event.to_gcal_body(self.timezone)
        return self._execute(self.service.events().insert(calendarId=calendar_id, body=body))

    def update_event(self, calendar_id: str, event_id: str, event: NormalizedEvent) -> dict:
        body = event.to_gcal_body(self.timezone)
        return self._execute(
            self.service.events().update(calendarId=calendar_id, eventId=event_id, body=body)
        )

    def delete_event(self, calendar_id: str, event_id: str) -> None:
        self._execute(self.service.events().delete(calendarId=calendar_id, eventId=event_id))
