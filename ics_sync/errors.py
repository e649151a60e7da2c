from __future__ import annotations

from typing import Optional


class SyncError(Exception):
    pass


class ConfigurationError(SyncError):
    pass


class ParseError(SyncError):
    pass


class AuthorizationError(SyncError):
    pass


class RemoteError(SyncError):
    def __init__(self, message: str, status: Optional[int] = None, payload: str = "") -> None:
        super().__init__(message)
        self.status = status
        self.payload = payload


class RateLimited(RemoteError):
    pass


class NotFound(RemoteError):
    pass


class RequestFailed(RemoteError):
    pass
