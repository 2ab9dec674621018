from typing import Optional


class TollSyncError(Exception):
    """Base class for every error raised by the sync engine and the reports."""


class FetchError(TollSyncError):
    """An upstream fetch could not produce data (auth, transport or status)."""


class AuthFailure(FetchError):
    def __init__(self, message: str, *, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class NetworkError(FetchError):
    pass


class HttpError(FetchError):
    def __init__(self, status: int, body_snippet: Optional[str] = None):
        super().__init__(f"Unexpected HTTP status {status}")
        self.status = status
        self.body_snippet = body_snippet


class InvalidDateFormat(TollSyncError, ValueError):
    def __init__(self, value: object):
        super().__init__(f"Invalid date format: {value!r} (expected YYYY-MM-DD)")
        self.value = value


class InvalidMonth(TollSyncError, ValueError):
    def __init__(self, month: int):
        super().__init__(f"Month must be between 1 and 12, got {month}")
        self.month = month


class PersistenceError(TollSyncError):
    """Opaque wrapper for storage failures."""
