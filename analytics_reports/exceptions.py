"""
Error types raised by the analytics reports package
"""
from typing import Optional


class AnalyticsError(Exception):
    """Base class for every error surfaced to callers"""


class InvalidRangeError(AnalyticsError):
    """Raised when a period starts after it ends"""

    @classmethod
    def start_after_end(cls, start_date, end_date) -> "InvalidRangeError":
        return cls(f"Start date `{start_date}` cannot be after end date `{end_date}`.")


class EmptyMetricsError(AnalyticsError):
    """Raised when a query is built without any metric"""

    def __init__(self, message: str = "At least one metric is required to query Google Analytics."):
        super().__init__(message)


class InvalidLimitError(AnalyticsError, ValueError):
    """Raised when a result limit is not a positive number"""


class RemoteQueryError(AnalyticsError):
    """
    Raised for any failure talking to the Reporting API: auth, quota,
    malformed request or network. The provider's HTTP status is kept when
    there is one so callers can tell retryable from fatal errors.
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_retryable(self) -> bool:
        # 429 quota and 5xx backend errors; network failures carry no status
        if self.status_code is None:
            return True
        return self.status_code == 429 or self.status_code >= 500


class AuthenticationError(RemoteQueryError):
    """Raised when credentials cannot be loaded or refreshed"""

    @property
    def is_retryable(self) -> bool:
        # a missing or revoked credential fails the same way every time
        return False


class CacheBackendError(AnalyticsError):
    """Raised when the cache store cannot be read or written"""


class UnknownReportError(AnalyticsError, KeyError):
    """Raised when a named report is not in the report table"""

    def __str__(self):
        return str(self.args[0]) if self.args else ""
