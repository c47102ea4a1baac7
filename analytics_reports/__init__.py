"""
Named Google Analytics reports on top of the Reporting API v4
"""
from .analytics import Analytics
from .cache_utils import ReportCache, generate_cache_key
from .client import AnalyticsClient, build_report_request, flatten_reports
from .config import AnalyticsSettings
from .exceptions import (
    AnalyticsError,
    AuthenticationError,
    CacheBackendError,
    EmptyMetricsError,
    InvalidLimitError,
    InvalidRangeError,
    RemoteQueryError,
    UnknownReportError,
)
from .period import Period
from .query_models import QueryDescriptor, build_query

__all__ = [
    'Analytics', 'AnalyticsClient', 'AnalyticsSettings', 'Period', 'QueryDescriptor', 'ReportCache',
    'build_query', 'build_report_request', 'flatten_reports', 'generate_cache_key',
    'AnalyticsError', 'AuthenticationError', 'CacheBackendError', 'EmptyMetricsError',
    'InvalidLimitError', 'InvalidRangeError', 'RemoteQueryError', 'UnknownReportError',
]
