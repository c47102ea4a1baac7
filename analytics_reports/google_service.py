"""
Credentials and service construction for the Analytics Reporting API v4.

Two flows end in the same ``analyticsreporting`` service:
server-to-server service account credentials, and a delegated per-user
access token.
"""
import hashlib
import logging
import os
from typing import Any, Dict, Optional, Union

import google.auth.transport.requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow
from googleapiclient.discovery import build
from googleapiclient.errors import Error as GoogleApiClientError

from .analytics import Analytics
from .cache_utils import ReportCache
from .client import AnalyticsClient, ReportingService
from .config import AnalyticsSettings
from .exceptions import AuthenticationError, RemoteQueryError

logger = logging.getLogger(__name__)

SCOPES = ['https://www.googleapis.com/auth/analytics.readonly']
API_NAME = 'analyticsreporting'
API_VERSION = 'v4'


def service_account_credentials(credentials_json: Union[str, Dict[str, Any]]):
    """Load service account credentials from a JSON key file path or its parsed contents"""
    try:
        if isinstance(credentials_json, dict):
            return service_account.Credentials.from_service_account_info(credentials_json, scopes=SCOPES)
        if not credentials_json or not os.path.exists(credentials_json):
            raise AuthenticationError(
                f"Could not find service account credentials file '{credentials_json}'. "
                "Set ANALYTICS_CREDENTIALS_JSON to the path of the JSON key."
            )
        logger.info(f"Using service account credentials file: {credentials_json}")
        return service_account.Credentials.from_service_account_file(credentials_json, scopes=SCOPES)
    except (ValueError, KeyError, GoogleAuthError) as e:
        logger.error("Failed to load service account credentials.", exc_info=True)
        raise AuthenticationError(f"Invalid service account credentials. Details: {e}") from e


def user_token_credentials(access_token: str) -> Credentials:
    """Credentials for an access token obtained by the caller on behalf of a user"""
    if not access_token:
        raise AuthenticationError("An access token is required for the delegated token flow.")
    return Credentials(token=access_token, scopes=SCOPES)


def load_user_credentials(token_file: str, client_secrets_file: Optional[str] = None,
                          ports=(8080, 8081, 8090, 8091, 8100)) -> Credentials:
    """
    Load user credentials from an authorized-user token file.

    Expired credentials are refreshed when a refresh token is available.
    Otherwise, if a client secrets file is given, the local-server consent flow
    is run and the new token is saved to ``token_file``.
    """
    credentials = None
    if os.path.exists(token_file):
        try:
            credentials = Credentials.from_authorized_user_file(token_file, SCOPES)
            logger.debug(f"User credentials loaded from {token_file}")
        except ValueError as e:
            logger.warning(f"Could not read token file '{token_file}': {e}")
    else:
        logger.warning(f"Token file not found: {token_file}")

    if credentials and credentials.valid:
        return credentials

    if credentials and credentials.expired and credentials.refresh_token:
        logger.info("Token expired, attempting refresh...")
        try:
            credentials.refresh(google.auth.transport.requests.Request())
            _save_credentials(credentials, token_file)
            return credentials
        except GoogleAuthError as e:
            logger.error(f"Failed to refresh credentials: {e}")
            if not client_secrets_file:
                raise AuthenticationError(
                    f"The credentials in '{token_file}' have expired and could not be refreshed."
                ) from e

    if not client_secrets_file:
        raise AuthenticationError(f"No valid credentials in '{token_file}' and no client secrets file to authorize with.")
    if not os.path.exists(client_secrets_file):
        raise AuthenticationError(f"Could not find Google client secrets file '{client_secrets_file}'.")

    flow = InstalledAppFlow.from_client_secrets_file(client_secrets_file, SCOPES)
    last_exception = None
    for port in ports:
        try:
            logger.debug(f"Attempting OAuth local server on port {port}...")
            credentials = flow.run_local_server(port=port)
            break
        except OSError as e:
            logger.warning(f"OAuth local server failed on port {port}: {e}")
            last_exception = e
    else:
        raise AuthenticationError(f"All attempted ports failed for the OAuth local server: {last_exception}")

    _save_credentials(credentials, token_file)
    return credentials


def _save_credentials(credentials: Credentials, token_file: str) -> None:
    with open(token_file, 'w') as token:
        token.write(credentials.to_json())
    logger.info(f"Saved user credentials to {token_file}")


def build_reporting_service(credentials) -> ReportingService:
    try:
        service = build(API_NAME, API_VERSION, credentials=credentials, cache_discovery=False)
    except GoogleApiClientError as e:
        logger.error(f"Failed to build Google API service for '{API_NAME}'.", exc_info=True)
        raise RemoteQueryError(f"Failed to build Google API service. Details: {e}") from e
    logger.info(f"Built Google API service for '{API_NAME}' version '{API_VERSION}'.")
    return service


def _report_cache(settings: AnalyticsSettings, prefix: str) -> ReportCache:
    return ReportCache.on_disk(settings.cache_dir, settings.cache_size_limit, prefix=prefix)


def create_client_for_config(settings: AnalyticsSettings, cache: Optional[ReportCache] = None) -> AnalyticsClient:
    """Client authenticated with the configured service account"""
    if not settings.service_account_credentials_json:
        raise AuthenticationError("No service account credentials configured.")
    credentials = service_account_credentials(settings.service_account_credentials_json)
    service = build_reporting_service(credentials)
    if cache is None:
        cache = _report_cache(settings, settings.cache_prefix)
    return AnalyticsClient(service, cache, settings.cache_lifetime_in_minutes)


def create_client_for_token(settings: AnalyticsSettings, access_token: str,
                            cache: Optional[ReportCache] = None) -> AnalyticsClient:
    """
    Client authenticated with a user's access token.

    Cached reports are namespaced per token so users never read each other's
    results.
    """
    credentials = user_token_credentials(access_token)
    service = build_reporting_service(credentials)
    if cache is None:
        token_hash = hashlib.sha256(access_token.encode()).hexdigest()[:16]
        cache = _report_cache(settings, f"{settings.cache_prefix}token-{token_hash}.")
    return AnalyticsClient(service, cache, settings.cache_lifetime_in_minutes)


def create_analytics(settings: AnalyticsSettings) -> Analytics:
    return Analytics(create_client_for_config(settings), settings.view_id)


def create_analytics_for_token(settings: AnalyticsSettings, access_token: str) -> Analytics:
    return Analytics(create_client_for_token(settings, access_token), settings.view_id)
