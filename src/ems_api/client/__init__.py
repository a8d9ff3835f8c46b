"""Python client for the EMS API."""

from ems_api.client.api_client import ApiClient, ApiClientError, ApiRequestError, NetworkError
from ems_api.client.session_cache import CachedSession, SessionCache

__all__ = [
    "ApiClient",
    "ApiClientError",
    "ApiRequestError",
    "CachedSession",
    "NetworkError",
    "SessionCache",
]
