"""AppSync GraphQL client with an optional persistent response cache.

- AppSync.execute: one request, cache-aware
- AppSync.paginate: cursor pagination over execute
- get_cache_database: open the SQLite response cache
"""

from appsync.cache.database import CacheDatabase, get_cache_database
from appsync.client import DEFAULT_CACHE_EXPIRY, AppSync, ExecutionEvent
from appsync.errors import (
    AppSyncError,
    CacheError,
    ConnectivityError,
    DecodeError,
    ErrorType,
    HttpError,
    InvalidRequestError,
)
from appsync.models.request import CacheEntry, CachePriority, QueryRequest
from appsync.paginator import extract_next_token, paginate

__version__ = "0.1.0"

__all__ = [
    "AppSync",
    "ExecutionEvent",
    "DEFAULT_CACHE_EXPIRY",
    "CacheDatabase",
    "get_cache_database",
    "QueryRequest",
    "CachePriority",
    "CacheEntry",
    "paginate",
    "extract_next_token",
    # Errors
    "ErrorType",
    "AppSyncError",
    "ConnectivityError",
    "HttpError",
    "DecodeError",
    "CacheError",
    "InvalidRequestError",
]
