"""AppSync response cache.

SQLite-backed key/value store for query responses, with an expiry sweep
that runs in the same transaction as every write.
"""

from appsync.cache.database import (
    DEFAULT_DB_NAME,
    CacheDatabase,
    CacheTransaction,
    get_cache_database,
)

__all__ = [
    "CacheDatabase",
    "CacheTransaction",
    "get_cache_database",
    "DEFAULT_DB_NAME",
]
