"""AppSync client: cache-aware execution of GraphQL requests.

The client decides whether the local cache is consulted before or after the
network, writes successful responses back to the cache, and sweeps expired
entries as part of every write.

Two priorities are supported:
- CachePriority.NETWORK: ask the network first. Only when the endpoint is
  unreachable (a connectivity error) is a cached response served instead.
  HTTP status errors are never masked by cached data.
- CachePriority.CACHE: serve a live cached response if there is one, else
  go to the network. Network errors are never caught in this mode.

Concurrent calls sharing a cache key are not coordinated: both may miss,
both hit the network, and the last write wins.
"""

import hashlib
import json
import logging
from datetime import datetime, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Optional, Union

from appsync.cache.database import CacheDatabase, CacheTransaction, get_cache_database
from appsync.errors import ConnectivityError
from appsync.models.request import CacheEntry, CachePriority, QueryRequest
from appsync.paginator import paginate
from appsync.services.executor import RequestExecutor
from appsync.utils.config import Config
from appsync.utils.text import to_repr

DEFAULT_CACHE_EXPIRY = timedelta(hours=24)


class ExecutionEvent(Enum):
    """State transitions reported to an execution observer."""

    STARTED = "started"
    FINISHED = "finished"


ExecutionObserver = Callable[[ExecutionEvent, QueryRequest], None]


def now_millis() -> int:
    """Current time in milliseconds since the epoch."""
    return int(datetime.now().timestamp() * 1000)


class AppSync:
    """GraphQL client with an optional persistent response cache."""

    def __init__(
        self,
        cache_expiry: Optional[timedelta] = DEFAULT_CACHE_EXPIRY,
        executor: Optional[RequestExecutor] = None,
        logger: Optional[logging.Logger] = None,
        observer: Optional[ExecutionObserver] = None,
    ):
        """Initialize the client.

        Args:
            cache_expiry: Age after which cached responses are invalid.
                None means cached responses never expire.
            executor: Request executor (defaults to one using aiohttp)
            logger: Logger for diagnostics (defaults to this module's logger)
            observer: Called with STARTED/FINISHED around every execute().
                An observer error on a failed request is logged and the
                request error is raised instead.
        """
        self.cache_expiry = cache_expiry
        self.executor = executor or RequestExecutor()
        self.logger = logger or logging.getLogger(__name__)
        self.observer = observer

    @classmethod
    def from_config(cls, **kwargs) -> "AppSync":
        """Create a client using Config.CACHE_EXPIRY."""
        return cls(cache_expiry=Config.CACHE_EXPIRY, **kwargs)

    async def execute(
        self,
        request: QueryRequest,
        cache: Optional[CacheDatabase] = None,
        priority: CachePriority = CachePriority.NETWORK,
    ) -> Any:
        """Execute a GraphQL request without pagination.

        If cache is passed, read_cache and update_cache are called with it
        automatically; priority controls the order. Without a cache the
        request goes straight to the network and errors propagate as-is.

        Returns:
            The `data` field of the response (live or cached)

        Raises:
            ConnectivityError, HttpError, DecodeError, CacheError,
            InvalidRequestError
        """
        self._notify(ExecutionEvent.STARTED, request)
        try:
            data = await self._execute(request, cache, priority)
        except BaseException:
            # The request error wins over an observer failure
            try:
                self._notify(ExecutionEvent.FINISHED, request)
            except Exception:
                self.logger.exception("execution observer failed while reporting an error")
            raise
        self._notify(ExecutionEvent.FINISHED, request)
        return data

    async def _execute(
        self,
        request: QueryRequest,
        cache: Optional[CacheDatabase],
        priority: CachePriority,
    ) -> Any:
        if cache is None:
            return await self.executor.send(request)

        body = request.body
        cache_key = self.get_cache_key(request.endpoint, body)

        if priority is CachePriority.CACHE:
            entry = await self._load_from_cache(cache, cache_key, request)
            if entry is not None:
                return entry.data
            # Cache already missed; network errors propagate unmasked
            data = await self.executor.send(request)
        else:
            try:
                data = await self.executor.send(request)
            except Exception as e:
                if not self.is_network_error(e):
                    raise
                self.logger.debug(f"network error encountered; falling back to cache - {e}")
                entry = await self._load_from_cache(cache, cache_key, request)
                if entry is None:
                    raise
                return entry.data

        self.logger.debug(
            f"loaded from network (endpoint: {to_repr(request.endpoint)}, requestBody: {to_repr(body)})"
        )
        await self.update_cache(cache, cache_key, data)
        self.logger.debug(
            f"updated cache (endpoint: {to_repr(request.endpoint)}, requestBody: {to_repr(body)}, "
            f"cacheKey: {cache_key})"
        )
        return data

    async def _load_from_cache(
        self,
        cache: CacheDatabase,
        cache_key: str,
        request: QueryRequest,
    ) -> Optional[CacheEntry]:
        entry = await self.read_cache(cache, cache_key)
        if entry is not None:
            self.logger.debug(
                f"loaded from cache (endpoint: {to_repr(request.endpoint)}, "
                f"requestBody: {to_repr(request.body)}, cacheKey: {cache_key})"
            )
        return entry

    def paginate(
        self,
        request: QueryRequest,
        batch_size: Optional[int] = None,
        cache: Optional[CacheDatabase] = None,
        priority: CachePriority = CachePriority.NETWORK,
    ) -> AsyncIterator[Any]:
        """Execute a GraphQL request with cursor pagination.

        See appsync.paginator.paginate.
        """
        return paginate(self, request, batch_size=batch_size, cache=cache, priority=priority)

    def is_network_error(self, error: BaseException) -> bool:
        """Return whether error should be treated as the network being unreachable."""
        return isinstance(error, ConnectivityError)

    def get_cache_key(self, endpoint: str, request_body: str) -> str:
        """Get a unique key for caching a request.

        Args:
            endpoint: GraphQL endpoint URL
            request_body: The serialized HTTP request body

        Returns:
            SHA256 hex digest of (endpoint, request_body)
        """
        key = json.dumps([endpoint, request_body])
        return hashlib.sha256(key.encode()).hexdigest()

    def _expiry_millis(self) -> int:
        return self.cache_expiry // timedelta(milliseconds=1)

    async def read_cache(self, db: CacheDatabase, cache_key: str) -> Optional[CacheEntry]:
        """Read a live entry from db; expired entries are treated as absent."""
        entry = await db.get(cache_key)
        if entry is None or self.is_cache_entry_expired(entry):
            return None
        return entry

    def is_cache_entry_expired(self, entry: CacheEntry, now: Optional[int] = None) -> bool:
        """Check whether this cache entry is expired.

        Args:
            entry: Cache entry to check
            now: Reference time in epoch milliseconds (default: current time)
        """
        if self.cache_expiry is None:
            return False
        now = now if now is not None else now_millis()
        return now - entry.timestamp_millis >= self._expiry_millis()

    async def update_cache(self, db: CacheDatabase, cache_key: str, data: Any) -> None:
        """Update cache with new data, sweeping stale entries in the same transaction."""
        now = now_millis()
        entry = CacheEntry(timestamp_millis=now, data=data)

        async with db.transaction() as txn:
            await txn.put(cache_key, entry)
            await self.invalidate_cache(txn, now=now)

    async def invalidate_cache(self, txn: CacheTransaction, now: Optional[int] = None) -> int:
        """Delete cache entries older than cache_expiry.

        There's usually no need to call this manually; update_cache calls it.

        Returns:
            Number of entries deleted
        """
        if self.cache_expiry is None:
            return 0

        now = now if now is not None else now_millis()
        oldest_valid = now - self._expiry_millis()

        n = await txn.delete_older_than(oldest_valid)
        self.logger.debug(f"invalidated {n} cache entries (cacheExpiry: {self.cache_expiry})")
        return n

    async def get_cache_database(self, root: Optional[Union[str, Path]] = None) -> CacheDatabase:
        """Open the cache database at '<root>/aws_appsync_cache.db'."""
        return await get_cache_database(root)

    def _notify(self, event: ExecutionEvent, request: QueryRequest) -> None:
        if self.observer is not None:
            self.observer(event, request)
