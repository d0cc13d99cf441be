"""Request and cache entry models."""

import json
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping


class CachePriority(Enum):
    """Controls when and how the cache is consulted.

    Has no effect when no cache database is passed to the client.
    """

    # Use network if available, fall back to cache on connectivity errors.
    # If neither is available, the connectivity error propagates.
    NETWORK = "network"

    # Use cache if available, fall back to network.
    # Network errors are never caught in this mode.
    CACHE = "cache"


@dataclass(frozen=True)
class QueryRequest:
    """A single GraphQL request against an AppSync endpoint."""

    endpoint: str
    query: str
    variables: Dict[str, Any] = field(default_factory=dict)
    access_token: str = ""

    @property
    def body(self) -> str:
        """Canonical JSON request body.

        Keys are sorted so that two requests with the same variables in a
        different order serialize identically.
        """
        return json.dumps(
            {"query": self.query, "variables": self.variables},
            sort_keys=True,
            separators=(",", ":"),
        )

    def with_variables(self, variables: Mapping[str, Any]) -> "QueryRequest":
        """Return a copy of this request with a new variables mapping."""
        return replace(self, variables=dict(variables))


@dataclass
class CacheEntry:
    """A cached response payload and the time it was written."""

    timestamp_millis: int
    data: Any

    def to_dict(self) -> dict:
        """Convert to dictionary representation."""
        return {"timestampMillis": self.timestamp_millis, "data": self.data}

    @classmethod
    def from_row(cls, row) -> "CacheEntry":
        """Create CacheEntry from a cache_entries database row."""
        raw = row["data"]
        return cls(
            timestamp_millis=row["timestamp_millis"],
            data=json.loads(raw) if raw is not None else None,
        )
