"""Data models for AppSync requests and cache entries."""

from appsync.models.request import CacheEntry, CachePriority, QueryRequest

__all__ = ["CacheEntry", "CachePriority", "QueryRequest"]
