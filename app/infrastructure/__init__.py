# app/infrastructure/__init__.py
"""
Infrastructure Module
Contains adapters for external services and infrastructure concerns.
"""

from app.infrastructure.cache import CacheAdapter, RedisCache, InMemoryCache, get_cache_adapter

__all__ = [
    "CacheAdapter",
    "RedisCache",
    "InMemoryCache",
    "get_cache_adapter",
]
