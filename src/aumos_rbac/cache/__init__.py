"""Result caching with TTL expiry and prefix-scoped invalidation."""
from __future__ import annotations

from aumos_rbac.cache.result_cache import CacheBackend, ResultCache

__all__ = [
    "CacheBackend",
    "ResultCache",
]
