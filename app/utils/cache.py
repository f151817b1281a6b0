"""Simple in-memory TTL cache for slow reporting API calls."""
import time
from typing import Any

_cache: dict[str, tuple[float, Any]] = {}
_MISS = object()


def get_cached(key: str):
    """Return cached value if still valid, else _MISS sentinel."""
    if key in _cache:
        expires, value = _cache[key]
        if time.time() < expires:
            return value
        del _cache[key]
    return _MISS


def set_cached(key: str, value: Any, seconds: int = 300):
    """Store a value in cache with TTL."""
    _cache[key] = (time.time() + seconds, value)


def clear_cache(prefix: str = ""):
    """Drop every entry, or only keys starting with ``prefix``."""
    if not prefix:
        _cache.clear()
        return
    for key in [k for k in _cache if k.startswith(prefix)]:
        del _cache[key]
