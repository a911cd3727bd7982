from __future__ import annotations

from typing import Hashable

from cachetools import TTLCache

from app.schemas.weather import Coordinates


class PositionFixCache:
    """Remembers recent position fixes so a fresh request can reuse them."""

    def __init__(self, cache: TTLCache):
        self.cache = cache

    def get(self, key: Hashable) -> Coordinates | None:
        return self.cache.get(key)

    def put(self, key: Hashable, coords: Coordinates) -> None:
        self.cache[key] = coords


def make_position_cache(*, max_age_ms: int, maxsize: int = 128) -> PositionFixCache | None:
    if max_age_ms <= 0:
        return None
    return PositionFixCache(TTLCache(maxsize=maxsize, ttl=max_age_ms / 1000))
