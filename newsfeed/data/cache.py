"""
Cache backends for fetched articles
An in-process TTL store (ephemeral) and a durable SQLite store (persistent)
"""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from ..config.settings import CacheConfig
from ..persistence import ArticleRepository
from ..utils import get_logger
from .base import Article, CacheBackendType
from .errors import UnsupportedCacheBackend

logger = get_logger(__name__)

Clock = Callable[[], float]

# Names accepted for CACHE_TYPE besides the enum values
_BACKEND_ALIASES = {
    "node_cache": CacheBackendType.EPHEMERAL,
    "memory": CacheBackendType.EPHEMERAL,
    "mongo_db": CacheBackendType.PERSISTENT,
    "sqlite": CacheBackendType.PERSISTENT,
}

@dataclass
class CacheEntry:
    """Represents a cached value"""
    key: str
    data: Any
    timestamp: float
    ttl_seconds: float

    def is_expired(self, now: float) -> bool:
        return now - self.timestamp > self.ttl_seconds

class TTLStore:
    """
    Process-local key/value store with per-key expiry
    Expired keys are dropped lazily on read
    """

    def __init__(self, default_ttl: float, clock: Clock = time.time):
        self.default_ttl = default_ttl
        self.clock = clock
        self._entries: Dict[str, CacheEntry] = {}

    def get(self, key: str, default: Any = None) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return default
        if entry.is_expired(self.clock()):
            del self._entries[key]
            logger.debug(f"Cache expired for {key}")
            return default
        return entry.data

    def set(self, key: str, value: Any, ttl_seconds: Optional[float] = None):
        """Store value, restarting its TTL clock"""
        ttl = self.default_ttl if ttl_seconds is None else ttl_seconds
        self._entries[key] = CacheEntry(key=key, data=value, timestamp=self.clock(), ttl_seconds=ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None

class CacheBackend(ABC):
    """Keyword -> ordered articles, with TTL expiry"""

    kind: CacheBackendType

    @abstractmethod
    async def get(self, keyword: str) -> Optional[List[Article]]:
        """Articles cached under keyword, or None"""
        pass

    @abstractmethod
    async def put(self, keyword: str, articles: Sequence[Article]) -> List[Article]:
        """Store a new batch; returns the batch as stored"""
        pass

    @abstractmethod
    async def purge_expired(self) -> int:
        """Drop expired articles; returns how many were removed"""
        pass

class EphemeralCacheBackend(CacheBackend):
    """
    In-process cache; each put prepends the new batch and restarts the TTL
    Entries live under "articles:<keyword>"; the keyword is not written
    onto the articles
    """

    kind = CacheBackendType.EPHEMERAL
    key_prefix = "articles:"

    def __init__(self, store: TTLStore, ttl_seconds: Optional[float] = None):
        self.store = store
        self.ttl_seconds = store.default_ttl if ttl_seconds is None else ttl_seconds

    def key_for(self, keyword: str) -> str:
        return f"{self.key_prefix}{keyword}"

    async def get(self, keyword: str) -> Optional[List[Article]]:
        cached = self.store.get(self.key_for(keyword))
        return list(cached) if cached is not None else None

    async def put(self, keyword: str, articles: Sequence[Article]) -> List[Article]:
        batch = list(articles)
        existing = self.store.get(self.key_for(keyword)) or []
        self.store.set(self.key_for(keyword), batch + list(existing), self.ttl_seconds)
        logger.debug(f"Ephemeral cache for '{keyword}' now holds {len(batch) + len(existing)} articles")
        return batch

    async def purge_expired(self) -> int:
        # Entries expire on read
        return 0

class PersistentCacheBackend(CacheBackend):
    """
    Durable cache; each put inserts rows stamped with cached_at
    Reads return every row for the keyword regardless of age; only
    purge_expired() enforces the TTL
    """

    kind = CacheBackendType.PERSISTENT

    def __init__(self, repository: ArticleRepository, ttl_seconds: float, clock: Clock = time.time):
        self.repository = repository
        self.ttl_seconds = ttl_seconds
        self.clock = clock

    def _now(self) -> datetime:
        return datetime.fromtimestamp(self.clock(), tz=timezone.utc)

    async def get(self, keyword: str) -> Optional[List[Article]]:
        rows = await asyncio.to_thread(self.repository.find_by_keyword, keyword)
        return rows or None

    async def put(self, keyword: str, articles: Sequence[Article]) -> List[Article]:
        cached_at = self._now()
        rows = [article.with_keyword(keyword, cached_at) for article in articles]
        return await asyncio.to_thread(self.repository.insert_many, rows)

    async def purge_expired(self) -> int:
        cutoff = self._now() - timedelta(seconds=self.ttl_seconds)
        return await asyncio.to_thread(self.repository.delete_older_than, cutoff)

def resolve_backend_type(name: Union[str, CacheBackendType, None]) -> CacheBackendType:
    """Map a configured backend name onto a supported backend"""
    if isinstance(name, CacheBackendType):
        return name
    key = (name or "").strip().lower()
    if key in _BACKEND_ALIASES:
        return _BACKEND_ALIASES[key]
    try:
        return CacheBackendType(key)
    except ValueError:
        raise UnsupportedCacheBackend(name) from None

def build_cache_backend(
    config: CacheConfig,
    store: Optional[TTLStore] = None,
    repository: Optional[ArticleRepository] = None,
    clock: Clock = time.time
) -> CacheBackend:
    """
    Create the single active cache backend from configuration

    Raises:
        UnsupportedCacheBackend: if config.backend is not recognized
    """
    backend_type = resolve_backend_type(config.backend)

    if backend_type is CacheBackendType.EPHEMERAL:
        store = store if store is not None else TTLStore(config.ttl_seconds, clock=clock)
        backend = EphemeralCacheBackend(store, config.ttl_seconds)
    else:
        repository = repository if repository is not None else ArticleRepository(config.db_path)
        backend = PersistentCacheBackend(repository, config.ttl_seconds, clock=clock)

    logger.info(f"Using {backend_type.value} cache backend (TTL {config.ttl_seconds}s)")
    return backend
