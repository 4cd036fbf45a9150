"""
News aggregator
Answers keyword queries from cache or upstream, committing search results to the cache
"""

import asyncio
import time
from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Union

from ..config import Config, get_config
from ..persistence import ArticleRepository
from ..utils import get_logger
from .base import Article, CacheBackendType, FetchMode
from .cache import CacheBackend, Clock, TTLStore, build_cache_backend
from .cursor import DeliveryCursorStore
from .errors import (
    AllProvidersFailed,
    CustomError,
    UnsupportedCacheBackend,
    status_for_failures,
)
from .news import default_adapters
from .race import RaceFetcher

logger = get_logger(__name__)


class NewsAggregator:
    """
    Orchestrates race fetching, caching and the delivery cursor

    SEARCH always goes upstream and accumulates the winning batch in the
    cache. LIVE_FEED serves a batch window from the cache when it holds
    anything for the keyword, otherwise a window of a fresh upstream
    result, and never writes to the cache itself.

    Calls for the same keyword are serialized; different keywords run
    concurrently.
    """

    def __init__(
        self,
        fetcher: Optional[RaceFetcher] = None,
        cache: Optional[CacheBackend] = None,
        cursor: Optional[DeliveryCursorStore] = None,
        repository: Optional[ArticleRepository] = None,
        config: Optional[Config] = None,
        clock: Clock = time.time
    ):
        self.config = config or get_config()
        self.clock = clock
        self.batch_size = self.config.feed.batch_size
        self.fetcher = fetcher or RaceFetcher(default_adapters())
        self.repository = repository

        self._store = TTLStore(self.config.cache.ttl_seconds, clock=clock)
        self._cache = cache
        self.cursor = cursor or DeliveryCursorStore(self._store)
        # Per-keyword locks, dropped once no caller holds or awaits them
        self._locks: Dict[str, asyncio.Lock] = {}
        self._lock_users: Dict[str, int] = {}

    @property
    def cache(self) -> CacheBackend:
        """
        The active cache backend, created from configuration on first use

        Raises:
            UnsupportedCacheBackend: if the configured backend is unknown
        """
        if self._cache is None:
            self._cache = build_cache_backend(
                self.config.cache,
                store=self._store,
                repository=self.repository,
                clock=self.clock
            )
            if self.repository is None and self._cache.kind is CacheBackendType.PERSISTENT:
                self.repository = self._cache.repository
        return self._cache

    @property
    def uses_persistent_backend(self) -> bool:
        return self.cache.kind is CacheBackendType.PERSISTENT

    async def initialize(self):
        """Resolve the cache backend and connect provider adapters"""
        logger.info("Initializing news aggregator...")
        try:
            backend = self.cache
        except UnsupportedCacheBackend as e:
            logger.error(str(e))
            raise CustomError(str(e), 500) from e
        logger.info(f"Active cache backend: {backend.kind.value}")

        for adapter in self.fetcher.adapters:
            try:
                await adapter.connect()
                logger.info(f"Connected {adapter.name} adapter")
            except Exception as e:
                logger.error(f"Failed to connect {adapter.name}: {e}")

    async def shutdown(self):
        """Disconnect provider adapters"""
        logger.info("Shutting down news aggregator...")
        for adapter in self.fetcher.adapters:
            try:
                await adapter.disconnect()
            except Exception as e:
                logger.error(f"Error disconnecting {adapter.name}: {e}")

    async def fetch_news(
        self,
        query: str,
        mode: Union[FetchMode, str] = FetchMode.LIVE_FEED
    ) -> List[Article]:
        """
        Get news for query

        Raises:
            CustomError: with status 502/503 when every provider failed,
                500 for an unsupported backend or unexpected failure
        """
        try:
            mode = FetchMode(mode)
        except ValueError:
            raise CustomError(f"Unknown fetch mode: {mode}", 400) from None

        async with self._keyword_lock(query):
            try:
                return await self._fetch_news(query, mode)
            except CustomError:
                raise
            except UnsupportedCacheBackend as e:
                logger.error(f"fetch_news error: {e}")
                raise CustomError(str(e), 500) from e
            except AllProvidersFailed as e:
                status = status_for_failures(e.errors)
                logger.error(f"All providers failed for '{query}': {e}")
                raise CustomError(
                    f"Failed to fetch news for '{query}' from any provider",
                    status,
                    errors=[str(error) for error in e.errors]
                ) from e
            except Exception as e:
                logger.exception(f"fetch_news error for '{query}': {e}")
                raise CustomError(str(e) or "Failed to fetch news", 500) from e

    @asynccontextmanager
    async def _keyword_lock(self, query: str):
        lock = self._locks.get(query)
        if lock is None:
            lock = self._locks[query] = asyncio.Lock()
        self._lock_users[query] = self._lock_users.get(query, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[query] -= 1
            if not self._lock_users[query]:
                del self._lock_users[query]
                del self._locks[query]

    async def _fetch_news(self, query: str, mode: FetchMode) -> List[Article]:
        backend = self.cache

        cached = None
        if mode is FetchMode.LIVE_FEED:
            cached = await backend.get(query)
            if cached:
                offset = self.cursor.get(query)
                window = cached[offset:offset + self.batch_size]
                logger.info(
                    f"Live feed cache hit for '{query}': serving {len(window)} "
                    f"of {len(cached)} cached articles from offset {offset}"
                )
                return window
            logger.debug(f"Live feed cache miss for '{query}'")

        articles = await self.fetcher.race_fetch(query)

        offset = await self._current_offset(query, backend, cached, mode)
        if mode is FetchMode.LIVE_FEED:
            batch = articles[offset:offset + self.batch_size]
        else:
            batch = list(articles)
        logger.info(f"Selected {len(batch)} new articles for '{query}' ({mode.value})")

        if not batch:
            logger.info(f"No new articles found for '{query}'")
            return batch

        if mode is not FetchMode.SEARCH:
            return batch

        stored = await backend.put(query, batch)
        position = self.cursor.advance(query, len(stored))
        logger.info(
            f"News cache updated with {len(stored)} new articles for '{query}' "
            f"(cursor at {position})"
        )
        return stored

    async def _current_offset(
        self,
        query: str,
        backend: CacheBackend,
        cached: Optional[List[Article]],
        mode: FetchMode
    ) -> int:
        """Cursor position, reset to zero when the cache no longer backs it"""
        offset = self.cursor.get(query)
        if not offset:
            return 0
        if mode is FetchMode.SEARCH:
            cached = await backend.get(query)
        if not cached:
            self.cursor.reset(query)
            return 0
        return offset

    async def purge_expired(self) -> int:
        """Drop expired cached articles from the active backend"""
        removed = await self.cache.purge_expired()
        logger.info(f"Purged {removed} expired articles")
        return removed

    def _articles(self) -> ArticleRepository:
        if self.repository is None:
            self.repository = ArticleRepository(self.config.cache.db_path)
        return self.repository

    async def _mark(self, article_id: int, field: str) -> Article:
        article = await asyncio.to_thread(self._articles().set_flag, article_id, field)
        if article is None:
            raise CustomError("Article not found", 404)
        logger.info(f"Marked article {article_id} as {field}")
        return article

    async def mark_read(self, article_id: int) -> Article:
        return await self._mark(article_id, "read")

    async def mark_favorite(self, article_id: int) -> Article:
        return await self._mark(article_id, "favorite")

    async def list_read(self) -> List[Article]:
        return await asyncio.to_thread(self._articles().find_flagged, "read")

    async def list_favorite(self) -> List[Article]:
        return await asyncio.to_thread(self._articles().find_flagged, "favorite")
