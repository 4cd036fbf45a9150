"""Background live feed simulation."""
import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, Optional

from newsfeed.config.settings import Config, get_config
from newsfeed.data.aggregator import NewsAggregator
from newsfeed.data.base import FetchMode
from newsfeed.utils.logger import get_logger


logger = get_logger(__name__)


class FeedSimulator:
    """Periodically polls the live feed and sweeps expired durable articles."""

    def __init__(self, aggregator: NewsAggregator, config: Optional[Config] = None):
        """Initialize simulator.

        Args:
            aggregator: Aggregator to poll
            config: Configuration (defaults to the process config)
        """
        self.aggregator = aggregator
        self.config = config or get_config()
        self._running = False
        self._tasks: Dict[str, asyncio.Task] = {}

        self.keyword = self.config.feed.keyword
        self.poll_interval = self.config.feed.poll_interval_seconds
        self.purge_interval = self.config.cache.ttl_seconds

        self.last_poll: Optional[datetime] = None
        self.last_poll_size: Optional[int] = None
        self.last_purge: Optional[datetime] = None
        self.poll_failures = 0

    @property
    def enabled(self) -> bool:
        return self.config.feed.simulate_live_feed

    async def start(self):
        """Start the periodic tasks allowed by configuration."""
        if self._running:
            logger.warning("Feed simulator already running")
            return

        if not self.enabled:
            logger.info("Live feed simulation disabled")
            return

        persistent = self.aggregator.uses_persistent_backend

        self._running = True
        self._tasks["poll"] = asyncio.create_task(
            self._every(self.poll_interval, self.poll_once), name="feed-poll"
        )

        if persistent:
            self._tasks["purge"] = asyncio.create_task(
                self._every(self.purge_interval, self.purge_once), name="feed-purge"
            )

        logger.info(
            f"Feed simulator started: polling '{self.keyword}' every {self.poll_interval}s"
            + (f", purging every {self.purge_interval}s" if "purge" in self._tasks else "")
        )

    async def stop(self):
        """Stop the simulator gracefully."""
        self._running = False

        for task_name, task in self._tasks.items():
            if task and not task.done():
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    logger.debug(f"Task {task_name} cancelled")

        self._tasks.clear()
        logger.info("Feed simulator stopped")

    async def _every(self, interval: float, action: Callable[[], Awaitable[Any]]):
        """Run action after each interval until stopped."""
        while self._running:
            await asyncio.sleep(interval)
            await action()

    async def poll_once(self) -> Optional[int]:
        """Fetch one live feed batch; failures are logged, never raised.

        Returns:
            Number of articles received, or None on failure
        """
        try:
            news = await self.aggregator.fetch_news(self.keyword, FetchMode.LIVE_FEED)
        except Exception as e:
            self.poll_failures += 1
            logger.error(f"Simulated live feed fetch failed: {e}")
            return None

        self.last_poll = datetime.now()
        self.last_poll_size = len(news)
        logger.info(f"Simulated fetching news with {len(news)} articles")
        return len(news)

    async def purge_once(self) -> int:
        """Delete expired durable articles; a no-op for the ephemeral backend."""
        try:
            if not self.aggregator.uses_persistent_backend:
                return 0
            removed = await self.aggregator.purge_expired()
        except Exception as e:
            logger.error(f"Error deleting old articles: {e}")
            return 0

        self.last_purge = datetime.now()
        return removed

    def get_status(self) -> Dict[str, Any]:
        """Get simulator status."""
        return {
            "running": self._running,
            "enabled": self.enabled,
            "keyword": self.keyword,
            "tasks": sorted(self._tasks),
            "poll_interval_seconds": self.poll_interval,
            "purge_interval_seconds": self.purge_interval,
            "last_poll": self.last_poll.isoformat() if self.last_poll else None,
            "last_poll_size": self.last_poll_size,
            "last_purge": self.last_purge.isoformat() if self.last_purge else None,
            "poll_failures": self.poll_failures,
        }
