"""Shared fixtures and fakes for the test suite."""

import asyncio
from datetime import datetime, timezone
from typing import List, Optional

import pytest

from newsfeed.config.settings import CacheConfig, Config, FeedConfig
from newsfeed.data.base import Article, NewsAdapter, NewsProvider


def make_articles(count: int, prefix: str = "a") -> List[Article]:
    return [
        Article(
            url=f"https://news.example.com/{prefix}/{i}",
            title=f"{prefix} headline {i}",
            source="Example Wire",
            published_at=datetime(2024, 1, 1, 12, i % 60, tzinfo=timezone.utc),
            description=f"{prefix} description {i}",
            provider=prefix
        )
        for i in range(count)
    ]


class FakeClock:
    """Manually advanced replacement for time.time"""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class StubAdapter(NewsAdapter):
    """Adapter returning canned articles or raising a canned error"""

    def __init__(
        self,
        name: str,
        articles: Optional[List[Article]] = None,
        error: Optional[BaseException] = None,
        gate: Optional[asyncio.Event] = None
    ):
        super().__init__(NewsProvider.GNEWS)
        self._name = name
        self.articles = articles or []
        self.error = error
        self.gate = gate
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0
        self.finished = False

    @property
    def name(self) -> str:
        return self._name

    async def connect(self):
        self.is_connected = True

    async def disconnect(self):
        self.is_connected = False

    async def fetch(self, query: str) -> List[Article]:
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            return list(self.articles)
        finally:
            self.in_flight -= 1
            self.finished = True


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def ephemeral_config(tmp_path):
    return Config(
        cache=CacheConfig(backend="ephemeral", ttl_seconds=600, db_path=tmp_path / "articles.db"),
        feed=FeedConfig(simulate_live_feed=True, poll_interval_seconds=0.01)
    )


@pytest.fixture
def persistent_config(tmp_path):
    return Config(
        cache=CacheConfig(backend="persistent", ttl_seconds=600, db_path=tmp_path / "articles.db"),
        feed=FeedConfig(simulate_live_feed=True, poll_interval_seconds=0.01)
    )
