"""
Base types for the news data layer
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class NewsProvider(Enum):
    """Available upstream news providers"""
    GNEWS = "gnews"
    NEWSAPI = "newsapi"


class FetchMode(Enum):
    """How the aggregator answers a keyword query"""
    SEARCH = "search"
    LIVE_FEED = "live-feed"


class CacheBackendType(Enum):
    """Supported cache backends"""
    EPHEMERAL = "ephemeral"
    PERSISTENT = "persistent"


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an upstream ISO-8601 timestamp, tolerating a trailing Z"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass
class Article:
    """Normalized news article"""
    url: str
    title: str
    source: str
    published_at: Optional[datetime] = None
    image: Optional[str] = None
    description: Optional[str] = None
    keyword: Optional[str] = None
    read: bool = False
    favorite: bool = False
    cached_at: Optional[datetime] = None
    id: Optional[int] = None
    provider: Optional[str] = None

    def with_keyword(self, keyword: str, cached_at: datetime) -> 'Article':
        """Copy of this article tagged for durable storage"""
        return replace(self, keyword=keyword, cached_at=cached_at)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize using the public (camelCase) field names"""
        data = {
            'url': self.url,
            'image': self.image,
            'title': self.title,
            'source': self.source,
            'description': self.description,
            'publishedAt': self.published_at.isoformat() if self.published_at else None,
            'read': self.read,
            'favorite': self.favorite,
        }
        if self.id is not None:
            data['id'] = self.id
        if self.keyword is not None:
            data['keyword'] = self.keyword
        if self.cached_at is not None:
            data['cachedAt'] = self.cached_at.isoformat()
        return data


class NewsAdapter(ABC):
    """Base class for upstream news adapters"""

    def __init__(self, provider: NewsProvider):
        self.provider = provider
        self.is_connected = False

    @property
    def name(self) -> str:
        return self.provider.value

    @abstractmethod
    async def connect(self):
        """Establish connection to the provider"""
        pass

    @abstractmethod
    async def disconnect(self):
        """Close connection to the provider"""
        pass

    @abstractmethod
    async def fetch(self, query: str) -> List[Article]:
        """
        Fetch articles matching query

        Raises:
            UpstreamRejected: provider answered with a non-success status
            UpstreamUnreachable: no response was received
            RequestSetupFailed: the request could not be built or sent
        """
        pass
