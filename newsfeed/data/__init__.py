"""
News data layer
Provider adapters, race fetching, caching and aggregation
"""

from .base import (
    Article,
    FetchMode,
    NewsProvider,
    CacheBackendType,
    NewsAdapter
)
from .errors import (
    NewsFeedError,
    ProviderError,
    UpstreamRejected,
    UpstreamUnreachable,
    RequestSetupFailed,
    InternalFailure,
    AllProvidersFailed,
    UnsupportedCacheBackend,
    CustomError,
    to_error_response
)
from .cache import (
    TTLStore,
    CacheBackend,
    EphemeralCacheBackend,
    PersistentCacheBackend,
    build_cache_backend
)
from .cursor import DeliveryCursorStore
from .news import GNewsAdapter, NewsAPIAdapter
from .race import RaceFetcher
from .aggregator import NewsAggregator

__all__ = [
    # Models
    'Article',
    'FetchMode',
    'NewsProvider',
    'CacheBackendType',
    'NewsAdapter',

    # Errors
    'NewsFeedError',
    'ProviderError',
    'UpstreamRejected',
    'UpstreamUnreachable',
    'RequestSetupFailed',
    'InternalFailure',
    'AllProvidersFailed',
    'UnsupportedCacheBackend',
    'CustomError',
    'to_error_response',

    # Components
    'TTLStore',
    'CacheBackend',
    'EphemeralCacheBackend',
    'PersistentCacheBackend',
    'build_cache_backend',
    'DeliveryCursorStore',
    'GNewsAdapter',
    'NewsAPIAdapter',
    'RaceFetcher',
    'NewsAggregator'
]
