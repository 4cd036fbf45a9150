"""
News data adapters for GNews and NewsAPI
Each adapter maps its provider's payload onto Article and classifies failures
"""

from abc import abstractmethod
from typing import Any, Dict, List, Optional
import httpx

from ..config import get_config
from ..utils import get_logger
from .base import Article, NewsAdapter, NewsProvider, parse_timestamp
from .errors import RequestSetupFailed, UpstreamRejected, UpstreamUnreachable

logger = get_logger(__name__)

# Errors raised while building or encoding a request, before anything is sent
_SETUP_ERRORS = (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError)


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class HttpNewsAdapter(NewsAdapter):
    """
    Shared request/classification logic for JSON search APIs
    Subclasses only describe query parameters and field mapping
    """

    base_url: str = ""
    api_key_param: str = "apikey"

    def __init__(
        self,
        provider: NewsProvider,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None
    ):
        super().__init__(provider)
        self.api_key = api_key
        if base_url:
            self.base_url = base_url
        self.timeout = timeout if timeout is not None else get_config().api.request_timeout_seconds
        self.client = client
        self._owns_client = client is None
        self.is_connected = client is not None

    async def connect(self):
        """Initialize HTTP client"""
        if not self.client:
            self.client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout))
            self._owns_client = True
            logger.info(f"{self.name} client initialized")
        self.is_connected = True

    async def disconnect(self):
        """Close HTTP client"""
        if self.client and self._owns_client:
            await self.client.aclose()
        self.client = None
        self.is_connected = False

    def _build_params(self, query: str) -> Dict[str, Any]:
        return {"q": query, self.api_key_param: self.api_key}

    @abstractmethod
    def _normalize(self, item: Dict[str, Any]) -> Optional[Article]:
        """Map one provider item onto an Article, or None to skip it"""
        pass

    def _extract_articles(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        return data.get("articles") or []

    async def fetch(self, query: str) -> List[Article]:
        if not self.api_key:
            logger.error(f"{self.name} API key not configured")
            raise RequestSetupFailed(self.name, "API key not configured")

        if not self.is_connected:
            await self.connect()

        try:
            response = await self.client.get(self.base_url, params=self._build_params(query))
        except _SETUP_ERRORS as e:
            logger.error(f"{self.name} request setup failed: {e}")
            raise RequestSetupFailed(self.name, str(e)) from e
        except httpx.RequestError as e:
            logger.error(f"{self.name} no response received: {e!r}")
            raise UpstreamUnreachable(self.name, f"no response received ({e.__class__.__name__})") from e

        if not response.is_success:
            body = _response_body(response)
            logger.error(f"{self.name} API error: {response.status_code} {body}")
            raise UpstreamRejected(self.name, response.status_code, body)

        try:
            data = response.json()
        except ValueError as e:
            logger.error(f"{self.name} returned a malformed body")
            raise UpstreamRejected(self.name, response.status_code, "malformed JSON body") from e

        if not isinstance(data, dict):
            raise UpstreamRejected(self.name, response.status_code, "unexpected payload shape")

        articles = []
        for item in self._extract_articles(data):
            article = self._normalize(item)
            if article is not None:
                articles.append(article)

        logger.info(f"Got {len(articles)} articles from {self.name} for '{query}'")
        return articles


class GNewsAdapter(HttpNewsAdapter):
    """GNews search API adapter"""

    base_url = "https://gnews.io/api/v4/search"
    api_key_param = "apikey"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        if api_key is None:
            api_key = get_config().api.gnews_api_key
        super().__init__(NewsProvider.GNEWS, api_key, **kwargs)

    def _normalize(self, item: Dict[str, Any]) -> Optional[Article]:
        if not item.get("title"):
            return None
        return Article(
            url=item.get("url", ""),
            image=item.get("image"),
            title=item["title"],
            source=(item.get("source") or {}).get("name", "Unknown"),
            description=item.get("description"),
            published_at=parse_timestamp(item.get("publishedAt")),
            provider=self.name
        )


class NewsAPIAdapter(HttpNewsAdapter):
    """NewsAPI.org /everything adapter"""

    base_url = "https://newsapi.org/v2/everything"
    api_key_param = "apiKey"

    def __init__(self, api_key: Optional[str] = None, **kwargs):
        if api_key is None:
            api_key = get_config().api.news_api_key
        super().__init__(NewsProvider.NEWSAPI, api_key, **kwargs)

    def _extract_articles(self, data: Dict[str, Any]) -> List[Dict[str, Any]]:
        # NewsAPI reports some failures in the body with a 200
        if data.get("status", "ok") != "ok":
            raise UpstreamRejected(self.name, 200, data)
        return data.get("articles") or []

    def _normalize(self, item: Dict[str, Any]) -> Optional[Article]:
        if not item.get("title"):
            return None
        return Article(
            url=item.get("url", ""),
            image=item.get("urlToImage"),
            title=item["title"],
            source=(item.get("source") or {}).get("name", "Unknown"),
            description=item.get("description"),
            published_at=parse_timestamp(item.get("publishedAt")),
            provider=self.name
        )


def default_adapters() -> List[NewsAdapter]:
    """The configured provider adapters, in no particular preference"""
    return [GNewsAdapter(), NewsAPIAdapter()]
