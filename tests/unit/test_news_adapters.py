"""Unit tests for upstream provider adapters."""

import httpx
import pytest
from datetime import datetime, timezone
from unittest.mock import patch

from newsfeed.data.errors import RequestSetupFailed, UpstreamRejected, UpstreamUnreachable
from newsfeed.data.base import NewsProvider
from newsfeed.data.news import GNewsAdapter, HttpNewsAdapter, NewsAPIAdapter


GNEWS_PAYLOAD = {
    "totalArticles": 2,
    "articles": [
        {
            "title": "Markets rally",
            "description": "Stocks climb",
            "url": "https://gnews.example/1",
            "image": "https://img.example/1.jpg",
            "publishedAt": "2024-05-01T09:30:00Z",
            "source": {"name": "Reuters", "url": "https://reuters.com"}
        },
        {
            "title": "",
            "url": "https://gnews.example/untitled",
            "publishedAt": "2024-05-01T09:00:00Z",
            "source": {"name": "Nobody"}
        }
    ]
}

NEWSAPI_PAYLOAD = {
    "status": "ok",
    "totalResults": 1,
    "articles": [
        {
            "source": {"id": None, "name": "BBC News"},
            "author": "BBC",
            "title": "Election results",
            "description": "Votes counted",
            "url": "https://newsapi.example/1",
            "urlToImage": "https://img.example/bbc.jpg",
            "publishedAt": "2024-05-02T18:00:00Z",
            "content": "..."
        }
    ]
}


def client_for(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestGNewsAdapter:
    """Test GNews payload mapping and failure classification."""

    @pytest.mark.asyncio
    async def test_maps_articles(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=GNEWS_PAYLOAD)

        adapter = GNewsAdapter(api_key="gkey", client=client_for(handler))
        articles = await adapter.fetch("markets")

        assert seen["params"] == {"q": "markets", "apikey": "gkey"}
        assert len(articles) == 1
        article = articles[0]
        assert article.title == "Markets rally"
        assert article.image == "https://img.example/1.jpg"
        assert article.source == "Reuters"
        assert article.published_at == datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)
        assert article.provider == "gnews"
        assert article.keyword is None

    @pytest.mark.asyncio
    async def test_non_success_status_is_rejected(self):
        def handler(request):
            return httpx.Response(403, json={"errors": ["You did not provide an API key."]})

        adapter = GNewsAdapter(api_key="bad", client=client_for(handler))
        with pytest.raises(UpstreamRejected) as exc_info:
            await adapter.fetch("markets")

        assert exc_info.value.status == 403
        assert exc_info.value.provider == "gnews"
        assert "API key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_connection_error_is_unreachable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        adapter = GNewsAdapter(api_key="gkey", client=client_for(handler))
        with pytest.raises(UpstreamUnreachable):
            await adapter.fetch("markets")

    @pytest.mark.asyncio
    async def test_timeout_is_unreachable(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        adapter = GNewsAdapter(api_key="gkey", client=client_for(handler))
        with pytest.raises(UpstreamUnreachable):
            await adapter.fetch("markets")

    @pytest.mark.asyncio
    async def test_missing_api_key_fails_setup(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json=GNEWS_PAYLOAD)

        adapter = GNewsAdapter(api_key="", client=client_for(handler))
        with pytest.raises(RequestSetupFailed):
            await adapter.fetch("markets")
        assert calls == []

    @pytest.mark.asyncio
    async def test_unsupported_protocol_fails_setup(self):
        def handler(request):
            raise httpx.UnsupportedProtocol("Request URL has an unsupported protocol", request=request)

        adapter = GNewsAdapter(api_key="gkey", client=client_for(handler))
        with pytest.raises(RequestSetupFailed):
            await adapter.fetch("markets")

    @pytest.mark.asyncio
    async def test_malformed_body_is_rejected(self):
        def handler(request):
            return httpx.Response(200, text="<html>maintenance</html>")

        adapter = GNewsAdapter(api_key="gkey", client=client_for(handler))
        with pytest.raises(UpstreamRejected) as exc_info:
            await adapter.fetch("markets")
        assert exc_info.value.status == 200


class TestNewsAPIAdapter:
    """Test NewsAPI payload mapping and failure classification."""

    @pytest.mark.asyncio
    async def test_maps_url_to_image(self):
        seen = {}

        def handler(request: httpx.Request):
            seen["params"] = dict(request.url.params)
            return httpx.Response(200, json=NEWSAPI_PAYLOAD)

        adapter = NewsAPIAdapter(api_key="nkey", client=client_for(handler))
        articles = await adapter.fetch("election")

        assert seen["params"] == {"q": "election", "apiKey": "nkey"}
        assert len(articles) == 1
        assert articles[0].image == "https://img.example/bbc.jpg"
        assert articles[0].source == "BBC News"
        assert articles[0].provider == "newsapi"

    @pytest.mark.asyncio
    async def test_error_status_in_body(self):
        def handler(request):
            return httpx.Response(200, json={"status": "error", "code": "rateLimited", "message": "Too many requests"})

        adapter = NewsAPIAdapter(api_key="nkey", client=client_for(handler))
        with pytest.raises(UpstreamRejected) as exc_info:
            await adapter.fetch("election")
        assert "Too many requests" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_server_error_is_rejected(self):
        def handler(request):
            return httpx.Response(500, text="Internal Server Error")

        adapter = NewsAPIAdapter(api_key="nkey", client=client_for(handler))
        with pytest.raises(UpstreamRejected) as exc_info:
            await adapter.fetch("election")
        assert exc_info.value.status == 500
        assert exc_info.value.body == "Internal Server Error"

    @pytest.mark.asyncio
    async def test_disconnect_keeps_injected_client_open(self):
        client = client_for(lambda request: httpx.Response(200, json=NEWSAPI_PAYLOAD))
        adapter = NewsAPIAdapter(api_key="nkey", client=client)

        await adapter.disconnect()

        assert adapter.client is None
        assert not client.is_closed
        await client.aclose()


class TestAdapterLifecycle:
    """Test connection state shared by the HTTP adapters."""

    def test_normalize_must_be_provided(self):
        class Bare(HttpNewsAdapter):
            base_url = "https://bare.example/search"

        with pytest.raises(TypeError):
            Bare(NewsProvider.GNEWS, "key", timeout=1)

    @pytest.mark.asyncio
    async def test_connected_with_injected_client(self):
        client = client_for(lambda request: httpx.Response(200, json=GNEWS_PAYLOAD))
        adapter = GNewsAdapter(api_key="gkey", client=client)

        assert adapter.is_connected
        await adapter.disconnect()
        assert not adapter.is_connected
        await client.aclose()

    @pytest.mark.asyncio
    async def test_fetch_connects_on_demand(self):
        real_client_class = httpx.AsyncClient

        def mock_client(**kwargs):
            handler = lambda request: httpx.Response(200, json=GNEWS_PAYLOAD)
            return real_client_class(transport=httpx.MockTransport(handler), **kwargs)

        adapter = GNewsAdapter(api_key="gkey", timeout=1)
        assert not adapter.is_connected

        with patch("newsfeed.data.news.httpx.AsyncClient", side_effect=mock_client) as factory:
            articles = await adapter.fetch("markets")
            again = await adapter.fetch("markets")

        assert len(articles) == len(again) == 1
        assert factory.call_count == 1
        assert adapter.is_connected

        await adapter.disconnect()
        assert not adapter.is_connected
        assert adapter.client is None
