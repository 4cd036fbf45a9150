"""Unit tests for error shaping and configuration loading."""

import pytest
from pathlib import Path

from newsfeed.config.settings import Config, get_config, load_config, reset_config
from newsfeed.data.errors import (
    AllProvidersFailed,
    CustomError,
    RequestSetupFailed,
    UnsupportedCacheBackend,
    UpstreamRejected,
    UpstreamUnreachable,
    status_for_failures,
    to_error_response,
)


class TestErrors:
    """Test error taxonomy helpers."""

    def test_rejected_message_uses_body_message(self):
        error = UpstreamRejected("gnews", 401, {"message": "Invalid API key"})
        assert error.status == 401
        assert "Invalid API key" in str(error)
        assert str(error).startswith("gnews:")

    def test_rejected_message_without_body(self):
        error = UpstreamRejected("newsapi", 500)
        assert str(error) == "newsapi: upstream rejected request with status 500"

    def test_all_failed_lists_every_error(self):
        error = AllProvidersFailed([UpstreamUnreachable("gnews"), UpstreamRejected("newsapi", 429)])
        assert "gnews" in str(error)
        assert "newsapi" in str(error)

    @pytest.mark.parametrize("errors, expected", [
        ([UpstreamRejected("a", 401), UpstreamUnreachable("b")], 503),
        ([UpstreamRejected("a", 401), UpstreamRejected("b", 500)], 502),
        ([UpstreamRejected("a", 401), RequestSetupFailed("b", "no key")], 502),
        ([RequestSetupFailed("a", "no key"), RequestSetupFailed("b", "no key")], 500),
        ([], 500),
    ])
    def test_status_for_failures(self, errors, expected):
        assert status_for_failures(errors) == expected

    def test_custom_error_response(self):
        error = CustomError("Failed", 503, errors=["gnews: down", "newsapi: down"])
        assert to_error_response(error) == (503, {"errors": ["gnews: down", "newsapi: down"]})

    def test_custom_error_defaults_errors_to_message(self):
        assert CustomError("Article not found", 404).to_dict() == {"errors": ["Article not found"]}

    def test_other_errors_are_internal(self):
        status, body = to_error_response(UnsupportedCacheBackend("redis"))
        assert status == 500
        assert "redis" in body["errors"][0]


class TestConfig:
    """Test configuration loading from the environment."""

    @pytest.fixture(autouse=True)
    def clean_singleton(self):
        reset_config()
        yield
        reset_config()

    def test_defaults(self, monkeypatch):
        for name in ("CACHE_TYPE", "CACHE_TTL_SECONDS", "SIMULATE_LIVE_FEED", "LIVE_FEED_KEYWORD",
                     "LIVE_FEED_INTERVAL_SECONDS", "ARTICLES_DB_PATH"):
            monkeypatch.delenv(name, raising=False)

        config = load_config()
        assert config.cache.backend == "ephemeral"
        assert config.cache.ttl_seconds == 600
        assert config.cache.db_path == Path("data") / "articles.db"
        assert config.feed.simulate_live_feed is False
        assert config.feed.keyword == "Global"
        assert config.feed.poll_interval_seconds == 10
        assert config.feed.batch_size == 5

    def test_reads_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("GNEWS_API_KEY", "g")
        monkeypatch.setenv("NEWS_API_ORG", "n")
        monkeypatch.setenv("CACHE_TYPE", "Persistent")
        monkeypatch.setenv("CACHE_TTL_SECONDS", "120")
        monkeypatch.setenv("ARTICLES_DB_PATH", str(tmp_path / "x.db"))
        monkeypatch.setenv("SIMULATE_LIVE_FEED", "true")

        config = load_config()
        assert config.api.gnews_api_key == "g"
        assert config.api.news_api_key == "n"
        assert config.cache.backend == "persistent"
        assert config.cache.ttl_seconds == 120
        assert config.cache.db_path == tmp_path / "x.db"
        assert config.feed.simulate_live_feed is True

    def test_unknown_backend_is_kept_for_later_validation(self, monkeypatch):
        monkeypatch.setenv("CACHE_TYPE", "redis")
        assert load_config().cache.backend == "redis"

    def test_singleton(self):
        assert get_config() is get_config()
        first = get_config()
        reset_config()
        assert get_config() is not first

    def test_get_and_override(self):
        config = Config()
        assert config.get("cache.ttl_seconds") == 600
        assert config.get("cache.missing", "fallback") == "fallback"

        config.override("cache.ttl_seconds", 5)
        assert config.get("cache.ttl_seconds") == 5
