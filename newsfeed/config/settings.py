"""
Configuration management for the news feed engine
Loads environment variables and provides centralized settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional
from dotenv import load_dotenv
import logging

# Load environment variables
env_path = Path(__file__).parent.parent.parent / '.env'
load_dotenv(dotenv_path=env_path)


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class APIConfig:
    """Upstream provider keys and request settings"""
    gnews_api_key: str = ""
    news_api_key: str = ""
    request_timeout_seconds: float = 30.0


@dataclass
class CacheConfig:
    """Cache backend selection and expiry"""
    backend: str = "ephemeral"
    ttl_seconds: int = 600
    db_path: Path = field(default_factory=lambda: Path("data") / "articles.db")


@dataclass
class FeedConfig:
    """Live feed simulation settings"""
    simulate_live_feed: bool = False
    keyword: str = "Global"
    poll_interval_seconds: float = 10.0
    batch_size: int = 5


@dataclass
class SystemConfig:
    """System-level configuration"""
    log_level: str = "INFO"
    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent.parent)


@dataclass
class Config:
    """Main configuration container"""
    api: APIConfig = field(default_factory=APIConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    system: SystemConfig = field(default_factory=SystemConfig)

    # Runtime overrides
    _overrides: Dict[str, Any] = field(default_factory=dict)

    def override(self, key: str, value: Any):
        """Override a configuration value at runtime"""
        self._overrides[key] = value

    def get(self, key: str, default=None):
        """Get configuration value with override support"""
        if key in self._overrides:
            return self._overrides[key]

        # Navigate nested attributes
        parts = key.split('.')
        obj = self
        for part in parts:
            if hasattr(obj, part):
                obj = getattr(obj, part)
            else:
                return default
        return obj


def load_config() -> Config:
    """Build a fresh configuration from the environment"""
    api_config = APIConfig(
        gnews_api_key=os.getenv("GNEWS_API_KEY", ""),
        news_api_key=os.getenv("NEWS_API_ORG", ""),
        request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", "30"))
    )

    cache_config = CacheConfig(
        backend=os.getenv("CACHE_TYPE", "ephemeral").strip().lower(),
        ttl_seconds=int(os.getenv("CACHE_TTL_SECONDS", "600")),
        db_path=Path(os.getenv("ARTICLES_DB_PATH", str(Path("data") / "articles.db")))
    )

    feed_config = FeedConfig(
        simulate_live_feed=_env_flag("SIMULATE_LIVE_FEED"),
        keyword=os.getenv("LIVE_FEED_KEYWORD", "Global"),
        poll_interval_seconds=float(os.getenv("LIVE_FEED_INTERVAL_SECONDS", "10"))
    )

    system_config = SystemConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO")
    )

    config = Config(
        api=api_config,
        cache=cache_config,
        feed=feed_config,
        system=system_config
    )

    # Validate critical settings
    if not api_config.gnews_api_key:
        logging.warning("GNEWS_API_KEY not set - GNews requests will fail")
    if not api_config.news_api_key:
        logging.warning("NEWS_API_ORG not set - NewsAPI requests will fail")

    return config


# Singleton instance
_config_instance: Optional[Config] = None


def get_config() -> Config:
    """Get or create the configuration singleton"""
    global _config_instance

    if _config_instance is None:
        _config_instance = load_config()

    return _config_instance


def reset_config():
    """Reset the configuration singleton (mainly for testing)"""
    global _config_instance
    _config_instance = None
