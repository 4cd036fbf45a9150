"""
Main entry point for the news feed engine
Provides CLI commands around the aggregator and feed simulator
"""

import asyncio
import json
import signal
import sys

import click

from newsfeed.config.settings import get_config
from newsfeed.data.aggregator import NewsAggregator
from newsfeed.data.base import FetchMode
from newsfeed.data.errors import to_error_response
from newsfeed.orchestration import FeedSimulator
from newsfeed.utils.logger import get_logger

logger = get_logger(__name__)


def _echo_articles(articles):
    click.echo(json.dumps({"news": [a.to_dict() for a in articles]}, indent=2))


def _fail(error: BaseException):
    status, body = to_error_response(error)
    click.echo(json.dumps({"status": status, **body}, indent=2), err=True)
    sys.exit(1)


def _run(coro_factory):
    """Run one aggregator call, printing a shaped error on failure"""
    async def runner():
        aggregator = NewsAggregator()
        try:
            await aggregator.initialize()
            return await coro_factory(aggregator)
        finally:
            await aggregator.shutdown()

    try:
        return asyncio.run(runner())
    except Exception as e:
        logger.error(f"Command failed: {e}")
        _fail(e)


@click.group()
def cli():
    """News feed engine CLI"""
    pass


@cli.command()
def status():
    """Show configuration"""
    config = get_config()

    click.echo("\n📋 Configuration:")
    click.echo(f"  • Cache backend: {config.cache.backend}")
    click.echo(f"  • Cache TTL: {config.cache.ttl_seconds} seconds")
    click.echo(f"  • Articles DB: {config.cache.db_path}")
    click.echo(f"  • Live feed simulation: {'Enabled' if config.feed.simulate_live_feed else 'Disabled'}")
    click.echo(f"  • Live feed keyword: {config.feed.keyword} every {config.feed.poll_interval_seconds}s")
    click.echo(f"  • Log level: {config.system.log_level}")

    click.echo("\n🔑 API Keys:")
    for name, is_set in (("GNews", bool(config.api.gnews_api_key)), ("NewsAPI", bool(config.api.news_api_key))):
        click.echo(f"  • {name}: {'✅ Set' if is_set else '❌ Missing'}")


@cli.command()
@click.argument("keyword", default="Global")
@click.option("--mode", type=click.Choice([m.value for m in FetchMode]), default=FetchMode.SEARCH.value,
              help="search always goes upstream; live-feed serves cached batches")
def fetch(keyword, mode):
    """Fetch news for KEYWORD"""
    articles = _run(lambda aggregator: aggregator.fetch_news(keyword, FetchMode(mode)))
    _echo_articles(articles)


@cli.command()
def purge():
    """Delete expired cached articles"""
    removed = _run(lambda aggregator: aggregator.purge_expired())
    click.echo(f"🧹 Removed {removed} expired articles")


@cli.command("mark-read")
@click.argument("article_id", type=int)
def mark_read(article_id):
    """Mark an article as read"""
    article = _run(lambda aggregator: aggregator.mark_read(article_id))
    click.echo(json.dumps({"article": article.to_dict()}, indent=2))


@cli.command("mark-favorite")
@click.argument("article_id", type=int)
def mark_favorite(article_id):
    """Mark an article as favorite"""
    article = _run(lambda aggregator: aggregator.mark_favorite(article_id))
    click.echo(json.dumps({"article": article.to_dict()}, indent=2))


@cli.command("list")
@click.option("--favorite", "flag", flag_value="favorite", help="List favorite articles")
@click.option("--read", "flag", flag_value="read", default=True, help="List read articles")
def list_articles(flag):
    """List read or favorite articles"""
    if flag == "favorite":
        articles = _run(lambda aggregator: aggregator.list_favorite())
    else:
        articles = _run(lambda aggregator: aggregator.list_read())
    _echo_articles(articles)


@cli.command()
def simulate():
    """Run the live feed simulator until interrupted"""
    config = get_config()
    if not config.feed.simulate_live_feed:
        click.echo("⚠️ SIMULATE_LIVE_FEED is off; enabling it for this run")
        config.feed.simulate_live_feed = True

    click.echo(f"🚀 Simulating live feed for '{config.feed.keyword}'. Press Ctrl+C to stop.")
    try:
        asyncio.run(run_simulation())
    except Exception as e:
        logger.error(f"Simulation failed: {e}")
        _fail(e)


async def run_simulation():
    """Run the feed simulator until a shutdown signal arrives"""
    aggregator = NewsAggregator()
    simulator = FeedSimulator(aggregator)

    shutdown_event = asyncio.Event()

    def signal_handler():
        logger.info("Shutdown signal received")
        shutdown_event.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, signal_handler)

    await aggregator.initialize()
    try:
        await simulator.start()
        await shutdown_event.wait()
    finally:
        click.echo("\n🛑 Shutting down...")
        await simulator.stop()
        await aggregator.shutdown()


if __name__ == "__main__":
    cli()
