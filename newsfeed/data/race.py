"""
Race fetcher: query every provider at once and keep the first success
"""

import asyncio
from typing import Dict, List, Optional, Sequence, Set

from ..utils import get_logger, log_async_performance
from .base import Article, NewsAdapter
from .errors import AllProvidersFailed, InternalFailure, ProviderError

logger = get_logger(__name__)


class RaceFetcher:
    """
    Runs all adapters concurrently for a query

    The first adapter to succeed wins. Failures are recorded and only
    surfaced, together, when every adapter has failed. Losing tasks are
    left to finish in the background unless cancel_pending is set.
    """

    def __init__(self, adapters: Sequence[NewsAdapter], cancel_pending: bool = False):
        self.adapters = list(adapters)
        self.cancel_pending = cancel_pending
        # Strong references to abandoned tasks until they finish
        self._background: Set[asyncio.Task] = set()

    async def _run(self, adapter: NewsAdapter, query: str) -> List[Article]:
        try:
            return await adapter.fetch(query)
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"Unexpected {adapter.name} failure for '{query}': {e!r}")
            raise InternalFailure(adapter.name, e) from e

    def _abandon(self, task: asyncio.Task, provider: str):
        self._background.add(task)

        def _finished(t: asyncio.Task):
            self._background.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                logger.debug(f"Discarded late failure from {provider}: {exc}")
            else:
                logger.debug(f"Discarded late result from {provider}")

        task.add_done_callback(_finished)
        if self.cancel_pending:
            task.cancel()

    @log_async_performance()
    async def race_fetch(self, query: str) -> List[Article]:
        """
        Return the articles of the fastest successful provider

        Raises:
            AllProvidersFailed: with one error per adapter
        """
        if not self.adapters:
            raise AllProvidersFailed([])

        pending: Dict[asyncio.Task, int] = {
            asyncio.create_task(self._run(adapter, query), name=f"fetch-{adapter.name}"): index
            for index, adapter in enumerate(self.adapters)
        }
        errors: Dict[int, ProviderError] = {}
        winner: Optional[List[Article]] = None

        try:
            while pending and winner is None:
                done, _ = await asyncio.wait(pending.keys(), return_when=asyncio.FIRST_COMPLETED)
                for task in done:
                    index = pending.pop(task)
                    adapter = self.adapters[index]
                    exc = task.exception()
                    if exc is None:
                        if winner is None:
                            winner = task.result()
                            logger.info(f"{adapter.name} won the race for '{query}' with {len(winner)} articles")
                        continue
                    logger.warning(f"{adapter.name} failed for '{query}': {exc}")
                    errors[index] = exc
        finally:
            # Also reached if the caller itself is cancelled
            for task, index in pending.items():
                self._abandon(task, self.adapters[index].name)

        if winner is not None:
            return winner

        raise AllProvidersFailed([errors[index] for index in sorted(errors)])
