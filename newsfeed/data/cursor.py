"""
Per-keyword delivery cursor
Counts articles already delivered for a keyword; lives in a TTLStore
"""

from typing import Optional

from ..utils import get_logger
from .cache import TTLStore

logger = get_logger(__name__)


class DeliveryCursorStore:
    """
    Monotonic per-keyword counters stored under "count:<keyword>"

    Sharing the ephemeral backend's TTLStore gives the cursor the same
    lifetime as the cached articles it points into.
    """

    key_prefix = "count:"

    def __init__(self, store: TTLStore, ttl_seconds: Optional[float] = None):
        self.store = store
        self.ttl_seconds = store.default_ttl if ttl_seconds is None else ttl_seconds

    def key_for(self, keyword: str) -> str:
        return f"{self.key_prefix}{keyword}"

    def get(self, keyword: str) -> int:
        return int(self.store.get(self.key_for(keyword), 0))

    def advance(self, keyword: str, count: int) -> int:
        """Move the cursor forward by count; returns the new position"""
        if count < 0:
            raise ValueError("cursor can only move forward")
        position = self.get(keyword) + count
        self.store.set(self.key_for(keyword), position, self.ttl_seconds)
        return position

    def reset(self, keyword: str):
        if self.store.delete(self.key_for(keyword)):
            logger.info(f"Reset stale delivery cursor for '{keyword}'")
