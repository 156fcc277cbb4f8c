"""Feed store implementations."""

from .adapter import FEED_STORE_MODEL, SQLiteCacheAdapter, StoreModel
from .feed_store import FeedStore, SQLiteFeedStore

__all__ = [
    "FEED_STORE_MODEL",
    "FeedStore",
    "SQLiteCacheAdapter",
    "SQLiteFeedStore",
    "StoreModel",
]
