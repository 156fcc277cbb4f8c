"""feedcache - persistent single-snapshot cache for image feeds."""

from .config import FeedCacheConfig, load_config
from .error_handling import (
    FeedCacheError,
    FeedStoreError,
    ReadFailureError,
    StoreUnavailableError,
    WriteFailureError,
)
from .models import CacheRecord, CacheState, EmptyCache, FoundCache, LocalFeedImage
from .storage import FeedStore, SQLiteFeedStore

__version__ = "0.1.0"

__all__ = [
    "CacheRecord",
    "CacheState",
    "EmptyCache",
    "FeedCacheConfig",
    "FeedCacheError",
    "FeedStore",
    "FeedStoreError",
    "FoundCache",
    "LocalFeedImage",
    "ReadFailureError",
    "SQLiteFeedStore",
    "StoreUnavailableError",
    "WriteFailureError",
    "load_config",
]
