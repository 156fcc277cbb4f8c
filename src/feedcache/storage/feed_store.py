"""Feed cache store with serialized, completion-based access."""

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from pathlib import Path
from typing import TypeVar

from feedcache.config import FeedCacheConfig
from feedcache.error_handling import FeedStoreError
from feedcache.models import CacheRecord, CacheState, EmptyCache, FoundCache, LocalFeedImage

from .adapter import FEED_STORE_MODEL, SQLiteCacheAdapter

logger = logging.getLogger(__name__)

T = TypeVar("T")

DeletionCompletion = Callable[[FeedStoreError | None], None]
InsertionCompletion = Callable[[FeedStoreError | None], None]
RetrievalCompletion = Callable[[CacheState | FeedStoreError], None]


class FeedStore(ABC):
    """Asynchronous store for one cached feed snapshot.

    Every operation returns a future and, when given a completion, calls it
    exactly once after the storage work has committed or failed.
    """

    @abstractmethod
    def delete_cached_feed(
        self,
        completion: DeletionCompletion | None = None,
    ) -> "Future[None]":
        """Remove the cached feed. Succeeds when nothing is cached."""

    @abstractmethod
    def insert(
        self,
        feed: Iterable[LocalFeedImage],
        timestamp: datetime,
        completion: InsertionCompletion | None = None,
    ) -> "Future[None]":
        """Replace whatever is cached with ``feed`` and ``timestamp``."""

    @abstractmethod
    def retrieve(
        self,
        completion: RetrievalCompletion | None = None,
    ) -> "Future[CacheState]":
        """Read the cached feed as ``EmptyCache`` or ``FoundCache``."""


class SQLiteFeedStore(FeedStore):
    """Feed store persisted in SQLite.

    All operations run one at a time on a private single-thread executor,
    which is the only thread that touches the database handle. Completions
    are invoked on that thread.

    Example::

        with SQLiteFeedStore("feed-store.sqlite") as store:
            store.insert(images, datetime.now(UTC)).result()
            state = store.retrieve().result()
    """

    def __init__(
        self,
        store_path: Path | str,
        model_name: str = FEED_STORE_MODEL.name,
    ):
        self._adapter = SQLiteCacheAdapter.open(store_path, model_name)
        self._executor = ThreadPoolExecutor(
            max_workers=1,
            thread_name_prefix="feedcache",
        )
        self._worker_thread: threading.Thread | None = None

    @classmethod
    def from_config(cls, config: FeedCacheConfig) -> "SQLiteFeedStore":
        """Open the store described by ``config``."""
        return cls(config.store_path, config.model_name)

    @property
    def store_path(self) -> Path | str:
        return self._adapter.location

    def delete_cached_feed(
        self,
        completion: DeletionCompletion | None = None,
    ) -> "Future[None]":
        # Only checks existence, so a record that no longer decodes can still be removed
        def delete() -> None:
            if self._adapter.has_record():
                self._adapter.replace_record(None)

        return self._submit("delete", delete, completion)

    def insert(
        self,
        feed: Iterable[LocalFeedImage],
        timestamp: datetime,
        completion: InsertionCompletion | None = None,
    ) -> "Future[None]":
        # Snapshot the feed now so later mutation by the caller has no effect
        record = CacheRecord.build(feed, timestamp)

        def insert() -> None:
            self._adapter.replace_record(record)

        return self._submit("insert", insert, completion)

    def retrieve(
        self,
        completion: RetrievalCompletion | None = None,
    ) -> "Future[CacheState]":
        def retrieve() -> CacheState:
            record = self._adapter.current_record()
            if record is None:
                return EmptyCache()
            return FoundCache.from_record(record)

        return self._submit("retrieve", retrieve, completion)

    def _submit(
        self,
        name: str,
        work: Callable[[], T],
        completion: Callable | None,
    ) -> "Future[T]":
        """Queue ``work`` on the store's executor and wire up its completion."""

        def run() -> T:
            self._worker_thread = threading.current_thread()
            try:
                result = work()
            except FeedStoreError as e:
                e.log(logger)
                if completion is not None:
                    self._complete(name, completion, e)
                raise
            if completion is not None:
                self._complete(name, completion, result)
            return result

        return self._executor.submit(run)

    @staticmethod
    def _complete(name: str, completion: Callable, outcome: object) -> None:
        try:
            completion(outcome)
        except Exception:
            logger.exception(f"Completion for feed store {name} raised")
            raise

    def close(self) -> None:
        """Finish queued operations, then release the database handle.

        Called from a completion, the store stops accepting work without
        waiting on its own worker. Operations already queued behind the
        current one still run and complete with a read or write failure.
        """
        on_worker = threading.current_thread() is self._worker_thread
        try:
            self._executor.shutdown(wait=not on_worker)
        finally:
            self._adapter.close()

    def __enter__(self) -> "SQLiteFeedStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(store_path={self.store_path!s})"
