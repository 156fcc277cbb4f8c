"""Concurrent access tests for the feed store."""

import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta

from feed_helpers import make_image

from feedcache.models import EmptyCache, FoundCache
from feedcache.storage import SQLiteFeedStore


def _inserted_states(count: int) -> list[FoundCache]:
    base = datetime(2024, 1, 1, tzinfo=UTC)
    return [
        FoundCache(
            feed=tuple(make_image() for _ in range(index + 1)),
            timestamp=base + timedelta(seconds=index),
        )
        for index in range(count)
    ]


class TestSerializedAccess:
    """Test operations issued from many threads never interleave."""

    def test_concurrent_inserts_and_retrieves_see_whole_snapshots(self, store):
        """Test every retrieve matches exactly one inserted snapshot or empty."""
        states = _inserted_states(5)
        start = threading.Barrier(10)

        def insert(state):
            start.wait()
            return store.insert(state.feed, state.timestamp).result()

        def retrieve(_):
            start.wait()
            return store.retrieve().result()

        with ThreadPoolExecutor(max_workers=10) as callers:
            insert_futures = [callers.submit(insert, state) for state in states]
            retrieve_futures = [callers.submit(retrieve, None) for _ in range(5)]
            inserts = [f.result() for f in insert_futures]
            retrieved = [f.result() for f in retrieve_futures]

        assert inserts == [None] * 5
        allowed = [EmptyCache(), *states]
        for state in retrieved:
            assert state in allowed

        assert store.retrieve().result() in states

    def test_operations_run_in_submission_order(self, store):
        """Test the store applies operations in the order they were queued."""
        states = _inserted_states(3)
        results = []

        for state in states:
            store.insert(state.feed, state.timestamp)
            store.retrieve(results.append)
        store.delete_cached_feed()
        store.retrieve(results.append).result()

        assert results == [*states, EmptyCache()]

    def test_only_one_operation_runs_at_a_time(self, store, monkeypatch):
        """Test adapter calls never overlap."""
        adapter = store._adapter
        original = adapter.current_record
        active = 0
        peak = 0
        lock = threading.Lock()

        def tracking_current_record():
            nonlocal active, peak
            with lock:
                active += 1
                peak = max(peak, active)
            try:
                return original()
            finally:
                with lock:
                    active -= 1

        monkeypatch.setattr(adapter, "current_record", tracking_current_record)

        with ThreadPoolExecutor(max_workers=8) as callers:
            futures = [callers.submit(lambda: store.retrieve().result()) for _ in range(40)]
            for future in futures:
                future.result()

        assert peak == 1

    def test_stores_on_same_file_see_each_others_commits(self, store_path):
        """Test two store instances agree on the committed snapshot."""
        feed = [make_image()]
        stamp = datetime(2024, 5, 1, tzinfo=UTC)

        with SQLiteFeedStore(store_path) as writer, SQLiteFeedStore(store_path) as reader:
            writer.insert(feed, stamp).result()
            assert reader.retrieve().result() == FoundCache(feed=tuple(feed), timestamp=stamp)
