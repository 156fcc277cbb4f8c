"""Shared test configuration and fixtures."""

import logging
from datetime import UTC, datetime

import pytest
from feed_helpers import make_image

from feedcache.storage import SQLiteFeedStore


@pytest.fixture(scope="function", autouse=True)
def reset_logging():
    """Reset logging configuration after each test."""
    yield
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.WARNING)


@pytest.fixture
def store_path(tmp_path):
    """Path for a throwaway feed store database."""
    return tmp_path / "cache" / "feed-store.sqlite"


@pytest.fixture
def sample_feed():
    """A feed covering every combination of optional fields."""
    return [
        make_image(),
        make_image(description=None),
        make_image(location=None),
        make_image(description=None, location=None),
    ]


@pytest.fixture
def timestamp():
    """A timezone-aware timestamp with sub-second precision."""
    return datetime(2024, 3, 14, 15, 9, 26, 535897, tzinfo=UTC)


@pytest.fixture
def store(store_path):
    """Open a feed store and close it after the test."""
    feed_store = SQLiteFeedStore(store_path)
    yield feed_store
    feed_store.close()
