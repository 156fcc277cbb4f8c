"""Value types for the cached feed."""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class LocalFeedImage:
    """One image of a cached feed."""

    id: UUID
    url: str
    description: str | None = None
    location: str | None = None

    def __post_init__(self) -> None:
        if not isinstance(self.id, UUID):
            msg = f"Feed image id must be a UUID, got {type(self.id).__name__}"
            raise TypeError(msg)
        if not self.url:
            msg = "Feed image url is required"
            raise ValueError(msg)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "id": str(self.id),
            "description": self.description,
            "location": self.location,
            "url": self.url,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LocalFeedImage":
        """Create from dictionary."""
        return cls(
            id=UUID(data["id"]),
            description=data.get("description"),
            location=data.get("location"),
            url=data["url"],
        )


@dataclass(frozen=True)
class CacheRecord:
    """The single persisted feed snapshot.

    ``feed`` keeps the order the images were given in. Any iterable is
    accepted and frozen into a tuple.
    """

    feed: tuple[LocalFeedImage, ...]
    timestamp: datetime

    def __post_init__(self) -> None:
        # frozen dataclass, so bypass __setattr__ to normalise the feed
        object.__setattr__(self, "feed", tuple(self.feed))
        if not isinstance(self.timestamp, datetime):
            msg = f"Cache timestamp must be a datetime, got {type(self.timestamp).__name__}"
            raise TypeError(msg)
        for image in self.feed:
            if not isinstance(image, LocalFeedImage):
                msg = f"Feed entries must be LocalFeedImage, got {type(image).__name__}"
                raise TypeError(msg)

    @classmethod
    def build(cls, feed: Iterable[LocalFeedImage], timestamp: datetime) -> "CacheRecord":
        """Create a record from any iterable of images."""
        return cls(feed=tuple(feed), timestamp=timestamp)

    def to_dict(self) -> dict:
        """Convert to dictionary for storage."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "feed": [image.to_dict() for image in self.feed],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "CacheRecord":
        """Create from dictionary."""
        return cls(
            feed=tuple(LocalFeedImage.from_dict(item) for item in data["feed"]),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )


@dataclass(frozen=True)
class EmptyCache:
    """Retrieval result when nothing is cached."""


@dataclass(frozen=True)
class FoundCache:
    """Retrieval result carrying the cached feed and its timestamp."""

    feed: tuple[LocalFeedImage, ...]
    timestamp: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "feed", tuple(self.feed))

    @classmethod
    def from_record(cls, record: CacheRecord) -> "FoundCache":
        """Expose a stored record as a retrieval result."""
        return cls(feed=record.feed, timestamp=record.timestamp)


CacheState = EmptyCache | FoundCache
