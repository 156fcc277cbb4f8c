"""SQLite persistence for the single cached feed record."""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from feedcache.error_handling import (
    ReadFailureError,
    StoreUnavailableError,
    WriteFailureError,
)
from feedcache.models import CacheRecord, LocalFeedImage

logger = logging.getLogger(__name__)

IN_MEMORY = ":memory:"


@dataclass(frozen=True)
class StoreModel:
    """Schema descriptor for a feed store database."""

    name: str
    version: int
    ddl: tuple[str, ...]
    probe: str


FEED_STORE_MODEL = StoreModel(
    name="FeedStore",
    version=1,
    ddl=(
        # id is pinned to 1 so the table can never hold a second record
        """
        CREATE TABLE IF NOT EXISTS feed_cache (
            id INTEGER PRIMARY KEY CHECK (id = 1),
            timestamp TEXT NOT NULL
        )
        """,
        """
        CREATE TABLE IF NOT EXISTS feed_images (
            cache_id INTEGER NOT NULL REFERENCES feed_cache (id) ON DELETE CASCADE,
            position INTEGER NOT NULL,
            image_id TEXT NOT NULL,
            description TEXT,
            location TEXT,
            url TEXT NOT NULL,
            PRIMARY KEY (cache_id, position)
        )
        """,
    ),
    probe="""SELECT c.id, c.timestamp, i.cache_id, i.position, i.image_id,
             i.description, i.location, i.url
             FROM feed_cache c, feed_images i LIMIT 0""",
)

MODELS: dict[str, StoreModel] = {FEED_STORE_MODEL.name: FEED_STORE_MODEL}


def resolve_model(name: str) -> StoreModel:
    """Look up a schema descriptor by name."""
    try:
        return MODELS[name]
    except KeyError:
        msg = f"Unknown store model '{name}'"
        raise StoreUnavailableError(
            msg,
            solution=f"Use one of: {', '.join(sorted(MODELS))}",
        ) from None


@contextmanager
def _transaction(
    conn: sqlite3.Connection,
    begin: str = "BEGIN",
) -> Iterator[sqlite3.Connection]:
    """Run a block inside one explicit transaction, rolling back on failure."""
    conn.execute(begin)
    try:
        yield conn
        conn.execute("COMMIT")
    except Exception:
        conn.rollback()
        raise


class SQLiteCacheAdapter:
    """Open handle on a feed store database.

    The adapter holds one connection and is not thread-safe on its own;
    callers must serialize access to it.
    """

    def __init__(self, connection: sqlite3.Connection, location: Path | str, model: StoreModel):
        self._conn: sqlite3.Connection | None = connection
        self.location = location
        self.model = model

    @classmethod
    def open(
        cls,
        location: Path | str,
        model_name: str = FEED_STORE_MODEL.name,
    ) -> "SQLiteCacheAdapter":
        """Open or create the feed store at ``location``.

        ``location`` is a database file path or ``":memory:"``.

        Raises:
            StoreUnavailableError: the model is unknown, or the database cannot
                be created, opened or matched against the model's schema.
        """
        model = resolve_model(model_name)

        if str(location) == IN_MEMORY:
            target = IN_MEMORY
        else:
            target = Path(location)
            try:
                target.parent.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                msg = f"Cannot create directory for feed store at {target}"
                raise StoreUnavailableError(
                    msg,
                    location=target,
                    original_error=e,
                ) from e

        try:
            conn = sqlite3.connect(
                target,
                isolation_level=None,
                check_same_thread=False,
            )
        except sqlite3.Error as e:
            msg = f"Cannot open feed store at {target}"
            raise StoreUnavailableError(msg, location=target, original_error=e) from e

        try:
            cls._prepare(conn, model)
        except sqlite3.Error as e:
            conn.close()
            msg = f"Cannot load feed store at {target}"
            raise StoreUnavailableError(
                msg,
                location=target,
                details=str(e),
                original_error=e,
            ) from e
        except StoreUnavailableError:
            conn.close()
            raise

        logger.debug(f"Opened {model.name} v{model.version} store at {target}")
        return cls(conn, target, model)

    @staticmethod
    def _prepare(conn: sqlite3.Connection, model: StoreModel) -> None:
        """Create the schema on a fresh database or verify an existing one."""
        conn.execute("PRAGMA foreign_keys = ON")
        version = conn.execute("PRAGMA user_version").fetchone()[0]

        if version == 0:
            with _transaction(conn, "BEGIN IMMEDIATE"):
                for statement in model.ddl:
                    conn.execute(statement)
                # PRAGMA does not accept bound parameters
                conn.execute(f"PRAGMA user_version = {int(model.version)}")
        elif version != model.version:
            msg = (
                f"Feed store schema version {version} does not match "
                f"{model.name} v{model.version}"
            )
            raise StoreUnavailableError(
                msg,
                solution="Delete the store file to start with an empty cache",
            )

        conn.execute(model.probe)

    @property
    def connection(self) -> sqlite3.Connection:
        if self._conn is None:
            msg = f"Feed store at {self.location} is closed"
            raise sqlite3.ProgrammingError(msg)
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    def has_record(self) -> bool:
        """Whether a record is stored, without decoding it.

        Raises:
            ReadFailureError: the database could not be read.
        """
        try:
            row = self.connection.execute("SELECT 1 FROM feed_cache LIMIT 1").fetchone()
        except sqlite3.Error as e:
            msg = f"Failed to read cached feed from {self.location}"
            raise ReadFailureError(msg, details=str(e), original_error=e) from e
        return row is not None

    def current_record(self) -> CacheRecord | None:
        """Fetch the cached record with all of its images, or None.

        Raises:
            ReadFailureError: the database could not be read or holds data that
                cannot be decoded.
        """
        try:
            conn = self.connection
            with _transaction(conn):
                row = conn.execute(
                    "SELECT timestamp FROM feed_cache WHERE id = 1",
                ).fetchone()
                if row is None:
                    return None
                image_rows = conn.execute(
                    """
                    SELECT image_id, description, location, url
                    FROM feed_images
                    WHERE cache_id = 1
                    ORDER BY position
                    """,
                ).fetchall()
        except sqlite3.Error as e:
            msg = f"Failed to read cached feed from {self.location}"
            raise ReadFailureError(msg, details=str(e), original_error=e) from e

        try:
            return CacheRecord(
                feed=tuple(
                    LocalFeedImage.from_dict(
                        {
                            "id": image_id,
                            "description": description,
                            "location": location,
                            "url": url,
                        },
                    )
                    for image_id, description, location, url in image_rows
                ),
                timestamp=datetime.fromisoformat(row[0]),
            )
        except (TypeError, ValueError) as e:
            msg = f"Cached feed in {self.location} is corrupted"
            raise ReadFailureError(msg, details=str(e), original_error=e) from e

    def replace_record(self, record: CacheRecord | None) -> None:
        """Replace the cached record, or just remove it when ``record`` is None.

        Removal and insertion commit together; on failure nothing changes.

        Raises:
            WriteFailureError: the transaction could not be committed.
        """
        try:
            conn = self.connection
            with _transaction(conn, "BEGIN IMMEDIATE"):
                # images go with their record via ON DELETE CASCADE
                conn.execute("DELETE FROM feed_cache")
                if record is not None:
                    conn.execute(
                        "INSERT INTO feed_cache (id, timestamp) VALUES (1, ?)",
                        (record.timestamp.isoformat(),),
                    )
                    conn.executemany(
                        """
                        INSERT INTO feed_images
                        (cache_id, position, image_id, description, location, url)
                        VALUES (1, ?, ?, ?, ?, ?)
                        """,
                        [
                            (
                                position,
                                data["id"],
                                data["description"],
                                data["location"],
                                data["url"],
                            )
                            for position, data in enumerate(
                                image.to_dict() for image in record.feed
                            )
                        ],
                    )
        except sqlite3.Error as e:
            msg = f"Failed to write cached feed to {self.location}"
            raise WriteFailureError(msg, details=str(e), original_error=e) from e

        if record is None:
            logger.debug(f"Removed cached feed from {self.location}")
        else:
            logger.debug(
                f"Cached {len(record.feed)} feed images at {self.location}",
            )

    def close(self) -> None:
        """Close the underlying connection. Safe to call twice."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.debug(f"Closed feed store at {self.location}")

    def __repr__(self) -> str:
        return f"{type(self).__name__}(location={self.location!s}, model={self.model.name})"
