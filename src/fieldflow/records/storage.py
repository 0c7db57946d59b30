"""Append-only record collections over a key-value blob store.

Each collection is one JSON array stored under its collection key. Appends
read the array, push the new record and write the whole array back with a
single blob write, so earlier records survive a crash mid-append. Reads
never fail: a missing or unreadable blob is an empty collection.
"""

import json
import logging
from pathlib import Path
import sqlite3
from typing import Any, Mapping, Protocol

from .schemas import ReadingRecord, RecordKind, record_type

logger = logging.getLogger(__name__)


def get_default_storage_path() -> Path:
    """Get default storage path in user's home directory."""
    return Path.home() / ".fieldflow" / "fieldflow.db"


class BlobStore(Protocol):
    """String-keyed blob storage."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class MemoryBlobStore:
    """In-process blob store, used for tests and dry runs."""

    def __init__(self, initial: Mapping[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class SQLiteBlobStore:
    """SQLite-backed blob store.

    One row per key; ``set`` replaces the row in a single statement.
    Default location is ~/.fieldflow/fieldflow.db.

    Attributes:
        db_path: Path to SQLite database file
    """

    SCHEMA_BLOBS = """
    CREATE TABLE IF NOT EXISTS blobs (
        key TEXT PRIMARY KEY,
        value TEXT NOT NULL,
        updated_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
    );
    """

    def __init__(self, db_path: Path | str | None = None):
        """Initialize storage.

        Args:
            db_path: Path to SQLite database. If None, uses default location.
        """
        if db_path is None:
            self.db_path = get_default_storage_path()
        else:
            self.db_path = Path(db_path)

        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _init_db(self) -> None:
        with sqlite3.connect(self.db_path) as conn:
            conn.executescript(self.SCHEMA_BLOBS)
            conn.commit()

    def get(self, key: str) -> str | None:
        with sqlite3.connect(self.db_path) as conn:
            cursor = conn.execute("SELECT value FROM blobs WHERE key = ?", (key,))
            row = cursor.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str) -> None:
        sql = """
        INSERT OR REPLACE INTO blobs (key, value, updated_at)
        VALUES (?, ?, CURRENT_TIMESTAMP)
        """
        with sqlite3.connect(self.db_path) as conn:
            conn.execute(sql, (key, value))
            conn.commit()


class RecordStore:
    """Append-only keyed record collections.

    Attributes:
        blobs: Underlying blob store
    """

    def __init__(self, blobs: BlobStore | None = None):
        self.blobs = blobs if blobs is not None else MemoryBlobStore()

    def all(self, collection_key: str) -> list[dict[str, Any]]:
        """Return the stored records of a collection in append order.

        Missing, corrupt or non-array blobs read as an empty collection.
        """
        raw = self.blobs.get(collection_key)
        if not raw:
            return []
        try:
            data = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Collection {collection_key!r} is unreadable, treating as empty: {e}")
            return []
        if not isinstance(data, list):
            logger.warning(f"Collection {collection_key!r} is not a list, treating as empty")
            return []
        return data

    def append(self, collection_key: str, record: ReadingRecord | Mapping[str, Any]) -> int:
        """Append a record to a collection.

        Args:
            collection_key: Collection to append to
            record: Typed record or already-serialized dict

        Returns:
            Collection size after the append
        """
        data = record.to_dict() if isinstance(record, ReadingRecord) else dict(record)
        items = self.all(collection_key)
        items.append(data)
        self.blobs.set(collection_key, json.dumps(items, ensure_ascii=False))
        logger.debug(f"Appended record to {collection_key!r} ({len(items)} total)")
        return len(items)

    def count(self, collection_key: str) -> int:
        return len(self.all(collection_key))

    def records(self, kind: RecordKind | str) -> list[ReadingRecord]:
        """Typed view of a kind's collection. Entries that are not objects are skipped."""
        kind = RecordKind.parse(kind)
        cls = record_type(kind)
        return [
            cls.from_dict(item)
            for item in self.all(kind.collection_key)
            if isinstance(item, dict)
        ]
