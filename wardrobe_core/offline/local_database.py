# =============================================================================
# wardrobe_core/offline/local_database.py
# Local SQLite Cache for Garments and Outfits
# =============================================================================
"""
LocalDatabase - SQLite-based local cache that mirrors the Supabase tables.

Features:
- Versioned schema with ordered migrations
- One shared connection, created once under a lock
- Upsert-by-id for both garments and outfits
- Best-effort public API: writes log failures, reads degrade to empty
- Raising primitives used by the SyncEngine for per-row accounting
"""

from __future__ import annotations
import json
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Set, Tuple, Union
import logging

from wardrobe_core.config import DEFAULT_DB_PATH
from wardrobe_core.errors import CacheError, error_boundary
from wardrobe_core.models import GarmentRecord, OutfitRecord

logger = logging.getLogger(__name__)

Record = Union[GarmentRecord, OutfitRecord]

GARMENTS = "garments"
OUTFITS = "outfits"


@dataclass
class UpsertResult:
    """Outcome of a batch upsert."""
    written: int = 0
    skipped: List[Any] = field(default_factory=list)   # ids (or None) not written


class LocalDatabase:
    """
    Local SQLite cache for garment and outfit records, scoped by owner.

    The cache is a projection of the remote store: it is never the durable
    copy, so failures here are logged and swallowed by the public methods.
    """

    # Default database location
    DEFAULT_DB_PATH = DEFAULT_DB_PATH

    # Bump together with MIGRATIONS
    SCHEMA_VERSION = 4

    # version -> statements that bring the schema from version-1 to version
    MIGRATIONS: Dict[int, List[str]] = {
        1: [
            """
            CREATE TABLE IF NOT EXISTS clothes (
                id TEXT PRIMARY KEY NOT NULL,
                user_id TEXT NOT NULL,
                image_url TEXT,
                analysis_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """,
        ],
        2: [
            """
            CREATE TABLE IF NOT EXISTS outfits (
                id TEXT PRIMARY KEY NOT NULL,
                user_id TEXT NOT NULL,
                items_json TEXT NOT NULL,
                created_at TEXT NOT NULL
            )
            """,
        ],
        3: [
            "CREATE INDEX IF NOT EXISTS idx_clothes_user_created ON clothes (user_id, created_at)",
            "CREATE INDEX IF NOT EXISTS idx_outfits_user_created ON outfits (user_id, created_at)",
        ],
        4: [
            """
            CREATE TABLE IF NOT EXISTS outfit_sync_queue (
                outfit_id TEXT PRIMARY KEY NOT NULL,
                user_id TEXT NOT NULL,
                queued_at TEXT DEFAULT CURRENT_TIMESTAMP,
                attempts INTEGER DEFAULT 0,
                last_attempt TEXT,
                error_message TEXT
            )
            """,
        ],
    }

    TABLES = {
        GARMENTS: "clothes",
        OUTFITS: "outfits",
    }

    _instance: Optional[LocalDatabase] = None
    _instance_lock = threading.Lock()

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize local database (the connection is opened lazily).

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path) if db_path else self.DEFAULT_DB_PATH
        self._connection: Optional[sqlite3.Connection] = None
        self._lock = threading.RLock()
        self._initialized = False
        self._sync_engine = None

    @classmethod
    def get_instance(cls, db_path: Optional[Path] = None) -> LocalDatabase:
        """Get or create singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = LocalDatabase(db_path)
        return cls._instance

    # =========================================================================
    # CONNECTION & SCHEMA
    # =========================================================================

    def _get_connection(self) -> sqlite3.Connection:
        """Get the shared connection, opening it on first use."""
        with self._lock:
            if self._connection is None:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)
                self._connection = sqlite3.connect(
                    str(self.db_path),
                    check_same_thread=False,
                )
                self._connection.row_factory = sqlite3.Row
            return self._connection

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Context manager for database transactions on the shared connection."""
        with self._lock:
            conn = self._get_connection()
            try:
                yield conn
                conn.commit()
            except Exception:
                conn.rollback()
                raise

    @property
    def schema_version(self) -> int:
        """Schema version currently stored in the database file."""
        with self._lock:
            conn = self._get_connection()
            conn.execute(
                "CREATE TABLE IF NOT EXISTS schema_meta (key TEXT PRIMARY KEY, value TEXT)"
            )
            row = conn.execute(
                "SELECT value FROM schema_meta WHERE key = 'version'"
            ).fetchone()
            return int(row["value"]) if row else 0

    def initialize(self) -> None:
        """
        Create or migrate the schema. Idempotent and safe to call from
        several threads at once: only the first caller does the work.
        """
        if self._initialized:
            return

        with self._lock:
            if self._initialized:
                return

            current = self.schema_version
            with self.transaction() as conn:
                for version in range(current + 1, self.SCHEMA_VERSION + 1):
                    for statement in self.MIGRATIONS[version]:
                        conn.execute(statement)
                    logger.debug(f"Applied local schema migration {version}")
                conn.execute(
                    "INSERT OR REPLACE INTO schema_meta (key, value) VALUES ('version', ?)",
                    [str(self.SCHEMA_VERSION)],
                )

            self._initialized = True
            logger.info(
                f"Local database initialized at: {self.db_path} "
                f"(schema v{current} -> v{self.SCHEMA_VERSION})"
            )

    def close(self) -> None:
        """Close the shared connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
            self._initialized = False

    # =========================================================================
    # ROW ENCODING
    # =========================================================================

    @staticmethod
    def _encode(kind: str, record: Record) -> Tuple[str, List[Any]]:
        """Return the upsert statement and its parameters for a record."""
        if kind == GARMENTS:
            return (
                "INSERT OR REPLACE INTO clothes (id, user_id, image_url, analysis_json, created_at) "
                "VALUES (?, ?, ?, ?, ?)",
                [
                    record.id,
                    record.owner_id,
                    record.image_url,
                    json.dumps(record.analysis_payload or {}),
                    record.created_at,
                ],
            )
        return (
            "INSERT OR REPLACE INTO outfits (id, user_id, items_json, created_at) "
            "VALUES (?, ?, ?, ?)",
            [
                record.id,
                record.owner_id,
                json.dumps(record.items_payload or []),
                record.created_at,
            ],
        )

    @staticmethod
    def _decode(kind: str, row: sqlite3.Row) -> Record:
        if kind == GARMENTS:
            return GarmentRecord(
                id=row["id"],
                owner_id=row["user_id"],
                image_url=row["image_url"],
                analysis_payload=json.loads(row["analysis_json"]),
                created_at=row["created_at"],
            )
        return OutfitRecord(
            id=row["id"],
            owner_id=row["user_id"],
            items_payload=json.loads(row["items_json"]),
            created_at=row["created_at"],
        )

    def _table(self, kind: str) -> str:
        try:
            return self.TABLES[kind]
        except KeyError:
            raise CacheError(f"Unknown record kind: {kind}")

    # =========================================================================
    # RAISING PRIMITIVES (used by the SyncEngine)
    # =========================================================================

    def write_records(self, kind: str, records: Iterable[Record]) -> UpsertResult:
        """
        Insert-or-replace records one row at a time.

        Records without ``id`` or ``owner_id`` are skipped with a warning, and
        a row that fails to serialize or write is skipped without affecting
        the others.

        Raises:
            CacheError: for an unknown record kind
        """
        self._table(kind)
        self.initialize()
        result = UpsertResult()

        with self.transaction() as conn:
            for record in records:
                if not record.id or not record.owner_id:
                    logger.warning(
                        f"Skipping {kind} record with missing id/owner "
                        f"(id={record.id!r}, owner={record.owner_id!r})"
                    )
                    result.skipped.append(record.id)
                    continue
                try:
                    sql, params = self._encode(kind, record)
                    conn.execute(sql, params)
                    result.written += 1
                except (sqlite3.Error, TypeError, ValueError) as e:
                    logger.error(f"Error writing {kind} record {record.id}: {e}")
                    result.skipped.append(record.id)

        return result

    def delete_record(self, kind: str, record_id: str) -> bool:
        """
        Delete one record by id.

        Returns:
            True if a row was removed, False if it was already absent

        Raises:
            CacheError: if the delete itself fails
        """
        table = self._table(kind)
        self.initialize()
        try:
            with self.transaction() as conn:
                cursor = conn.execute(f"DELETE FROM {table} WHERE id = ?", [record_id])
                return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise CacheError(f"Could not delete {kind} record: {e}", table=table, record_id=record_id)

    def get_ids(self, kind: str, owner_id: str) -> Set[str]:
        """
        All cached ids for an owner.

        Raises:
            CacheError: if the table cannot be read
        """
        table = self._table(kind)
        self.initialize()
        try:
            with self._lock:
                rows = self._get_connection().execute(
                    f"SELECT id FROM {table} WHERE user_id = ?", [owner_id]
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheError(f"Could not read {kind} ids: {e}", table=table)
        return {row["id"] for row in rows}

    def read_records(self, kind: str, owner_id: str) -> List[Record]:
        """Records for an owner, newest first. Undecodable rows are skipped."""
        table = self._table(kind)
        self.initialize()
        with self._lock:
            rows = self._get_connection().execute(
                f"SELECT * FROM {table} WHERE user_id = ? ORDER BY created_at DESC",
                [owner_id],
            ).fetchall()

        records = []
        for row in rows:
            try:
                records.append(self._decode(kind, row))
            except (json.JSONDecodeError, TypeError) as e:
                logger.warning(f"Skipping unreadable {kind} row {row['id']}: {e}")
        return records

    # =========================================================================
    # BEST-EFFORT API
    # =========================================================================

    @error_boundary(default_return=0)
    def upsert_garments(self, records: Iterable[GarmentRecord]) -> int:
        """Insert-or-replace garments; returns the number written."""
        return self.write_records(GARMENTS, records).written

    @error_boundary(default_return=0)
    def upsert_outfits(self, records: Iterable[OutfitRecord]) -> int:
        """Insert-or-replace outfits; returns the number written."""
        return self.write_records(OUTFITS, records).written

    @error_boundary(default_return=False)
    def delete_garment(self, garment_id: str) -> bool:
        """Delete a cached garment; absent ids are a no-op."""
        return self.delete_record(GARMENTS, garment_id)

    @error_boundary(default_return=False)
    def delete_outfit(self, outfit_id: str) -> bool:
        """Delete a cached outfit (and any queued push); absent ids are a no-op."""
        self.mark_outfit_synced(outfit_id)
        return self.delete_record(OUTFITS, outfit_id)

    @error_boundary(default_factory=list)
    def get_garments(self, owner_id: str) -> List[GarmentRecord]:
        """Cached garments for an owner, newest first ([] on any failure)."""
        return self.read_records(GARMENTS, owner_id)

    @error_boundary(default_factory=list)
    def get_outfits(self, owner_id: str) -> List[OutfitRecord]:
        """Cached outfits for an owner, newest first ([] on any failure)."""
        return self.read_records(OUTFITS, owner_id)

    @error_boundary(default_return=0)
    def count_outfits_since(self, owner_id: str, since: str) -> int:
        """Number of cached outfits created at or after ``since`` (ISO-8601)."""
        self.initialize()
        with self._lock:
            row = self._get_connection().execute(
                "SELECT COUNT(*) AS count FROM outfits WHERE user_id = ? AND created_at >= ?",
                [owner_id, since],
            ).fetchone()
        return row["count"] if row else 0

    # =========================================================================
    # OUTFIT SYNC QUEUE
    # =========================================================================

    def get_queued_outfit_ids(self, owner_id: str) -> Set[str]:
        """
        Ids of outfits saved locally whose remote insert has not succeeded.

        Raises:
            CacheError: if the queue cannot be read
        """
        self.initialize()
        try:
            with self._lock:
                rows = self._get_connection().execute(
                    "SELECT outfit_id FROM outfit_sync_queue WHERE user_id = ?", [owner_id]
                ).fetchall()
        except sqlite3.Error as e:
            raise CacheError(f"Could not read outfit sync queue: {e}", table="outfit_sync_queue")
        return {row["outfit_id"] for row in rows}

    @error_boundary(default_return=False)
    def queue_outfit(self, outfit_id: str, owner_id: str) -> bool:
        """Queue an outfit for a later remote insert."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                "INSERT OR IGNORE INTO outfit_sync_queue (outfit_id, user_id) VALUES (?, ?)",
                [outfit_id, owner_id],
            )
        return True

    @error_boundary(default_return=False)
    def mark_outfit_synced(self, outfit_id: str) -> bool:
        """Drop an outfit from the sync queue."""
        self.initialize()
        with self.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM outfit_sync_queue WHERE outfit_id = ?", [outfit_id]
            )
            return cursor.rowcount > 0

    @error_boundary(default_return=False)
    def mark_outfit_sync_failed(self, outfit_id: str, error: str) -> bool:
        """Record a failed push attempt; the outfit stays queued."""
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                UPDATE outfit_sync_queue
                SET attempts = attempts + 1, last_attempt = ?, error_message = ?
                WHERE outfit_id = ?
                """,
                [datetime.now().isoformat(), error, outfit_id],
            )
        return True

    # =========================================================================
    # RECONCILIATION
    # =========================================================================

    def _get_sync_engine(self):
        """Lazy load the sync engine bound to this database."""
        if self._sync_engine is None:
            from wardrobe_core.offline.sync_engine import SyncEngine
            self._sync_engine = SyncEngine(self)
        return self._sync_engine

    def reconcile_garments(self, owner_id: str, remote_records: List[GarmentRecord]):
        """Converge cached garments for an owner to the remote snapshot."""
        return self._get_sync_engine().reconcile(GARMENTS, owner_id, remote_records)

    def reconcile_outfits(self, owner_id: str, remote_records: List[OutfitRecord]):
        """Converge cached outfits for an owner to the remote snapshot."""
        return self._get_sync_engine().reconcile(OUTFITS, owner_id, remote_records)


# Singleton accessor
_local_database: Optional[LocalDatabase] = None


def get_local_database(db_path: Optional[Path] = None) -> LocalDatabase:
    """Get the global LocalDatabase instance."""
    global _local_database
    if _local_database is None:
        _local_database = LocalDatabase.get_instance(db_path)
        _local_database.initialize()
    return _local_database
