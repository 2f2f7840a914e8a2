"""SQLite tier of the translation cache.

Entries persist across restarts in a single WAL-mode database file. Blocking sqlite3 calls run in a worker
thread through `asyncio.to_thread`, serialized by a lock around the shared connection.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from typing import TYPE_CHECKING, Any, ClassVar

from core.cache.interface import CacheStore, CacheStoreError
from models.cache_models import CacheEntry
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from pathlib import Path

__all__: list[str] = ["SqliteCacheStore"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class SqliteCacheStore(CacheStore):
    """Persistent cache tier backed by SQLite.

    Attributes:
        DB_SCHEMA_VERSION (ClassVar[int]): Schema version recorded in the metadata table.
    """

    DB_SCHEMA_VERSION: ClassVar[int] = 1

    def __init__(self, db_path: str | Path) -> None:
        self._db_path: Path = FileUtils.resolve_path(db_path)
        self._db_conn: sqlite3.Connection | None = None
        self._conn_lock: threading.Lock = threading.Lock()

    @property
    def db_path(self) -> Path:
        return self._db_path

    async def open(self) -> None:
        """Open the database, enable WAL mode and create the schema.

        Raises:
            CacheStoreError: If the database cannot be opened or initialized.
        """
        try:
            await asyncio.to_thread(self._initialize_database)
        except (sqlite3.Error, OSError) as err:
            msg: str = f"Database initialization failed: {err}"
            raise CacheStoreError(msg) from err
        logger.info("Cache database opened: %s", self._db_path)

    def _initialize_database(self) -> None:
        FileUtils.ensure_parent_dir(self._db_path)
        conn: sqlite3.Connection = sqlite3.connect(str(self._db_path), check_same_thread=False)
        try:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS translation_cache (
                    cache_key TEXT PRIMARY KEY,
                    source_lang TEXT NOT NULL,
                    target_lang TEXT NOT NULL,
                    original_text TEXT NOT NULL,
                    translation_text TEXT NOT NULL,
                    created_at INTEGER NOT NULL
                )
                """
            )
            conn.execute("CREATE INDEX IF NOT EXISTS idx_created_at ON translation_cache(created_at)")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_metadata (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )
            conn.execute(
                "INSERT OR IGNORE INTO cache_metadata (key, value) VALUES (?, ?)",
                ("schema_version", str(self.DB_SCHEMA_VERSION)),
            )
            row = conn.execute("SELECT value FROM cache_metadata WHERE key = ?", ("schema_version",)).fetchone()
            if row is not None and row[0] != str(self.DB_SCHEMA_VERSION):
                logger.warning(
                    "Cache DB schema version mismatch (db: %s, expected: %s)", row[0], self.DB_SCHEMA_VERSION
                )
            conn.commit()
        except sqlite3.Error:
            conn.close()
            raise
        self._db_conn = conn

    async def close(self) -> None:
        if self._db_conn is None:
            return
        conn: sqlite3.Connection = self._db_conn
        self._db_conn = None
        await asyncio.to_thread(self._locked, conn.close)
        logger.info("Database connection closed")

    def _locked(self, func: Callable[..., Any], *args: Any) -> Any:
        with self._conn_lock:
            return func(*args)

    async def _run(self, func: Callable[[sqlite3.Connection], Any]) -> Any:
        """Run `func(connection)` in a worker thread.

        Raises:
            CacheStoreError: If the store is not open or SQLite reports an error.
        """
        conn: sqlite3.Connection | None = self._db_conn
        if conn is None:
            msg = "Cache database is not open"
            raise CacheStoreError(msg)
        try:
            return await asyncio.to_thread(self._locked, func, conn)
        except sqlite3.Error as err:
            msg = f"Cache database error: {err}"
            raise CacheStoreError(msg) from err

    @staticmethod
    def _to_entry(row: tuple[Any, ...]) -> CacheEntry:
        return CacheEntry(
            key=row[0],
            source=row[1],
            target=row[2],
            original_text=row[3],
            translation=row[4],
            created_at=int(row[5]),
        )

    async def get(self, key: str) -> CacheEntry | None:
        def _select(conn: sqlite3.Connection) -> tuple[Any, ...] | None:
            return conn.execute(
                """
                SELECT cache_key, source_lang, target_lang, original_text, translation_text, created_at
                FROM translation_cache WHERE cache_key = ?
                """,
                (key,),
            ).fetchone()

        row: tuple[Any, ...] | None = await self._run(_select)
        return self._to_entry(row) if row is not None else None

    async def put(self, entry: CacheEntry) -> None:
        def _upsert(conn: sqlite3.Connection) -> None:
            conn.execute(
                """
                INSERT OR REPLACE INTO translation_cache
                    (cache_key, source_lang, target_lang, original_text, translation_text, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (entry.key, entry.source, entry.target, entry.original_text, entry.translation, entry.created_at),
            )
            conn.commit()

        await self._run(_upsert)

    async def delete(self, key: str) -> None:
        def _delete(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM translation_cache WHERE cache_key = ?", (key,))
            conn.commit()

        await self._run(_delete)

    async def clear(self) -> None:
        def _clear(conn: sqlite3.Connection) -> None:
            conn.execute("DELETE FROM translation_cache")
            conn.commit()

        await self._run(_clear)

    async def count(self) -> int:
        def _count(conn: sqlite3.Connection) -> int:
            return int(conn.execute("SELECT COUNT(*) FROM translation_cache").fetchone()[0])

        return await self._run(_count)

    async def entries(self, offset: int, limit: int) -> list[CacheEntry]:
        def _page(conn: sqlite3.Connection) -> list[tuple[Any, ...]]:
            return conn.execute(
                """
                SELECT cache_key, source_lang, target_lang, original_text, translation_text, created_at
                FROM translation_cache
                ORDER BY created_at DESC, rowid DESC
                LIMIT ? OFFSET ?
                """,
                (limit, offset),
            ).fetchall()

        rows: list[tuple[Any, ...]] = await self._run(_page)
        return [self._to_entry(row) for row in rows]

    async def delete_older_than(self, cutoff_ms: int) -> int:
        def _sweep(conn: sqlite3.Connection) -> int:
            cursor: sqlite3.Cursor = conn.execute("DELETE FROM translation_cache WHERE created_at < ?", (cutoff_ms,))
            conn.commit()
            return cursor.rowcount

        return await self._run(_sweep)
