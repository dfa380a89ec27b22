"""SQLite translation cache."""

import hashlib
import logging
import sqlite3
from pathlib import Path

logger = logging.getLogger(__name__)


def get_connection(db_path: str | Path) -> sqlite3.Connection:
    """Create a connection to the SQLite database.

    Args:
        db_path: Path to the SQLite database file.

    Returns:
        A sqlite3 Connection with row_factory set to Row.
    """
    conn = sqlite3.connect(str(db_path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    return conn


def initialize_database(db_path: str | Path) -> None:
    """Create the cache schema if it doesn't exist.

    Args:
        db_path: Path to the SQLite database file.
    """
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS translations (
                key TEXT PRIMARY KEY,
                source_language TEXT NOT NULL,
                target_language TEXT NOT NULL,
                source_text TEXT NOT NULL,
                translated_text TEXT NOT NULL,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );
            """
        )
        conn.commit()
    finally:
        conn.close()


def cache_key(text: str, source: str | None, target: str) -> str:
    """Stable key for a (source, target, text) translation."""
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return f"{source or 'auto'}:{target}:{digest}"


class TranslationCache:
    """Persistent memo of successful translations.

    Each call opens its own connection, so the cache can be used from
    worker threads. Cache failures are logged and treated as misses.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = Path(db_path)
        initialize_database(self._db_path)

    def get(self, text: str, source: str | None, target: str) -> str | None:
        try:
            conn = get_connection(self._db_path)
            try:
                row = conn.execute(
                    "SELECT translated_text FROM translations WHERE key = ?",
                    (cache_key(text, source, target),),
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error:
            logger.exception("Translation cache read failed: %s", self._db_path)
            return None
        return row["translated_text"] if row else None

    def put(self, text: str, source: str | None, target: str, translated: str) -> None:
        try:
            conn = get_connection(self._db_path)
            try:
                conn.execute(
                    """
                    INSERT OR REPLACE INTO translations
                        (key, source_language, target_language, source_text, translated_text)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (cache_key(text, source, target), source or "auto", target, text, translated),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            logger.exception("Translation cache write failed: %s", self._db_path)
