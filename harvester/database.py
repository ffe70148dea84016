# harvester/database.py

import json
import logging
import os
import sqlite3
import threading
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class Database:
    """Append-only record dataset plus a keyed raw-blob store in one SQLite file."""

    def __init__(self, db_path: str = 'data/harvester.db'):
        self.db_path = self._resolve_db_path(db_path)
        self.conn = None
        self._lock = threading.Lock()
        self.init_database()

    @staticmethod
    def _resolve_db_path(db_path: str) -> str:
        """Return an absolute database path anchored to project root when relative."""
        if db_path == ':memory:':
            return db_path
        path = Path(db_path)
        if path.is_absolute():
            return str(path)

        project_root = Path(__file__).resolve().parents[1]
        return str(project_root / path)

    def init_database(self):
        """Create tables if they don't exist."""
        try:
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                try:
                    os.makedirs(db_dir, exist_ok=True)
                except OSError as e:
                    raise RuntimeError(f"Failed to create database directory '{db_dir}': {e}")

            # Static crawls write from worker threads; every access goes through self._lock.
            self.conn = sqlite3.connect(self.db_path, timeout=30.0, check_same_thread=False)
            self.conn.row_factory = sqlite3.Row
            self.conn.execute("PRAGMA busy_timeout = 30000")
            self._set_wal_mode_best_effort()

            cursor = self.conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS experience_records (
                    record_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    place_id TEXT,
                    experience_id TEXT,
                    url TEXT NOT NULL,
                    record_json TEXT NOT NULL,
                    extracted_at TEXT NOT NULL,
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """)
            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_experience_records_place
                ON experience_records(place_id)
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS key_value_store (
                    key TEXT PRIMARY KEY,
                    value_json TEXT NOT NULL,
                    content_type TEXT DEFAULT 'application/json',
                    updated_at TEXT NOT NULL
                )
            """)

            self._commit_with_retry(context="init schema commit")
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to initialize database at '{self.db_path}': {e}")

    def _set_wal_mode_best_effort(self, retries: int = 5, delay_seconds: float = 0.2) -> None:
        """Try to enable WAL without failing startup if the DB is temporarily locked."""
        if self.db_path == ':memory:':
            return
        for attempt in range(retries):
            try:
                self.conn.execute("PRAGMA journal_mode = WAL")
                return
            except sqlite3.OperationalError as e:
                msg = str(e).lower()
                if "locked" not in msg and "busy" not in msg:
                    raise
                if attempt == retries - 1:
                    logger.warning("Could not enable WAL mode (database locked); continuing. (%s)", e)
                    return
                time.sleep(delay_seconds)

    def _commit_with_retry(self, retries: int = 8, delay_seconds: float = 0.25, context: str = "commit") -> None:
        """
        Retry commit on transient SQLITE_BUSY/locked errors.
        """
        last_error = None
        for attempt in range(retries):
            try:
                self.conn.commit()
                return
            except sqlite3.OperationalError as e:
                last_error = e
                if "locked" not in str(e).lower() and "busy" not in str(e).lower():
                    raise
                if attempt == retries - 1:
                    break
                time.sleep(delay_seconds)
        raise RuntimeError(
            f"Failed to {context}: database remained locked after {retries} attempts ({last_error})"
        )

    # --- Record dataset ---

    def push_record(self, record: Dict[str, Any]) -> int:
        """Append one canonical record. Returns its row id."""
        place_id = record.get('place_id')
        experience_id = record.get('experience_id')
        try:
            with self._lock:
                cursor = self.conn.cursor()
                cursor.execute("""
                    INSERT INTO experience_records (place_id, experience_id, url, record_json, extracted_at)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    None if place_id is None else str(place_id),
                    None if experience_id is None else str(experience_id),
                    record.get('url') or '',
                    json.dumps(record, ensure_ascii=False, default=str),
                    record.get('extracted_at') or datetime.now(timezone.utc).isoformat(),
                ))
                self._commit_with_retry(context="push record commit")
                return cursor.lastrowid
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise RuntimeError(f"Failed to push record for '{record.get('url')}': {e}")

    def get_records(self, place_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Records in insertion order, optionally for one place id."""
        try:
            with self._lock:
                cursor = self.conn.cursor()
                if place_id is None:
                    cursor.execute("SELECT record_json FROM experience_records ORDER BY record_id")
                else:
                    cursor.execute("""
                        SELECT record_json FROM experience_records
                        WHERE place_id = ?
                        ORDER BY record_id
                    """, (str(place_id),))
                rows = cursor.fetchall()
            return [json.loads(row['record_json']) for row in rows]
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to read records: {e}")

    def count_records(self) -> int:
        try:
            with self._lock:
                row = self.conn.execute("SELECT COUNT(*) AS n FROM experience_records").fetchone()
            return int(row['n'])
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to count records: {e}")

    # --- Key-value store ---

    def set_value(self, key: str, value: Any, content_type: str = 'application/json') -> None:
        """Write a blob under key; the last write wins."""
        try:
            payload = json.dumps(value, ensure_ascii=False, default=str)
            with self._lock:
                self.conn.execute("""
                    INSERT INTO key_value_store (key, value_json, content_type, updated_at)
                    VALUES (?, ?, ?, ?)
                    ON CONFLICT(key) DO UPDATE SET
                        value_json = excluded.value_json,
                        content_type = excluded.content_type,
                        updated_at = excluded.updated_at
                """, (key, payload, content_type, datetime.now(timezone.utc).isoformat()))
                self._commit_with_retry(context=f"set value '{key}' commit")
        except (sqlite3.Error, TypeError, ValueError) as e:
            raise RuntimeError(f"Failed to set value '{key}': {e}")

    def get_value(self, key: str) -> Optional[Any]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT value_json FROM key_value_store WHERE key = ?", (key,)
                ).fetchone()
            return json.loads(row['value_json']) if row else None
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to get value '{key}': {e}")

    def list_keys(self, prefix: str = '') -> List[str]:
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT key FROM key_value_store WHERE key LIKE ? ESCAPE '\\' ORDER BY key",
                    (prefix.replace('%', r'\%').replace('_', r'\_') + '%',),
                ).fetchall()
            return [row['key'] for row in rows]
        except sqlite3.Error as e:
            raise RuntimeError(f"Failed to list keys: {e}")

    def close(self):
        """Close database connection."""
        if self.conn:
            self.conn.close()
