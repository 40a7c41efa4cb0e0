from __future__ import annotations

from datetime import datetime, timezone
import json
import os
from pathlib import Path
import sqlite3
from typing import Any


STORE_KEY = "microsteps-store"


def _to_utc_text(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S")


class StateDB:
    """Key-value blobs in SQLite; the app keeps its whole client state under STORE_KEY."""

    def __init__(self, db_path: Path, journal_mode: str | None = None) -> None:
        self.db_path = Path(db_path)
        raw_mode = (journal_mode or os.getenv("MICROSTEPS_JOURNAL_MODE") or "MEMORY").strip()
        self.journal_mode = raw_mode.upper() if raw_mode else "MEMORY"
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.init_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        self._apply_journal_mode(conn)
        conn.execute("PRAGMA synchronous=NORMAL")
        return conn

    def _apply_journal_mode(self, conn: sqlite3.Connection) -> None:
        try:
            conn.execute(f"PRAGMA journal_mode={self.journal_mode}")
        except sqlite3.OperationalError:
            conn.execute("PRAGMA journal_mode=MEMORY")

    def init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            conn.commit()

    def load_blob(self, key: str = STORE_KEY) -> dict[str, Any] | None:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
        if row is None:
            return None
        data = json.loads(row["value"])
        if not isinstance(data, dict):
            raise ValueError(f"stored value for {key!r} is not an object")
        return data

    def save_blob(self, data: dict[str, Any], key: str = STORE_KEY) -> None:
        payload = json.dumps(data, ensure_ascii=False)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, payload, _to_utc_text(datetime.now(tz=timezone.utc))),
            )
            conn.commit()

    def delete_blob(self, key: str = STORE_KEY) -> bool:
        with self._connect() as conn:
            cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0


def default_db_path() -> Path:
    return Path(__file__).resolve().parent / "data" / "microsteps.sqlite"
