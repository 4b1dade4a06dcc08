from __future__ import annotations

import json
import os
import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

PACKAGE_ROOT = Path(__file__).resolve().parent
PROJECT_ROOT = PACKAGE_ROOT.parent.parent
DATA_DIR = PROJECT_ROOT / "data"
DEFAULT_DB_PATH = DATA_DIR / "flashai.db"
DB_PATH = Path(os.environ.get("FLASHAI_DB_PATH", DEFAULT_DB_PATH))

LIBRARY_NAMESPACE = "flashai_library_v1"
TOPIC_STATS_NAMESPACE = "flashai_topic_stats_v1"


class PersistenceError(Exception):
    """Raised when a record cannot be written to the store."""


@dataclass(slots=True, frozen=True)
class LoadResult:
    """Outcome of reading one namespace: a decoded value or the error that prevented it."""

    value: Any = None
    error: Exception | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def value_or(self, default: Any) -> Any:
        """Return the stored value, or ``default`` when missing or unreadable."""
        if self.error is not None or self.value is None:
            return default
        return self.value


def now_iso(value: datetime | None = None) -> str:
    """Return the current UTC timestamp (seconds precision) as ISO 8601."""

    moment = value or datetime.now(timezone.utc)
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    else:
        moment = moment.astimezone(timezone.utc)
    return moment.isoformat(timespec="seconds")


class RecordStore:
    """Namespaced JSON records kept in a single SQLite table."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path) if db_path is not None else DB_PATH

    def _open_connection(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection = sqlite3.connect(self.db_path)
        connection.row_factory = sqlite3.Row
        return connection

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection that commits on success and always closes."""

        connection = self._open_connection()
        try:
            yield connection
            connection.commit()
        finally:
            connection.close()

    def init(self) -> None:
        """Initialise the database schema if the table is missing."""

        with self.connect() as connection:
            connection.execute(
                """
                CREATE TABLE IF NOT EXISTS records (
                    namespace TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )

    def read(self, namespace: str) -> LoadResult:
        try:
            with self.connect() as connection:
                row = connection.execute(
                    "SELECT value FROM records WHERE namespace = ?", (namespace,)
                ).fetchone()
            if row is None:
                return LoadResult()
            return LoadResult(value=json.loads(row["value"]))
        except (sqlite3.Error, OSError, ValueError, RecursionError) as exc:
            return LoadResult(error=exc)

    def write(self, namespace: str, value: Any) -> None:
        try:
            self.write_raw(namespace, json.dumps(value, ensure_ascii=False))
        except (sqlite3.Error, OSError, TypeError, ValueError) as exc:
            raise PersistenceError(f"Failed to write {namespace!r}: {exc}") from exc

    def write_raw(self, namespace: str, payload: str) -> None:
        """Store ``payload`` verbatim, without JSON encoding."""

        with self.connect() as connection:
            connection.execute(
                """
                INSERT INTO records (namespace, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(namespace) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (namespace, payload, now_iso()),
            )


__all__ = [
    "DB_PATH",
    "DEFAULT_DB_PATH",
    "LIBRARY_NAMESPACE",
    "LoadResult",
    "PersistenceError",
    "RecordStore",
    "TOPIC_STATS_NAMESPACE",
    "now_iso",
]
