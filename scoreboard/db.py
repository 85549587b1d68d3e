"""
scoreboard/db.py - SQLite storage for finished matches.

All queries go through MatchHistoryStore. One instance per server lifetime,
backed by a single SQLite file (or :memory: for tests). Records are
write-once: there is no update path.
"""

import functools
import sqlite3
from datetime import datetime, timezone
from typing import Any

from ringside.errors import StoreRejected, StoreUnavailable
from ringside.match import MatchOutcome

# SQLite INTEGER is a signed 64-bit value
MAX_MATCH_ID = 2**63 - 1


def _store_errors(fn):
    """Turn sqlite3 failures into StoreUnavailable."""

    @functools.wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Match history store failed: {e}") from e

    return wrapper


class MatchHistoryStore:
    """Thin wrapper around SQLite for the match history table."""

    def __init__(self, path: str = "ringside.db"):
        try:
            self._conn = sqlite3.connect(path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._create_tables()
        except sqlite3.Error as e:
            raise StoreUnavailable(f"Cannot open {path}: {e}") from e

    def _create_tables(self) -> None:
        self._conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS matches (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name_a TEXT NOT NULL,
                name_b TEXT NOT NULL DEFAULT '',
                score_a INTEGER NOT NULL,
                score_b INTEGER NOT NULL,
                phase TEXT NOT NULL DEFAULT 'preliminar',
                created_at TEXT NOT NULL
            );
            """
        )

    @_store_errors
    def create(self, outcome: MatchOutcome) -> int:
        """Persist a finished match. Returns the new record id."""
        cursor = self._conn.execute(
            "INSERT INTO matches (name_a, name_b, score_a, score_b, phase, created_at) "
            "VALUES (?, ?, ?, ?, ?, ?)",
            (
                outcome.name_a,
                outcome.name_b or "",
                outcome.score_a,
                outcome.score_b,
                outcome.phase,
                _now(),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    @_store_errors
    def delete(self, match_id: int) -> None:
        """Delete a record. Raises StoreRejected if the id doesn't exist."""
        if not 1 <= match_id <= MAX_MATCH_ID:
            raise StoreRejected(f"Match {match_id} not found")
        cursor = self._conn.execute("DELETE FROM matches WHERE id = ?", (match_id,))
        self._conn.commit()
        if cursor.rowcount == 0:
            raise StoreRejected(f"Match {match_id} not found")

    @_store_errors
    def get(self, match_id: int) -> dict[str, Any] | None:
        """Fetch one record by id."""
        if not 1 <= match_id <= MAX_MATCH_ID:
            return None
        row = self._conn.execute(
            "SELECT * FROM matches WHERE id = ?", (match_id,)
        ).fetchone()
        return _to_record(row) if row else None

    @_store_errors
    def find_all_ordered_by_created_asc(self) -> list[dict[str, Any]]:
        """Every record, oldest first. Ties fall back to insertion order."""
        rows = self._conn.execute(
            "SELECT * FROM matches ORDER BY created_at ASC, id ASC"
        ).fetchall()
        return [_to_record(row) for row in rows]

    @_store_errors
    def count(self) -> int:
        return self._conn.execute("SELECT COUNT(*) FROM matches").fetchone()[0]

    def close(self) -> None:
        self._conn.close()


def _to_record(row: sqlite3.Row) -> dict[str, Any]:
    """Row -> wire-format history record."""
    return {
        "id": row["id"],
        "nameA": row["name_a"],
        "nameB": row["name_b"],
        "scoreA": row["score_a"],
        "scoreB": row["score_b"],
        "phase": row["phase"],
        "createdAt": row["created_at"],
    }


def _now() -> str:
    """ISO timestamp in UTC."""
    return datetime.now(timezone.utc).isoformat()
