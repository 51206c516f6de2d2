"""Learned words: local SQLite store.

One connection per operation, so the store can be used from the main queue
and from worker threads alike.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path("~/.wordy/words.db").expanduser()

SCHEMA = """
CREATE TABLE IF NOT EXISTS words (
    id               TEXT PRIMARY KEY,
    word             TEXT NOT NULL,
    definition       TEXT NOT NULL,
    created_at       TEXT NOT NULL,
    review_count     INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT
);
CREATE INDEX IF NOT EXISTS words_word ON words(word COLLATE NOCASE);
"""


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class WordRecord:
    word: str
    definition: str
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = field(default_factory=_now)
    review_count: int = 0
    last_reviewed_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.review_count < 0:
            raise ValueError("review_count must be >= 0")


def _row_to_record(row: sqlite3.Row) -> WordRecord:
    last = row["last_reviewed_at"]
    return WordRecord(
        id=row["id"],
        word=row["word"],
        definition=row["definition"],
        created_at=datetime.fromisoformat(row["created_at"]),
        review_count=int(row["review_count"]),
        last_reviewed_at=datetime.fromisoformat(last) if last else None,
    )


class WordStore:
    """CRUD for WordRecord. Review fields change only through mark_reviewed()."""

    def __init__(self, path: Union[str, Path] = DEFAULT_DB_PATH):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        conn = self._conn()
        try:
            conn.executescript(SCHEMA)
        finally:
            conn.close()

    def _conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self.path))
        conn.row_factory = sqlite3.Row
        return conn

    def _run(self, sql: str, params: tuple = ()) -> int:
        conn = self._conn()
        try:
            with conn:
                return conn.execute(sql, params).rowcount
        finally:
            conn.close()

    def _query(self, sql: str, params: tuple = ()) -> List[sqlite3.Row]:
        conn = self._conn()
        try:
            return conn.execute(sql, params).fetchall()
        finally:
            conn.close()

    def save(self, record: WordRecord) -> None:
        """Insert a record; an existing id only gets its word/definition updated."""
        self._run(
            """
            INSERT INTO words(id, word, definition, created_at, review_count, last_reviewed_at)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(id) DO UPDATE SET word = excluded.word, definition = excluded.definition
            """,
            (
                record.id,
                record.word,
                record.definition,
                record.created_at.isoformat(),
                record.review_count,
                record.last_reviewed_at.isoformat() if record.last_reviewed_at else None,
            ),
        )
        logger.debug("Saved word %r (%s)", record.word, record.id)

    def get(self, record_id: str) -> Optional[WordRecord]:
        rows = self._query("SELECT * FROM words WHERE id = ?", (record_id,))
        return _row_to_record(rows[0]) if rows else None

    def fetch_all(self) -> List[WordRecord]:
        """Newest first."""
        rows = self._query("SELECT * FROM words ORDER BY created_at DESC, rowid DESC")
        return [_row_to_record(r) for r in rows]

    def fetch_by_word(self, word: str) -> Optional[WordRecord]:
        rows = self._query(
            "SELECT * FROM words WHERE word = ? COLLATE NOCASE ORDER BY created_at DESC LIMIT 1",
            (word.strip(),),
        )
        return _row_to_record(rows[0]) if rows else None

    def mark_reviewed(self, record_id: str, when: Optional[datetime] = None) -> Optional[WordRecord]:
        """Increment review_count and stamp last_reviewed_at. Returns the updated record."""
        when = when or _now()
        changed = self._run(
            "UPDATE words SET review_count = review_count + 1, last_reviewed_at = ? WHERE id = ?",
            (when.isoformat(), record_id),
        )
        if not changed:
            return None
        return self.get(record_id)

    def delete(self, record_id: str) -> bool:
        return self._run("DELETE FROM words WHERE id = ?", (record_id,)) > 0

    def delete_all(self) -> int:
        return self._run("DELETE FROM words")

    def count(self) -> int:
        return int(self._query("SELECT COUNT(*) AS n FROM words")[0]["n"])

