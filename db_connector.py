from __future__ import annotations

import sqlite3
from contextlib import closing
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AUDIO_STATUSES = ('pending', 'processing', 'completed', 'failed')

_SCHEMA = """
CREATE TABLE IF NOT EXISTS sentences (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    text TEXT NOT NULL,
    category TEXT NOT NULL DEFAULT 'general',
    difficulty INTEGER NOT NULL DEFAULT 1,
    audio_british TEXT,
    audio_american TEXT,
    audio_status TEXT NOT NULL DEFAULT 'pending',
    is_deleted INTEGER NOT NULL DEFAULT 0,
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_sentences_category ON sentences (category);
"""


def _now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds')


@dataclass
class Sentence:
    id: int
    text: str
    category: str
    difficulty: int
    audio_british: str | None
    audio_american: str | None
    audio_status: str
    created_at: str
    updated_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Sentence:
        return cls(
            id=row['id'],
            text=row['text'],
            category=row['category'],
            difficulty=row['difficulty'],
            audio_british=row['audio_british'],
            audio_american=row['audio_american'],
            audio_status=row['audio_status'],
            created_at=row['created_at'],
            updated_at=row['updated_at'],
        )


class SentenceRepository:
    def __init__(self, db_path: str | Path = 'englishecho.db'):
        self.db_path = Path(db_path)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_schema(self) -> None:
        with closing(self._connect()) as conn, conn:
            conn.executescript(_SCHEMA)

    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with closing(self._connect()) as conn:
            return conn.execute(sql, params).fetchall()

    def _execute(self, sql: str, params: tuple = ()) -> sqlite3.Cursor:
        with closing(self._connect()) as conn, conn:
            return conn.execute(sql, params)

    def list_sentences(
        self, page: int = 1, limit: int = 20, category: str | None = None
    ) -> tuple[list[Sentence], int]:
        where = 'WHERE is_deleted = 0'
        params: tuple = ()
        if category:
            where += ' AND category = ?'
            params = (category,)
        total = self._query(f'SELECT COUNT(*) AS n FROM sentences {where}', params)[0]['n']
        rows = self._query(
            f'SELECT * FROM sentences {where} ORDER BY created_at DESC, id DESC LIMIT ? OFFSET ?',
            params + (limit, (page - 1) * limit),
        )
        return [Sentence.from_row(r) for r in rows], total

    def get(self, sentence_id: int) -> Sentence | None:
        rows = self._query(
            'SELECT * FROM sentences WHERE id = ? AND is_deleted = 0', (sentence_id,)
        )
        return Sentence.from_row(rows[0]) if rows else None

    def create(self, text: str, category: str = 'general', difficulty: int = 1) -> Sentence:
        now = _now()
        cur = self._execute(
            'INSERT INTO sentences (text, category, difficulty, audio_status, created_at, updated_at) '
            'VALUES (?, ?, ?, ?, ?, ?)',
            (text, category or 'general', int(difficulty or 1), 'pending', now, now),
        )
        return self.get(cur.lastrowid)

    def update(
        self,
        sentence_id: int,
        text: str | None = None,
        category: str | None = None,
        difficulty: int | None = None,
    ) -> tuple[Sentence | None, bool]:
        """Apply the given fields; returns the row and whether the text changed."""
        existing = self.get(sentence_id)
        if existing is None:
            return None, False
        fields: dict[str, Any] = {}
        if text:
            fields['text'] = text
        if category:
            fields['category'] = category
        if difficulty:
            fields['difficulty'] = int(difficulty)
        text_changed = bool(text) and text != existing.text
        if text_changed:
            fields['audio_status'] = 'processing'
        if fields:
            fields['updated_at'] = _now()
            assignments = ', '.join(f'{name} = ?' for name in fields)
            self._execute(
                f'UPDATE sentences SET {assignments} WHERE id = ?',
                tuple(fields.values()) + (sentence_id,),
            )
        return self.get(sentence_id), text_changed

    def soft_delete(self, sentence_id: int) -> bool:
        cur = self._execute(
            'UPDATE sentences SET is_deleted = 1, updated_at = ? WHERE id = ? AND is_deleted = 0',
            (_now(), sentence_id),
        )
        return cur.rowcount > 0

    def set_status(self, sentence_id: int, status: str) -> None:
        if status not in AUDIO_STATUSES:
            raise ValueError(f'Unknown audio status: {status}')
        self._execute(
            'UPDATE sentences SET audio_status = ?, updated_at = ? WHERE id = ?',
            (status, _now(), sentence_id),
        )

    def set_audio(
        self, sentence_id: int, british: str | None, american: str | None, status: str = 'completed'
    ) -> None:
        self._execute(
            'UPDATE sentences SET audio_british = ?, audio_american = ?, audio_status = ?, '
            'updated_at = ? WHERE id = ?',
            (british, american, status, _now(), sentence_id),
        )

    def categories(self) -> list[str]:
        rows = self._query(
            'SELECT DISTINCT category FROM sentences WHERE is_deleted = 0 ORDER BY category'
        )
        return [r['category'] for r in rows]

    def _group_count(self, column: str) -> list[tuple[Any, int]]:
        rows = self._query(
            f'SELECT {column} AS grp, COUNT(*) AS n FROM sentences '
            f'WHERE is_deleted = 0 GROUP BY {column} ORDER BY {column}'
        )
        return [(r['grp'], r['n']) for r in rows]

    def stats(self) -> dict[str, Any]:
        total = self._query('SELECT COUNT(*) AS n FROM sentences WHERE is_deleted = 0')[0]['n']
        return {
            'totalSentences': total,
            'byCategory': [
                {'category': k, 'count': n} for k, n in self._group_count('category')
            ],
            'byDifficulty': [
                {'difficulty': k, 'count': n} for k, n in self._group_count('difficulty')
            ],
            'audioStatus': [
                {'status': k, 'count': n} for k, n in self._group_count('audio_status')
            ],
        }

    def count_all(self) -> int:
        return self._query('SELECT COUNT(*) AS n FROM sentences')[0]['n']
