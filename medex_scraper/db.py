"""SQLite run ledger: per-batch outcomes and failed/unverified identities.

The JSON artifacts are the records themselves; this database remembers what
went wrong so later runs can retry it and ``stats`` can report on it.
"""

import os
import sqlite3
from typing import List, Optional, Tuple

from .models import BatchOutcome


class Database:
    def __init__(self, db_path: str = "data/medex.db"):
        self.db_path = db_path
        self._conn_obj: Optional[sqlite3.Connection] = None
        directory = os.path.dirname(os.path.abspath(db_path))
        os.makedirs(directory, exist_ok=True)
        self._init_db()

    @property
    def _conn(self) -> sqlite3.Connection:
        if self._conn_obj is None:
            self._conn_obj = sqlite3.connect(self.db_path)
            self._conn_obj.row_factory = sqlite3.Row
            self._conn_obj.execute("PRAGMA journal_mode=WAL")
        return self._conn_obj

    def close(self):
        if self._conn_obj is not None:
            self._conn_obj.close()
            self._conn_obj = None

    def _init_db(self):
        conn = self._conn
        conn.executescript("""
            CREATE TABLE IF NOT EXISTS batch_outcomes (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                job TEXT NOT NULL,
                range_start INTEGER NOT NULL,
                range_end INTEGER NOT NULL,
                items_saved INTEGER DEFAULT 0,
                failed INTEGER DEFAULT 0,
                skipped INTEGER DEFAULT 0,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            );

            CREATE INDEX IF NOT EXISTS idx_batch_job ON batch_outcomes(job);

            CREATE TABLE IF NOT EXISTS failures (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                job TEXT NOT NULL,
                identity TEXT NOT NULL,
                page INTEGER,
                reason TEXT,
                kind TEXT DEFAULT 'failed',
                status TEXT DEFAULT 'open',
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                UNIQUE(job, identity)
            );

            CREATE INDEX IF NOT EXISTS idx_failures_status ON failures(job, status);
        """)
        conn.commit()

    def record_batch(self, job: str, outcome: BatchOutcome):
        self._conn.execute(
            """INSERT INTO batch_outcomes (job, range_start, range_end, items_saved, failed, skipped)
               VALUES (?, ?, ?, ?, ?, ?)""",
            (job, outcome.range_start, outcome.range_end, outcome.items_saved,
             len(outcome.failures), int(outcome.skipped)),
        )
        self._conn.commit()

    def record_failure(self, job: str, identity, reason: str, kind: str = "failed"):
        page = identity if isinstance(identity, int) else None
        self._conn.execute(
            """INSERT INTO failures (job, identity, page, reason, kind, status)
               VALUES (?, ?, ?, ?, ?, 'open')
               ON CONFLICT(job, identity) DO UPDATE SET
                   reason = excluded.reason, kind = excluded.kind,
                   status = 'open', updated_at = CURRENT_TIMESTAMP""",
            (job, str(identity), page, reason, kind),
        )
        self._conn.commit()

    def resolve_failure(self, job: str, identity):
        self._conn.execute(
            """UPDATE failures SET status = 'resolved', updated_at = CURRENT_TIMESTAMP
               WHERE job = ? AND identity = ? AND status = 'open'""",
            (job, str(identity)),
        )
        self._conn.commit()

    def open_failures(self, job: str, kind: Optional[str] = None,
                      start: Optional[int] = None, end: Optional[int] = None) -> List[dict]:
        sql = "SELECT * FROM failures WHERE job = ? AND status = 'open'"
        params: list = [job]
        if kind:
            sql += " AND kind = ?"
            params.append(kind)
        if start is not None and end is not None:
            sql += " AND page BETWEEN ? AND ?"
            params.extend([start, end])
        sql += " ORDER BY page, identity"
        return [dict(r) for r in self._conn.execute(sql, params).fetchall()]

    def get_stats(self) -> List[Tuple]:
        rows = self._conn.execute(
            """SELECT job, COUNT(*) AS batches, COALESCE(SUM(items_saved), 0) AS saved,
                      COALESCE(SUM(failed), 0) AS failed, COALESCE(SUM(skipped), 0) AS skipped
               FROM batch_outcomes GROUP BY job ORDER BY job"""
        ).fetchall()
        return [tuple(r) for r in rows]

    def get_failure_stats(self) -> List[Tuple]:
        rows = self._conn.execute(
            """SELECT job, kind, status, COUNT(*) AS cnt
               FROM failures GROUP BY job, kind, status ORDER BY job, kind, status"""
        ).fetchall()
        return [tuple(r) for r in rows]
