from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
import threading
from datetime import datetime, timedelta, timezone
from typing import Callable

from app.analysis.fingerprint import short_fingerprint
from app.schemas.gap_analysis import AnalysisResult, HistoryItem

logger = logging.getLogger(__name__)

PREVIEW_CHARS = 100


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _preview(text: str, limit: int = PREVIEW_CHARS) -> str:
    if len(text) <= limit:
        return text
    return text[:limit].rstrip() + "..."


class DurableCacheStore:
    """SQLite tier keyed by content hash.

    Rows carry their own ``expires_at``; lookups ignore expired rows and
    ``purge_expired`` deletes them. Blocking calls run in a worker thread
    through the ``a*`` coroutine wrappers.
    """

    def __init__(self, db_path: str, ttl_hours: int = 24, clock: Callable[[], datetime] = _utc_now):
        self._db_path = db_path
        self._ttl = timedelta(hours=max(1, int(ttl_hours)))
        self._clock = clock
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS gap_analyses (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    content_hash TEXT NOT NULL UNIQUE,
                    resume_text TEXT NOT NULL,
                    job_description TEXT NOT NULL,
                    result_json TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    expires_at TEXT NOT NULL
                );
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_gap_analyses_expires_at
                ON gap_analyses (expires_at);
                """
            )
            conn.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_gap_analyses_created_at
                ON gap_analyses (created_at);
                """
            )
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def get(self, content_hash: str) -> AnalysisResult | None:
        conn = self._get_connection()
        now_iso = self._clock().isoformat()
        with self._lock:
            cur = conn.execute(
                """
                SELECT result_json
                FROM gap_analyses
                WHERE content_hash = ? AND expires_at > ?
                """,
                (content_hash, now_iso),
            )
            row = cur.fetchone()

        if not row:
            return None
        try:
            return AnalysisResult.model_validate_json(row[0])
        except ValueError as exc:
            logger.warning("durable_cache_entry_invalid fingerprint=%s: %s", short_fingerprint(content_hash), exc)
            return None

    def upsert(
        self,
        content_hash: str,
        *,
        resume_text: str,
        job_description: str,
        result: AnalysisResult,
    ) -> datetime:
        conn = self._get_connection()
        created_at = self._clock()
        expires_at = created_at + self._ttl
        with self._lock:
            conn.execute(
                """
                INSERT INTO gap_analyses (
                    content_hash, resume_text, job_description, result_json, created_at, expires_at
                ) VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT (content_hash) DO UPDATE SET
                    resume_text = excluded.resume_text,
                    job_description = excluded.job_description,
                    result_json = excluded.result_json,
                    created_at = excluded.created_at,
                    expires_at = excluded.expires_at
                """,
                (
                    content_hash,
                    resume_text,
                    job_description,
                    result.model_dump_json(by_alias=True),
                    created_at.isoformat(),
                    expires_at.isoformat(),
                ),
            )
        return expires_at

    def purge_expired(self) -> int:
        conn = self._get_connection()
        now_iso = self._clock().isoformat()
        with self._lock:
            cur = conn.execute("DELETE FROM gap_analyses WHERE expires_at <= ?", (now_iso,))
            return int(cur.rowcount or 0)

    def recent(self, limit: int = 20) -> list[HistoryItem]:
        """Most recent unexpired analyses, newest first, with shortened inputs."""
        conn = self._get_connection()
        now_iso = self._clock().isoformat()
        with self._lock:
            rows = conn.execute(
                """
                SELECT id, created_at, resume_text, job_description, result_json
                FROM gap_analyses
                WHERE expires_at > ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (now_iso, max(1, int(limit))),
            ).fetchall()

        items: list[HistoryItem] = []
        for row_id, created_at, resume_text, job_description, result_json in rows:
            try:
                result = AnalysisResult.model_validate_json(result_json)
            except ValueError as exc:
                logger.warning("durable_cache_history_row_invalid id=%s: %s", row_id, exc)
                continue
            items.append(
                HistoryItem(
                    id=row_id,
                    created_at=created_at,
                    resume_preview=_preview(resume_text),
                    jd_preview=_preview(job_description),
                    result_json=result,
                )
            )
        return items

    def ping(self) -> str:
        conn = self._get_connection()
        with self._lock:
            row = conn.execute("SELECT datetime('now')").fetchone()
        return str(row[0])

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    async def aget(self, content_hash: str) -> AnalysisResult | None:
        return await asyncio.to_thread(self.get, content_hash)

    async def aupsert(self, content_hash: str, *, resume_text: str, job_description: str, result: AnalysisResult) -> datetime:
        return await asyncio.to_thread(
            self.upsert,
            content_hash,
            resume_text=resume_text,
            job_description=job_description,
            result=result,
        )

    async def apurge_expired(self) -> int:
        return await asyncio.to_thread(self.purge_expired)

    async def arecent(self, limit: int = 20) -> list[HistoryItem]:
        return await asyncio.to_thread(self.recent, limit)

    async def aping(self) -> str:
        return await asyncio.to_thread(self.ping)
