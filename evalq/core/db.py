from __future__ import annotations

import contextlib
import json
import sqlite3
import uuid
from collections.abc import Iterator
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from evalq.config.settings import settings
from evalq.core.errors import StoreError
from evalq.core.logging import logger
from evalq.core.state import JobStatus
from evalq.schemas.models import Job
from evalq.utils.retry import retry

TIMESTAMP_FMT = "%d-%m-%Y %H:%M"


class JobStore(Protocol):
    """Lo mínimo que el runner necesita del almacén de jobs."""

    def list_pending(self) -> list[Job]: ...

    def update_verdict(
        self, job_id: str, status: JobStatus, score: float, error_kind: str | None = None
    ) -> bool: ...


# ---------- Esquema ----------
SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS jobs (
  id          TEXT PRIMARY KEY,
  name        TEXT NOT NULL,
  payload     TEXT NOT NULL,
  timestamp   TEXT NOT NULL,                  -- DD-MM-YYYY HH:MM (lo manda el cliente)
  status      TEXT NOT NULL DEFAULT 'Pending',
  score       REAL NOT NULL DEFAULT 0,
  created_at  TEXT NOT NULL,                  -- ISO datetime
  updated_at  TEXT NOT NULL                   -- ISO datetime
);

CREATE INDEX IF NOT EXISTS idx_jobs_status ON jobs(status);

CREATE TABLE IF NOT EXISTS events (
  id         INTEGER PRIMARY KEY AUTOINCREMENT,
  job_id     TEXT,
  ts         TEXT NOT NULL,
  type       TEXT NOT NULL,
  payload    TEXT NOT NULL,                   -- JSON
  FOREIGN KEY(job_id) REFERENCES jobs(id) ON DELETE SET NULL
);
"""

_JOB_COLS = "id, name, payload, timestamp, status, score"


def _iso_now() -> str:
    return datetime.now().astimezone().isoformat()


def _row_to_job(row: tuple) -> Job:
    return Job(
        id=row[0], name=row[1], payload=row[2], timestamp=row[3], status=row[4], score=row[5]
    )


class SQLiteJobStore:
    """
    Almacén de jobs sobre SQLite (un solo host).
    Cualquier sqlite3.Error sale como StoreError.
    """

    def __init__(self, db_path: Path | str | None = None) -> None:
        self.db_path = Path(db_path or settings.DB_PATH)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with self._session() as conn:
            conn.executescript(SCHEMA_SQL)

    # ---------- Helpers de conexión ----------
    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path, isolation_level=None, timeout=30)
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    @contextlib.contextmanager
    def _session(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = self._connect()
        except sqlite3.Error as e:
            raise StoreError(f"cannot open {self.db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            if conn.in_transaction:
                conn.execute("ROLLBACK;")
            raise StoreError(str(e)) from e
        finally:
            conn.close()

    # ---------- Intake ----------
    def add(self, name: str, payload: str, timestamp: str | None = None) -> str:
        job_id = uuid.uuid4().hex
        now_iso = _iso_now()
        ts = timestamp or datetime.now().strftime(TIMESTAMP_FMT)
        with self._session() as conn:
            conn.execute(
                "INSERT INTO jobs(id, name, payload, timestamp, status, score, created_at, updated_at) "
                "VALUES (?,?,?,?,?,?,?,?)",
                (job_id, name, payload, ts, JobStatus.PENDING.value, 0.0, now_iso, now_iso),
            )
        return job_id

    # ---------- Queue ----------
    @retry("store-query", tries=3, base_delay=0.2, retry_on=(StoreError,))
    def list_pending(self) -> list[Job]:
        with self._session() as conn:
            cur = conn.execute(
                f"SELECT {_JOB_COLS} FROM jobs WHERE status=? ORDER BY created_at ASC, rowid ASC",
                (JobStatus.PENDING.value,),
            )
            return [_row_to_job(r) for r in cur.fetchall()]

    @retry("store-update", tries=3, base_delay=0.2, retry_on=(StoreError,))
    def update_verdict(
        self, job_id: str, status: JobStatus, score: float, error_kind: str | None = None
    ) -> bool:
        """
        Escribe el veredicto terminal solo si el job sigue en Pending.
        Devuelve False si ya estaba resuelto (no hay segunda escritura).
        """
        now_iso = _iso_now()
        with self._session() as conn:
            conn.execute("BEGIN IMMEDIATE;")
            cur = conn.execute(
                "UPDATE jobs SET status=?, score=?, updated_at=? WHERE id=? AND status=?",
                (JobStatus(status).value, float(score), now_iso, job_id, JobStatus.PENDING.value),
            )
            changed = cur.rowcount == 1
            if changed:
                conn.execute(
                    "INSERT INTO events(job_id, ts, type, payload) VALUES (?,?,?,?)",
                    (
                        job_id,
                        now_iso,
                        "verdict",
                        json.dumps(
                            {"status": JobStatus(status).value, "score": score, "error_kind": error_kind},
                            ensure_ascii=False,
                        ),
                    ),
                )
            conn.execute("COMMIT;")
        if not changed:
            logger.warning("[STORE] job=%s no estaba Pending; veredicto ignorado", job_id)
        return changed

    # ---------- Consultas para panel/CLI ----------
    def get(self, job_id: str) -> Job | None:
        with self._session() as conn:
            row = conn.execute(f"SELECT {_JOB_COLS} FROM jobs WHERE id=?", (job_id,)).fetchone()
            return _row_to_job(row) if row else None

    def list_jobs(self, limit: int = 50, status: JobStatus | str | None = None) -> list[Job]:
        with self._session() as conn:
            if status:
                cur = conn.execute(
                    f"SELECT {_JOB_COLS} FROM jobs WHERE status=? ORDER BY updated_at DESC LIMIT ?",
                    (JobStatus(status).value, int(limit)),
                )
            else:
                cur = conn.execute(
                    f"SELECT {_JOB_COLS} FROM jobs ORDER BY updated_at DESC LIMIT ?", (int(limit),)
                )
            return [_row_to_job(r) for r in cur.fetchall()]

    def list_events(self, job_id: str) -> list[dict[str, Any]]:
        with self._session() as conn:
            cur = conn.execute(
                "SELECT ts, type, payload FROM events WHERE job_id=? ORDER BY id ASC", (job_id,)
            )
            return [{"ts": r[0], "type": r[1], "payload": json.loads(r[2])} for r in cur.fetchall()]

    def counts(self) -> dict[str, int]:
        result = {s.value: 0 for s in JobStatus}
        with self._session() as conn:
            for status, count in conn.execute("SELECT status, COUNT(1) FROM jobs GROUP BY status"):
                result[status] = int(count)
        return result
