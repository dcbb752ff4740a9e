import sqlite3
import threading
from datetime import datetime
from typing import Dict, List, Optional

from .config import validate_config_value
from .errors import StoreReadError, StoreWriteError
from .models import Job, STATUSES
from .utils import from_iso, to_iso


# ---------- Config ----------
def get_config(conn) -> Dict[str, str]:
    cur = conn.execute("SELECT key, value FROM config")
    return {r["key"]: r["value"] for r in cur.fetchall()}


def set_config(conn, key: str, value: str):
    value = validate_config_value(key, value)
    with conn:
        conn.execute(
            "INSERT INTO config(key,value) VALUES(?,?) "
            "ON CONFLICT(key) DO UPDATE SET value=excluded.value",
            (key, value),
        )


# ---------- Jobs ----------
def _row_to_job(row: sqlite3.Row) -> Job:
    return Job(
        id=row["id"],
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
        status=row["status"],
    )


class JobStore:
    """
    Record store for jobs on top of one shared sqlite3 connection.

    Every statement runs under a lock, so a single instance can be handed to
    the registry, the status reader and all executor threads at once.
    Absence is reported as None / 0 rows; driver failures are wrapped in
    StoreReadError or StoreWriteError.
    """

    def __init__(self, conn: sqlite3.Connection):
        self.conn = conn
        self._lock = threading.Lock()

    def insert(self, job: Job) -> None:
        try:
            with self._lock, self.conn:
                self.conn.execute(
                    "INSERT INTO jobs (id, created_at, updated_at, status) VALUES (?, ?, ?, ?)",
                    (job.id, to_iso(job.created_at), to_iso(job.updated_at), job.status),
                )
        except sqlite3.Error as e:
            raise StoreWriteError(f"DB error while inserting job {job.id}: {e}") from e

    def select_by_id(self, job_id: str) -> Optional[Job]:
        try:
            with self._lock:
                row = self.conn.execute(
                    "SELECT id, created_at, updated_at, status FROM jobs WHERE id=?",
                    (job_id,),
                ).fetchone()
        except sqlite3.Error as e:
            raise StoreReadError(f"DB error while reading job {job_id}: {e}") from e
        return _row_to_job(row) if row else None

    def update_status_by_id(self, job_id: str, status: str, updated_at: datetime) -> int:
        """Set status and updated_at in one statement; returns rows affected."""
        try:
            with self._lock, self.conn:
                cur = self.conn.execute(
                    "UPDATE jobs SET status=?, updated_at=? WHERE id=?",
                    (status, to_iso(updated_at), job_id),
                )
        except sqlite3.Error as e:
            raise StoreWriteError(f"DB error while updating job {job_id}: {e}") from e
        return cur.rowcount

    # ---------- Queries ----------
    def list_jobs(self, status: Optional[str] = None) -> List[Job]:
        try:
            with self._lock:
                if status:
                    rows = self.conn.execute(
                        "SELECT * FROM jobs WHERE status=? ORDER BY created_at ASC",
                        (status,),
                    ).fetchall()
                else:
                    rows = self.conn.execute(
                        "SELECT * FROM jobs ORDER BY created_at ASC"
                    ).fetchall()
        except sqlite3.Error as e:
            raise StoreReadError(f"DB error while listing jobs: {e}") from e
        return [_row_to_job(r) for r in rows]

    def counts(self) -> Dict[str, int]:
        out = {s: 0 for s in STATUSES}
        try:
            with self._lock:
                rows = self.conn.execute(
                    "SELECT status, COUNT(1) AS c FROM jobs GROUP BY status"
                ).fetchall()
        except sqlite3.Error as e:
            raise StoreReadError(f"DB error while counting jobs: {e}") from e
        for r in rows:
            out[r["status"]] = r["c"]
        return out
