"""
Session storage handed to the authentication layer.

The memory store goes with the snapshot backend (sessions end with the
process); the SQL store goes with the relational backend and keeps sessions in
its own `session` table so they outlive restarts. Neither runs a timer:
expired entries are swept on access once `check_period` seconds have passed
since the last sweep.
"""
from __future__ import annotations

import json
import logging
import sqlite3
import threading
import time
from pathlib import Path
from typing import Any, Callable, Protocol

from .db import get_connection
from .errors import InternalStorageError
from .schema import session_schema

logger = logging.getLogger(__name__)

MEMORY_CHECK_PERIOD = 24 * 60 * 60
SQL_CHECK_PERIOD = 15 * 60


class SessionStore(Protocol):
    check_period: float

    def get(self, sid: str) -> dict[str, Any] | None: ...

    def set(self, sid: str, data: dict[str, Any], max_age: float) -> None: ...

    def touch(self, sid: str, max_age: float) -> bool: ...

    def destroy(self, sid: str) -> bool: ...

    def prune(self) -> int: ...


# ---------- In-process ----------


class MemorySessionStore:
    """Dict-backed sessions for a single process."""

    def __init__(self, check_period: float = MEMORY_CHECK_PERIOD, clock: Callable[[], float] = time.time) -> None:
        self.check_period = check_period
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: dict[str, tuple[dict[str, Any], float]] = {}
        self._last_prune = clock()

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= self.check_period:
            self.prune()

    def get(self, sid: str) -> dict[str, Any] | None:
        self._maybe_prune()
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None:
                return None
            data, expires = entry
            if expires <= self._clock():
                del self._sessions[sid]
                return None
            return dict(data)

    def set(self, sid: str, data: dict[str, Any], max_age: float) -> None:
        self._maybe_prune()
        with self._lock:
            self._sessions[sid] = (dict(data), self._clock() + max_age)

    def touch(self, sid: str, max_age: float) -> bool:
        with self._lock:
            entry = self._sessions.get(sid)
            if entry is None or entry[1] <= self._clock():
                return False
            self._sessions[sid] = (entry[0], self._clock() + max_age)
            return True

    def destroy(self, sid: str) -> bool:
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def prune(self) -> int:
        now = self._clock()
        with self._lock:
            stale = [sid for sid, (_, expires) in self._sessions.items() if expires <= now]
            for sid in stale:
                del self._sessions[sid]
            self._last_prune = now
        if stale:
            logger.debug("Pruned %d expired sessions", len(stale))
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


# ---------- Table-backed ----------


class SqlSessionStore:
    """Sessions in the `session` table of the relational database."""

    def __init__(
        self,
        db_path: str | Path,
        check_period: float = SQL_CHECK_PERIOD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.check_period = check_period
        self._db_path = Path(db_path)
        self._clock = clock
        self._last_prune = clock()
        self._run(lambda conn: conn.executescript(session_schema()))

    def _run(self, op: Callable[[sqlite3.Connection], Any]) -> Any:
        conn = get_connection(self._db_path)
        try:
            result = op(conn)
            conn.commit()
            return result
        except sqlite3.Error as exc:
            conn.rollback()
            logger.exception("Session store operation failed")
            raise InternalStorageError("session store operation failed") from exc
        finally:
            conn.close()

    def _maybe_prune(self) -> None:
        if self._clock() - self._last_prune >= self.check_period:
            self.prune()

    def get(self, sid: str) -> dict[str, Any] | None:
        self._maybe_prune()
        row = self._run(
            lambda conn: conn.execute(
                "SELECT sess FROM session WHERE sid = ? AND expire > ?", (sid, self._clock())
            ).fetchone()
        )
        if row is None:
            return None
        return json.loads(row["sess"])

    def set(self, sid: str, data: dict[str, Any], max_age: float) -> None:
        self._maybe_prune()
        self._run(
            lambda conn: conn.execute(
                "INSERT INTO session (sid, sess, expire) VALUES (?, ?, ?) "
                "ON CONFLICT(sid) DO UPDATE SET sess = excluded.sess, expire = excluded.expire",
                (sid, json.dumps(data), self._clock() + max_age),
            )
        )

    def touch(self, sid: str, max_age: float) -> bool:
        now = self._clock()
        cur = self._run(
            lambda conn: conn.execute(
                "UPDATE session SET expire = ? WHERE sid = ? AND expire > ?", (now + max_age, sid, now)
            )
        )
        return cur.rowcount > 0

    def destroy(self, sid: str) -> bool:
        cur = self._run(lambda conn: conn.execute("DELETE FROM session WHERE sid = ?", (sid,)))
        return cur.rowcount > 0

    def prune(self) -> int:
        now = self._clock()
        cur = self._run(lambda conn: conn.execute("DELETE FROM session WHERE expire <= ?", (now,)))
        self._last_prune = now
        if cur.rowcount:
            logger.debug("Pruned %d expired sessions", cur.rowcount)
        return cur.rowcount

    def __len__(self) -> int:
        row = self._run(lambda conn: conn.execute("SELECT COUNT(*) AS n FROM session").fetchone())
        return row["n"]
