"""SQLiteBuildLog — persistent build log in a local SQLite file.

Why SQLite for the persistent log:
- Ships with Python, no extra dependencies.
- Indexed lookups by build id, so `buildlens log --build-id` stays fast
  even when many builds share one database file.
- A single file can be kept as a CI artifact next to the build.

Schema:
  entries — one row per log entry, ordered by insertion (seq).
"""

from __future__ import annotations

import logging
import sqlite3

from buildlens_log.base import BaseBuildLog
from buildlens_log.models import EntryKind, LogEntry, Status

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS entries (
    seq         INTEGER PRIMARY KEY AUTOINCREMENT,
    build_id    TEXT NOT NULL,
    kind        TEXT NOT NULL,
    text        TEXT,
    status      TEXT,
    block_type  TEXT,
    flow_id     TEXT,
    category    TEXT,
    depth       INTEGER DEFAULT 0,
    timestamp   TEXT
);
CREATE INDEX IF NOT EXISTS idx_entries_build ON entries (build_id);
"""


class SQLiteBuildLog(BaseBuildLog):
    """Stores build log entries in a SQLite database file.

    The database path defaults to `.buildlens.db` in the current working
    directory. Configure via .buildlens.yml: `log_path: /path/to/log.db`.
    """

    def __init__(self, build_id: str, db_path: str = ".buildlens.db"):
        super().__init__()
        self.build_id = str(build_id)
        self._conn = sqlite3.connect(db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(_SCHEMA)
        self._conn.commit()

    def _emit(self, entry: LogEntry) -> None:
        self._conn.execute(
            """
            INSERT INTO entries
              (build_id, kind, text, status, block_type, flow_id, category, depth, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                self.build_id,
                entry.kind.value,
                entry.text,
                entry.status.value,
                entry.block_type,
                entry.flow_id,
                entry.category,
                entry.depth,
                entry.timestamp,
            ),
        )
        self._conn.commit()

    def list_entries(self, build_id: str | None = None) -> list[LogEntry]:
        """Return entries for a build (this log's build by default), oldest first.

        Returns an empty list if the build has no entries — never raises.
        """
        rows = self._conn.execute(
            "SELECT * FROM entries WHERE build_id=? ORDER BY seq",
            (str(build_id) if build_id is not None else self.build_id,),
        ).fetchall()
        return [self._row_to_entry(r) for r in rows]

    def close(self) -> None:
        if self._stack:
            logger.warning("Closing build log with %d block(s) still open.", len(self._stack))
        self._conn.close()

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> LogEntry:
        return LogEntry(
            kind=EntryKind(row["kind"]),
            text=row["text"] or "",
            status=Status(row["status"] or Status.NORMAL.value),
            block_type=row["block_type"] or "",
            flow_id=row["flow_id"] or "",
            category=row["category"] or "",
            depth=row["depth"],
            timestamp=row["timestamp"] or "",
        )
