"""In-memory build log — the default when no sink is configured.

Entries live for the lifetime of the object. Used by dry runs and by tests,
which assert on the recorded entries directly.
"""

from __future__ import annotations

from buildlens_log.base import BaseBuildLog
from buildlens_log.models import EntryKind, LogEntry, Status


class MemoryBuildLog(BaseBuildLog):
    def __init__(self):
        super().__init__()
        self.entries: list[LogEntry] = []

    def _emit(self, entry: LogEntry) -> None:
        self.entries.append(entry)

    def messages(self, status: Status | None = None) -> list[LogEntry]:
        """Return MESSAGE entries, optionally filtered by status."""
        return [e for e in self.entries if e.kind == EntryKind.MESSAGE and (status is None or e.status == status)]

    def errors(self) -> list[LogEntry]:
        """Return entries at ERROR level — both error events and ERROR messages."""
        return [e for e in self.entries if e.status == Status.ERROR]
