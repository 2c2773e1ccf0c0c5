"""Build log data models.

Decoupled from buildlens_core so the log sinks can be used on their own and
the core has no knowledge of how entries are rendered or persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class Status(str, Enum):
    """Message level, mirroring the build server's NORMAL / WARNING / ERROR."""

    NORMAL = "NORMAL"
    WARNING = "WARNING"
    ERROR = "ERROR"


class EntryKind(str, Enum):
    BLOCK_OPEN = "BLOCK_OPEN"
    BLOCK_CLOSE = "BLOCK_CLOSE"
    MESSAGE = "MESSAGE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class BlockHandle:
    """Returned by open_block(); pass its flow_id back to close_block()."""

    name: str
    block_type: str
    flow_id: str


@dataclass
class LogEntry:
    """A single line of the block-structured build log."""

    kind: EntryKind
    text: str
    status: Status = Status.NORMAL
    block_type: str = ""
    flow_id: str = ""
    category: str = ""  # only set for ERROR entries, e.g. "FAILURE"
    depth: int = 0  # number of blocks open when the entry was written
    timestamp: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
