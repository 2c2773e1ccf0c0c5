"""Abstract build log interface.

Every sink (in-memory, console, SQLite) implements this interface. The
core writes through BaseBuildLog, not through a concrete sink, so sinks are
swappable without touching the report code.

Block balance lives here, once, rather than in every sink: a block can only
be closed if it is the innermost open block, and the flow id handed out by
open_block() must come back unchanged.
"""

from __future__ import annotations

import itertools
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator

from buildlens_log.models import BlockHandle, EntryKind, LogEntry, Status


class BlockBalanceError(RuntimeError):
    """Raised when a block is closed out of order or was never opened."""


class BaseBuildLog(ABC):
    """Block-structured build log.

    Subclasses implement _emit() only. Opening, closing and nesting
    checks are shared so every sink enforces the same stack discipline.
    """

    def __init__(self):
        self._stack: list[BlockHandle] = []
        self._flow_ids = itertools.count(1)

    # ------------------------------------------------------------------ #
    # Public interface                                                     #
    # ------------------------------------------------------------------ #

    @property
    def open_blocks(self) -> tuple[BlockHandle, ...]:
        """Currently open blocks, outermost first."""
        return tuple(self._stack)

    def open_block(self, name: str, block_type: str) -> BlockHandle:
        handle = BlockHandle(name=name, block_type=block_type, flow_id=str(next(self._flow_ids)))
        self._emit(
            LogEntry(
                kind=EntryKind.BLOCK_OPEN,
                text=name,
                block_type=block_type,
                flow_id=handle.flow_id,
                depth=len(self._stack),
            )
        )
        self._stack.append(handle)
        return handle

    def close_block(self, name: str, block_type: str, flow_id: str, timestamp: datetime | None = None) -> None:
        if not self._stack:
            raise BlockBalanceError(f"Cannot close block {name!r}: no block is open.")
        top = self._stack[-1]
        if (top.name, top.block_type, top.flow_id) != (name, block_type, flow_id):
            raise BlockBalanceError(
                f"Cannot close block {name!r} ({block_type}, flow {flow_id}): "
                f"innermost open block is {top.name!r} ({top.block_type}, flow {top.flow_id})."
            )
        self._stack.pop()
        when = timestamp or datetime.now(timezone.utc)
        self._emit(
            LogEntry(
                kind=EntryKind.BLOCK_CLOSE,
                text=name,
                block_type=block_type,
                flow_id=flow_id,
                depth=len(self._stack),
                timestamp=when.isoformat(),
            )
        )

    def message(self, text: str, status: Status = Status.NORMAL) -> None:
        self._emit(
            LogEntry(
                kind=EntryKind.MESSAGE,
                text=text,
                status=status,
                flow_id=self._current_flow_id(),
                depth=len(self._stack),
            )
        )

    def error(self, category: str, text: str, flow_id: str | None = None) -> None:
        """Record a build problem event (shown as an error in the build log)."""
        self._emit(
            LogEntry(
                kind=EntryKind.ERROR,
                text=text,
                status=Status.ERROR,
                category=category,
                flow_id=flow_id if flow_id is not None else self._current_flow_id(),
                depth=len(self._stack),
            )
        )

    @contextmanager
    def block(self, name: str, block_type: str) -> Iterator[BlockHandle]:
        handle = self.open_block(name, block_type)
        try:
            yield handle
        finally:
            self.close_block(handle.name, handle.block_type, handle.flow_id)

    def close(self) -> None:
        """Release any resources held by the sink.

        Optional — the default is a no-op so callers can always call close().
        """

    # ------------------------------------------------------------------ #
    # Sink hook                                                            #
    # ------------------------------------------------------------------ #

    @abstractmethod
    def _emit(self, entry: LogEntry) -> None:
        """Write one entry to the underlying sink."""

    def _current_flow_id(self) -> str:
        return self._stack[-1].flow_id if self._stack else ""
