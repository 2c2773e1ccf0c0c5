"""Stage two of the report pipeline: traverse the index as nested sections.

walk_index() knows the shape of the report (file → inspection type →
finding) but nothing about where it goes. A SectionVisitor receives the
open / write / close calls; BuildLogSectionWriter is the one that turns them
into build log blocks and messages.

walk_index() always closes what it opened, in reverse order, even if the
visitor raises part-way through.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

from buildlens_core.models import FileInspectionIndex, InspectionRecord
from buildlens_log.base import BaseBuildLog
from buildlens_log.models import BlockHandle, Status

COMMENTING_BLOCK = "Github PR Commenting"
BLOCK_TYPE = "buildlens.GithubCommentingListener"


class SectionKind(str, Enum):
    FILE = "file"
    INSPECTION = "file_inspection"


def format_finding(record: InspectionRecord) -> str:
    return f"{record.message} On line: {record.line} with severity: {record.severity}"


def finding_status(record: InspectionRecord) -> Status:
    return Status.WARNING if record.is_warning else Status.NORMAL


class SectionVisitor(ABC):
    @abstractmethod
    def open_section(self, name: str, kind: SectionKind) -> None: ...

    @abstractmethod
    def write(self, record: InspectionRecord) -> None: ...

    @abstractmethod
    def close_section(self, name: str, kind: SectionKind) -> None: ...


def walk_index(index: FileInspectionIndex, visitor: SectionVisitor) -> None:
    for path in index:
        visitor.open_section(path, SectionKind.FILE)
        try:
            for inspection_id, records in index.findings(path).items():
                if not records:
                    continue
                name = index.type_names[inspection_id]
                visitor.open_section(name, SectionKind.INSPECTION)
                try:
                    for record in records:
                        visitor.write(record)
                finally:
                    visitor.close_section(name, SectionKind.INSPECTION)
        finally:
            visitor.close_section(path, SectionKind.FILE)


class BuildLogSectionWriter(SectionVisitor):
    """Writes sections as build log blocks, one message per finding."""

    def __init__(self, build_log: BaseBuildLog, block_type: str = BLOCK_TYPE):
        self._log = build_log
        self._block_type = block_type
        self._handles: list[BlockHandle] = []

    def _type_for(self, kind: SectionKind) -> str:
        return f"{self._block_type}_{kind.value}"

    def open_section(self, name: str, kind: SectionKind) -> None:
        self._handles.append(self._log.open_block(name, self._type_for(kind)))

    def write(self, record: InspectionRecord) -> None:
        self._log.message(format_finding(record), finding_status(record))

    def close_section(self, name: str, kind: SectionKind) -> None:
        handle = self._handles.pop()
        # The log itself rejects a mismatched close; pass the caller's name so it can.
        self._log.close_block(name, self._type_for(kind), handle.flow_id)


def render_index(index: FileInspectionIndex, build_log: BaseBuildLog) -> None:
    build_log.message("Discovered Inspections:", Status.NORMAL)
    walk_index(index, BuildLogSectionWriter(build_log))
