"""Inspection data models shared across the report pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping

# Severity is an ordered integer, lower is more severe.
WARNING_SEVERITY_THRESHOLD = 3


@dataclass(frozen=True)
class InspectionRecord:
    """One location-specific finding for an inspection type in a file."""

    line: int
    message: str
    repeat_count: int
    severity: int
    inspection_id: int
    inspection_name: str = ""
    is_new: bool = False

    @property
    def is_warning(self) -> bool:
        return self.severity < WARNING_SEVERITY_THRESHOLD


@dataclass(frozen=True)
class InspectionType:
    """A row of the build's inspection-type catalog.

    A negative count means the type produced nothing usable in this build.
    """

    id: int
    name: str
    count: int

    @property
    def is_valid(self) -> bool:
        return self.count >= 0


@dataclass(frozen=True)
class InspectionStatistics:
    total: int = 0
    new_total: int = 0
    old_total: int = 0
    errors: int = 0
    new_errors: int = 0
    old_errors: int = 0


@dataclass(frozen=True)
class ChangedFile:
    """A file changed since the last complete build.

    relative_path keys the report; file_name is what the inspection store is
    queried with (the two usually coincide).
    """

    relative_path: str
    file_name: str = ""

    def __post_init__(self):
        if not self.file_name:
            object.__setattr__(self, "file_name", self.relative_path)


@dataclass(frozen=True)
class FileInspectionIndex:
    """file path → inspection type id → findings, fully materialized.

    Built once per build-finish event by build_index() and never mutated.
    Every file key is one changed file; every type key is a retained
    inspection type with an entry in type_names.
    """

    files: Mapping[str, Mapping[int, tuple[InspectionRecord, ...]]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    type_names: Mapping[int, str] = field(default_factory=lambda: MappingProxyType({}))

    def __iter__(self) -> Iterator[str]:
        return iter(self.files)

    def __len__(self) -> int:
        return len(self.files)

    def findings(self, path: str) -> Mapping[int, tuple[InspectionRecord, ...]]:
        return self.files.get(path, MappingProxyType({}))

    def records(self) -> Iterator[tuple[str, InspectionRecord]]:
        """Yield (path, record) for every finding, in index order."""
        for path, by_type in self.files.items():
            for records in by_type.values():
                for record in records:
                    yield path, record

    @property
    def total_findings(self) -> int:
        return sum(1 for _ in self.records())
