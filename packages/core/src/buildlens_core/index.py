"""Stage one of the report pipeline: build the file → inspection → findings index."""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import TYPE_CHECKING, Iterable, Sequence

from buildlens_core.models import ChangedFile, FileInspectionIndex, InspectionType

if TYPE_CHECKING:
    from buildlens_core.host import InspectionInfo

logger = logging.getLogger(__name__)


def retained_inspection_types(catalog: Iterable[InspectionType]) -> dict[int, str]:
    """Map id → display name for inspection types with a non-negative count, in catalog order."""
    names: dict[int, str] = {}
    for inspection_type in catalog:
        if not inspection_type.is_valid:
            continue
        if inspection_type.id in names:
            logger.debug("Duplicate inspection type id %d in catalog; keeping the first", inspection_type.id)
            continue
        names[inspection_type.id] = inspection_type.name
    return names


def unique_changed_files(changed_files: Iterable[ChangedFile]) -> list[ChangedFile]:
    """Drop repeated paths — a file touched by several VCS changes is reported once."""
    seen: set[str] = set()
    result = []
    for changed in changed_files:
        if changed.relative_path in seen:
            continue
        seen.add(changed.relative_path)
        result.append(changed)
    return result


def build_index(info: InspectionInfo | None, changed_files: Sequence[ChangedFile]) -> FileInspectionIndex:
    """Fetch findings for every (changed file, retained inspection type) pair.

    Pairs without findings stay in the index as empty tuples; pruning them is
    the renderer's job. When the host has no inspection data for the build
    every changed file maps to an empty set of inspections.
    """
    type_names = retained_inspection_types(info.inspection_types()) if info is not None else {}

    files: dict[str, MappingProxyType] = {}
    for changed in unique_changed_files(changed_files):
        by_type = {}
        for inspection_id in type_names:
            by_type[inspection_id] = tuple(info.details(inspection_id, changed.file_name))
        files[changed.relative_path] = MappingProxyType(by_type)

    return FileInspectionIndex(files=MappingProxyType(files), type_names=MappingProxyType(dict(type_names)))
