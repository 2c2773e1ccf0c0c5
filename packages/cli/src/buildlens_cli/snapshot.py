"""YAML build snapshot — a stand-in host for running outside a build server.

A snapshot describes one finished build:

    build_id: "1234"
    vcs_url: https://github.com/acme/widgets.git
    features:
      - type: GithubCommentingBuildFeature
        parameters: {username: bot, token: "...", branch: "42"}
    statistics: {total: 3, new_total: 1, old_total: 2, errors: 1, new_errors: 0, old_errors: 1}
    inspection_types:
      - {id: 7, name: UnusedImport, count: 2}
    changes:
      - src/Foo.java
    findings:
      - {file: src/Foo.java, inspection_id: 7, line: 10, message: unused import, severity: 4}

It provides both the RunningBuild and the InspectionSource contracts.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import yaml

from buildlens_core.models import ChangedFile, InspectionRecord, InspectionStatistics, InspectionType
from buildlens_log.base import BaseBuildLog
from buildlens_log.memory import MemoryBuildLog


@dataclass
class SnapshotFeature:
    type: str
    parameters: dict[str, str] = field(default_factory=dict)


@dataclass
class SnapshotInspectionInfo:
    stats: InspectionStatistics
    types: list[InspectionType]
    records: dict[tuple[int, str], list[InspectionRecord]]

    def statistics(self) -> InspectionStatistics:
        return self.stats

    def inspection_types(self) -> list[InspectionType]:
        return self.types

    def details(self, inspection_id: int, file_name: str) -> list[InspectionRecord]:
        return self.records.get((inspection_id, file_name), [])


@dataclass
class SnapshotBuild:
    build_id: str
    features: list[SnapshotFeature] = field(default_factory=list)
    changes: list[ChangedFile] = field(default_factory=list)
    vcs_urls: list[str] = field(default_factory=list)
    inspection_info: SnapshotInspectionInfo | None = None
    build_log: BaseBuildLog = field(default_factory=MemoryBuildLog)

    def get_build_features_of_type(self, feature_type: str) -> list[SnapshotFeature]:
        return [f for f in self.features if f.type == feature_type]

    def get_changed_files(self, policy: str, include_dependencies: bool) -> list[ChangedFile]:
        # A snapshot already holds the changes since the last complete build.
        return list(self.changes)

    def vcs_root_urls(self) -> list[str]:
        return list(self.vcs_urls)


class SnapshotInspectionSource:
    def get_inspection_info(self, build: SnapshotBuild) -> SnapshotInspectionInfo | None:
        return build.inspection_info


def _parse_inspection_info(data: dict) -> SnapshotInspectionInfo | None:
    if "inspection_types" not in data and "findings" not in data:
        return None

    types = [
        InspectionType(id=int(t["id"]), name=str(t["name"]), count=int(t.get("count", 0)))
        for t in data.get("inspection_types") or []
    ]
    names = {t.id: t.name for t in types}

    records: dict[tuple[int, str], list[InspectionRecord]] = {}
    for f in data.get("findings") or []:
        inspection_id = int(f["inspection_id"])
        record = InspectionRecord(
            line=int(f["line"]),
            message=str(f.get("message", "")),
            repeat_count=int(f.get("repeat_count", 1)),
            severity=int(f["severity"]),
            inspection_id=inspection_id,
            inspection_name=names.get(inspection_id, ""),
            is_new=bool(f.get("new", False)),
        )
        records.setdefault((inspection_id, str(f["file"])), []).append(record)

    stats = InspectionStatistics(**{k: int(v) for k, v in (data.get("statistics") or {}).items()})
    return SnapshotInspectionInfo(stats=stats, types=types, records=records)


def load_snapshot(path: str, build_log: BaseBuildLog | None = None) -> SnapshotBuild:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")
    with open(p) as f:
        data = yaml.safe_load(f) or {}

    features = [
        SnapshotFeature(type=str(f["type"]), parameters={k: str(v) for k, v in (f.get("parameters") or {}).items()})
        for f in data.get("features") or []
    ]
    changes = []
    for c in data.get("changes") or []:
        if isinstance(c, dict):
            changes.append(ChangedFile(relative_path=str(c["path"]), file_name=str(c.get("file_name", ""))))
        else:
            changes.append(ChangedFile(relative_path=str(c)))

    vcs_urls = data.get("vcs_urls") or ([data["vcs_url"]] if data.get("vcs_url") else [])

    return SnapshotBuild(
        build_id=str(data.get("build_id", "local")),
        features=features,
        changes=changes,
        vcs_urls=[str(u) for u in vcs_urls],
        inspection_info=_parse_inspection_info(data),
        build_log=build_log if build_log is not None else MemoryBuildLog(),
    )
