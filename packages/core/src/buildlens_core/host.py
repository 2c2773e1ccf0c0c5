"""Contracts for the build-server collaborators the listener talks to.

These are structural types only. A host (a real build server integration,
or the YAML snapshot host in buildlens_cli) provides objects that look
like this; nothing here is implemented by buildlens_core itself.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from buildlens_core.models import ChangedFile, InspectionRecord, InspectionStatistics, InspectionType
    from buildlens_log.base import BaseBuildLog

SINCE_LAST_COMPLETE_BUILD = "SINCE_LAST_COMPLETE_BUILD"


class BuildFeature(Protocol):
    parameters: Mapping[str, str]


class RunningBuild(Protocol):
    build_id: str
    build_log: BaseBuildLog

    def get_build_features_of_type(self, feature_type: str) -> Sequence[BuildFeature]: ...

    def get_changed_files(self, policy: str, include_dependencies: bool) -> Sequence[ChangedFile]: ...

    def vcs_root_urls(self) -> Sequence[str]: ...


class InspectionInfo(Protocol):
    def statistics(self) -> InspectionStatistics: ...

    def inspection_types(self) -> Sequence[InspectionType]: ...

    def details(self, inspection_id: int, file_name: str) -> Sequence[InspectionRecord]: ...


class InspectionSource(Protocol):
    def get_inspection_info(self, build: RunningBuild) -> InspectionInfo | None: ...
