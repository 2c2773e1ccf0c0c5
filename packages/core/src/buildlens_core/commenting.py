"""Build-finish handler: log inspection findings and post them as a PR review.

handle_build_finish() is the whole behaviour as a function of the build,
the inspection source, the config and the GitHub client factory.
GithubCommentingListener only adapts it to the event source.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from buildlens_core.events import BuildServerListener
from buildlens_core.gh.pull_request import connect
from buildlens_core.host import SINCE_LAST_COMPLETE_BUILD
from buildlens_core.index import build_index
from buildlens_core.report import BLOCK_TYPE, COMMENTING_BLOCK, render_index
from buildlens_core.submission import ResultKind, SubmissionResult, submit
from buildlens_log.models import Status

if TYPE_CHECKING:
    from buildlens_core.events import BuildEventSource
    from buildlens_core.host import InspectionSource, RunningBuild

logger = logging.getLogger(__name__)


def find_commenting_feature(build: RunningBuild, feature_type: str):
    features = build.get_build_features_of_type(feature_type)
    return features[0] if features else None


def handle_build_finish(
    build: RunningBuild,
    inspections: InspectionSource,
    config: dict,
    client_factory: Callable = connect,
) -> SubmissionResult | None:
    """Run the commenting flow for one finished build.

    Returns None when the build has no commenting feature (nothing is logged
    and nothing is sent), otherwise the submission outcome. Never raises for
    configuration, authentication or upload failures; those end up in the
    build log.
    """
    feature = find_commenting_feature(build, config.get("feature_type", "GithubCommentingBuildFeature"))
    if feature is None:
        logger.debug("Build %s has no PR commenting feature; skipping", build.build_id)
        return None

    info = inspections.get_inspection_info(build)
    statistics = info.statistics() if info is not None else None
    changed_files = build.get_changed_files(SINCE_LAST_COMPLETE_BUILD, False)
    index = build_index(info, changed_files)

    log = build.build_log
    with log.block(COMMENTING_BLOCK, BLOCK_TYPE) as block:
        render_index(index, log)

        log.message("Starting Github upload.", Status.NORMAL)
        vcs_urls = build.vcs_root_urls()
        result = submit(
            feature.parameters,
            vcs_urls[0] if vcs_urls else None,
            index,
            statistics,
            config,
            client_factory=client_factory,
        )

        if result.kind == ResultKind.CONFIGURATION_ERROR:
            log.message(result.message, Status.ERROR)
        elif result.kind in (ResultKind.AUTHENTICATION_ERROR, ResultKind.UPLOAD_ERROR):
            log.error("FAILURE", result.message, block.flow_id)
        else:
            log.message(result.message, Status.NORMAL)

    return result


class GithubCommentingListener(BuildServerListener):
    def __init__(self, inspections: InspectionSource, config: dict, client_factory: Callable = connect):
        self.inspections = inspections
        self.config = config
        self.client_factory = client_factory
        self.last_result: SubmissionResult | None = None

    def register(self, event_source: BuildEventSource) -> None:
        event_source.add_listener(self)

    def before_build_finish(self, build: RunningBuild) -> None:
        self.last_result = handle_build_finish(build, self.inspections, self.config, self.client_factory)
