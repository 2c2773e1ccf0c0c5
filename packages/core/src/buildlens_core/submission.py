"""Review submission: feature parameters in, typed result out.

Nothing in here writes to the build log. submit() classifies every outcome
as a SubmissionResult and the caller decides how to report it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Mapping

from buildlens_core.errors import AuthenticationError, ConfigurationError, UnexpectedUploadError
from buildlens_core.gh.pull_request import connect, credentials_valid, get_diff, get_pull, get_repo
from buildlens_core.models import FileInspectionIndex, InspectionStatistics
from buildlens_core.review import ReviewDraft, build_review_draft, post_review

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credentials:
    username: str | None = None
    token: str | None = None
    password: str | None = None

    def __repr__(self) -> str:
        # Never leak secrets into logs or tracebacks.
        return f"Credentials(username={self.username!r}, token={'***' if self.token else None}, password={'***' if self.password else None})"


@dataclass(frozen=True)
class ReviewSubmissionRequest:
    repository: str  # owner/name
    pull_number: int
    credentials: Credentials


class ResultKind(str, Enum):
    SUCCESS = "SUCCESS"
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    AUTHENTICATION_ERROR = "AUTHENTICATION_ERROR"
    UPLOAD_ERROR = "UPLOAD_ERROR"


@dataclass
class SubmissionResult:
    kind: ResultKind
    message: str
    request: ReviewSubmissionRequest | None = None
    draft: ReviewDraft | None = None
    posted_comments: int = 0

    @property
    def ok(self) -> bool:
        return self.kind == ResultKind.SUCCESS


def repository_coordinates(vcs_url: str | None) -> str:
    """Derive owner/name from a VCS root URL.

    https://github.com/acme/widgets.git and git@github.com:acme/widgets.git
    both give acme/widgets.
    """
    if not vcs_url:
        raise ConfigurationError("Cannot upload comments to Github. The build has no VCS root URL.")
    # scp-style remotes separate host and path with a colon
    normalized = vcs_url.strip().rstrip("/")
    if "://" not in normalized and ":" in normalized:
        normalized = normalized.replace(":", "/", 1)
    parts = [p for p in normalized.split("/") if p]
    if len(parts) < 2:
        raise ConfigurationError(f"Cannot upload comments to Github. Cannot derive a repository from {vcs_url!r}.")
    name = parts[-1]
    if name.endswith(".git"):
        name = name[: -len(".git")]
    return f"{parts[-2]}/{name}"


_PULL_NUMBER_RE = re.compile(r"[+-]?\d+")


def parse_pull_number(branch: str | None) -> int:
    # int() alone would also take "4_2" or non-ASCII digits
    value = (branch or "").strip()
    if not _PULL_NUMBER_RE.fullmatch(value) or not value.isascii():
        raise ConfigurationError("Cannot upload comments to Github. Branch is not a number.")
    return int(value)


def parse_request(
    parameters: Mapping[str, str], vcs_url: str | None, fallback_token: str | None = None
) -> ReviewSubmissionRequest:
    pull_number = parse_pull_number(parameters.get("branch"))
    repository = repository_coordinates(vcs_url)
    credentials = Credentials(
        username=parameters.get("username") or None,
        token=parameters.get("token") or fallback_token or None,
        password=parameters.get("password") or None,
    )
    return ReviewSubmissionRequest(repository=repository, pull_number=pull_number, credentials=credentials)


def _upload(
    request: ReviewSubmissionRequest,
    index: FileInspectionIndex,
    statistics: InspectionStatistics | None,
    config: dict,
    client_factory: Callable,
) -> SubmissionResult:
    creds = request.credentials
    gh = client_factory(
        token=creds.token,
        username=creds.username,
        password=creds.password,
        base_url=config.get("github_base_url", "https://api.github.com"),
        timeout=config.get("github_timeout", 15),
    )
    if not credentials_valid(gh, creds.username if creds.token else None):
        raise AuthenticationError("Could not authenticate configured user against GitHub.")

    repo = get_repo(gh, request.repository)
    pr = get_pull(repo, request.pull_number)
    draft = build_review_draft(
        index,
        get_diff(pr),
        statistics,
        request_changes_on_warnings=config.get("request_changes_on_warnings", False),
    )

    if not config.get("submit_review", True):
        return SubmissionResult(
            kind=ResultKind.SUCCESS,
            message=f"Review for {request.repository}#{request.pull_number} prepared but not submitted.",
            request=request,
            draft=draft,
        )

    posted = post_review(pr, draft, batch_limit=config.get("batch_limit", 60))
    return SubmissionResult(
        kind=ResultKind.SUCCESS,
        message=f"Review posted to {request.repository}#{request.pull_number}: {draft.event} with {posted} inline comment(s).",
        request=request,
        draft=draft,
        posted_comments=posted,
    )


def submit(
    parameters: Mapping[str, str],
    vcs_url: str | None,
    index: FileInspectionIndex,
    statistics: InspectionStatistics | None,
    config: dict,
    client_factory: Callable = connect,
) -> SubmissionResult:
    """Parse the request, authenticate and post the review. Never raises."""
    try:
        request = parse_request(parameters, vcs_url, fallback_token=config.get("github_token"))
    except ConfigurationError as e:
        return SubmissionResult(kind=ResultKind.CONFIGURATION_ERROR, message=str(e))

    try:
        return _upload(request, index, statistics, config, client_factory)
    except AuthenticationError as e:
        logger.warning("GitHub authentication failed for %s: %s", request.repository, e)
        return SubmissionResult(kind=ResultKind.AUTHENTICATION_ERROR, message=str(e), request=request)
    except Exception as e:
        error = UnexpectedUploadError(str(e) or e.__class__.__name__)
        logger.warning("GitHub upload failed for %s#%d: %s", request.repository, request.pull_number, error)
        return SubmissionResult(kind=ResultKind.UPLOAD_ERROR, message=str(error), request=request)
