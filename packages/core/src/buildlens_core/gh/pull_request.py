from __future__ import annotations

import logging

from github import Auth, BadCredentialsException, Github, GithubException

from buildlens_core.errors import AuthenticationError

logger = logging.getLogger(__name__)


def connect(token: str | None, username: str | None, password: str | None, base_url: str, timeout: int) -> Github:
    """Build a GitHub client. A token wins over username + password."""
    if token:
        auth = Auth.Token(token)
    elif username and password:
        auth = Auth.Login(username, password)
    else:
        raise AuthenticationError("No GitHub credentials configured (token or username/password).")
    return Github(auth=auth, base_url=base_url, timeout=timeout)


def credentials_valid(gh: Github, username: str | None = None) -> bool:
    """Return True if GitHub accepts the client's credentials.

    A username configured alongside a token is informational only; a
    mismatch with the token owner is logged, not rejected.
    """
    try:
        login = gh.get_user().login
    except BadCredentialsException:
        return False
    except GithubException as e:
        if e.status in (401, 403):
            return False
        raise
    if username and login and login.lower() != username.lower():
        logger.debug("Token belongs to %s, not the configured user %s", login, username)
    return True


def get_repo(gh: Github, repo_name: str):
    return gh.get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def get_diff(pr):
    return pr.get_files()


def get_diff_positions(patch_text: str) -> dict[int, int]:
    """
    Maps new-file line numbers to their cumulative GitHub diff positions.

    GitHub's review comment API requires positions that are cumulative across
    the entire patch, not reset per hunk. The @@ header line is NOT counted —
    position 1 is the first content line immediately below the @@ header.
    Removed lines and the no-newline marker use up a position but have no
    new-file line, so nothing can be anchored to them. File patches from the
    API carry no ---/+++ headers: every "-" line is a removal.
    """
    positions: dict[int, int] = {}
    diff_position = 0
    file_line: int | None = None

    for line in patch_text.splitlines():
        if line.startswith("@@"):
            try:
                new_file_range = line.split("+")[1].split(" ")[0]
                file_line = int(new_file_range.split(",")[0])
            except (IndexError, ValueError):
                file_line = None
            continue

        diff_position += 1

        if line.startswith("\\"):
            continue  # "\ No newline at end of file" takes a position but no file line
        if line.startswith("-"):
            continue  # removed line, no new-file line
        if file_line is not None:
            positions[file_line] = diff_position
            file_line += 1

    return positions
