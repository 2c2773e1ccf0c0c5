"""Turn the inspection index into a GitHub pull request review."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field

from buildlens_core.gh.pull_request import get_diff_positions
from buildlens_core.models import FileInspectionIndex, InspectionRecord, InspectionStatistics

logger = logging.getLogger(__name__)

# Keeps out-of-diff findings from blowing past GitHub's review body limit.
_MAX_BODY_FINDINGS = 50


@dataclass
class ReviewDraft:
    """A review ready to be posted: summary body, verdict and inline comments."""

    body: str
    event: str  # "COMMENT" | "REQUEST_CHANGES"
    comments: list[dict] = field(default_factory=list)
    outside_diff: list[tuple[str, InspectionRecord]] = field(default_factory=list)


def format_comment(record: InspectionRecord, inspection_name: str) -> str:
    level = "WARNING" if record.is_warning else "INFO"
    body = f"**[{level}] {inspection_name}**\n\n{record.message} (severity {record.severity})"
    if record.repeat_count > 1:
        body += f"\n\n_Reported {record.repeat_count} times on this line._"
    if record.is_new:
        body += "\n\n_New in this build._"
    return body


def determine_event(index: FileInspectionIndex, request_changes_on_warnings: bool = False) -> str:
    if request_changes_on_warnings and any(r.is_warning for _, r in index.records()):
        return "REQUEST_CHANGES"
    return "COMMENT"


def _build_summary(
    index: FileInspectionIndex,
    outside_diff: list[tuple[str, InspectionRecord]],
    statistics: InspectionStatistics | None,
) -> str:
    """Build the top-level review body posted as the GitHub review description."""
    counts: dict[str, dict[str, int]] = defaultdict(lambda: {"warnings": 0, "total": 0})
    for path, record in index.records():
        counts[path]["total"] += 1
        if record.is_warning:
            counts[path]["warnings"] += 1

    total = sum(c["total"] for c in counts.values())
    warnings = sum(c["warnings"] for c in counts.values())

    lines = ["## Inspection results\n"]
    if total == 0:
        lines.append("> No inspection findings in the changed files.\n")
    else:
        lines.append(f"> **{total}** finding(s), **{warnings}** warning(s) across **{len(counts)}** changed file(s).\n")

    if statistics is not None:
        lines.append(
            f"Build totals: {statistics.errors} error(s) "
            f"({statistics.new_errors} new, {statistics.old_errors} existing).\n"
        )

    if counts:
        lines.append("| File | Warnings | Total |")
        lines.append("|------|:--------:|:-----:|")
        for path, c in counts.items():
            lines.append(f"| `{path}` | {c['warnings'] or '—'} | {c['total']} |")

    if outside_diff:
        lines.append("\n**Outside the diff:**")
        for path, record in outside_diff[:_MAX_BODY_FINDINGS]:
            lines.append(f"- `{path}:{record.line}` {index.type_names[record.inspection_id]}: {record.message}")
        hidden = len(outside_diff) - _MAX_BODY_FINDINGS
        if hidden > 0:
            lines.append(f"- _…and {hidden} more._")

    return "\n".join(lines)


def build_review_draft(
    index: FileInspectionIndex,
    pr_files,
    statistics: InspectionStatistics | None = None,
    request_changes_on_warnings: bool = False,
) -> ReviewDraft:
    """Attach each finding to its diff position, or list it in the body if the line is not in the PR diff."""
    positions_by_file = {f.filename: get_diff_positions(f.patch or "") for f in pr_files if f.filename}

    comments: list[dict] = []
    outside_diff: list[tuple[str, InspectionRecord]] = []
    for path, record in index.records():
        position = positions_by_file.get(path, {}).get(record.line)
        if position is None:
            logger.debug("%s:%d is not part of the PR diff", path, record.line)
            outside_diff.append((path, record))
            continue
        comments.append({"path": path, "position": position, "body": format_comment(record, index.type_names[record.inspection_id])})

    return ReviewDraft(
        body=_build_summary(index, outside_diff, statistics),
        event=determine_event(index, request_changes_on_warnings),
        comments=comments,
        outside_diff=outside_diff,
    )


def post_review(pr, draft: ReviewDraft, batch_limit: int = 60) -> int:
    """Post the draft, splitting inline comments into batches. Returns the number of comments posted."""
    if not draft.comments:
        pr.create_review(body=draft.body, event=draft.event)
        return 0

    batches = [draft.comments[i : i + batch_limit] for i in range(0, len(draft.comments), batch_limit)]
    total_posted = 0
    for idx, batch in enumerate(batches):
        is_last = idx == len(batches) - 1
        batch_body = (
            draft.body if is_last else f"Inspection review in progress ({total_posted + len(batch)}/{len(draft.comments)} comments)..."
        )
        batch_event = draft.event if is_last else "COMMENT"
        pr.create_review(body=batch_body, event=batch_event, comments=batch)
        total_posted += len(batch)
    return total_posted
