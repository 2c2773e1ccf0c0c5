"""report command — run the PR commenting listener against a build snapshot."""

from __future__ import annotations

import logging

import click
from rich.console import Console
from rich.markup import escape

from buildlens_cli.snapshot import SnapshotInspectionSource, load_snapshot
from buildlens_core.commenting import GithubCommentingListener
from buildlens_core.events import BuildEventSource
from buildlens_core.gh.pull_request import connect

console = Console()


@click.command("report")
@click.option("--snapshot", "snapshot_path", required=True, help="Path to a YAML build snapshot.")
@click.option(
    "--no-submit",
    "no_submit",
    is_flag=True,
    help="Build the review but do not post it to GitHub.",
)
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="GitHub API timeout in seconds. Overrides config file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging.")
@click.pass_context
def report_cmd(ctx, snapshot_path: str, no_submit: bool, timeout: int | None, verbose: bool):
    """Log a build's inspection findings and post them as a PR review.

    The snapshot must declare the PR commenting feature with a numeric
    `branch` parameter (the pull request number).

    \b
    Optional environment variables:
      GITHUB_TOKEN         Used when the feature parameters carry no token
    """
    logging.basicConfig(level=logging.DEBUG if verbose else logging.WARNING, format="%(name)s: %(message)s")

    config = dict(ctx.obj["config"])
    if no_submit:
        config["submit_review"] = False
    if timeout is not None:
        config["github_timeout"] = timeout

    try:
        build = load_snapshot(snapshot_path)
    except FileNotFoundError as e:
        raise click.UsageError(str(e))

    build.build_log = ctx.obj["build_log_factory"](config, build.build_id)

    events = BuildEventSource()
    listener = GithubCommentingListener(SnapshotInspectionSource(), config, client_factory=connect)
    listener.register(events)

    try:
        events.build_finishing(build)
    finally:
        build.build_log.close()

    result = listener.last_result
    if result is None:
        console.print(f"[yellow]Build {build.build_id} has no PR commenting feature. Nothing to do.[/yellow]")
        return
    if not result.ok:
        console.print(f"[red]{result.kind.value}: {escape(result.message)}[/red]")
        ctx.exit(1)
    console.print(f"\n[green]{escape(result.message)}[/green]")
