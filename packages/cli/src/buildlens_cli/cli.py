"""CLI entry point for buildlens.

Commands:
  report   — replay a finished build from a snapshot and post its inspections to the PR
  log      — display persisted build log entries
"""

from __future__ import annotations

import importlib.metadata

import click
from rich.console import Console

from buildlens_cli.commands.log import log_cmd
from buildlens_cli.commands.report import report_cmd

console = Console()


def _build_log(config: dict, build_id: str):
    """Instantiate the configured build log sink from .buildlens.yml settings.

    Sink selection:
      log: sqlite  → SQLiteBuildLog (log_path or .buildlens.db), persisted per build id
      (default)    → ConsoleBuildLog, printed with rich

    This factory lives in cli.py so neither buildlens_core nor buildlens_log
    know about the CLI config format.
    """
    log_type = config.get("log", "console")

    if log_type == "sqlite":
        from buildlens_log.sqlite import SQLiteBuildLog

        return SQLiteBuildLog(build_id=build_id, db_path=config.get("log_path", ".buildlens.db"))

    if log_type != "console":
        console.print(f"[yellow]Unknown log sink {log_type!r}. Falling back to console.[/yellow]")

    from buildlens_log.console import ConsoleBuildLog

    return ConsoleBuildLog(console)


@click.group()
@click.version_option(
    version=importlib.metadata.version("buildlens"),
    prog_name="buildlens",
)
@click.option(
    "--config",
    "config_path",
    default=".buildlens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="BUILDLENS_CONFIG",
)
@click.pass_context
def main(ctx: click.Context, config_path: str):
    """Post build inspection results to GitHub pull requests."""
    from buildlens_core.config import load_config

    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)
    ctx.obj["build_log_factory"] = _build_log


main.add_command(report_cmd)
main.add_command(log_cmd)
