"""log command — display persisted build log entries."""

from __future__ import annotations

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from buildlens_log.models import EntryKind

console = Console()

_STATUS_STYLE = {
    "NORMAL": "white",
    "WARNING": "yellow",
    "ERROR": "red",
}


@click.command("log")
@click.option("--build-id", "build_id", required=True, help="Build whose log to show.")
@click.option("--limit", default=200, show_default=True, help="Maximum number of entries to show.")
@click.pass_context
def log_cmd(ctx, build_id: str, limit: int):
    """Show the persisted build log for a build.

    Reads from the SQLite log. Set `log: sqlite` in .buildlens.yml so
    `buildlens report` writes it.
    """
    config = ctx.obj["config"]
    if config.get("log") != "sqlite":
        raise click.UsageError("No persistent log configured. Add 'log: sqlite' to .buildlens.yml.")

    from buildlens_log.sqlite import SQLiteBuildLog

    build_log = SQLiteBuildLog(build_id=build_id, db_path=config.get("log_path", ".buildlens.db"))
    try:
        entries = build_log.list_entries()
    finally:
        build_log.close()

    # Block closes carry no content worth a row.
    entries = [e for e in entries if e.kind != EntryKind.BLOCK_CLOSE][:limit]
    if not entries:
        console.print("[yellow]No log entries found.[/yellow]")
        return

    table = Table(title=f"Build Log — {build_id}", show_header=True, header_style="bold cyan")
    table.add_column("Time", width=20)
    table.add_column("Level", width=8)
    table.add_column("Entry")

    for e in entries:
        style = _STATUS_STYLE.get(e.status.value, "white")
        text = "  " * e.depth + escape(e.text)
        if e.kind == EntryKind.BLOCK_OPEN:
            text = f"[bold]{text}[/bold]"
        elif e.kind == EntryKind.ERROR:
            text = f"{escape(e.category)}: {text}"
        table.add_row(
            e.timestamp[:19].replace("T", " "),
            f"[{style}]{e.status.value}[/{style}]",
            text,
        )

    console.print(table)
