"""ConsoleBuildLog — renders the build log to the terminal with rich.

Blocks are shown as indented headers, messages are coloured by status.
Nothing is kept once printed; pair with SQLiteBuildLog when the log must
survive the process.
"""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape

from buildlens_log.base import BaseBuildLog
from buildlens_log.models import EntryKind, LogEntry, Status

_STATUS_STYLE = {
    Status.NORMAL: "white",
    Status.WARNING: "yellow",
    Status.ERROR: "red",
}


class ConsoleBuildLog(BaseBuildLog):
    INDENT = "  "

    def __init__(self, console: Console | None = None):
        super().__init__()
        self._console = console or Console()

    def _emit(self, entry: LogEntry) -> None:
        pad = self.INDENT * entry.depth
        text = escape(entry.text)
        if entry.kind == EntryKind.BLOCK_OPEN:
            self._console.print(f"{pad}[bold cyan]▸ {text}[/bold cyan]")
        elif entry.kind == EntryKind.BLOCK_CLOSE:
            # Closing a block only changes indentation; nothing to print.
            return
        elif entry.kind == EntryKind.ERROR:
            self._console.print(f"{pad}[bold red]{escape(entry.category)}[/bold red] [red]{text}[/red]")
        else:
            style = _STATUS_STYLE.get(entry.status, "white")
            self._console.print(f"{pad}[{style}]{text}[/{style}]")
