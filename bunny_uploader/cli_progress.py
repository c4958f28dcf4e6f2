"""Console rendering and progress helpers for bunny-cli."""
from __future__ import annotations

import time
from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from .models import RunResult, UploadOutcome, WorkItem
from .utils import events as ev
from .utils.events import EventEmitter, RetryNotice


console = Console()


def _human_size(value: int) -> str:
    size = float(max(value, 0))
    units = ["B", "KB", "MB", "GB", "TB"]
    unit_idx = 0
    while size >= 1024.0 and unit_idx < len(units) - 1:
        size /= 1024.0
        unit_idx += 1
    if unit_idx == 0:
        return f"{int(size)} {units[unit_idx]}"
    return f"{size:.2f} {units[unit_idx]}"


def render_configuration_summary(config: Dict[str, Any], title: str = "bunny-cli") -> None:
    """Render startup configuration summary."""
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column(style="white")

    for key, value in config.items():
        rendered = "-" if value is None else str(value)
        table.add_row(key, rendered)

    panel = Panel(
        table,
        title=f"[bold green]{title}[/bold green]",
        subtitle="[dim]Bunny.net CLI[/dim]",
        border_style="blue",
    )
    console.print(panel)


def echo(message: str, style: Optional[str] = None) -> None:
    console.print(message, style=style)


class FolderUploadProgressDisplay:
    """Event-based console display for a folder upload run."""

    def __init__(self, total_files: Optional[int] = None, quiet: bool = False):
        self._total = total_files
        self._quiet = quiet
        self._sizes: Dict[str, int] = {}
        self._stats = {"uploaded": 0, "failed": 0, "retries": 0}
        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold cyan]{task.fields[label]}", justify="left"),
            BarColumn(bar_width=36),
            MofNCompleteColumn(),
            TimeElapsedColumn(),
            TextColumn("[dim]{task.fields[detail]}", justify="left"),
            expand=False,
            console=console,
        )
        self._task_id: Optional[TaskID] = None

    def attach(self, events: EventEmitter) -> None:
        events.on(ev.FILE_START, self.on_file_start)
        events.on(ev.FILE_RETRY, self.on_file_retry)
        events.on(ev.FILE_COMPLETE, self.on_file_complete)
        events.on(ev.FILE_FAIL, self.on_file_fail)
        events.on(ev.FINISH, self.on_finish)

    def start(self) -> None:
        if self._quiet or self._task_id is not None:
            return
        self._progress.start()
        self._task_id = self._progress.add_task(
            "upload",
            label="Uploading",
            total=self._total,
            detail="uploaded=0 failed=0",
        )

    def stop(self) -> None:
        if self._task_id is None:
            return
        self._progress.stop()
        self._task_id = None

    def _advance(self) -> None:
        if self._task_id is None:
            return
        self._progress.update(
            self._task_id,
            advance=1,
            detail=f"uploaded={self._stats['uploaded']} failed={self._stats['failed']}",
        )

    def _emit_timeline(self, status: str, name: str, size_bytes: Optional[int] = None,
                       error: Optional[str] = None) -> None:
        if self._quiet:
            return
        stamp = time.strftime("%H:%M:%S")
        size_label = f" {_human_size(size_bytes)}" if size_bytes else ""
        error_label = f" cause={error}" if error else ""
        palette = {"DONE": "green", "FAIL": "red", "RTRY": "yellow"}
        color = palette.get(status, "white")
        self._progress.console.print(
            f"[dim]{stamp}[/dim] [{color}]{status:<4}[/{color}] {name}{size_label}{error_label}"
        )

    def on_file_start(self, item: WorkItem) -> None:
        try:
            self._sizes[item.relative_path] = item.absolute_path.stat().st_size
        except OSError:
            self._sizes[item.relative_path] = 0

    def on_file_retry(self, notice: RetryNotice) -> None:
        self._stats["retries"] += 1
        self._emit_timeline(
            "RTRY",
            f"{notice.relative_path} ({notice.attempt}/{notice.max_attempts})",
            error=notice.error,
        )

    def on_file_complete(self, outcome: UploadOutcome) -> None:
        self._stats["uploaded"] += 1
        size = self._sizes.pop(outcome.item.relative_path, None)
        self._emit_timeline("DONE", outcome.item.relative_path, size_bytes=size)
        self._advance()

    def on_file_fail(self, outcome: UploadOutcome) -> None:
        self._stats["failed"] += 1
        self._sizes.pop(outcome.item.relative_path, None)
        self._emit_timeline("FAIL", outcome.item.relative_path, error=str(outcome.cause))
        self._advance()

    def on_finish(self, result: RunResult) -> None:
        self.stop()
        if self._quiet:
            return
        state = "[green]completed[/green]" if result.success else "[red]failed[/red]"
        echo(
            f"[bold]Finished[/bold] {state} uploaded={result.uploaded} "
            f"failed={result.failed} queued={result.enumerated} retries={self._stats['retries']}"
        )
