"""
Manages a Rich Live display for one or more concurrent yt-dlp runs.
Shows overall batch progress, one bar per file being downloaded, and running
session statistics, all driven by the runner's event stream.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import PurePath

from rich.console import Console
from rich.layout import Layout
from rich.live import Live
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
)
from rich.table import Table
from rich.text import Text

from ytdlp_runner.models.events import (
    CommandCompleted,
    DownloadCompleted,
    DownloadProgress,
    ErrorMessage,
    PostProcessing,
    ProgressMessage,
    RunEvent,
)

log = logging.getLogger("ytdlp_runner")

_UNNAMED = "(pending destination)"


class ProgressManager:
    """
    Renders run events live. Progress bars are keyed by destination file, so
    events from several concurrent runs can share one channel.
    """

    def __init__(self, console: Console, total_urls: int = 1, quiet: bool = False):
        self.console = console
        self.quiet = quiet

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=24),
            "[progress.percentage]{task.percentage:>5.1f}%",
            "•",
            TextColumn("{task.fields[size]}"),
            "•",
            TextColumn("[magenta]{task.fields[speed]}"),
            "•",
            TextColumn("[cyan]ETA {task.fields[eta]}"),
            console=console,
            transient=False,
        )
        self.overall_progress = Progress(
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            "[progress.percentage]{task.percentage:>3.0f}%",
            console=console,
        )

        self._live: Live | None = None
        self._layout: Layout | None = None
        self._tasks: dict[str, TaskID] = {}
        self._sizes: dict[str, int] = {}
        self._overall_task_id = self.overall_progress.add_task(
            "Overall Progress", total=max(total_urls, 1)
        )
        self._stats = {
            "total_urls": total_urls,
            "runs_finished": 0,
            "runs_failed": 0,
            "files_completed": 0,
            "files_skipped": 0,
            "active_downloads": 0,
            "peak_concurrent": 0,
            "downloaded_size": 0,
            "start_time": datetime.now(),
        }

    def log_message(self, message: str, level: str = "info"):
        """Prints user-facing lines; everything else goes through the logger."""
        if level == "info":
            self.console.print(message)
        else:
            getattr(log, level, log.info)(message)

    # --- Event handling ---

    def handle(self, event: RunEvent) -> None:
        """Applies one event to the display."""
        if isinstance(event, DownloadProgress):
            self._on_progress(event)
        elif isinstance(event, DownloadCompleted):
            self._on_completed(event)
        elif isinstance(event, PostProcessing):
            self.log_message(f"[dim]{event.step}:[/dim] {escape(event.message)}")
        elif isinstance(event, ErrorMessage):
            self.log_message(f"[red]{escape(event.message)}[/red]", "error")
        elif isinstance(event, ProgressMessage):
            if event.stage == "warning":
                self.log_message(
                    f"[yellow]{escape(event.message)}[/yellow]", "warning"
                )
            else:
                self.log_message(escape(event.message), "debug")
        elif isinstance(event, CommandCompleted):
            self._on_command_completed(event)
        self._update_display()

    async def consume(self, events: asyncio.Queue) -> None:
        """Handles queued events until a ``None`` sentinel arrives."""
        while (event := await events.get()) is not None:
            self.handle(event)

    def _task_for(self, destination: str | None) -> TaskID:
        key = destination or _UNNAMED
        if key not in self._tasks:
            # A real destination supersedes the placeholder bar.
            if destination and _UNNAMED in self._tasks:
                self.progress.remove_task(self._tasks.pop(_UNNAMED))
            name = PurePath(destination).name if destination else _UNNAMED
            if len(name) > 45:
                name = name[:42] + "..."
            self._tasks[key] = self.progress.add_task(
                escape(name), total=100, size="?", speed="?", eta="?"
            )
            self._stats["active_downloads"] = len(self._tasks)
            self._stats["peak_concurrent"] = max(
                self._stats["peak_concurrent"], len(self._tasks)
            )
        return self._tasks[key]

    def _on_progress(self, event: DownloadProgress) -> None:
        task_id = self._task_for(event.destination)
        if event.total_bytes:
            self._sizes[event.destination or _UNNAMED] = event.total_bytes
        self.progress.update(
            task_id,
            completed=event.percent,
            size=event.total_size or "?",
            speed=event.speed or "?",
            eta=event.eta or "?",
        )

    def _on_completed(self, event: DownloadCompleted) -> None:
        if event.already_downloaded:
            self._stats["files_skipped"] += 1
            self.log_message(
                f"[yellow]Already downloaded:[/yellow] {escape(str(event.path))}"
            )
            return
        self._stats["files_completed"] += 1
        key = event.path if event.path in self._tasks else _UNNAMED
        if key in self._tasks:
            self.progress.update(self._tasks.pop(key), completed=100, visible=False)
        self._stats["downloaded_size"] += self._sizes.pop(key, 0)
        self._stats["active_downloads"] = len(self._tasks)
        self.log_message(f"[green]✓ Downloaded:[/green] {escape(str(event.path))}")

    def _on_command_completed(self, event: CommandCompleted) -> None:
        self._stats["runs_finished"] += 1
        if not event.success:
            self._stats["runs_failed"] += 1
        self.overall_progress.update(
            self._overall_task_id, completed=self._stats["runs_finished"]
        )

    def get_statistics(self) -> dict:
        return self._stats.copy()

    # --- Rendering ---

    def _create_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="stats", size=7),
            Layout(name="progress", ratio=1),
        )
        return layout

    def _generate_header(self) -> Panel:
        elapsed = int((datetime.now() - self._stats["start_time"]).total_seconds())
        hours, remainder = divmod(elapsed, 3600)
        minutes, seconds = divmod(remainder, 60)
        header_text = Text()
        header_text.append("📼 yt-dlp runner ", style="bold cyan")
        header_text.append("│ ", style="dim")
        header_text.append(
            f"Session: {hours:02d}:{minutes:02d}:{seconds:02d}", style="yellow"
        )
        return Panel(header_text, border_style="cyan")

    def _generate_stats_panel(self) -> Panel:
        stats_table = Table.grid(padding=(0, 2))
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_column(style="bold cyan", justify="right")
        stats_table.add_column(style="white")
        stats_table.add_row(
            "Files:",
            f"[green]{self._stats['files_completed']}[/green]",
            "Skipped:",
            f"[yellow]{self._stats['files_skipped']}[/yellow]",
        )
        stats_table.add_row(
            "Active:",
            f"[cyan]{self._stats['active_downloads']}[/cyan]",
            "Failed URLs:",
            f"[red]{self._stats['runs_failed']}[/red]",
        )
        combined = Table.grid()
        combined.add_row(stats_table)
        combined.add_row("")
        combined.add_row(self.overall_progress)
        return Panel(
            combined, title="[bold]📊 Session Statistics[/bold]", border_style="blue"
        )

    def _generate_progress_panel(self) -> Panel:
        if not self._tasks:
            return Panel(
                Text(
                    "Waiting for downloads to start...",
                    style="dim italic",
                    justify="center",
                ),
                title="[bold]📥 Active Downloads[/bold]",
                border_style="green",
            )
        return Panel(
            self.progress,
            title=f"[bold]📥 Active Downloads ({len(self._tasks)})[/bold]",
            border_style="green",
        )

    def _update_display(self):
        if self.quiet or not self._layout:
            return
        self._layout["header"].update(self._generate_header())
        self._layout["stats"].update(self._generate_stats_panel())
        self._layout["progress"].update(self._generate_progress_panel())

    async def __aenter__(self):
        if self.quiet:
            return self
        self._layout = self._create_layout()
        self._update_display()
        self._live = Live(
            self._layout,
            console=self.console,
            refresh_per_second=12,
            vertical_overflow="visible",
        )
        self._live.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._live:
            await asyncio.sleep(0.2)
            self._live.stop()
