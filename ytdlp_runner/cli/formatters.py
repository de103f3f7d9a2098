"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ytdlp_runner.models.formats import VideoFormat
from ytdlp_runner.models.metadata import Metadata
from ytdlp_runner.models.stats import BatchResult
from ytdlp_runner.utils.formatting import format_duration, format_size


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Formats an error with actionable suggestions into a Rich Panel."""
    error_type = type(error).__name__
    error_msg = str(error)

    suggestions_map = {
        "ExecutableNotFoundError": [
            "• Install yt-dlp, e.g. `pip install yt-dlp`.",
            "• Or set `executable` in the config file to its full path.",
            "• Run `ytdlp-runner --show-config` to check the current value.",
        ],
        "InvalidOptionError": [
            "• Check the spelling of the option passed with `--extra`.",
            "• Only options known to yt-dlp are accepted.",
        ],
        "ConfigurationError": [
            "• Review the values in your configuration file.",
            "• Run `ytdlp-runner init --force` to restore the defaults.",
        ],
        "CommandFailedError": [
            "• Check that the URL is valid and publicly reachable.",
            "• The requested format may not exist; try `ytdlp-runner formats <URL>`.",
            "• Your yt-dlp may be outdated; try `ytdlp-runner update`.",
        ],
        "ProcessError": [
            "• yt-dlp could not be started or stopped unexpectedly.",
            "• Run the command with -vv for detailed logs.",
        ],
    }

    suggestions = suggestions_map.get(
        error_type, ["• Run the command with -vv for detailed logs."]
    )

    error_text = Text()
    error_text.append(f"{error_type}: ", style="bold red")
    error_text.append(error_msg)

    content = Table.grid(padding=(1, 0))
    content.add_row(error_text)
    content.add_row()
    content.add_row(Text("Suggestions", style="bold yellow"))
    content.add_row(Text("\n".join(suggestions)))

    if context:
        content.add_row()
        content.add_row(Text(f"Context: {context}", style="dim"))

    return Panel(
        content,
        title="[bold red]An Error Occurred[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the current configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        if value is None:
            shown = "[dim](default)[/dim]"
        elif isinstance(value, list):
            shown = escape("; ".join(value))
        else:
            shown = escape(str(value))
        content += f"{key} = {shown}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{config_path}[/dim])",
            border_style="cyan",
        )
    )


def print_formats_table(
    formats: list[VideoFormat], title: str = "Available Formats"
):
    """Displays the parsed ``-F`` listing."""
    console = Console()
    if not formats:
        console.print("[yellow]No formats found.[/yellow]")
        return

    table = Table(title=f"[bold]{title}[/bold]", box=box.ROUNDED, title_style="")
    table.add_column("ID", style="bold magenta", no_wrap=True)
    table.add_column("EXT", style="cyan")
    table.add_column("RESOLUTION")
    table.add_column("FPS", justify="right")
    table.add_column("SIZE", justify="right", style="green")
    table.add_column("TBR", justify="right")
    table.add_column("PROTO", style="dim")
    table.add_column("VCODEC")
    table.add_column("ACODEC")
    table.add_column("MORE INFO", style="dim")

    for fmt in formats:
        style = "dim" if fmt.is_storyboard else None
        cells = [
            fmt.id,
            fmt.extension,
            fmt.resolution,
            fmt.fps,
            fmt.file_size,
            fmt.tbr,
            fmt.protocol,
            fmt.vcodec,
            fmt.acodec,
            fmt.more_info,
        ]
        # Text cells keep tokens like "[en]" from being read as markup.
        table.add_row(*(Text(cell or "") for cell in cells), style=style)
    console.print(table)


def print_metadata(metadata: Metadata):
    """Displays the most useful fields of a video's metadata."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()

    table.add_row("ID:", escape(metadata.id or "?"))
    table.add_row("Uploader:", escape(metadata.uploader or metadata.channel or "?"))
    if metadata.duration is not None:
        table.add_row("Duration:", format_duration(metadata.duration))
    if metadata.upload_date:
        table.add_row("Uploaded:", metadata.upload_date)
    if metadata.view_count is not None:
        table.add_row("Views:", f"{metadata.view_count:,}")
    table.add_row("Formats:", str(len(metadata.formats)))
    if metadata.tags:
        table.add_row("Tags:", f"[dim]{escape(', '.join(metadata.tags[:10]))}[/dim]")
    if metadata.webpage_url:
        table.add_row("URL:", f"[dim]{escape(metadata.webpage_url)}[/dim]")

    console.print(
        Panel(
            table,
            title=f"[bold]{escape(metadata.display_title)}[/bold]",
            border_style="cyan",
            expand=False,
        )
    )


def print_summary_panel(result: BatchResult, progress_stats: dict | None = None):
    """Displays the final summary of a download session."""
    console = Console()
    stats = result.stats

    stats_table = Table(show_header=False, box=None, padding=(0, 2))
    stats_table.add_column(style="bold cyan", justify="right", width=20)
    stats_table.add_column(style="white", justify="left")

    stats_table.add_row("✓ Succeeded:", f"[bold green]{stats.succeeded}[/bold green]")
    if stats.failed > 0:
        stats_table.add_row("✗ Failed:", f"[bold red]{stats.failed}[/bold red]")

    if progress_stats:
        stats_table.add_row(
            "Files:", f"[green]{progress_stats.get('files_completed', 0)}[/green]"
        )
        if progress_stats.get("downloaded_size"):
            size = format_size(progress_stats["downloaded_size"])
            stats_table.add_row("Total Size:", f"[cyan]{size}[/cyan]")
        if progress_stats.get("files_skipped"):
            stats_table.add_row(
                "○ Already There:",
                f"[yellow]{progress_stats['files_skipped']}[/yellow]",
            )

    stats_table.add_row("", "")
    stats_table.add_row(
        "Time Elapsed:", f"[blue]{format_duration(stats.elapsed_seconds)}[/blue]"
    )
    stats_table.add_row("Peak Concurrent:", f"[green]{stats.peak_in_flight}[/green]")

    for url, reason in result.failed.items():
        stats_table.add_row("", "")
        stats_table.add_row("[red]Failed URL:[/red]", f"[dim]{escape(url)}[/dim]")
        stats_table.add_row("", f"[red]{escape(reason)}[/red]")

    if result.ok:
        title = "📼 [bold]Download Complete![/bold]"
        border_color = "green"
    else:
        title = "⚠ [bold]Download Finished With Errors[/bold]"
        border_color = "yellow"

    console.print()
    console.print(
        Panel(
            stats_table,
            title=title,
            border_style=border_color,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
    console.print()
