"""
Defines the command-line interface for the application using Typer.
"""

import asyncio
import logging
import shlex
import sys
from collections.abc import Coroutine
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from ytdlp_runner import __version__
from ytdlp_runner.core.command import CommandBuilder
from ytdlp_runner.core.ytdlp import YtDlp
from ytdlp_runner.exceptions import YtDlpError
from ytdlp_runner.models.config import RunnerConfig
from ytdlp_runner.storage.config_manager import ConfigManager, get_config_dir

from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_formats_table,
    print_metadata,
    print_summary_panel,
)
from .progress_manager import ProgressManager

console = Console()

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=True,
        )
    ],
)
log = logging.getLogger("ytdlp_runner")

app = typer.Typer(
    name="ytdlp-runner",
    help=(
        "Drive yt-dlp from the command line: validated options, live progress and"
        " concurrent batches. Use 'ytdlp-runner <command> --help' for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)


def get_config_file() -> Path:
    return get_config_dir() / "config.ini"


def _run(coro: Coroutine[Any, Any, Any]) -> Any:
    """Runs ``coro`` to completion, turning library errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except YtDlpError as e:
        console.print(format_error_with_suggestions(e))
        log.debug("Full traceback:", exc_info=True)
        raise typer.Exit(code=1) from e


def _load_config(cli_options: dict[str, Any] | None = None) -> RunnerConfig:
    try:
        return ConfigManager(get_config_file()).load_config(cli_options)
    except YtDlpError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


def _create_ytdlp(config: RunnerConfig) -> YtDlp:
    try:
        return YtDlp.from_config(config)
    except YtDlpError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the current configuration."
    ),
):
    """yt-dlp runner CLI"""
    if version:
        console.print(f"[bold]ytdlp-runner[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "WARNING"
    if verbose >= 2:
        log_level = "DEBUG"
    elif verbose == 1:
        log_level = "INFO"
    logging.getLogger("ytdlp_runner").setLevel(log_level)

    if show_config:
        config_file = get_config_file()
        if not config_file.is_file():
            console.print(
                "[yellow]No config file found, showing defaults.[/yellow] Run"
                " [cyan]ytdlp-runner init[/cyan] to create one."
            )
            defaults = _load_config().model_dump(include=RunnerConfig.get_ini_keys())
            print_config(config_file, defaults)
            raise typer.Exit()
        print_config(config_file, ConfigManager(config_file).get_config_as_dict())
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing configuration file."
    ),
):
    """Write a configuration file with the default settings."""
    config_file = get_config_file()
    if (
        config_file.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    try:
        ConfigManager(config_file).save_new_config()
    except YtDlpError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(
        f"\n[bold green]✓ Configuration saved to '{config_file}'[/bold green]"
    )
    console.print("Ready to download! Try: [cyan]ytdlp-runner download <URL>[/cyan]")


def _read_urls_from_stdin() -> list[str]:
    """Reads URLs from stdin, one per line; blank lines and '#' comments are skipped."""
    if sys.stdin.isatty():
        console.print(
            "[yellow]⚠️  No input detected on stdin. Please pipe URLs or redirect"
            " a file.[/yellow]"
        )
        raise typer.Exit(code=1)

    urls = []
    for line in sys.stdin:
        line = line.strip()
        if line and not line.startswith("#"):
            urls.append(line)

    if not urls:
        console.print("[yellow]⚠️  No valid URLs found in stdin.[/yellow]")
        raise typer.Exit(code=1)

    console.print(f"[green]✓ Read {len(urls)} URLs from stdin.[/green]")
    return urls


def _apply_download_options(
    builder: CommandBuilder,
    proxy: str | None,
    limit_rate: str | None,
    retries: int | None,
    playlist_items: str | None,
    sections: str | None,
    audio: str | None,
    embed_metadata: bool,
    embed_thumbnail: bool,
    subs: str | None,
) -> None:
    if proxy:
        builder.use_proxy(proxy)
    if limit_rate:
        builder.set_download_rate(limit_rate)
    if retries is not None:
        builder.set_retries(retries)
    if playlist_items:
        builder.select_playlist_items(playlist_items)
    if sections:
        builder.download_sections(sections)
    if audio:
        builder.extract_audio(audio)
    if embed_metadata:
        builder.embed_metadata()
    if embed_thumbnail:
        builder.embed_thumbnail()
    if subs:
        builder.download_subtitles(subs)


@app.command(name="download")
def download_command(
    urls: list[str] | None = typer.Argument(  # noqa: B008
        None, help="One or more URLs supported by yt-dlp."
    ),
    # --- Selection & Output ---
    format_selector: str | None = typer.Option(
        None, "-f", "--format", help="yt-dlp format selector (default: best)."
    ),
    output_folder: str | None = typer.Option(
        None, "-o", "--output", help="Folder the files are written to."
    ),
    output_template: str | None = typer.Option(
        None,
        "-t",
        "--template",
        help="yt-dlp output template, e.g. '%(uploader)s/%(title)s.%(ext)s'.",
    ),
    workers: int | None = typer.Option(
        None,
        "-w",
        "--workers",
        help="Number of simultaneous yt-dlp processes for several URLs.",
    ),
    # --- Network ---
    proxy: str | None = typer.Option(None, "--proxy", help="Proxy URL to use."),
    limit_rate: str | None = typer.Option(
        None, "--limit-rate", help="Maximum download rate, e.g. '50K' or '4.2M'."
    ),
    retries: int | None = typer.Option(
        None, "--retries", help="Number of retries per download."
    ),
    # --- Content ---
    playlist_items: str | None = typer.Option(
        None, "--playlist-items", help="Playlist indices to fetch, e.g. '1,3,5-7'."
    ),
    sections: str | None = typer.Option(
        None, "--sections", help="Only download matching time ranges, e.g. '*1:00-2:00'"
    ),
    audio: str | None = typer.Option(
        None, "--audio", help="Extract audio in this format (mp3, m4a, opus, ...)."
    ),
    embed_metadata: bool = typer.Option(
        False, "--embed-metadata", help="Embed metadata into the media file."
    ),
    embed_thumbnail: bool = typer.Option(
        False, "--embed-thumbnail", help="Embed the thumbnail as cover art."
    ),
    subs: str | None = typer.Option(
        None, "--subs", help="Download subtitles for these languages, e.g. 'en,de'."
    ),
    # --- Behavior ---
    extra: list[str] | None = typer.Option(  # noqa: B008
        None,
        "--extra",
        help="Additional yt-dlp option fragment, e.g. '--sleep-interval 5'.",
    ),
    preview: bool = typer.Option(
        False, "--preview", help="Print the yt-dlp arguments instead of running them."
    ),
    stdin: bool = typer.Option(
        False, "--stdin", help="Read URLs from standard input, one URL per line."
    ),
):
    """Download media with yt-dlp."""
    if stdin:
        urls = _read_urls_from_stdin()
    elif not urls:
        console.print(
            "[red]✗ No URLs provided.[/red] "
            "Use: [cyan]ytdlp-runner download <URL>[/cyan] or [cyan]--stdin[/cyan]"
        )
        raise typer.Exit(code=1)

    cli_options = {
        key: value
        for key, value in {
            "source_urls": urls,
            "format": format_selector,
            "output_folder": output_folder,
            "output_template": output_template,
            "max_concurrency": workers,
        }.items()
        if value is not None
    }
    config = _load_config(cli_options)
    if extra:
        config.extra_args = [*config.extra_args, *extra]
    ytdlp = _create_ytdlp(config)

    try:
        _apply_download_options(
            ytdlp.command,
            proxy,
            limit_rate,
            retries,
            playlist_items,
            sections,
            audio,
            embed_metadata,
            embed_thumbnail,
            subs,
        )
    except YtDlpError as e:
        console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e

    if preview:
        spec = ytdlp.take_spec()
        for url in config.source_urls:
            command = escape(shlex.join(spec.to_arguments(url)))
            console.print(f"[cyan]{escape(ytdlp.executable)}[/cyan] {command}")
        raise typer.Exit()

    if len(config.source_urls) == 1:
        _run(_download_single(ytdlp, config.source_urls[0]))
        return

    result = _run(_download_batch(ytdlp, config))
    if not result.ok:
        raise typer.Exit(code=1)


async def _download_single(ytdlp: YtDlp, url: str) -> None:
    async with ProgressManager(console=console, total_urls=1) as progress_manager:
        async for event in ytdlp.stream(url):
            progress_manager.handle(event)
    console.print(f"[bold green]✓ Finished:[/bold green] {escape(url)}")


async def _download_batch(ytdlp: YtDlp, config: RunnerConfig):
    events: asyncio.Queue = asyncio.Queue()
    async with ProgressManager(
        console=console, total_urls=len(config.source_urls)
    ) as progress_manager:
        consumer = asyncio.create_task(progress_manager.consume(events))
        try:
            result = await ytdlp.execute_batch_concurrent(
                config.source_urls, config.max_concurrency, events=events
            )
        finally:
            await events.put(None)
            await consumer
    print_summary_panel(result, progress_manager.get_statistics())
    return result


@app.command()
def formats(url: str = typer.Argument(..., help="The video URL.")):
    """List the formats available for a URL."""
    ytdlp = _create_ytdlp(_load_config())
    with console.status("[cyan]Fetching available formats...[/cyan]"):
        available = _run(ytdlp.get_available_formats(url))
    print_formats_table(available)


@app.command()
def info(url: str = typer.Argument(..., help="The video URL.")):
    """Show the metadata of a video without downloading it."""
    ytdlp = _create_ytdlp(_load_config())
    with console.status("[cyan]Fetching metadata...[/cyan]"):
        metadata = _run(ytdlp.get_metadata(url))
    print_metadata(metadata)


@app.command()
def version():
    """Show the version of the yt-dlp executable."""
    ytdlp = _create_ytdlp(_load_config())
    ytdlp_version = _run(ytdlp.get_version())
    if not ytdlp_version:
        console.print("[red]✗ Could not determine the yt-dlp version.[/red]")
        raise typer.Exit(code=1)
    console.print(f"[bold]yt-dlp[/bold] version [cyan]{ytdlp_version}[/cyan]")


@app.command()
def update():
    """Update yt-dlp to its latest release."""
    ytdlp = _create_ytdlp(_load_config())
    with console.status("[cyan]Checking for yt-dlp updates...[/cyan]"):
        message = _run(ytdlp.update())
    style = "red" if "failed" in message else "green"
    console.print(f"[{style}]{message}[/{style}]")
