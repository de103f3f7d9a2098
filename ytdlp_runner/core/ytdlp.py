"""
The high-level entry point: one command builder plus one process runner.

Configure the invocation through ``YtDlp.command`` (a chainable
``CommandBuilder``), then call ``execute``/``stream`` for a single URL or one
of the batch methods for many. Every execution takes the builder's pending
state and resets it, so the next invocation starts clean.
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator, Iterable
from pathlib import Path

from pydantic import ValidationError

from ytdlp_runner.core.batch import DEFAULT_MAX_CONCURRENCY, BatchExecutor
from ytdlp_runner.core.command import CommandBuilder, CommandSpec, escape_argument
from ytdlp_runner.core.options import OptionRegistry
from ytdlp_runner.exceptions import ConfigurationError, ProcessError, YtDlpError
from ytdlp_runner.models.config import RunnerConfig
from ytdlp_runner.models.events import RunEvent
from ytdlp_runner.models.formats import VideoFormat
from ytdlp_runner.models.metadata import Metadata
from ytdlp_runner.models.stats import BatchResult
from ytdlp_runner.parsing.formats import parse_formats
from ytdlp_runner.parsing.progress import ProgressParser
from ytdlp_runner.process.runner import ProcessRunner, RunResult

log = logging.getLogger(__name__)


def _require_url(url: str) -> str:
    if not url or not url.strip():
        raise ConfigurationError("URL cannot be empty.")
    return url.strip()


class YtDlp:
    """Builds, runs and interprets yt-dlp invocations."""

    def __init__(
        self,
        executable: str = "yt-dlp",
        registry: OptionRegistry | None = None,
        newline: bool = True,
        default_args: Iterable[str] = (),
    ):
        """
        Args:
            executable: Path to yt-dlp, or a name looked up on ``PATH``.
            registry: Vocabulary for ``add_custom_command``; defaults to all
                built-in option categories.
            newline: Ask yt-dlp to print every progress update on its own line.
            default_args: Custom command fragments re-applied to every
                invocation.
        """
        self.runner = ProcessRunner(executable)
        self.command = CommandBuilder(registry, newline=newline)
        self.progress_parser = ProgressParser()
        self.default_args = list(default_args)
        # Fail fast on invalid fragments rather than at the first execution.
        for fragment in self.default_args:
            CommandBuilder(self.command.registry).add_custom_command(fragment)

    @classmethod
    def from_config(cls, config: RunnerConfig) -> "YtDlp":
        """Creates an instance whose builder starts from the configured defaults."""
        ytdlp = cls(
            config.executable, newline=config.newline, default_args=config.extra_args
        )
        ytdlp.command.set_format(config.format).set_output_folder(config.output_folder)
        if config.output_template:
            ytdlp.command.set_output_template(config.output_template)
        return ytdlp

    @property
    def executable(self) -> str:
        return self.runner.executable

    def preview_command(self) -> str:
        """Returns the pending arguments as they would be passed to yt-dlp."""
        return self.command.preview()

    def take_spec(self) -> CommandSpec:
        """Takes the pending builder state, with the default fragments appended."""
        for fragment in self.default_args:
            self.command.add_custom_command(fragment)
        return self.command.take()

    @staticmethod
    def _prepare_output_folder(folder: str) -> Path:
        path = Path(folder)
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            log.error(f"Failed to create output folder {folder}: {e}")
            raise ConfigurationError(f"Failed to create output folder {folder}") from e
        log.info(f"Output folder: {path.resolve()}")
        return path

    # --- Downloads ---

    async def execute(
        self, url: str, events: asyncio.Queue | None = None
    ) -> RunResult:
        """
        Downloads ``url`` with the pending configuration.

        Args:
            url: The media URL.
            events: Optional channel receiving every ``RunEvent`` of the run.

        Raises:
            ConfigurationError: For an empty URL or an uncreatable output folder.
            CommandFailedError: If yt-dlp exits with a non-zero code.
            ProcessError: If yt-dlp cannot be started.
            asyncio.CancelledError: If the call is cancelled; yt-dlp is killed.
        """
        url = _require_url(url)
        # A folder that cannot be created must leave the pending flags in place.
        self._prepare_output_folder(self.command.output_folder)
        spec = self.take_spec()
        log.info(f"Starting download for URL: {url}")
        return await self.runner.run(
            spec.to_arguments(url), events=events, parser=self.progress_parser
        )

    async def stream(self, url: str) -> AsyncIterator[RunEvent]:
        """Downloads ``url`` and yields its events as they happen."""
        url = _require_url(url)
        self._prepare_output_folder(self.command.output_folder)
        spec = self.take_spec()
        log.info(f"Starting download for URL: {url}")
        async for event in self.runner.stream(
            spec.to_arguments(url), parser=self.progress_parser
        ):
            yield event

    def _batch_executor(
        self, urls: Iterable[str], events: asyncio.Queue | None
    ) -> tuple[BatchExecutor, list[str]]:
        url_list = [u.strip() for u in (urls or []) if u and u.strip()]
        if not url_list:
            log.error("No URLs provided for batch download")
            raise ConfigurationError("No URLs provided for batch download")

        self._prepare_output_folder(self.command.output_folder)
        spec = self.take_spec()

        async def run_one(url: str) -> RunResult:
            # Each item gets its own parser so concurrent runs never share state.
            return await self.runner.run(spec.to_arguments(url), events=events)

        return BatchExecutor(run_one), url_list

    async def execute_batch(
        self, urls: Iterable[str], events: asyncio.Queue | None = None
    ) -> BatchResult:
        """Downloads every URL in turn; a failing URL is logged and skipped."""
        executor, url_list = self._batch_executor(urls, events)
        return await executor.run_sequential(url_list)

    async def execute_batch_concurrent(
        self,
        urls: Iterable[str],
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        events: asyncio.Queue | None = None,
    ) -> BatchResult:
        """Downloads URLs with at most ``max_concurrency`` yt-dlp processes alive."""
        executor, url_list = self._batch_executor(urls, events)
        return await executor.run_concurrent(url_list, max_concurrency)

    # --- One-shot queries ---

    async def get_available_formats(self, url: str) -> list[VideoFormat]:
        """Runs ``yt-dlp -F`` and parses the listing."""
        url = _require_url(url)
        try:
            result = await self.runner.capture(["-F", escape_argument(url)])
        except asyncio.CancelledError:
            log.warning("Format fetching cancelled by user.")
            raise
        except YtDlpError as e:
            log.error(f"Failed to fetch available formats: {e}")
            raise

        log.debug(f"Format listing output:\n{result.output}")
        return parse_formats(result.output)

    async def get_metadata(self, url: str) -> Metadata:
        """Runs ``yt-dlp --dump-json`` and returns the parsed document."""
        url = _require_url(url)
        try:
            result = await self.runner.capture(["--dump-json", escape_argument(url)])
        except asyncio.CancelledError:
            log.warning("Metadata fetching cancelled by user.")
            raise
        except YtDlpError as e:
            log.error(f"Failed to fetch metadata: {e}")
            raise

        documents = [line for line in result.stdout if line.strip()]
        if not documents:
            raise ProcessError("yt-dlp returned no metadata.")
        try:
            return Metadata.model_validate(json.loads(documents[0]))
        except (json.JSONDecodeError, ValidationError) as e:
            message = f"Failed to parse metadata: {e}"
            log.error(message)
            raise ProcessError(message) from e

    async def get_version(self) -> str:
        """Returns the yt-dlp version string, or an empty string on failure."""
        try:
            result = await self.runner.capture(["--version"])
        except YtDlpError as e:
            log.error(f"Error getting yt-dlp version: {e}")
            return ""
        version = result.output.strip()
        log.info(f"yt-dlp version: {version}")
        return version

    async def update(self) -> str:
        """Runs ``yt-dlp -U`` and summarizes the outcome as a message."""
        try:
            result = await self.runner.capture(["-U"], check=False)
        except YtDlpError as e:
            log.error(f"Error updating yt-dlp: {e}")
            return f"yt-dlp update failed: {e}"

        output = result.output
        if output.strip():
            log.info(output.strip())
        if result.error_output.strip():
            log.error(result.error_output.strip())

        lowered = output.lower()
        if "updated" in lowered:
            return "yt-dlp was successfully updated to the latest version."
        if "up to date" in lowered:
            return "yt-dlp is already up to date."
        return "yt-dlp update check completed (no changes detected)."
