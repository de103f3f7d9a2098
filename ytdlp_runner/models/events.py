"""
Tagged event values produced while a yt-dlp process runs.

Events are put on an ``asyncio.Queue`` (or yielded by ``ProcessRunner.stream``)
in the order the lines were read. Every event carries a ``kind`` tag so
consumers can dispatch with a simple ``match``/``if`` on the type or the tag.
"""

from dataclasses import dataclass, field

from ytdlp_runner.utils.formatting import human_to_bytes, hms_to_seconds


@dataclass(frozen=True)
class RunEvent:
    """Base class for every event emitted during a run."""

    kind: str = field(init=False, default="event")


@dataclass(frozen=True)
class OutputLine(RunEvent):
    """A raw line observed on standard output."""

    line: str
    kind: str = field(init=False, default="output_line")


@dataclass(frozen=True)
class ErrorLine(RunEvent):
    """A raw line observed on standard error."""

    line: str
    kind: str = field(init=False, default="error_line")


@dataclass(frozen=True)
class OutputMessage(RunEvent):
    """A stdout line that matched no known shape."""

    message: str
    kind: str = field(init=False, default="output_message")


@dataclass(frozen=True)
class ProgressMessage(RunEvent):
    """An informational line from a known stage (``[info]``, ``WARNING:``, ...)."""

    message: str
    stage: str = ""
    kind: str = field(init=False, default="progress_message")


@dataclass(frozen=True)
class ErrorMessage(RunEvent):
    """An ``ERROR:`` line printed by yt-dlp on standard output."""

    message: str
    kind: str = field(init=False, default="error_message")


@dataclass(frozen=True)
class DownloadProgress(RunEvent):
    """Structured form of a ``[download]  42.0% of ...`` progress line."""

    percent: float
    total_size: str | None = None
    speed: str | None = None
    eta: str | None = None
    destination: str | None = None
    kind: str = field(init=False, default="download_progress")

    @property
    def eta_seconds(self) -> int | None:
        return hms_to_seconds(self.eta) if self.eta else None

    @property
    def total_bytes(self) -> int | None:
        if not self.total_size:
            return None
        return human_to_bytes(self.total_size.lstrip("~")) or None


@dataclass(frozen=True)
class DownloadCompleted(RunEvent):
    """A file finished downloading (or was already present)."""

    path: str | None
    already_downloaded: bool = False
    kind: str = field(init=False, default="download_completed")


@dataclass(frozen=True)
class PostProcessing(RunEvent):
    """A post-processor step such as ``[Merger]`` or ``[ExtractAudio]``."""

    step: str
    message: str
    path: str | None = None
    kind: str = field(init=False, default="post_processing")


@dataclass(frozen=True)
class CommandCompleted(RunEvent):
    """Terminal event of a run that reached process exit."""

    success: bool
    exit_code: int
    message: str
    kind: str = field(init=False, default="command_completed")
