"""
Line-oriented parser for yt-dlp console output.

Each stdout line is classified by its leading bracketed tag and converted into
zero or more run events. The parser keeps a little state across the lines of
one invocation (the current phase, the destination file, the files already
reported as complete) and must be reset before the next invocation starts.
"""

import logging
import re
from enum import Enum

from ytdlp_runner.models.events import (
    DownloadCompleted,
    DownloadProgress,
    ErrorMessage,
    OutputMessage,
    PostProcessing,
    ProgressMessage,
    RunEvent,
)

log = logging.getLogger(__name__)

POST_PROCESSORS = frozenset(
    {
        "Merger",
        "ExtractAudio",
        "EmbedThumbnail",
        "EmbedSubtitle",
        "Metadata",
        "VideoConvertor",
        "VideoRemuxer",
        "ThumbnailsConvertor",
        "SubtitlesConvertor",
        "SponsorBlock",
        "ModifyChapters",
        "SplitChapters",
        "MoveFiles",
        "Exec",
    }
)

# Steps whose output file replaces the downloaded one.
_RENAMING_STEPS = frozenset(
    {"Merger", "ExtractAudio", "VideoConvertor", "VideoRemuxer"}
)

_TAG = re.compile(r"^\[(?P<tag>[^\]]+)\]\s*(?P<message>.*?)\s*$")
_DESTINATION = re.compile(r"^Destination:\s+(?P<path>.+?)\s*$")
_ALREADY = re.compile(r"^(?P<path>.+?)\s+has already been downloaded", re.I)
_PROGRESS = re.compile(
    r"^(?P<percent>\d{1,3}(?:\.\d+)?)%"
    r"(?:\s+of\s+(?P<total>~?\s*[\d.,]+\s*[KMGT]?i?B|Unknown total size))?"
    r"(?:\s+in\s+(?P<elapsed>(?:\d+:)*\d+(?:\.\d+)?))?"
    r"(?:\s+at\s+(?P<speed>[\d.,]+\s*[KMGT]?i?B/s|Unknown B/s|Unknown speed))?"
    r"(?:\s+ETA\s+(?P<eta>(?:\d+:)*\d+|Unknown(?: ETA)?|N/A))?"
)
_QUOTED_PATH = re.compile(r'"(?P<path>[^"]+)"')
_ERROR = re.compile(r"^ERROR:\s*(?P<message>.*?)\s*$")
_WARNING = re.compile(r"^WARNING:\s*(?P<message>.*?)\s*$")


class ParserPhase(Enum):
    """Which stage of an invocation the most recent lines belonged to."""

    IDLE = "idle"
    DOWNLOADING = "downloading"
    POST_PROCESSING = "post_processing"


def _clean(token: str | None) -> str | None:
    if token is None or token.startswith("Unknown") or token == "N/A":
        return None
    return re.sub(r"\s+", "", token)


class ProgressParser:
    """Converts yt-dlp stdout lines into typed run events."""

    def __init__(self):
        self.reset()

    def reset(self) -> None:
        """Clears all per-invocation state."""
        self.phase = ParserPhase.IDLE
        self.destination: str | None = None
        self.completed: set[str] = set()
        self.lines_seen = 0

    def parse(self, line: str) -> list[RunEvent]:
        """
        Classifies one stdout line. Never raises: anything that cannot be
        interpreted comes back as an ``OutputMessage``.
        """
        events: list[RunEvent] = []
        for segment in line.replace("\r\n", "\n").split("\r"):
            segment = segment.strip("\n").rstrip()
            if not segment.strip():
                continue
            self.lines_seen += 1
            try:
                events.extend(self._parse_segment(segment))
            except Exception as e:
                log.debug(f"Unparseable yt-dlp line '{segment}': {e}")
                events.append(OutputMessage(segment))
        return events

    def _parse_segment(self, line: str) -> list[RunEvent]:
        if match := _ERROR.match(line):
            return [ErrorMessage(match.group("message"))]
        if match := _WARNING.match(line):
            return [ProgressMessage(match.group("message"), stage="warning")]

        match = _TAG.match(line)
        if not match:
            return [OutputMessage(line)]

        tag, message = match.group("tag"), match.group("message")
        if tag == "download":
            return self._parse_download(line, message)
        if tag in POST_PROCESSORS or tag.startswith(("Fixup", "FFmpeg")):
            return self._parse_post_processing(tag, message)
        return [ProgressMessage(message, stage=tag)]

    def _parse_download(self, line: str, message: str) -> list[RunEvent]:
        if match := _DESTINATION.match(message):
            self.destination = match.group("path")
            self.phase = ParserPhase.DOWNLOADING
            return [ProgressMessage(message, stage="download")]

        if match := _ALREADY.match(message):
            path = match.group("path")
            self.destination = path
            return self._complete(path, already_downloaded=True)

        if "%" in message:
            match = _PROGRESS.match(message)
            if not match:
                return [OutputMessage(line)]
            self.phase = ParserPhase.DOWNLOADING
            progress = DownloadProgress(
                percent=float(match.group("percent")),
                total_size=_clean(match.group("total")),
                speed=_clean(match.group("speed")),
                eta=_clean(match.group("eta")),
                destination=self.destination,
            )
            if progress.percent >= 100:
                return [progress, *self._complete(self.destination)]
            return [progress]

        return [ProgressMessage(message, stage="download")]

    def _parse_post_processing(self, step: str, message: str) -> list[RunEvent]:
        self.phase = ParserPhase.POST_PROCESSING
        path = None
        if match := _DESTINATION.match(message):
            path = match.group("path")
        elif match := _QUOTED_PATH.search(message):
            path = match.group("path")
        if path and step in _RENAMING_STEPS:
            self.destination = path
        return [PostProcessing(step=step, message=message, path=path)]

    def _complete(
        self, path: str | None, already_downloaded: bool = False
    ) -> list[RunEvent]:
        self.phase = ParserPhase.IDLE
        key = path or ""
        if key in self.completed:
            return []
        self.completed.add(key)
        return [DownloadCompleted(path=path, already_downloaded=already_downloaded)]
