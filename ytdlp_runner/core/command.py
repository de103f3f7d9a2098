"""
Builds validated yt-dlp argument lists.

``CommandBuilder`` accumulates escaped argument tokens through chainable
setters. ``take()`` freezes the accumulated state into an immutable
``CommandSpec`` and resets the builder, so flags never leak from one
invocation into the next.
"""

import logging
import posixpath
import shlex
from dataclasses import dataclass

from ytdlp_runner.core.options import OptionRegistry
from ytdlp_runner.exceptions import ConfigurationError, InvalidOptionError
from ytdlp_runner.models.config import DEFAULT_OUTPUT_TEMPLATE

log = logging.getLogger(__name__)


def escape_argument(value: str) -> str:
    """Backslash-escapes double quotes and backticks inside an argument value."""
    if not value:
        return value
    return value.replace('"', '\\"').replace("`", "\\`")


def _require(value: str | None, message: str) -> str:
    if value is None or not str(value).strip():
        raise ConfigurationError(message)
    return str(value)


@dataclass(frozen=True)
class CommandSpec:
    """An immutable, fully configured yt-dlp invocation minus the target URL."""

    arguments: tuple[str, ...] = ()
    format: str = "best"
    output_folder: str = "."
    output_template: str | None = None
    newline: bool = False

    @property
    def output_path_template(self) -> str:
        """The ``-o`` value: the template joined onto the output folder."""
        template = (self.output_template or DEFAULT_OUTPUT_TEMPLATE).replace("\\", "/")
        return posixpath.join(self.output_folder.replace("\\", "/"), template)

    def to_arguments(self, url: str) -> list[str]:
        """Returns the final argument list for downloading ``url``."""
        _require(url, "URL cannot be empty.")
        arguments = list(self.arguments)
        if self.newline and "--newline" not in arguments:
            arguments.append("--newline")
        arguments += [
            "-f",
            self.format,
            "-o",
            self.output_path_template,
            escape_argument(url),
        ]
        return arguments


class CommandBuilder:
    """A chainable accumulator of yt-dlp arguments."""

    def __init__(self, registry: OptionRegistry | None = None, newline: bool = False):
        self.registry = registry or OptionRegistry.default()
        self.newline = newline
        self.format = "best"
        self.output_folder = "."
        self.output_template: str | None = None
        self._arguments: list[str] = []

    @property
    def arguments(self) -> tuple[str, ...]:
        return tuple(self._arguments)

    def _add(self, *tokens: str) -> "CommandBuilder":
        self._arguments.extend(tokens)
        return self

    def _add_option(self, option: str, value: str, message: str) -> "CommandBuilder":
        return self._add(option, escape_argument(_require(value, message)))

    # --- Invocation modes ---

    def version(self) -> "CommandBuilder":
        return self._add("--version")

    def update(self) -> "CommandBuilder":
        return self._add("--update")

    def simulate(self) -> "CommandBuilder":
        return self._add("--simulate")

    def extract_metadata_only(self) -> "CommandBuilder":
        return self._add("--dump-json")

    # --- Format & output ---

    def set_format(self, format_selector: str) -> "CommandBuilder":
        self.format = escape_argument(
            _require(format_selector, "Format cannot be empty.").strip()
        )
        return self

    def set_resolution(self, resolution: str) -> "CommandBuilder":
        height = escape_argument(_require(resolution, "Resolution cannot be empty."))
        return self._add("--format", f"bestvideo[height<={height}]")

    def set_output_folder(self, folder_path: str) -> "CommandBuilder":
        self.output_folder = _require(folder_path, "Output folder cannot be empty.")
        return self

    def set_output_template(self, template: str) -> "CommandBuilder":
        template = _require(template, "Output template cannot be empty.")
        self.output_template = template.replace("\\", "/").strip()
        return self

    def merge_output_format(self, container: str) -> "CommandBuilder":
        return self._add_option(
            "--merge-output-format", container, "Format cannot be empty."
        )

    def extract_audio(self, audio_format: str) -> "CommandBuilder":
        audio_format = _require(audio_format, "Audio format cannot be empty.")
        return self._add(
            "--extract-audio", "--audio-format", escape_argument(audio_format)
        )

    # --- Playlist & selection ---

    def select_playlist_items(self, items: str) -> "CommandBuilder":
        return self._add_option(
            "--playlist-items", items, "Playlist items cannot be empty."
        )

    def download_sections(self, time_ranges: str) -> "CommandBuilder":
        return self._add_option(
            "--download-sections", time_ranges, "Time ranges cannot be empty."
        )

    def concatenate_videos(self) -> "CommandBuilder":
        return self._add("--concat-playlist", "always")

    def skip_downloaded(self, archive_file: str = "downloaded.txt") -> "CommandBuilder":
        return self._add_option(
            "--download-archive", archive_file, "Archive file cannot be empty."
        )

    def download_livestream(self, from_start: bool = True) -> "CommandBuilder":
        return self._add("--live-from-start" if from_start else "--no-live-from-start")

    def download_livestream_realtime(self) -> "CommandBuilder":
        return self._add("--live-from-start", "--recode-video", "mp4")

    def disable_ads(self) -> "CommandBuilder":
        return self._add("--no-ads")

    # --- Network ---

    def set_download_rate(self, rate: str) -> "CommandBuilder":
        return self._add_option("--limit-rate", rate, "Download rate cannot be empty.")

    def use_proxy(self, proxy: str) -> "CommandBuilder":
        return self._add_option("--proxy", proxy, "Proxy URL cannot be empty.")

    def set_retries(self, retries: str | int) -> "CommandBuilder":
        retries = None if retries is None else str(retries)
        return self._add_option("--retries", retries, "Retries cannot be empty.")

    def set_timeout(self, seconds: float) -> "CommandBuilder":
        if seconds is None or seconds <= 0:
            raise ConfigurationError("Timeout must be greater than zero.")
        return self._add("--timeout", f"{seconds:g}")

    def set_user_agent(self, user_agent: str) -> "CommandBuilder":
        return self._add_option(
            "--user-agent", user_agent, "User agent cannot be empty."
        )

    def set_referer(self, referer: str) -> "CommandBuilder":
        return self._add_option("--referer", referer, "Referer URL cannot be empty.")

    def set_custom_header(self, header: str, value: str) -> "CommandBuilder":
        if not header or not header.strip() or not value or not value.strip():
            raise ConfigurationError("Header and value cannot be empty.")
        return self._add(
            "--add-header", f"{escape_argument(header)}:{escape_argument(value)}"
        )

    def use_cookies(self, cookie_file: str) -> "CommandBuilder":
        return self._add_option(
            "--cookies", cookie_file, "Cookie file path cannot be empty."
        )

    def set_authentication(self, username: str, password: str) -> "CommandBuilder":
        if not username or not username.strip() or not password or not password.strip():
            raise ConfigurationError("Username and password cannot be empty.")
        return self._add(
            "--username",
            escape_argument(username),
            "--password",
            escape_argument(password),
        )

    # --- Metadata, subtitles & thumbnails ---

    def embed_metadata(self) -> "CommandBuilder":
        return self._add("--embed-metadata")

    def embed_thumbnail(self) -> "CommandBuilder":
        return self._add("--embed-thumbnail")

    def write_metadata_to_json(self) -> "CommandBuilder":
        return self._add("--write-info-json")

    def download_thumbnails(self) -> "CommandBuilder":
        return self._add("--write-thumbnail")

    def download_subtitles(self, languages: str = "all") -> "CommandBuilder":
        languages = _require(languages, "Languages cannot be empty.")
        return self._add("--write-subs", "--sub-langs", escape_argument(languages))

    def replace_metadata(
        self, field: str, regex: str, replacement: str
    ) -> "CommandBuilder":
        if not field or not field.strip() or not regex or not regex.strip():
            raise ConfigurationError(
                "Metadata field, regex, and replacement cannot be empty."
            )
        if replacement is None:
            raise ConfigurationError(
                "Metadata field, regex, and replacement cannot be empty."
            )
        return self._add(
            "--replace-in-metadata",
            escape_argument(field),
            escape_argument(regex),
            escape_argument(replacement),
        )

    # --- Post-processing & diagnostics ---

    def post_process_files(self, arguments: str) -> "CommandBuilder":
        return self._add_option(
            "--postprocessor-args", arguments, "Operation cannot be empty."
        )

    def set_keep_temp_files(self, keep: bool) -> "CommandBuilder":
        if keep:
            self._add("-k")
        return self

    def log_to_file(self, log_file: str) -> "CommandBuilder":
        return self._add_option("--write-log", log_file, "Log file cannot be empty.")

    # --- Free-form ---

    def add_custom_command(self, custom_command: str) -> "CommandBuilder":
        """
        Appends a raw command fragment such as ``"--sleep-interval 5"``.

        The first token must be an option known to the registry (an
        ``--option=value`` token is checked by its ``--option`` part).

        Raises:
            ConfigurationError: If the fragment is empty or cannot be split.
            InvalidOptionError: If the leading option is not recognized.
        """
        _require(custom_command, "Custom command cannot be empty.")
        try:
            parts = shlex.split(custom_command)
        except ValueError as e:
            raise ConfigurationError(f"Invalid custom command: {e}") from e

        option = parts[0].split("=", 1)[0] if parts else ""
        if not self.registry.is_recognized(option):
            message = f"Invalid option: {custom_command}"
            log.error(message)
            raise InvalidOptionError(message)

        return self._add(*(escape_argument(part) for part in parts))

    # --- Lifecycle ---

    def preview(self) -> str:
        """Renders the pending tokens as a single, shell-quoted string."""
        return shlex.join(self._arguments)

    def reset(self) -> "CommandBuilder":
        """Discards accumulated arguments; format/folder/template are kept."""
        self._arguments = []
        return self

    def take(self) -> CommandSpec:
        """Freezes the builder into a ``CommandSpec`` and resets the accumulator."""
        spec = CommandSpec(
            arguments=tuple(self._arguments),
            format=self.format,
            output_folder=self.output_folder,
            output_template=self.output_template,
            newline=self.newline,
        )
        self.reset()
        return spec

    def build(self, url: str) -> list[str]:
        """Shorthand for ``take().to_arguments(url)``."""
        _require(url, "URL cannot be empty.")
        return self.take().to_arguments(url)
