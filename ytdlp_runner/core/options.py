"""
The vocabulary of yt-dlp options accepted in free-form custom commands.

Options are grouped into categories so a registry can be narrowed or extended
per builder; the default registry is the union of all nine built-in sets.
"""

from collections.abc import Iterable, Mapping
from types import MappingProxyType

GENERAL_OPTIONS = frozenset(
    {
        "--format",
        "--output",
        "-o",
        "--no-overwrites",
        "--continue",
        "--no-continue",
        "--ignore-errors",
        "--no-part",
        "--no-mtime",
        "--write-description",
        "--write-info-json",
        "--write-annotations",
        "--write-thumbnail",
        "--write-all-thumbnails",
        "--write-sub",
        "--write-auto-sub",
        "--sub-format",
        "--sub-langs",
        "--skip-download",
        "--no-playlist",
        "--yes-playlist",
        "--playlist-items",
        "--playlist-start",
        "--playlist-end",
        "--match-title",
        "--reject-title",
        "--no-check-certificate",
        "--user-agent",
        "--referer",
        "--cookies",
        "--add-header",
        "--limit-rate",
        "--retries",
        "--fragment-retries",
        "--timeout",
        "--source-address",
        "--force-ipv4",
        "--force-ipv6",
    }
)

AUTHENTICATION_OPTIONS = frozenset(
    {
        "--username",
        "--password",
        "--twofactor",
        "--netrc",
        "--netrc-location",
        "--video-password",
    }
)

NETWORK_OPTIONS = frozenset(
    {
        "--proxy",
        "--geo-bypass",
        "--geo-bypass-country",
        "--geo-bypass-ip-block",
        "--no-geo-bypass",
    }
)

DOWNLOAD_ARCHIVE_OPTIONS = frozenset(
    {
        "--download-archive",
        "--max-downloads",
        "--min-filesize",
        "--max-filesize",
        "--date",
        "--datebefore",
        "--dateafter",
        "--match-filter",
    }
)

POST_PROCESSING_OPTIONS = frozenset(
    {
        "--extract-audio",
        "--audio-format",
        "--audio-quality",
        "--recode-video",
        "--postprocessor-args",
        "--embed-subs",
        "--embed-thumbnail",
        "--embed-metadata",
        "--embed-chapters",
        "--embed-info-json",
        "--convert-subs",
        "--merge-output-format",
    }
)

SUBTITLE_THUMBNAIL_OPTIONS = frozenset(
    {
        "--write-sub",
        "--write-auto-sub",
        "--sub-lang",
        "--sub-format",
        "--write-thumbnail",
        "--write-all-thumbnails",
        "--convert-subs",
        "--embed-subs",
        "--embed-thumbnail",
    }
)

DEBUG_OPTIONS = frozenset(
    {
        "--simulate",
        "--skip-download",
        "--print",
        "--quiet",
        "--no-warnings",
        "--verbose",
        "--dump-json",
        "--force-write-archive",
        "--no-progress",
        "--newline",
        "--write-log",
    }
)

ADVANCED_OPTIONS = frozenset(
    {
        "--download-sections",
        "--concat-playlist",
        "--replace-in-metadata",
        "--call-home",
        "--write-pages",
        "--sleep-interval",
        "--max-sleep-interval",
        "--min-sleep-interval",
        "--sleep-subtitles",
        "--write-link",
        "--live-from-start",
        "--no-live-from-start",
        "--no-ads",
        "--force-keyframes-at-cuts",
        "--remux-video",
        "--no-color",
        "--paths",
        "--output-na-placeholder",
        "--playlist-random",
        "--sponsorblock-mark",
        "--sponsorblock-remove",
        "--sponsorblock-chapter-title",
    }
)

OTHER_OPTIONS = frozenset(
    {
        "--config-location",
        "--write-video",
        "--write-audio",
        "--no-post-overwrites",
        "--break-on-existing",
        "--break-per-input",
        "--windows-filenames",
        "--restrict-filenames",
        "--ffmpeg-location",
        "--js-runtimes",
        "--remote-components",
    }
)

DEFAULT_CATEGORIES = MappingProxyType(
    {
        "general": GENERAL_OPTIONS,
        "authentication": AUTHENTICATION_OPTIONS,
        "network": NETWORK_OPTIONS,
        "download_archive": DOWNLOAD_ARCHIVE_OPTIONS,
        "post_processing": POST_PROCESSING_OPTIONS,
        "subtitle_thumbnail": SUBTITLE_THUMBNAIL_OPTIONS,
        "debug": DEBUG_OPTIONS,
        "advanced": ADVANCED_OPTIONS,
        "other": OTHER_OPTIONS,
    }
)


class OptionRegistry:
    """An immutable set of recognized option tokens, grouped by category."""

    def __init__(self, categories: Mapping[str, Iterable[str]]):
        self._categories = MappingProxyType(
            {name: frozenset(options) for name, options in categories.items()}
        )
        self._valid = frozenset().union(*self._categories.values())

    @classmethod
    def default(cls) -> "OptionRegistry":
        return cls(DEFAULT_CATEGORIES)

    @property
    def categories(self) -> Mapping[str, frozenset[str]]:
        return self._categories

    def is_recognized(self, option: str) -> bool:
        """Returns True if ``option`` is a member of any category."""
        return option in self._valid

    def category_of(self, option: str) -> list[str]:
        """Names every category that lists ``option``."""
        return [name for name, options in self._categories.items() if option in options]

    def extended(self, category: str, options: Iterable[str]) -> "OptionRegistry":
        """Returns a new registry with ``options`` added to ``category``."""
        merged = dict(self._categories)
        merged[category] = merged.get(category, frozenset()) | frozenset(options)
        return OptionRegistry(merged)

    def __contains__(self, option: str) -> bool:
        return self.is_recognized(option)

    def __len__(self) -> int:
        return len(self._valid)
