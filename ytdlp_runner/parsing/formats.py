"""
Parses the table printed by ``yt-dlp -F`` into ``VideoFormat`` records.

yt-dlp's listing is meant for humans, so the parser walks each row with a
fixed, order-dependent grammar in which every field after the extension is
optional and guarded by a pattern test:

    ID EXT RESOLUTION [FPS] [CH] [|] [FILESIZE] [TBR] [PROTO] [|]
    VCODEC [VBR] ACODEC [ABR] [ASR] [MORE INFO...]
"""

import logging
import re

from ytdlp_runner.models.formats import VideoFormat

log = logging.getLogger(__name__)

FORMAT_SECTION_MARKER = "[info] Available formats"
PROTOCOLS = frozenset({"https", "m3u8", "mhtml"})

_ROW_SHAPE = re.compile(r"^[^\s]+\s+[^\s]+")
_DIGITS = re.compile(r"^\d+$")
_CHANNELS = re.compile(r"^\d+\|$")
_FILE_SIZE = re.compile(r"^~?\d+\.\d+MiB$")
_BITRATE = re.compile(r"^\d+k$")
_CODEC = re.compile(r"^[a-zA-Z0-9\.]+$")


def _is_pair(parts: list[str], index: int, first: str, second: str) -> bool:
    return (
        index + 1 < len(parts) and parts[index] == first and parts[index + 1] == second
    )


def _parse_row(parts: list[str]) -> VideoFormat | None:
    """Consumes the whitespace-split tokens of one row left to right."""
    fmt = VideoFormat(id=parts[0], extension=parts[1])
    index = 2

    if _is_pair(parts, index, "audio", "only"):
        fmt.resolution = "audio only"
        index += 2
    elif index < len(parts):
        fmt.resolution = parts[index]
        index += 1
    else:
        return None

    if (
        fmt.resolution != "audio only"
        and index < len(parts)
        and _DIGITS.match(parts[index])
    ):
        fmt.fps = parts[index]
        index += 1

    if index < len(parts) and (
        _CHANNELS.match(parts[index]) or _DIGITS.match(parts[index])
    ):
        fmt.channels = parts[index].rstrip("|")
        index += 1

    if index < len(parts) and parts[index] == "|":
        index += 1

    if index < len(parts) and (_FILE_SIZE.match(parts[index]) or parts[index] == ""):
        fmt.file_size = parts[index] or None
        index += 1

    if index < len(parts) and _BITRATE.match(parts[index]):
        fmt.tbr = parts[index]
        index += 1

    if index < len(parts) and parts[index] in PROTOCOLS:
        fmt.protocol = parts[index]
        index += 1

    if index < len(parts) and parts[index] == "|":
        index += 1

    if index < len(parts):
        if _is_pair(parts, index, "audio", "only"):
            fmt.vcodec = "audio only"
            index += 2
        elif parts[index] == "images":
            fmt.vcodec = "images"
            index += 1
        elif _CODEC.match(parts[index]):
            fmt.vcodec = parts[index]
            index += 1

    if index < len(parts) and _BITRATE.match(parts[index]):
        fmt.vbr = parts[index]
        index += 1

    if index < len(parts) and (
        _CODEC.match(parts[index]) or parts[index] == "unknown"
    ):
        fmt.acodec = parts[index]
        index += 1

    if index < len(parts) and _BITRATE.match(parts[index]):
        fmt.abr = parts[index]
        index += 1

    if index < len(parts) and _BITRATE.match(parts[index]):
        fmt.asr = parts[index]
        index += 1

    if index < len(parts):
        more_info = " ".join(parts[index:]).strip()
        if more_info.startswith("|"):
            more_info = more_info[1:].strip()
        fmt.more_info = more_info

    if fmt.vcodec == "images":
        fmt.acodec = None
        fmt.more_info = "storyboard"

    return fmt


def parse_formats(output: str) -> list[VideoFormat]:
    """
    Parses the complete stdout of a ``-F`` invocation.

    Lines before the ``[info] Available formats`` marker are ignored, as are the
    header and separator rows. Parsing stops at the first line that no longer
    looks like a table row. A row that fails to parse is logged and skipped; a
    repeated format ID keeps the first occurrence.
    """
    formats: list[VideoFormat] = []
    if not output or not output.strip():
        log.warning("Empty yt-dlp output, no formats to parse.")
        return formats

    seen_ids: set[str] = set()
    in_format_section = False

    for line in output.splitlines():
        if not line.strip():
            continue
        log.debug(f"Parsing line: {line}")

        if FORMAT_SECTION_MARKER in line:
            in_format_section = True
            continue

        if not in_format_section or "RESOLUTION" in line or line.startswith("---"):
            continue

        if not _ROW_SHAPE.match(line):
            log.debug(f"Stopping format parsing at non-format line: {line}")
            break

        parts = line.split()
        if len(parts) < 2:
            log.warning(f"Skipping line (too few parts): {line}")
            continue

        if parts[0] in seen_ids:
            log.warning(f"Skipping duplicate format ID: {parts[0]}")
            continue

        try:
            fmt = _parse_row(parts)
        except Exception as e:
            log.warning(f"Failed to parse line '{line}': {e}")
            continue

        if fmt is None:
            log.warning(f"Skipping line (missing resolution): {line}")
            continue

        seen_ids.add(fmt.id)
        formats.append(fmt)

    log.info(f"Parsed {len(formats)} formats")
    return formats
