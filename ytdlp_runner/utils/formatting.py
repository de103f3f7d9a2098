"""
Helper functions for formatting data into human-readable strings and back.
"""

import re

_SIZE_UNITS = {
    "B": 1,
    "KB": 1000,
    "MB": 1000**2,
    "GB": 1000**3,
    "TB": 1000**4,
    "KIB": 1024,
    "MIB": 1024**2,
    "GIB": 1024**3,
    "TIB": 1024**4,
}

_SIZE_PATTERN = re.compile(r"^\s*(?P<num>[\d.,]+)\s*(?P<unit>[KMGT]?i?B)\s*$", re.I)


def format_size(bytes_size: int) -> str:
    """Formats bytes into a human-readable size string (e.g., '145.3 MB')."""
    if bytes_size <= 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = 0
    while bytes_size >= 1024 and i < len(units) - 1:
        bytes_size /= 1024
        i += 1
    return f"{bytes_size:.1f} {units[i]}"


def format_duration(seconds: float) -> str:
    """
    Formats a duration in seconds into a human-readable string (e.g., '2h 34m 12s').
    """
    s = int(seconds)
    hours, remainder = divmod(s, 3600)
    minutes, secs = divmod(remainder, 60)
    parts = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")
    if secs > 0 or not parts:
        parts.append(f"{secs}s")
    return " ".join(parts)


def human_to_bytes(size: str) -> int:
    """
    Converts a yt-dlp size token such as '45.67MiB' or '1.2 GB' into bytes.

    Returns 0 when the token cannot be interpreted.
    """
    match = _SIZE_PATTERN.match(size or "")
    if not match:
        return 0
    try:
        number = float(match.group("num").replace(",", ""))
    except ValueError:
        return 0
    return int(number * _SIZE_UNITS.get(match.group("unit").upper(), 1))


def hms_to_seconds(value: str) -> int | None:
    """Converts 'SS', 'MM:SS' or 'HH:MM:SS' into seconds; None for 'N/A' or junk."""
    if not value or value in ("N/A", "Unknown"):
        return None
    try:
        parts = [int(p) for p in value.split(":")]
    except ValueError:
        return None
    seconds = 0
    for part in parts:
        seconds = seconds * 60 + part
    return seconds
