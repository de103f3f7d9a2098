"""
Output Parsing Layer.

Turns yt-dlp's human-oriented console output into structured values: live
progress events and the "available formats" table.
"""

from .formats import parse_formats
from .progress import ParserPhase, ProgressParser

__all__ = ["ParserPhase", "ProgressParser", "parse_formats"]
