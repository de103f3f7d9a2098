"""
Core Application Logic.

This package assembles yt-dlp invocations and drives them: the option
registry, the command builder, the batch executor, and the ``YtDlp`` facade
that ties them to the process runner.
"""

from .batch import BatchExecutor
from .command import CommandBuilder, CommandSpec, escape_argument
from .options import OptionRegistry
from .ytdlp import YtDlp

__all__ = [
    "BatchExecutor",
    "CommandBuilder",
    "CommandSpec",
    "OptionRegistry",
    "YtDlp",
    "escape_argument",
]
