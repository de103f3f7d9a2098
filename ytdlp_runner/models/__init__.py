"""
Data Models Layer.

This package contains the Pydantic models and dataclasses that define the core
data structures used throughout the application: configuration, format rows,
video metadata, run events, and batch statistics.
"""

from .config import RunnerConfig
from .events import (
    CommandCompleted,
    DownloadCompleted,
    DownloadProgress,
    ErrorLine,
    ErrorMessage,
    OutputLine,
    OutputMessage,
    PostProcessing,
    ProgressMessage,
    RunEvent,
)
from .formats import VideoFormat
from .metadata import Metadata
from .stats import BatchResult, BatchStats

__all__ = [
    "BatchResult",
    "BatchStats",
    "CommandCompleted",
    "DownloadCompleted",
    "DownloadProgress",
    "ErrorLine",
    "ErrorMessage",
    "Metadata",
    "OutputLine",
    "OutputMessage",
    "PostProcessing",
    "ProgressMessage",
    "RunEvent",
    "RunnerConfig",
    "VideoFormat",
]
