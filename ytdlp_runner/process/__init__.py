"""
Process Layer.

This package spawns the yt-dlp executable and supervises it: concurrent stream
draining, cancellation, and exit-code mapping.
"""

from .runner import ProcessRunner, RunResult, RunState, resolve_executable

__all__ = ["ProcessRunner", "RunResult", "RunState", "resolve_executable"]
