"""
Defines custom exceptions for the application to allow for more specific error handling.
"""


class YtDlpError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(YtDlpError):
    """Raised for invalid builder input or issues with the configuration file."""


class InvalidOptionError(ConfigurationError):
    """Raised when a custom command fragment names an unrecognized yt-dlp option."""


class ExecutableNotFoundError(YtDlpError):
    """Raised when the yt-dlp executable cannot be located at construction time."""


class ProcessError(YtDlpError):
    """Raised when the yt-dlp process cannot be started or supervised."""


class CommandFailedError(ProcessError):
    """Raised when yt-dlp exits with a non-zero status code."""

    def __init__(self, exit_code: int, stderr: str = ""):
        self.exit_code = exit_code
        self.stderr = stderr
        message = f"yt-dlp command failed with exit code {exit_code}"
        if stderr:
            message += f": {stderr}"
        super().__init__(message)
