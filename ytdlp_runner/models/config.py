"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

import os

from pathvalidate import ValidationError as PathValidationError
from pathvalidate import validate_filepath
from pydantic import BaseModel, Field, field_validator

DEFAULT_OUTPUT_TEMPLATE = "%(title)s.%(ext)s"


class RunnerConfig(BaseModel):
    """A validated configuration model for the application."""

    # Executable
    executable: str = "yt-dlp"

    # Download Settings
    output_folder: str = "."
    format: str = "best"
    output_template: str | None = None
    max_concurrency: int = 3
    newline: bool = True
    extra_args: list[str] = Field(default_factory=list)

    # Internal fields not loaded from INI file
    config_path: str = Field("", repr=False)
    source_urls: list[str] = Field(default_factory=list, repr=False)

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("executable", "format")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v:
            raise ValueError("Value cannot be empty.")
        return v

    @field_validator("max_concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        """Ensures a reasonable number of simultaneous yt-dlp processes."""
        if v < 1 or v > 32:
            raise ValueError("Max concurrency must be between 1 and 32.")
        return v

    @field_validator("output_folder")
    @classmethod
    def validate_output_folder(cls, v: str) -> str:
        """Rejects folder paths that can never be created on this platform."""
        if not v:
            raise ValueError("Output folder cannot be empty.")
        try:
            # "." and ".." are reserved names on their own, so check the absolute form.
            validate_filepath(os.path.abspath(os.path.expanduser(v)), platform="auto")
        except PathValidationError as e:
            raise ValueError(f"Invalid output folder '{v}': {e}") from e
        return v

    @field_validator("output_template")
    @classmethod
    def validate_template(cls, v: str | None) -> str | None:
        """Validates the yt-dlp output template."""
        if v is None:
            return v
        if not v:
            raise ValueError("Output template cannot be empty.")
        if ".." in v.replace("\\", "/").split("/") or v.startswith(("/", "\\")):
            raise ValueError(
                "Output template cannot contain relative '..' or absolute paths."
            )
        if "%(" not in v:
            raise ValueError(
                "Output template must contain at least one field such as %(title)s."
            )
        return v

    @classmethod
    def get_ini_keys(cls) -> set[str]:
        """Returns a set of all keys that are expected in the INI file."""
        internal_fields = {"config_path", "source_urls"}
        return {key for key in cls.model_fields if key not in internal_fields}
