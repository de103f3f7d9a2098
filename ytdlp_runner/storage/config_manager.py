"""
Manages loading, validation, and migration of the INI configuration file.
"""

import configparser
import logging
import os
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from ytdlp_runner.exceptions import ConfigurationError
from ytdlp_runner.models.config import RunnerConfig

log = logging.getLogger(__name__)

# Custom fragments routinely contain commas (e.g. "--sub-langs en,fr").
EXTRA_ARGS_SEPARATOR = ";"


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "ytdlp-runner"


def _to_ini_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return EXTRA_ARGS_SEPARATOR.join(map(str, value))
    if value is None:
        return ""
    # configparser uses % for interpolation, so it must be escaped
    return str(value).replace("%", "%%")


class ConfigManager:
    """Handles all operations related to the application's INI config file."""

    def __init__(self, config_file_path: Path):
        self.config_file_path = Path(config_file_path)
        self._parser = configparser.ConfigParser()

    def load_config(self, cli_options: dict[str, Any] | None = None) -> RunnerConfig:
        """
        Loads configuration from the INI file, applies CLI overrides, and validates it.

        A missing file is not an error: the built-in defaults are used instead.

        Args:
            cli_options: A dictionary of options provided via the command line.

        Returns:
            A validated RunnerConfig object.

        Raises:
            ConfigurationError: If the config file is unreadable or validation fails.
        """
        config_data: dict[str, Any] = {}
        if self.config_file_path.is_file():
            try:
                self._parser.read(self.config_file_path, encoding="utf-8")
            except configparser.Error as e:
                raise ConfigurationError(f"Error parsing config file: {e}") from e

            if self._migrate_if_needed():
                log.info(
                    "[yellow]Configuration file was updated with new default values."
                    "[/yellow]"
                )
            config_data = self.get_config_as_dict()
        else:
            log.debug(
                f"No configuration file at '{self.config_file_path}', using defaults."
            )

        if cli_options:
            config_data.update(cli_options)

        try:
            return RunnerConfig(
                **config_data, config_path=str(self.config_file_path.parent)
            )
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def save_new_config(self, settings: dict[str, Any] | None = None) -> None:
        """
        Creates and saves a new configuration file.

        Args:
            settings: Values to write; every other key gets its model default.
        """
        settings = settings or {}
        config = configparser.ConfigParser()
        config["DEFAULT"] = {}

        defaults = RunnerConfig.model_construct()
        for key in sorted(RunnerConfig.get_ini_keys()):
            value = settings.get(key, getattr(defaults, key, None))
            config["DEFAULT"][key] = _to_ini_value(value)

        try:
            self.config_file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.config_file_path, "w", encoding="utf-8") as configfile:
                config.write(configfile)
        except OSError as e:
            raise ConfigurationError(f"Failed to save configuration file: {e}") from e

    def get_config_as_dict(self) -> dict[str, Any]:
        """Reads the 'DEFAULT' section of the INI file into a dictionary."""
        if not self._parser.defaults() and self.config_file_path.is_file():
            self._parser.read(self.config_file_path, encoding="utf-8")
        section = self._parser["DEFAULT"]
        try:
            return {
                "executable": section.get("executable", "yt-dlp"),
                "output_folder": section.get("output_folder", "."),
                "format": section.get("format", "best"),
                "output_template": section.get("output_template", "") or None,
                "max_concurrency": section.getint("max_concurrency", 3),
                "newline": section.getboolean("newline", True),
                "extra_args": [
                    fragment.strip()
                    for fragment in section.get("extra_args", "").split(
                        EXTRA_ARGS_SEPARATOR
                    )
                    if fragment.strip()
                ],
            }
        except (configparser.Error, ValueError) as e:
            raise ConfigurationError(f"Error reading configuration file: {e}") from e

    def _migrate_if_needed(self) -> bool:
        """Adds missing default values to an existing config file."""
        defaults = RunnerConfig.model_construct()
        needs_saving = False

        config_section = self._parser["DEFAULT"]

        for key in sorted(RunnerConfig.get_ini_keys()):
            if key not in config_section:
                config_section[key] = _to_ini_value(getattr(defaults, key))
                needs_saving = True
                log.debug(
                    f"Migrating config: added missing key '{key}' with "
                    f"value '{config_section[key]}'."
                )

        if needs_saving:
            try:
                with open(self.config_file_path, "w", encoding="utf-8") as f:
                    self._parser.write(f)
            except OSError as e:
                log.error(f"Could not save migrated configuration file: {e}")
                return False

        return needs_saving
