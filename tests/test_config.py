import configparser
import os

import pytest
from pydantic import ValidationError

from ytdlp_runner.exceptions import ConfigurationError
from ytdlp_runner.models.config import RunnerConfig
from ytdlp_runner.storage.config_manager import ConfigManager, get_config_dir


@pytest.fixture
def config_file(tmp_path):
    return tmp_path / "ytdlp-runner" / "config.ini"


class TestRunnerConfig:
    def test_defaults(self):
        config = RunnerConfig()
        assert config.executable == "yt-dlp"
        assert config.format == "best"
        assert config.output_folder == "."
        assert config.output_template is None
        assert config.max_concurrency == 3
        assert config.newline is True
        assert config.extra_args == []

    @pytest.mark.parametrize(
        "field, value",
        [
            ("max_concurrency", 0),
            ("max_concurrency", 33),
            ("format", "  "),
            ("executable", ""),
            ("output_template", ""),
            ("output_template", "../%(title)s.%(ext)s"),
            ("output_template", "/abs/%(title)s.%(ext)s"),
            ("output_template", "static-name.mp4"),
            ("output_folder", ""),
        ],
    )
    def test_rejects_invalid_values(self, field, value):
        with pytest.raises(ValidationError):
            RunnerConfig(**{field: value})

    def test_validates_on_assignment(self):
        config = RunnerConfig()
        with pytest.raises(ValidationError):
            config.max_concurrency = 0

    def test_ini_keys_exclude_internal_fields(self):
        keys = RunnerConfig.get_ini_keys()
        assert "config_path" not in keys
        assert "source_urls" not in keys
        assert {"executable", "format", "extra_args"} <= keys


class TestConfigManager:
    def test_missing_file_yields_defaults(self, config_file):
        config = ConfigManager(config_file).load_config()
        assert config == RunnerConfig(config_path=str(config_file.parent))

    def test_save_and_load_round_trip(self, config_file):
        manager = ConfigManager(config_file)
        manager.save_new_config(
            {
                "format": "bestvideo+bestaudio",
                "output_template": "%(uploader)s/%(title)s.%(ext)s",
                "max_concurrency": 5,
                "newline": False,
                "extra_args": ["--sleep-interval 2", "--sub-langs en,fr"],
            }
        )

        config = ConfigManager(config_file).load_config()
        assert config.format == "bestvideo+bestaudio"
        assert config.output_template == "%(uploader)s/%(title)s.%(ext)s"
        assert config.max_concurrency == 5
        assert config.newline is False
        assert config.extra_args == ["--sleep-interval 2", "--sub-langs en,fr"]

    def test_percent_signs_are_escaped_on_disk(self, config_file):
        ConfigManager(config_file).save_new_config(
            {"output_template": "%(title)s.%(ext)s"}
        )
        assert "%%(title)s.%%(ext)s" in config_file.read_text()

    def test_empty_template_means_default(self, config_file):
        ConfigManager(config_file).save_new_config()
        assert ConfigManager(config_file).load_config().output_template is None

    def test_cli_options_override_file(self, config_file):
        ConfigManager(config_file).save_new_config({"format": "worst"})
        config = ConfigManager(config_file).load_config(
            {"format": "bestaudio", "source_urls": ["https://example.com"]}
        )
        assert config.format == "bestaudio"
        assert config.source_urls == ["https://example.com"]

    def test_missing_keys_are_migrated(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\nformat = bestaudio\n")

        config = ConfigManager(config_file).load_config()

        assert config.format == "bestaudio"
        parser = configparser.ConfigParser()
        parser.read(config_file)
        assert set(parser["DEFAULT"]) == RunnerConfig.get_ini_keys()

    def test_invalid_values_raise_configuration_error(self, config_file):
        ConfigManager(config_file).save_new_config({"max_concurrency": 100})
        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigManager(config_file).load_config()

    def test_non_numeric_value(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("[DEFAULT]\nmax_concurrency = many\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file).load_config()

    def test_unparseable_file(self, config_file):
        config_file.parent.mkdir(parents=True)
        config_file.write_text("this is not an ini file\n")
        with pytest.raises(ConfigurationError):
            ConfigManager(config_file).load_config()


@pytest.mark.skipif(os.name == "nt", reason="XDG paths apply to POSIX only")
def test_config_dir_honours_xdg(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))
    assert get_config_dir() == tmp_path / "ytdlp-runner"
