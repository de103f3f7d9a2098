import pytest
from typer.testing import CliRunner

from ytdlp_runner import __version__
from ytdlp_runner.cli.app import app
from ytdlp_runner.storage.config_manager import ConfigManager

runner = CliRunner()


@pytest.fixture
def config_file(monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("APPDATA", str(tmp_path / "config"))
    # Wide enough that Rich never folds table cells.
    monkeypatch.setenv("COLUMNS", "200")
    return tmp_path / "config" / "ytdlp-runner" / "config.ini"


@pytest.fixture
def configured(config_file, fake_ytdlp, tmp_path):
    ConfigManager(config_file).save_new_config(
        {"executable": fake_ytdlp, "output_folder": str(tmp_path / "media")}
    )
    return config_file


class TestSetup:
    def test_version_flag(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_init_writes_config(self, config_file):
        result = runner.invoke(app, ["init"])

        assert result.exit_code == 0
        assert config_file.is_file()
        assert "executable = yt-dlp" in config_file.read_text()

    def test_init_does_not_overwrite_without_confirmation(self, config_file):
        runner.invoke(app, ["init"])
        config_file.write_text("[DEFAULT]\nformat = worst\n")

        result = runner.invoke(app, ["init"], input="n\n")

        assert result.exit_code != 0
        assert config_file.read_text() == "[DEFAULT]\nformat = worst\n"

    def test_init_force(self, config_file):
        runner.invoke(app, ["init"])
        config_file.write_text("[DEFAULT]\nformat = worst\n")

        result = runner.invoke(app, ["init", "--force"])

        assert result.exit_code == 0
        assert "format = best" in config_file.read_text()

    def test_show_config_without_file(self, config_file):
        result = runner.invoke(app, ["--show-config"])
        assert result.exit_code == 0
        assert "showing defaults" in result.output


class TestDownload:
    def test_requires_urls(self, configured):
        result = runner.invoke(app, ["download"])
        assert result.exit_code == 1
        assert "No URLs provided" in result.output

    def test_preview_does_not_run(self, configured, calls):
        result = runner.invoke(
            app,
            [
                "download",
                "--preview",
                "--proxy",
                "http://proxy:3128",
                "--extra=--sleep-interval 2",
                "https://example.com/v/1",
            ],
        )

        assert result.exit_code == 0
        assert "--proxy" in result.output
        assert "--sleep-interval" in result.output
        assert "https://example.com/v/1" in result.output
        assert calls() == []

    def test_invalid_extra_option(self, configured, calls):
        result = runner.invoke(
            app, ["download", "--extra=--no-such-flag", "https://example.com/v/1"]
        )

        assert result.exit_code == 1
        assert "InvalidOptionError" in result.output
        assert calls() == []

    def test_single_url(self, configured, calls):
        result = runner.invoke(
            app, ["download", "--embed-metadata", "https://example.com/v/1"]
        )

        assert result.exit_code == 0, result.output
        assert "Finished" in result.output
        args = calls()[-1]
        assert "--embed-metadata" in args
        assert args[-1] == "https://example.com/v/1"

    def test_single_url_failure(self, configured):
        result = runner.invoke(app, ["download", "https://example.com/fail"])
        assert result.exit_code == 1
        assert "CommandFailedError" in result.output

    def test_batch_reports_failures(self, configured, calls):
        urls = ["https://example.com/v/1", "https://example.com/fail"]
        result = runner.invoke(app, ["download", "-w", "2", *urls])

        assert result.exit_code == 1
        assert "Finished With Errors" in result.output
        assert sorted(args[-1] for args in calls()) == sorted(urls)


class TestQueries:
    def test_formats(self, configured):
        result = runner.invoke(app, ["formats", "https://example.com/v/1"])
        assert result.exit_code == 0, result.output
        assert "1920x1080" in result.output

    def test_info(self, configured):
        result = runner.invoke(app, ["info", "https://example.com/v/1"])
        assert result.exit_code == 0, result.output
        assert "A Video" in result.output

    def test_version(self, configured):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "2024.08.06" in result.output

    def test_update(self, configured):
        result = runner.invoke(app, ["update"])
        assert result.exit_code == 0
        assert "already up to date" in result.output

    def test_missing_executable(self, config_file):
        ConfigManager(config_file).save_new_config(
            {"executable": "definitely-not-installed-ytdlp-binary"}
        )
        result = runner.invoke(app, ["version"])

        assert result.exit_code == 1
        assert "ExecutableNotFoundError" in result.output
