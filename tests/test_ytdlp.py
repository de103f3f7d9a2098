import asyncio

import pytest

from ytdlp_runner.core.ytdlp import YtDlp
from ytdlp_runner.exceptions import (
    CommandFailedError,
    ConfigurationError,
    ExecutableNotFoundError,
    InvalidOptionError,
    ProcessError,
)
from ytdlp_runner.models.config import RunnerConfig
from ytdlp_runner.models.events import CommandCompleted, DownloadCompleted


@pytest.fixture
def ytdlp(fake_ytdlp, tmp_path):
    instance = YtDlp(fake_ytdlp)
    instance.command.set_output_folder(str(tmp_path / "out" / "nested"))
    return instance

class TestExecute:
    async def test_builds_final_arguments(self, ytdlp, calls, tmp_path):
        ytdlp.command.embed_metadata()
        result = await ytdlp.execute("https://example.com/v/1")

        assert result.exit_code == 0
        assert (tmp_path / "out" / "nested").is_dir()
        folder = str(tmp_path / "out" / "nested").replace("\\", "/")
        assert calls()[-1] == [
            "--embed-metadata",
            "--newline",
            "-f",
            "best",
            "-o",
            f"{folder}/%(title)s.%(ext)s",
            "https://example.com/v/1",
        ]

    async def test_flags_do_not_leak_between_executions(self, ytdlp, calls):
        ytdlp.command.use_proxy("http://proxy:3128")
        await ytdlp.execute("https://example.com/v/1")
        await ytdlp.execute("https://example.com/v/2")

        first, second = calls()[-2:]
        assert "--proxy" in first
        assert "--proxy" not in second
        assert ytdlp.preview_command() == ""

    async def test_events_channel(self, ytdlp):
        events: asyncio.Queue = asyncio.Queue()
        await ytdlp.execute("https://example.com/v/1", events=events)

        emitted = []
        while not events.empty():
            emitted.append(events.get_nowait())
        assert DownloadCompleted(path="clip.mp4") in emitted
        assert isinstance(emitted[-1], CommandCompleted)

    async def test_failure(self, ytdlp):
        with pytest.raises(CommandFailedError) as excinfo:
            await ytdlp.execute("https://example.com/fail")
        assert excinfo.value.exit_code == 1
        assert "HTTP Error 404" in str(excinfo.value)

    @pytest.mark.parametrize("url", ["", "   "])
    async def test_empty_url(self, ytdlp, calls, url):
        ytdlp.command.embed_metadata()
        with pytest.raises(ConfigurationError):
            await ytdlp.execute(url)
        assert calls() == []
        assert ytdlp.preview_command() == "--embed-metadata"

    async def test_uncreatable_folder_keeps_pending_flags(self, ytdlp, calls, tmp_path):
        blocker = tmp_path / "not-a-dir"
        blocker.write_text("")
        ytdlp.command.embed_metadata().set_output_folder(str(blocker / "sub"))

        with pytest.raises(ConfigurationError):
            await ytdlp.execute("https://example.com/v/1")
        with pytest.raises(ConfigurationError):
            await ytdlp.execute_batch(["https://example.com/v/1"])

        assert calls() == []
        assert ytdlp.preview_command() == "--embed-metadata"

    async def test_stream(self, ytdlp):
        emitted = [event async for event in ytdlp.stream("https://example.com/v/1")]
        assert DownloadCompleted(path="clip.mp4") in emitted
        assert emitted[-1].success

class TestBatch:
    async def test_concurrent_batch_isolates_failures(self, ytdlp, calls):
        ytdlp.command.embed_thumbnail()
        urls = [
            "https://example.com/v/1",
            "https://example.com/fail",
            "https://example.com/v/3",
        ]
        result = await ytdlp.execute_batch_concurrent(urls, max_concurrency=2)

        assert sorted(result.succeeded) == [urls[0], urls[2]]
        assert list(result.failed) == [urls[1]]
        # Every item of the batch shares the configuration taken at its start.
        assert all("--embed-thumbnail" in args for args in calls())
        assert ytdlp.preview_command() == ""

    async def test_sequential_batch(self, ytdlp, calls):
        urls = ["https://example.com/v/1", "https://example.com/v/2"]
        result = await ytdlp.execute_batch(urls)

        assert result.succeeded == urls
        assert [args[-1] for args in calls()] == urls

    async def test_empty_batch(self, ytdlp, calls):
        with pytest.raises(ConfigurationError):
            await ytdlp.execute_batch([])
        with pytest.raises(ConfigurationError):
            await ytdlp.execute_batch_concurrent(["", "  "])
        assert calls() == []

class TestQueries:
    async def test_get_version(self, ytdlp, calls):
        assert await ytdlp.get_version() == "2024.08.06"
        assert calls()[-1] == ["--version"]

    async def test_get_version_failure_returns_empty(self, make_executable):
        broken = YtDlp(make_executable("raise SystemExit(2)\n", name="broken"))
        assert await broken.get_version() == ""

    async def test_update(self, ytdlp):
        assert await ytdlp.update() == "yt-dlp is already up to date."

    async def test_get_available_formats(self, ytdlp, calls):
        formats = await ytdlp.get_available_formats("https://example.com/v/1")

        assert [fmt.id for fmt in formats] == ["139", "137"]
        assert calls()[-1] == ["-F", "https://example.com/v/1"]

    async def test_get_metadata(self, ytdlp):
        metadata = await ytdlp.get_metadata("https://example.com/v/1")

        assert metadata.id == "abc"
        assert metadata.title == "A Video"
        assert metadata.duration == 61.0

    async def test_get_metadata_invalid_json(self, ytdlp):
        with pytest.raises(ProcessError, match="Failed to parse metadata"):
            await ytdlp.get_metadata("https://example.com/broken")

    async def test_query_failure_is_process_error(self, ytdlp):
        with pytest.raises(ProcessError):
            await ytdlp.get_metadata("https://example.com/fail")

class TestConstruction:
    def test_missing_executable(self):
        with pytest.raises(ExecutableNotFoundError):
            YtDlp("definitely-not-installed-ytdlp-binary")

    async def test_from_config(self, fake_ytdlp, calls, tmp_path):
        config = RunnerConfig(
            executable=fake_ytdlp,
            output_folder=str(tmp_path / "media"),
            format="bestaudio",
            output_template="%(id)s.%(ext)s",
            newline=False,
            extra_args=["--sleep-interval 1"],
        )
        ytdlp = YtDlp.from_config(config)
        await ytdlp.execute("https://example.com/v/1")

        args = calls()[-1]
        assert args[:2] == ["--sleep-interval", "1"]
        assert "--newline" not in args
        assert args[args.index("-f") + 1] == "bestaudio"
        assert args[args.index("-o") + 1].endswith("media/%(id)s.%(ext)s")

    def test_invalid_default_args(self, fake_ytdlp):
        with pytest.raises(InvalidOptionError):
            YtDlp(fake_ytdlp, default_args=["--no-such-flag"])

    def test_preview_command(self, ytdlp):
        ytdlp.command.set_retries(3).embed_metadata()
        assert ytdlp.preview_command() == "--retries 3 --embed-metadata"
