"""Shared fixtures for the ytdlp_runner test suite."""

import json
import os
import stat
import sys
import textwrap
from pathlib import Path

import pytest

from ytdlp_runner.process.runner import ProcessRunner

FAKE_YTDLP = '''
import json
import os
import sys

args = sys.argv[1:]
calls = os.path.join(os.path.dirname(os.path.abspath(__file__)), "calls.jsonl")
with open(calls, "a", encoding="utf-8") as f:
    f.write(json.dumps(args) + "\\n")

if args == ["--version"]:
    print("2024.08.06")
elif args == ["-U"]:
    print("Latest version: stable@2024.08.06 from yt-dlp/yt-dlp")
    print("yt-dlp is up to date (stable@2024.08.06 from yt-dlp/yt-dlp)")
elif "fail" in args[-1]:
    print("ERROR: [generic] Unable to download webpage")
    sys.stderr.write("HTTP Error 404\\n")
    sys.exit(1)
elif args[0] == "-F":
    print("[info] Available formats for abc:")
    print("ID  EXT RESOLUTION | FILESIZE")
    print("----------------------------")
    print("139 m4a audio only 48k | 3.45MiB 64k https | audio only unknown")
    print("137 mp4 1920x1080 30 | 45.67MiB 2500k https | avc1.640028 2400k none | ")
elif args[0] == "--dump-json":
    if "broken" in args[-1]:
        print("{not json")
    else:
        print(json.dumps({"id": "abc", "Title": "A Video", "duration": 61.0}))
else:
    print("[download] Destination: clip.mp4")
    print("[download] 100% of 1.00MiB in 00:00:01 at 1.00MiB/s")
'''


@pytest.fixture
def python_runner():
    """A runner whose 'yt-dlp' is the current interpreter, driven with ``-c``."""
    return ProcessRunner(sys.executable)


@pytest.fixture
def make_executable(tmp_path):
    """Writes a small Python script that stands in for the yt-dlp executable."""
    if os.name == "nt":
        pytest.skip("shebang scripts are not executable on Windows")

    def _make(body: str, name: str = "yt-dlp") -> str:
        path = tmp_path / "bin" / name
        path.parent.mkdir(exist_ok=True)
        path.write_text(f"#!{sys.executable}\n" + textwrap.dedent(body))
        path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return str(path)

    return _make


@pytest.fixture
def fake_ytdlp(make_executable):
    """A stand-in yt-dlp that records its arguments in ``calls.jsonl`` beside it."""
    return make_executable(FAKE_YTDLP)


@pytest.fixture
def calls(fake_ytdlp):
    path = Path(fake_ytdlp).parent / "calls.jsonl"

    def _read() -> list[list[str]]:
        if not path.exists():
            return []
        return [json.loads(line) for line in path.read_text().splitlines()]

    return _read


@pytest.fixture
def format_listing():
    return textwrap.dedent(
        """\
        [youtube] Extracting URL: https://www.youtube.com/watch?v=abc
        [youtube] abc: Downloading webpage
        [info] Available formats for abc:
        ID  EXT   RESOLUTION FPS CH |   FILESIZE   TBR PROTO | VCODEC          VBR ACODEC      ABR ASR MORE INFO
        ----------------------------------------------------------------------------------------------------------
        sb0 mhtml 48x27        0    |                  mhtml | images                                  storyboard
        139 m4a audio only 48k | 3.45MiB 64k https | audio only unknown
        137 mp4 1920x1080 30 | 45.67MiB 2500k https | avc1.640028 2400k none |
        137 mp4 1920x1080 60 | 99.99MiB 5000k https | avc1.640028 4900k none |
        """
    )
