import logging

from ytdlp_runner.parsing import formats as formats_module
from ytdlp_runner.parsing.formats import parse_formats

VIDEO_ROW = "137 mp4 1920x1080 30 | 45.67MiB 2500k https | avc1.640028 2400k none | "
AUDIO_ROW = "139 m4a audio only 48k | 3.45MiB 64k https | audio only unknown"


def _listing(*rows: str) -> str:
    return "\n".join(
        [
            "[info] Available formats for abc:",
            "ID  EXT   RESOLUTION FPS CH |   FILESIZE   TBR PROTO | VCODEC",
            "-" * 60,
            *rows,
        ]
    )


class TestParseFormats:
    def test_video_row_fields(self):
        (fmt,) = parse_formats(_listing(VIDEO_ROW))

        assert fmt.id == "137"
        assert fmt.extension == "mp4"
        assert fmt.resolution == "1920x1080"
        assert fmt.fps == "30"
        assert fmt.file_size == "45.67MiB"
        assert fmt.tbr == "2500k"
        assert fmt.protocol == "https"
        assert fmt.vcodec == "avc1.640028"
        assert fmt.vbr == "2400k"
        assert fmt.acodec == "none"
        assert fmt.more_info == ""

    def test_audio_only_row(self):
        (fmt,) = parse_formats(_listing(AUDIO_ROW))

        assert fmt.id == "139"
        assert fmt.resolution == "audio only"
        assert fmt.fps is None
        assert fmt.is_audio_only

    def test_storyboard_row(self):
        (fmt,) = parse_formats(
            _listing("sb0 mhtml 48x27 0 | mhtml | images some trailing tokens")
        )

        assert fmt.vcodec == "images"
        assert fmt.more_info == "storyboard"
        assert fmt.acodec is None
        assert fmt.is_storyboard

    def test_duplicate_ids_keep_first(self, format_listing):
        formats = parse_formats(format_listing)

        ids = [fmt.id for fmt in formats]
        assert ids.count("137") == 1
        assert next(f for f in formats if f.id == "137").fps == "30"

    def test_full_listing_order(self, format_listing):
        assert [fmt.id for fmt in parse_formats(format_listing)] == [
            "sb0",
            "139",
            "137",
        ]

    def test_lines_before_marker_are_ignored(self):
        output = "\n".join(["[youtube] abc: Downloading webpage", VIDEO_ROW])
        assert parse_formats(output) == []

    def test_stops_at_first_non_table_line(self):
        output = _listing(VIDEO_ROW, "  trailing note", AUDIO_ROW)
        assert [fmt.id for fmt in parse_formats(output)] == ["137"]

    def test_blank_lines_are_skipped(self):
        output = _listing(VIDEO_ROW, "", "   ", AUDIO_ROW)
        assert [fmt.id for fmt in parse_formats(output)] == ["137", "139"]

    def test_row_without_resolution_is_skipped(self):
        output = _listing("18 mp4", VIDEO_ROW)
        assert [fmt.id for fmt in parse_formats(output)] == ["137"]

    def test_empty_output(self):
        assert parse_formats("") == []
        assert parse_formats("   \n") == []

    def test_row_that_raises_is_skipped(self, monkeypatch, caplog):
        real_parse_row = formats_module._parse_row

        def flaky_parse_row(parts):
            if parts[0] == "137":
                raise IndexError("unexpected token layout")
            return real_parse_row(parts)

        monkeypatch.setattr(formats_module, "_parse_row", flaky_parse_row)
        with caplog.at_level(logging.WARNING, logger="ytdlp_runner.parsing.formats"):
            parsed = parse_formats(
                _listing(AUDIO_ROW, VIDEO_ROW, AUDIO_ROW.replace("139", "140"))
            )

        assert [fmt.id for fmt in parsed] == ["139", "140"]
        assert "unexpected token layout" in caplog.text
