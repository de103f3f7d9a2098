"""
Data model for one row of the yt-dlp "available formats" table.
"""

from dataclasses import dataclass


@dataclass
class VideoFormat:
    """A single downloadable stream variant as listed by ``yt-dlp -F``."""

    id: str
    extension: str | None = None
    resolution: str | None = None
    fps: str | None = None
    channels: str | None = None
    file_size: str | None = None
    tbr: str | None = None
    protocol: str | None = None
    vcodec: str | None = None
    vbr: str | None = None
    acodec: str | None = None
    abr: str | None = None
    asr: str | None = None
    more_info: str | None = None

    @property
    def is_audio_only(self) -> bool:
        return self.resolution == "audio only" or self.vcodec == "audio only"

    @property
    def is_storyboard(self) -> bool:
        return self.vcodec == "images"
