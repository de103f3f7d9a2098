"""
Pydantic model for the single-video JSON document printed by ``yt-dlp --dump-json``.

Only a handful of commonly used fields are typed; every other key of the
document is kept as an extra attribute so nothing is lost.
"""

from typing import Any

from pydantic import BaseModel, Field, model_validator


class Metadata(BaseModel):
    """Best-effort typed view of yt-dlp's info dictionary."""

    id: str | None = None
    title: str | None = None
    fulltitle: str | None = None
    description: str | None = None
    uploader: str | None = None
    uploader_id: str | None = None
    channel: str | None = None
    channel_id: str | None = None
    duration: float | None = None
    view_count: int | None = None
    like_count: int | None = None
    upload_date: str | None = None
    thumbnail: str | None = None
    webpage_url: str | None = None
    extractor: str | None = None
    extractor_key: str | None = None
    ext: str | None = None
    is_live: bool | None = None
    tags: list[str] = Field(default_factory=list)
    categories: list[str] = Field(default_factory=list)
    formats: list[dict[str, Any]] = Field(default_factory=list)
    thumbnails: list[dict[str, Any]] = Field(default_factory=list)

    class Config:
        """Pydantic model configuration."""

        extra = "allow"

    @model_validator(mode="before")
    @classmethod
    def normalize_keys(cls, data: Any) -> Any:
        """Matches property names case-insensitively against the typed fields."""
        if not isinstance(data, dict):
            return data
        known = {name.lower(): name for name in cls.model_fields}
        normalized = {}
        for key, value in data.items():
            target = known.get(str(key).lower(), key)
            # Exact-case keys win over case-insensitive matches.
            if target in normalized and key != target:
                continue
            normalized[target] = value
        for key in ("tags", "categories", "formats", "thumbnails"):
            if normalized.get(key) is None:
                normalized.pop(key, None)
        return normalized

    @property
    def display_title(self) -> str:
        return self.title or self.fulltitle or self.id or "Unknown Title"
