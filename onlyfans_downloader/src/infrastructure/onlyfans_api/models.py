"""
Models for OnlyFans API payloads.

Only essential fields are defined, everything else is ignored.
The API is not versioned from our point of view, so every field is optional
and a missing field never invalidates the whole response.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


class OnlyFansBaseDTO(BaseModel):
    """Base DTO: ignore unknown fields, allow snake_case construction"""

    model_config = ConfigDict(extra='ignore', populate_by_name=True)


class MediaSourceDTO(OnlyFansBaseDTO):
    """`source` block of a media entry (holds the original file)"""

    source: str | None = None


class MediaDTO(OnlyFansBaseDTO):
    """Single media entry of a post or chat message"""

    id: str | None = None
    type: str = Field(validation_alias=AliasChoices('type', 'kind'))

    src: str | None = None
    full: str | None = None
    preview: str | None = None
    square_preview: str | None = Field(
        default=None,
        validation_alias=AliasChoices('squarePreview', 'square_preview'),
    )
    thumb: str | None = None

    source: MediaSourceDTO | None = None
    video_sources: dict[str, str | None] = Field(
        default_factory=dict,
        validation_alias=AliasChoices('videoSources', 'video_sources'),
    )

    @field_validator('id', mode='before')
    @classmethod
    def _id_to_str(cls, value: Any) -> str | None:
        return None if value is None else str(value)

    @field_validator('video_sources', mode='before')
    @classmethod
    def _stringify_quality_keys(cls, value: Any) -> dict[str, Any]:
        # JSON gives "720", hand-made payloads often give 720
        if not isinstance(value, dict):
            return {}
        return {
            str(key): item
            for key, item in value.items()
            if item is None or isinstance(item, str)
        }

    @property
    def is_video(self) -> bool:
        return self.type == 'video'

    @property
    def preview_urls(self) -> list[str]:
        """Preview, square preview and thumbnail urls, whichever are present"""
        return [url for url in (self.preview, self.square_preview, self.thumb) if url]

    @property
    def original_source(self) -> str | None:
        return self.source.source if self.source else None

    @property
    def direct_source(self) -> str | None:
        """Full-size url of an image entry"""
        return self.src or self.full or self.original_source


class PostDTO(OnlyFansBaseDTO):
    """
    Post-like object: feed post, single post or chat message.

    Media entries are kept raw and validated one by one,
    so a single unexpected entry doesn't hide the others.
    """

    id: str
    media: list[Any] = Field(default_factory=list)

    @field_validator('id', mode='before')
    @classmethod
    def _id_to_str(cls, value: Any) -> str:
        if value is None or isinstance(value, (dict, list)):
            raise ValueError('post id must be a scalar')
        return str(value)

    @field_validator('media', mode='before')
    @classmethod
    def _media_list(cls, value: Any) -> list[Any]:
        return value if isinstance(value, list) else []
