"""
Domain models for media discovered through intercepted API traffic.

A post carries an ordered list of assets. Every asset is reachable through
one or more preview fingerprints (preview URLs without their query string),
which is how low-resolution page elements are joined with the
high-resolution sources that only the API knows about.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class MediaKind(str, Enum):
    """Kinds of downloadable media"""

    image = 'image'
    video = 'video'


class QualityTier(str, Enum):
    """
    Named video resolution classes.

    `full` is the universal fallback: when the preferred tier is missing
    for a video, the full source is used instead.
    """

    preview = 'preview'
    p240 = '240'
    p720 = '720'
    full = 'full'

    @classmethod
    def parse(cls, value: str | int | QualityTier) -> QualityTier:
        """Accept both settings values (`240`) and tier names (`240p`)."""
        if isinstance(value, QualityTier):
            return value
        normalized = str(value).strip().lower().removesuffix('p')
        for tier in cls:
            if tier.value == normalized:
                return tier
        raise ValueError(f'Unknown quality tier: {value!r}')

    @property
    def label(self) -> str:
        if self in (QualityTier.p240, QualityTier.p720):
            return f'{self.value}p'
        return self.value


def fingerprint(url: str) -> str:
    """Strip the query string so different signed variants share one key."""
    return url.split('?', 1)[0]


@dataclass
class MediaAsset:
    """Single image or video of a post with all its known sources"""

    kind: MediaKind
    url: str | None = None
    qualities: dict[QualityTier, str] = field(default_factory=dict)
    previews: tuple[str, ...] = ()

    @property
    def is_video(self) -> bool:
        return self.kind == MediaKind.video

    def url_for(self, preferred: QualityTier) -> str | None:
        """
        Return the best url for the preferred tier.

        Images have a single source and ignore the preference.
        Videos fall back to the `full` tier, and to nothing after that.
        """
        if not self.is_video:
            return self.url
        return self.qualities.get(preferred) or self.qualities.get(QualityTier.full)


@dataclass
class PostRecord:
    """Post (or chat message) as it was last seen in an API response"""

    id: str
    assets: list[MediaAsset] = field(default_factory=list)
    is_for_dm: bool = False

    def videos(self) -> list[MediaAsset]:
        return [asset for asset in self.assets if asset.is_video]
