"""
In-memory store joining page previews with the media sources from the API.

The store is fed by intercepted API responses and read by the url resolution
cascade. Both run on the same event loop, so there is no locking, but readers
must tolerate missing entries: the page often renders before the response
that describes it arrives.
"""

from __future__ import annotations

import time
from collections import OrderedDict
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from pydantic import ValidationError

from onlyfans_downloader.src.domain.media import (
    MediaAsset,
    MediaKind,
    PostRecord,
    QualityTier,
    fingerprint,
)
from onlyfans_downloader.src.infrastructure.correlation_store.normalizer import (
    normalize_payload,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    api_logger,
)
from onlyfans_downloader.src.infrastructure.onlyfans_api.models import (
    MediaDTO,
    PostDTO,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger

_K = TypeVar('_K')
_V = TypeVar('_V')

VIDEO_QUALITY_KEYS: tuple[QualityTier, ...] = (QualityTier.p240, QualityTier.p720)


class BoundedMapping(Generic[_K, _V]):
    """
    Mapping with least-recently-used eviction and optional expiry.

    `capacity=None` and `ttl_seconds=None` give a plain process-lifetime dict.
    Writes always overwrite (last writer wins) and refresh the entry age.
    """

    def __init__(
        self,
        capacity: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.capacity = capacity
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._data: OrderedDict[_K, tuple[float, _V]] = OrderedDict()

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return self.get(key) is not None  # type: ignore[arg-type]

    def set(self, key: _K, value: _V) -> None:
        self._data[key] = (self._clock(), value)
        self._data.move_to_end(key)
        if self.capacity is not None:
            while len(self._data) > self.capacity:
                self._data.popitem(last=False)

    def get(self, key: _K) -> _V | None:
        entry = self._data.get(key)
        if entry is None:
            return None

        written_at, value = entry
        if self.ttl_seconds is not None and self._clock() - written_at > self.ttl_seconds:
            del self._data[key]
            return None

        self._data.move_to_end(key)
        return value

    def clear(self) -> None:
        self._data.clear()


class CorrelationStore:
    """
    Asset metadata keyed by post id and by preview fingerprint.

    Usage:
        store.record_response(url, payload)
        store.resolve('https://cdn/preview.jpg?sig=1', QualityTier.p720)
    """

    def __init__(
        self,
        capacity: int | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        logger: RichLogger = api_logger,
    ) -> None:
        self._posts: BoundedMapping[str, PostRecord] = BoundedMapping(
            capacity, ttl_seconds, clock
        )
        self._assets: BoundedMapping[str, MediaAsset] = BoundedMapping(
            capacity, ttl_seconds, clock
        )
        self.logger = logger

    def __len__(self) -> int:
        return len(self._assets)

    @property
    def posts_count(self) -> int:
        return len(self._posts)

    # --------------------------------------------------------------------------
    # Writing

    def record_response(self, endpoint_url: str, payload: Any) -> int:
        """
        Record every post of an API response, return how many were stored.

        Unknown payload shapes are silently ignored.
        """
        is_for_dm = 'messages' in endpoint_url
        stored = 0
        for raw_post in normalize_payload(payload):
            if self.record_post(raw_post, is_for_dm=is_for_dm) is not None:
                stored += 1

        if stored:
            self.logger.debug(f'Recorded {stored} post(s) from {endpoint_url}')
        return stored

    def record_post(
        self,
        raw_post: dict[str, Any],
        *,
        is_for_dm: bool = False,
    ) -> PostRecord | None:
        try:
            post = PostDTO.model_validate(raw_post)
        except ValidationError:
            return None

        record = PostRecord(id=post.id, is_for_dm=is_for_dm)
        for raw_media in post.media:
            asset = self._record_media(raw_media)
            if asset is not None:
                record.assets.append(asset)

        self._posts.set(record.id, record)
        return record

    def _record_media(self, raw_media: Any) -> MediaAsset | None:
        try:
            media = MediaDTO.model_validate(raw_media)
        except ValidationError:
            return None

        previews = tuple(media.preview_urls)

        if media.is_video:
            qualities: dict[QualityTier, str] = {}
            if media.original_source:
                qualities[QualityTier.full] = media.original_source
            for tier in VIDEO_QUALITY_KEYS:
                url = media.video_sources.get(tier.value)
                if url:
                    qualities[tier] = url

            asset = MediaAsset(
                kind=MediaKind.video,
                qualities=qualities,
                previews=previews,
            )
        else:
            asset = MediaAsset(
                kind=MediaKind.image,
                url=media.direct_source,
                previews=previews,
            )
            # Images without a source have nothing to join with
            if asset.url is None:
                return asset

        for preview in previews:
            self._assets.set(fingerprint(preview), asset)

        return asset

    # --------------------------------------------------------------------------
    # Reading

    def get_post(self, post_id: str) -> PostRecord | None:
        return self._posts.get(str(post_id))

    def lookup(self, url: str) -> MediaAsset | None:
        """Find the asset whose preview matches the url (query string ignored)."""
        return self._assets.get(fingerprint(url))

    def resolve(
        self,
        url: str,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> str | None:
        """Resolve a preview url into the best known source url."""
        asset = self.lookup(url)
        if asset is None:
            return None
        return asset.url_for(preferred_quality)

    def resolve_post_video(
        self,
        post_id: str,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> str | None:
        """Url of the first video of the post which has a usable source."""
        post = self.get_post(post_id)
        if post is None:
            return None

        for video in post.videos():
            url = video.url_for(preferred_quality)
            if url:
                return url
        return None

    def clear(self) -> None:
        self._posts.clear()
        self._assets.clear()
