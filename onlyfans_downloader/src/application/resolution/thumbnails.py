"""Telling video previews apart from standalone images"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.document.dom import LayoutProvider

THUMBNAIL_DISTANCE = 100
THUMBNAIL_URL_MARKERS: tuple[str, ...] = ('thumb', 'preview', 'small')


def is_video_thumbnail(
    image: Tag,
    image_url: str,
    video_containers: Iterable[Tag],
    layout: LayoutProvider,
) -> bool:
    """
    True if the image is most likely a preview of one of the videos.

    Either it sits within `THUMBNAIL_DISTANCE` layout units of a video
    container (distance between the top-left corners), or its url says so.
    """
    image_rect = layout.rect_of(image)
    if image_rect is not None:
        for container in video_containers:
            container_rect = layout.rect_of(container)
            if container_rect is None:
                continue
            distance = abs(container_rect.top - image_rect.top) + abs(
                container_rect.left - image_rect.left
            )
            if distance < THUMBNAIL_DISTANCE:
                return True

    return any(marker in image_url for marker in THUMBNAIL_URL_MARKERS)
