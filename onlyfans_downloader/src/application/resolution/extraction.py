"""
Collecting download requests from page containers.

Posts, chat messages, viewer slides, carousel items and bare players all
end up here; video urls always go through the resolution cascade.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from onlyfans_downloader.src.application.resolution.thumbnails import (
    is_video_thumbnail,
)
from onlyfans_downloader.src.domain.download import DownloadLabel, DownloadRequest
from onlyfans_downloader.src.domain.media import QualityTier
from onlyfans_downloader.src.infrastructure.document.dom import index_of

if TYPE_CHECKING:
    from bs4 import Tag

    from onlyfans_downloader.src.application.resolution.cascade import (
        ResolutionCascade,
    )
    from onlyfans_downloader.src.infrastructure.correlation_store.store import (
        CorrelationStore,
    )
    from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup

UNKNOWN_CREATOR = 'unknown_creator'


@dataclass
class PostMedia:
    requests: list[DownloadRequest] = field(default_factory=list)
    unresolved_videos: int = 0

    @property
    def is_complete(self) -> bool:
        return self.unresolved_videos == 0


def _src(element: Tag | None) -> str | None:
    if element is None:
        return None
    src = element.get('src')
    return src if isinstance(src, str) and src else None


class MediaExtractor:
    """Builds `DownloadRequest`s for the containers found on the page"""

    def __init__(
        self,
        document: LiveDocument,
        cascade: ResolutionCascade,
        store: CorrelationStore,
    ) -> None:
        self.document = document
        self.cascade = cascade
        self.store = store

    @property
    def markup(self) -> DocumentMarkup:
        return self.cascade.markup

    # --------------------------------------------------------------------------
    # Creator

    def creator_for(self, element: Tag) -> str:
        """
        Username shown inside the item, else the page title (chats),
        else the first segment of the location, else `unknown_creator`.
        """
        item = self.document.closest(element, self.markup.items) or element
        username = self.document.select_one(self.markup.username, item)
        if username is not None:
            text = username.get_text(strip=True).replace('@', '')
            if text:
                return text

        title = self.document.select_one(self.markup.page_title)
        if title is not None:
            text = title.get_text(strip=True)
            if text:
                return text

        return self.creator_from_location()

    def creator_from_location(self) -> str:
        segments = [segment for segment in self.document.pathname.split('/') if segment]
        return segments[0] if segments else UNKNOWN_CREATOR

    # --------------------------------------------------------------------------
    # Images

    def upgrade_image(self, url: str) -> str:
        """Full resolution url of a page image if the API told us about it."""
        return self.store.resolve(url) or url

    def _image_request(self, image: Tag, creator: str) -> DownloadRequest | None:
        url = _src(image)
        if url is None:
            return None
        return DownloadRequest(self.upgrade_image(url), creator, DownloadLabel.download)

    # --------------------------------------------------------------------------
    # Containers

    def from_post(
        self,
        post: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> list[DownloadRequest]:
        return self.resolve_post(post, preferred_quality).requests

    def resolve_post(
        self,
        post: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> PostMedia:
        """
        Videos first, then images which are not previews of those videos.

        Video wrappers which did not resolve are counted, the caller decides
        whether to look at the post again once more data has arrived.
        """
        creator = self.creator_for(post)
        media = PostMedia()

        video_containers = self.document.select(self.markup.video_wrapper, post)
        for wrapper in video_containers:
            resolved = self.cascade.resolve(wrapper, preferred_quality)
            if resolved is None:
                media.unresolved_videos += 1
            else:
                media.requests.append(
                    DownloadRequest(resolved.url, creator, resolved.label)
                )

        has_video = bool(media.requests)
        for image in self.document.select(self.markup.post_image, post):
            url = _src(image)
            if url is None or self.is_known_video_preview(url):
                continue
            if has_video and is_video_thumbnail(
                image, url, video_containers, self.document.layout
            ):
                continue
            request = self._image_request(image, creator)
            if request is not None:
                media.requests.append(request)

        return media

    def is_known_video_preview(self, url: str) -> bool:
        asset = self.store.lookup(url)
        return asset is not None and asset.is_video

    def from_message(
        self,
        message: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> list[DownloadRequest]:
        media = self.document.select_one(self.markup.message_media, message)
        if media is None:
            return []

        creator = self.creator_for(message)
        requests: list[DownloadRequest] = []
        for image in self.document.select('img', media):
            request = self._image_request(image, creator)
            if request is not None:
                requests.append(request)

        for video in self.document.select('video', media):
            resolved = self.cascade.resolve(video, preferred_quality)
            if resolved is not None:
                requests.append(DownloadRequest(resolved.url, creator, resolved.label))

        return requests

    def from_item(
        self,
        item: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> list[DownloadRequest]:
        if self.document.matches(item, self.markup.message):
            return self.from_message(item, preferred_quality)
        return self.from_post(item, preferred_quality)

    def from_media(
        self,
        media: Tag,
        preferred_quality: QualityTier = QualityTier.full,
        creator: str | None = None,
    ) -> DownloadRequest | None:
        """Single media element or slide (carousel item, viewer slide, player)"""
        resolved = self.cascade.resolve(media, preferred_quality)
        if resolved is None:
            return None

        url = resolved.url
        if not resolved.is_video:
            url = self.upgrade_image(url)
        return DownloadRequest(url, creator or self.creator_for(media), resolved.label)

    def from_viewer_slide(
        self,
        viewer: Tag,
        slide: Tag,
        preferred_quality: QualityTier = QualityTier.full,
    ) -> DownloadRequest | None:
        return self.from_media(
            slide, preferred_quality, creator=self.viewer_creator(viewer)
        )

    def viewer_creator(self, viewer: Tag) -> str:
        """Creator of the post whose image is shown in the viewer"""
        post = self.viewer_post(viewer)
        if post is not None:
            return self.creator_for(post)
        return self.creator_from_location()

    def viewer_post(self, viewer: Tag) -> Tag | None:
        viewer_images = {
            url
            for url in (
                _src(image)
                for slide in self.document.select(self.markup.viewer_slide, viewer)
                for image in self.document.select('img', slide)
            )
            if url
        }
        if not viewer_images:
            return None

        for post in self.document.select(self.markup.post):
            for image in self.document.select(self.markup.post_image, post):
                if _src(image) in viewer_images:
                    return post
        return None

    # --------------------------------------------------------------------------
    # Multi-asset containers

    def carousel_items(self, carousel: Tag) -> list[Tag]:
        return self.document.select(
            f'{self.markup.post_image}, {self.markup.post_video}', carousel
        ) or self.document.select('img, video', carousel)

    def active_carousel_item(self, carousel: Tag) -> Tag | None:
        """The item the carousel currently shows (navigation widgets excluded)"""
        for candidate in self.document.select(self.markup.carousel_active_item, carousel):
            if self.is_navigation(candidate, carousel):
                continue
            if candidate.name in ('img', 'video') or candidate.select_one('img, video'):
                return candidate

        for element in self.document.select('img, video', carousel):
            if self.is_navigation(element, carousel):
                continue
            style = str(element.get('style') or '').replace(' ', '')
            if 'display:none' not in style:
                return element
        return None

    def position_of(self, carousel: Tag, item: Tag) -> int:
        items = self.carousel_items(carousel)
        position = index_of(items, item)
        if position >= 0:
            return position
        # The active element may be a slide wrapping the media
        for index, candidate in enumerate(items):
            if any(parent is item for parent in candidate.parents):
                return index
        return -1

    def is_navigation(self, element: Tag, carousel: Tag) -> bool:
        """Thumbnail strip, dots or arrows (looked up inside the carousel only)"""
        node: Tag | None = element
        while node is not None and node is not carousel:
            if self.document.matches(node, self.markup.carousel_navigation):
                return True
            node = node.parent
        return False
