"""CSS selectors describing the page structure"""

from __future__ import annotations

from pydantic import BaseModel


class DocumentMarkup(BaseModel):
    """
    Where things live on the page.

    Defaults follow the current site layout; override fields when it changes.
    """

    post: str = '.b-post'
    post_tools: str = '.b-post__tools'
    message: str = '.b-chat__message'
    message_body: str = '.b-chat__message__body'
    message_media: str = '.b-chat__message__media'

    post_image: str = 'img.b-post__media__img'
    post_video: str = '.b-post__media__video'
    video_wrapper: str = '.video-wrapper'
    video_tech: str = 'video.vjs-tech'
    dimension_player: str = '[class*="videoPlayer-"][class*="-dimensions"]'
    videojs_player: str = '.video-js, .vjs-fluid'
    data_video: str = 'video[data-src], video[data-video], video[data-url]'
    original_source: str = 'source[label="original"]'
    play_button: str = '.vjs-play-control, .vjs-big-play-button, .play-button'

    carousel: str = '.b-post__media__carousel, .b-post__media__slider'
    carousel_navigation: str = (
        '[class*="thumb"], [class*="nav"], [class*="dot"], '
        '[class*="arrow"], [class*="prev"], [class*="next"]'
    )
    carousel_active_item: str = (
        '[class*="active"], [class*="current"], '
        '[style*="display: block"], [style*="opacity: 1"]'
    )

    viewer: str = '.pswp--open'
    viewer_top_bar: str = '.pswp__top-bar'
    viewer_slide: str = '.pswp__item'
    viewer_active_slide: str = '.pswp__item[aria-hidden="false"]'

    username: str = '.g-user-username'
    page_title: str = 'h1.g-page-title'

    @property
    def content_markers(self) -> str:
        """Anything whose presence means the page has rendered its content"""
        return ', '.join(
            [self.post, self.message, self.video_wrapper, self.video_tech, 'video']
        )

    @property
    def items(self) -> str:
        return f'{self.post}, {self.message}'

    @property
    def players(self) -> str:
        return ', '.join(
            [self.video_wrapper, self.dimension_player, self.videojs_player]
        )
