from unittest.mock import MagicMock

from onlyfans_downloader.src.application.resolution.cascade import ResolutionCascade
from onlyfans_downloader.src.application.resolution.extraction import MediaExtractor
from onlyfans_downloader.src.domain.download import DownloadLabel, DownloadRequest
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    CorrelationStore,
)
from onlyfans_downloader.src.infrastructure.document.dom import (
    LiveDocument,
    Rect,
    StaticLayout,
)

FEED = """
<html><body>
  <div class="b-post" data-id="1">
    <a class="g-user-username">@alice</a>
    <img class="b-post__media__img" src="https://x/a1.jpg?sig=1">
    <img class="b-post__media__img" src="https://x/a2.jpg">
  </div>
  <div class="b-post" data-id="2">
    <div class="video-wrapper"><video class="vjs-tech" src="https://x/v.mp4"></video></div>
    <img class="b-post__media__img poster" src="https://x/poster.jpg">
    <img class="b-post__media__img other" src="https://x/other.jpg">
  </div>
</body></html>
"""


def make_extractor(html: str, url: str = 'https://onlyfans.com/alice', layout=None):
    store = CorrelationStore()
    document = LiveDocument(html, url=url, layout=layout)
    cascade = ResolutionCascade(store, logger=MagicMock())
    return document, store, MediaExtractor(document, cascade, store)


class TestCreator:
    def test_username_inside_item(self):
        document, _, extractor = make_extractor(FEED)
        image = document.select_one('img')

        assert extractor.creator_for(image) == 'alice'

    def test_page_title_for_chats(self):
        document, _, extractor = make_extractor(
            '<h1 class="g-page-title">Bob Smith</h1><div class="b-chat__message"><img></div>',
            url='https://onlyfans.com/my/chats/chat/5',
        )

        assert extractor.creator_for(document.select_one('img')) == 'Bob Smith'

    def test_location_segment(self):
        document, _, extractor = make_extractor(
            '<div class="b-post"><img></div>', url='https://onlyfans.com/carol/media'
        )

        assert extractor.creator_for(document.select_one('img')) == 'carol'

    def test_unknown_creator(self):
        document, _, extractor = make_extractor('<div></div>', url='https://onlyfans.com/')

        assert extractor.creator_for(document.select_one('div')) == 'unknown_creator'


class TestPosts:
    def test_image_post(self):
        document, store, extractor = make_extractor(FEED)
        store.record_post(
            {'id': 1, 'media': [{'type': 'photo', 'preview': 'https://x/a1.jpg', 'src': 'https://x/a1-full.jpg'}]},
        )
        post = document.select('.b-post')[0]

        requests = extractor.from_post(post)

        assert requests == [
            DownloadRequest('https://x/a1-full.jpg', 'alice', DownloadLabel.download),
            DownloadRequest('https://x/a2.jpg', 'alice', DownloadLabel.download),
        ]

    def test_video_thumbnails_are_skipped(self):
        layout = StaticLayout()
        document, _, extractor = make_extractor(FEED, layout=layout)
        post = document.select('.b-post')[1]
        layout.set(document.select_one('.video-wrapper', post), Rect(top=0, left=0))
        layout.set(document.select_one('.poster', post), Rect(top=10, left=10))
        layout.set(document.select_one('.other', post), Rect(top=500, left=0))

        requests = extractor.from_post(post)

        assert [request.url for request in requests] == [
            'https://x/v.mp4',
            'https://x/other.jpg',
        ]
        assert requests[0].label is DownloadLabel.download_video
        assert requests[0].creator == 'alice'

    def test_images_are_kept_when_no_video_resolves(self):
        document, _, extractor = make_extractor(
            '<div class="b-post"><div class="video-wrapper"><video></video></div>'
            '<img class="b-post__media__img" src="https://x/thumb.jpg"></div>'
        )

        requests = extractor.from_post(document.select_one('.b-post'))

        assert [request.url for request in requests] == ['https://x/thumb.jpg']

    def test_unresolved_videos_are_counted(self):
        document, _, extractor = make_extractor(
            '<div class="b-post"><div class="video-wrapper"></div>'
            '<img class="b-post__media__img" src="https://x/p.jpg"></div>'
        )

        media = extractor.resolve_post(document.select_one('.b-post'))

        assert media.unresolved_videos == 1
        assert not media.is_complete
        assert [request.url for request in media.requests] == ['https://x/p.jpg']

    def test_known_video_previews_are_not_offered_as_images(self):
        document, store, extractor = make_extractor(
            '<div class="b-post" data-id="42"><div class="video-wrapper"></div>'
            '<img class="b-post__media__img" src="https://x/p.jpg?z=1"></div>'
        )
        store.record_post(
            {
                'id': '42',
                'media': [
                    {
                        'type': 'video',
                        'preview': 'https://x/p.jpg',
                        'source': {'source': 'https://x/full.mp4'},
                    },
                ],
            },
        )

        media = extractor.resolve_post(document.select_one('.b-post'))

        assert media.is_complete
        assert [request.url for request in media.requests] == ['https://x/full.mp4']


class TestMessages:
    def test_message_media(self):
        document, _, extractor = make_extractor(
            '<h1 class="g-page-title">bob</h1>'
            '<div class="b-chat__message"><div class="b-chat__message__body">'
            '<div class="b-chat__message__media">'
            '<img src="https://x/m.jpg"><video src="https://x/m.mp4"></video>'
            '</div></div></div>',
            url='https://onlyfans.com/my/chats/chat/5',
        )

        requests = extractor.from_item(document.select_one('.b-chat__message'))

        assert requests == [
            DownloadRequest('https://x/m.jpg', 'bob', DownloadLabel.download),
            DownloadRequest('https://x/m.mp4', 'bob', DownloadLabel.download_video),
        ]

    def test_message_without_media(self):
        document, _, extractor = make_extractor('<div class="b-chat__message">hi</div>')

        assert extractor.from_message(document.select_one('.b-chat__message')) == []


class TestViewer:
    VIEWER_PAGE = """
    <div class="b-post"><a class="g-user-username">@dana</a>
      <img class="b-post__media__img" src="https://x/d1.jpg"></div>
    <div class="pswp pswp--open">
      <div class="pswp__top-bar"></div>
      <div class="pswp__item" aria-hidden="true"><img src="https://x/d0.jpg"></div>
      <div class="pswp__item" aria-hidden="false"><img src="https://x/d1.jpg"></div>
    </div>
    """

    def test_viewer_creator_comes_from_matching_post(self):
        document, _, extractor = make_extractor(self.VIEWER_PAGE, url='https://onlyfans.com/')
        viewer = document.select_one('.pswp--open')
        slide = document.select_one('.pswp__item[aria-hidden="false"]')

        request = extractor.from_viewer_slide(viewer, slide)

        assert request == DownloadRequest('https://x/d1.jpg', 'dana', DownloadLabel.download)

    def test_viewer_without_post_uses_location(self):
        document, _, extractor = make_extractor(
            '<div class="pswp--open"><div class="pswp__item"><img src="https://x/z.jpg"></div></div>',
            url='https://onlyfans.com/erin',
        )

        assert extractor.viewer_creator(document.select_one('.pswp--open')) == 'erin'


class TestCarousel:
    CAROUSEL = """
    <div class="b-post"><div class="b-post__media__carousel">
      <div class="slide"><img class="b-post__media__img" src="https://x/c0.jpg"></div>
      <div class="slide is-active"><img class="b-post__media__img" src="https://x/c1.jpg"></div>
      <div class="thumbs"><img class="active" src="https://x/c1-t.jpg"></div>
    </div></div>
    """

    def test_active_item_skips_navigation(self):
        document, _, extractor = make_extractor(self.CAROUSEL)
        carousel = document.select_one('.b-post__media__carousel')

        active = extractor.active_carousel_item(carousel)

        assert active is document.select('.slide')[1]
        assert extractor.position_of(carousel, active) == 1

    def test_navigation_is_scoped_to_the_carousel(self):
        document, _, extractor = make_extractor(
            '<div class="navbar"><div class="b-post__media__carousel">'
            '<img class="b-post__media__img" src="https://x/c.jpg"></div></div>'
        )
        carousel = document.select_one('.b-post__media__carousel')

        assert not extractor.is_navigation(document.select_one('img'), carousel)
        assert extractor.active_carousel_item(carousel) is document.select_one('img')

    def test_hidden_items_are_not_active(self):
        document, _, extractor = make_extractor(
            '<div class="b-post__media__carousel">'
            '<img src="https://x/0.jpg" style="display: none">'
            '<img src="https://x/1.jpg"></div>'
        )
        carousel = document.select_one('.b-post__media__carousel')

        assert extractor.active_carousel_item(carousel) is document.select('img')[1]
