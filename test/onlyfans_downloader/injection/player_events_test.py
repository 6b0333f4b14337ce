"""Tests for players which get their source late"""

import asyncio

import pytest

from onlyfans_downloader.src.infrastructure.yaml_configuration.config import Timings

PLAYER_PAGE = """
<html><body>
  <div class="video-wrapper">
    <video class="vjs-tech"></video>
    <button class="vjs-big-play-button">Play Video</button>
  </div>
</body></html>
"""

DIMENSION_PLAYER_PAGE = """
<html><body>
  <div class="videoPlayer-abc-dimensions"><video src="https://x/d.mp4"></video></div>
  <div><video data-src="https://x/lazy.mp4"></video></div>
</body></html>
"""


@pytest.fixture
def no_retry_timings(fast_timings):
    return fast_timings.model_copy(update={'resolution_retry_attempts': 0})


def give_source(page):
    video = page.document.select_one('video')
    page.document.set_attribute(video, 'src', 'https://x/v.mp4')
    return video


class TestPlayerEvents:
    @pytest.mark.anyio
    async def test_play_event_injects_control(self, make_page, no_retry_timings):
        page = make_page(PLAYER_PAGE, timings=no_retry_timings)
        page.controller.start()
        assert len(page.controller.controls) == 0

        video = give_source(page)
        page.document.media_event('play', video)

        (control,) = page.controller.controls.controls
        assert control.host is page.document.select_one('.video-wrapper')
        assert control.buttons[0].element.get_text() == 'Download Video'

    @pytest.mark.anyio
    async def test_play_click_forces_detection(self, make_page, no_retry_timings):
        page = make_page(PLAYER_PAGE, timings=no_retry_timings)
        page.controller.start()

        give_source(page)
        page.document.click(page.document.select_one('.vjs-big-play-button'))
        assert len(page.controller.controls) == 0
        await asyncio.sleep(0.05)

        assert len(page.controller.controls) == 1

    @pytest.mark.anyio
    async def test_load_event_on_covered_player_is_ignored(self, make_page):
        page = make_page(
            '<html><body><div class="b-post"><div class="b-post__tools"></div>'
            '<div class="video-wrapper"><video src="https://x/v.mp4"></video></div>'
            '</div></body></html>',
        )
        page.controller.start()

        page.document.media_event('load', page.document.select_one('video'))

        assert len(page.controller.controls) == 1
        assert page.controller.controls.controls[0].host is page.document.select_one('.b-post')

    @pytest.mark.anyio
    async def test_every_player_family_is_found(self, make_page):
        page = make_page(DIMENSION_PLAYER_PAGE, timings=Timings())

        page.controller.start()

        urls = sorted(
            control.requests[0].url for control in page.controller.controls.controls
        )
        assert urls == ['https://x/d.mp4', 'https://x/lazy.mp4']

    @pytest.mark.anyio
    async def test_structure_report(self, make_page):
        page = make_page(DIMENSION_PLAYER_PAGE)

        report = page.controller.player_events.analyze_structure()

        assert report.dimension_players == 1
        assert report.videos == 2
        assert report.data_attribute_videos == 1
        assert report.original_sources == 0
