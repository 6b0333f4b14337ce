"""Tests for controls following the item shown by viewers and carousels"""

import asyncio

import pytest

from onlyfans_downloader.src.application.injection.navigation import is_swipe

VIEWER_PAGE = """
<html><body>
  <div class="b-post" data-id="1">
    <a class="g-user-username">@dana</a>
    <div class="b-post__tools"></div>
    <img class="b-post__media__img" src="https://x/d0.jpg">
    <img class="b-post__media__img" src="https://x/d1.jpg">
  </div>
  <div class="pswp">
    <div class="pswp__top-bar"><span class="pswp__counter"></span></div>
    <div class="pswp__item" aria-hidden="false"><img src="https://x/d0.jpg"></div>
    <div class="pswp__item" aria-hidden="true"><img src="https://x/d1.jpg"></div>
  </div>
</body></html>
"""

CAROUSEL_PAGE = """
<html><body>
  <div class="b-post" data-id="5">
    <a class="g-user-username">@erin</a>
    <div class="b-post__tools"></div>
    <div class="b-post__media__carousel">
      <div class="slide is-active"><img class="b-post__media__img" src="https://x/e0.jpg"></div>
      <div class="slide"><img class="b-post__media__img" src="https://x/e1.jpg"></div>
      <button class="swiper-button-next">Next</button>
    </div>
  </div>
</body></html>
"""


@pytest.mark.parametrize(
    ('start', 'end', 'expected'),
    [
        ((200, 100), (100, 110), True),
        ((100, 100), (220, 100), True),
        ((100, 100), (140, 100), False),
        ((100, 100), (180, 200), False),
    ],
)
def test_is_swipe(start, end, expected):
    assert is_swipe(start, end) is expected


def viewer_urls(page):
    control = page.controller.controls.control_for(page.document.select_one('.pswp'))
    return [request.url for request in control.requests]


def show_slide(page, index: int) -> None:
    for position, slide in enumerate(page.document.select('.pswp__item')):
        page.document.set_attribute(
            slide, 'aria-hidden', 'false' if position == index else 'true'
        )


class TestViewer:
    @pytest.mark.anyio
    async def test_opened_viewer_gets_control_in_top_bar(self, make_page):
        page = make_page(VIEWER_PAGE, url='https://onlyfans.com/')
        page.controller.start()
        viewer = page.document.select_one('.pswp')

        page.document.add_class(viewer, 'pswp--open')
        await asyncio.sleep(0.01)

        top_bar = page.document.select_one('.pswp__top-bar')
        control = page.controller.controls.control_for(viewer)
        assert top_bar.contents[0] is control.element
        assert control.requests[0].creator == 'dana'
        assert viewer_urls(page) == ['https://x/d0.jpg']

    @pytest.mark.anyio
    async def test_slide_change_rebinds_control(self, make_page):
        page = make_page(VIEWER_PAGE)
        page.controller.start()
        page.document.add_class(page.document.select_one('.pswp'), 'pswp--open')
        await asyncio.sleep(0.01)

        show_slide(page, 1)
        await asyncio.sleep(0.05)

        assert viewer_urls(page) == ['https://x/d1.jpg']
        assert len(page.controls_in(page.document.select_one('.pswp'))) == 1
        pointer = page.controller.navigator.current(page.document.select_one('.pswp'))
        assert pointer.index == 1

    @pytest.mark.anyio
    async def test_arrow_key_rebinds_after_settling(self, make_page):
        page = make_page(VIEWER_PAGE)
        page.controller.start()
        viewer = page.document.select_one('.pswp')
        page.document.add_class(viewer, 'pswp--open')
        await asyncio.sleep(0.01)
        # Stop reacting to attribute changes, only the key press is left
        page.controller.observer.disconnect()

        show_slide(page, 1)
        page.document.keydown('ArrowRight')
        assert viewer_urls(page) == ['https://x/d0.jpg']
        await asyncio.sleep(0.05)

        assert viewer_urls(page) == ['https://x/d1.jpg']

    @pytest.mark.anyio
    async def test_clicking_post_media_picks_up_the_viewer(self, make_page):
        page = make_page(VIEWER_PAGE)
        page.controller.start()
        page.controller.observer.disconnect()

        page.document.click(page.document.select_one('.b-post__media__img'))
        page.document.add_class(page.document.select_one('.pswp'), 'pswp--open')
        await asyncio.sleep(0.05)

        assert viewer_urls(page) == ['https://x/d0.jpg']


class TestCarousel:
    def post_urls(self, page):
        control = page.controller.controls.control_for(page.document.select_one('.b-post'))
        return [request.url for request in control.requests]

    def move_to(self, page, index: int) -> None:
        for position, slide in enumerate(page.document.select('.slide')):
            if position == index:
                page.document.add_class(slide, 'is-active')
            else:
                page.document.remove_class(slide, 'is-active')

    @pytest.mark.anyio
    async def test_post_starts_with_all_its_media(self, make_page):
        page = make_page(CAROUSEL_PAGE)

        page.controller.start()

        assert self.post_urls(page) == ['https://x/e0.jpg', 'https://x/e1.jpg']

    @pytest.mark.anyio
    async def test_arrow_click_binds_the_shown_item(self, make_page):
        page = make_page(CAROUSEL_PAGE)
        page.controller.start()

        page.document.click(page.document.select_one('.swiper-button-next'))
        self.move_to(page, 1)
        await asyncio.sleep(0.05)

        assert self.post_urls(page) == ['https://x/e1.jpg']
        pointer = page.controller.navigator.current(page.document.select_one('.b-post'))
        assert pointer.index == 1
        assert len(page.controls_in(None)) == 1

    @pytest.mark.anyio
    async def test_swipe_binds_the_shown_item(self, make_page):
        page = make_page(CAROUSEL_PAGE)
        page.controller.start()
        page.controller.observer.disconnect()
        image = page.document.select_one('.b-post__media__img')

        self.move_to(page, 1)
        page.document.touch(image, start=(300, 100), end=(150, 120))
        await asyncio.sleep(0.05)

        assert self.post_urls(page) == ['https://x/e1.jpg']

    @pytest.mark.anyio
    async def test_vertical_scroll_is_not_a_swipe(self, make_page):
        page = make_page(CAROUSEL_PAGE)
        page.controller.start()
        page.controller.observer.disconnect()
        image = page.document.select_one('.b-post__media__img')

        self.move_to(page, 1)
        page.document.touch(image, start=(100, 100), end=(160, 400))
        await asyncio.sleep(0.05)

        assert self.post_urls(page) == ['https://x/e0.jpg', 'https://x/e1.jpg']

    @pytest.mark.anyio
    async def test_clicking_the_control_is_not_navigation(self, make_page):
        page = make_page(CAROUSEL_PAGE)
        page.controller.start()
        page.controller.observer.disconnect()
        control = page.controller.controls.control_for(page.document.select_one('.b-post'))

        page.document.click(control.buttons[0].element)
        await page.controller.controls.wait_pending()
        await asyncio.sleep(0.05)

        assert page.controller.navigator.current(page.document.select_one('.b-post')) is None
        assert [message[0] for message in page.messages] == [
            'https://x/e0.jpg',
            'https://x/e1.jpg',
        ]
