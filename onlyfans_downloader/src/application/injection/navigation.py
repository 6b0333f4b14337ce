"""
Keeping controls of multi-asset containers on the item being shown.

Carousels and the full-screen viewer hold several media; their control is
bound to the current item only. Navigation (arrow keys, swipes, thumbnail
or dot clicks, slide visibility changes) moves the pointer and the control
is recreated for the new item.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    import asyncio
    from collections.abc import Callable

    from bs4 import Tag

    from onlyfans_downloader.src.application.injection.controls import (
        ControlRegistry,
    )
    from onlyfans_downloader.src.application.injection.injector import (
        ControlInjector,
    )
    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.document.events import (
        ActiveItemChanged,
        ContentChanged,
    )
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
    from onlyfans_downloader.src.infrastructure.document.scheduling import (
        EpochScheduler,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger

NAVIGATION_KEYS = frozenset({'ArrowLeft', 'ArrowRight'})
SWIPE_DISTANCE = 50


def is_swipe(start: tuple[float, float], end: tuple[float, float]) -> bool:
    """Horizontal swipe: moved more than 50 units, and more sideways than up/down"""
    dx = end[0] - start[0]
    dy = end[1] - start[1]
    return abs(dx) > SWIPE_DISTANCE and abs(dx) > abs(dy)


@dataclass(eq=False)
class CurrentItem:
    """Which item of a multi-asset container the control is bound to"""

    container: Tag
    item: Tag
    index: int


class MediaNavigator:
    def __init__(
        self,
        document: LiveDocument,
        injector: ControlInjector,
        controls: ControlRegistry,
        scheduler: EpochScheduler,
        settle_seconds: float = 0.1,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.injector = injector
        self.controls = controls
        self.scheduler = scheduler
        self.settle_seconds = settle_seconds
        self.logger = logger

        self._pointers: dict[int, CurrentItem] = {}
        self._pending: dict[int, asyncio.TimerHandle] = {}
        self._touch: tuple[Tag, tuple[float, float]] | None = None
        self._listeners: list[Callable[[], None]] = []

    @property
    def markup(self) -> DocumentMarkup:
        return self.injector.markup

    def connect(self) -> None:
        if self._listeners:
            return
        for event_type, listener in (
            ('keydown', self._on_keydown),
            ('click', self._on_click),
            ('touchstart', self._on_touchstart),
            ('touchend', self._on_touchend),
        ):
            self._listeners.append(self.document.add_event_listener(event_type, listener))

    def disconnect(self) -> None:
        for remove in self._listeners:
            remove()
        self._listeners.clear()
        self._pointers.clear()
        self._pending.clear()
        self._touch = None

    def current(self, container: Tag) -> CurrentItem | None:
        pointer = self._pointers.get(id(container))
        if pointer is not None and pointer.container is container:
            return pointer
        return None

    # --------------------------------------------------------------------------
    # Refreshing

    def refresh_viewer(self) -> bool:
        viewer = self.document.select_one(self.markup.viewer)
        if viewer is None:
            return False

        slide = self.document.select_one(self.markup.viewer_active_slide, viewer)
        if slide is not None:
            slides = self.document.select(self.markup.viewer_slide, viewer)
            index = next((i for i, s in enumerate(slides) if s is slide), -1)
            self._pointers[id(viewer)] = CurrentItem(viewer, slide, index)
        return self.injector.inject_viewer(viewer)

    def refresh_carousel(self, post: Tag) -> bool:
        """Bind the post control to the item its carousel shows now"""
        carousel = self.document.select_one(self.markup.carousel, post)
        if carousel is None:
            return False

        extractor = self.injector.extractor
        item = extractor.active_carousel_item(carousel)
        if item is None:
            return False

        previous = self.current(post)
        if previous is not None and previous.item is item and self.controls.has_control(post):
            return False

        request = extractor.from_media(
            item,
            self.injector.preferred_quality,
            creator=extractor.creator_for(post),
        )
        if request is None:
            return False

        index = extractor.position_of(carousel, item)
        self._pointers[id(post)] = CurrentItem(post, item, index)
        self.logger.debug(f'Carousel moved to item {index + 1}')

        tools = self.document.select_one(self.markup.post_tools, post)
        return self.controls.replace(post, [request], parent=tools) is not None

    def _schedule(self, key: Tag, refresh: Callable[[], object]) -> None:
        """Refresh once the page had time to switch the slide (coalesced per container)"""
        self.scheduler.cancel(self._pending.get(id(key)))

        def fire() -> None:
            self._pending.pop(id(key), None)
            refresh()

        self._pending[id(key)] = self.scheduler.call_later(self.settle_seconds, fire)

    def _schedule_carousel(self, post: Tag) -> None:
        self._schedule(post, lambda: self.refresh_carousel(post))

    def _schedule_viewer(self) -> None:
        viewer = self.document.select_one(self.markup.viewer)
        if viewer is not None:
            self._schedule(viewer, self.refresh_viewer)

    # --------------------------------------------------------------------------
    # Event handlers

    def on_active_slide(self, event: ActiveItemChanged) -> None:
        """Viewer slide became visible, rebind immediately"""
        self.refresh_viewer()

    def on_content_changed(self, event: ContentChanged) -> None:
        """Slide visibility changes inside a carousel"""
        if not self.document.is_attached(event.node):
            return
        carousel = self.document.closest(event.node, self.markup.carousel)
        if carousel is None:
            return
        post = self.document.closest(carousel, self.markup.post)
        if post is not None:
            self._schedule_carousel(post)

    def _carousel_post(self, target: Tag | None) -> Tag | None:
        if target is None:
            return None
        carousel = self.document.closest(target, self.markup.carousel)
        if carousel is None:
            return None
        return self.document.closest(carousel, self.markup.post)

    def _on_keydown(self, event: InputEvent) -> None:
        if event.key not in NAVIGATION_KEYS:
            return
        self._schedule_viewer()
        post = self._carousel_post(event.target)
        if post is not None:
            self._schedule_carousel(post)

    def _on_click(self, event: InputEvent) -> None:
        target = event.target
        if target is None or self.controls.is_own(target):
            return

        carousel = self.document.closest(target, self.markup.carousel)
        if carousel is not None and self.injector.extractor.is_navigation(target, carousel):
            post = self.document.closest(carousel, self.markup.post)
            if post is not None:
                self._schedule_carousel(post)
            return

        # Clicking a post media opens the viewer
        media = f'{self.markup.post_image}, {self.markup.post_video}'
        if self.document.closest(target, media) is not None:
            self._schedule_viewer_open()

    def _schedule_viewer_open(self) -> None:
        self.scheduler.call_later(self.settle_seconds, self._schedule_viewer)

    def _on_touchstart(self, event: InputEvent) -> None:
        if event.target is None:
            return
        post = self.document.closest(event.target, self.markup.post)
        self._touch = (post, (event.x, event.y)) if post is not None else None

    def _on_touchend(self, event: InputEvent) -> None:
        if self._touch is None:
            return
        post, start = self._touch
        self._touch = None
        if is_swipe(start, (event.x, event.y)):
            self._schedule_carousel(post)
