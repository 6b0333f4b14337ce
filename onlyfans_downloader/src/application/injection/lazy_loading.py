"""Lazily loaded content: items entering the viewport and scroll re-scans"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import Tag

    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
    from onlyfans_downloader.src.infrastructure.document.scheduling import Debouncer

LOOKAHEAD_MARGIN = 100
VISIBILITY_THRESHOLD = 0.1


class VisibilityTracker:
    """
    Calls `on_visible` for every post / message which starts intersecting
    the viewport (grown by `LOOKAHEAD_MARGIN`), and triggers a debounced
    re-scan on every scroll.
    """

    def __init__(
        self,
        document: LiveDocument,
        markup: DocumentMarkup,
        on_visible: Callable[[Tag], object],
        rescan: Debouncer,
    ) -> None:
        self.document = document
        self.markup = markup
        self.on_visible = on_visible
        self.rescan = rescan
        self._visible: dict[int, Tag] = {}
        self._remove_listener: Callable[[], None] | None = None

    def connect(self) -> None:
        if self._remove_listener is None:
            self._remove_listener = self.document.add_event_listener('scroll', self._on_scroll)
        self.check()

    def disconnect(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        self._visible.clear()

    def is_intersecting(self, element: Tag) -> bool:
        rect = self.document.rect_of(element)
        if rect is None:
            return False
        area = self.document.viewport.expanded(LOOKAHEAD_MARGIN)
        return rect.intersection_ratio(area) >= VISIBILITY_THRESHOLD

    def check(self) -> list[Tag]:
        """Return (and report) the items which just became visible."""
        appeared: list[Tag] = []
        visible_now: dict[int, Tag] = {}

        for item in self.document.select(self.markup.items):
            if not self.is_intersecting(item):
                continue
            visible_now[id(item)] = item
            if self._visible.get(id(item)) is not item:
                appeared.append(item)

        self._visible = visible_now
        for item in appeared:
            self.on_visible(item)
        return appeared

    def _on_scroll(self, event: InputEvent) -> None:
        self.check()
        self.rescan.trigger()
