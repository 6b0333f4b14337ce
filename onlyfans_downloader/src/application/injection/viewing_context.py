"""
Life cycle of the page being watched.

    Idle -> Scanning -> Active
      ^                   |
      +--- route change --+

Scanning polls for content markers and gives up to Active anyway once the
attempts run out. A route change (location poll or `popstate`) tears
everything down and starts scanning again after a short delay.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
    from onlyfans_downloader.src.infrastructure.document.scheduling import (
        EpochScheduler,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
    from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
        Timings,
    )


class ViewingState(Enum):
    idle = 'idle'
    scanning = 'scanning'
    active = 'active'


class ViewingContext:
    def __init__(
        self,
        document: LiveDocument,
        markup: DocumentMarkup,
        scheduler: EpochScheduler,
        timings: Timings,
        on_activate: Callable[[], None],
        on_teardown: Callable[[], None],
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.markup = markup
        self.scheduler = scheduler
        self.timings = timings
        self.on_activate = on_activate
        self.on_teardown = on_teardown
        self.logger = logger

        self.state = ViewingState.idle
        self.attempts = 0
        self._location = document.location
        self._remove_listener: Callable[[], None] | None = None

    def start(self) -> None:
        """Begin scanning and watching the route"""
        if self._remove_listener is None:
            self._remove_listener = self.document.add_event_listener(
                'popstate', self._on_popstate
            )
        self._location = self.document.location
        self._watch_route()
        self._scan()

    def stop(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None
        if self.state is ViewingState.active:
            self.on_teardown()
        self.scheduler.bump()
        self.state = ViewingState.idle

    # --------------------------------------------------------------------------
    # Scanning

    def has_content(self) -> bool:
        return self.document.select_one(self.markup.content_markers) is not None

    def _scan(self) -> None:
        self.state = ViewingState.scanning
        self.attempts = 0
        self._poll_content()

    def _poll_content(self) -> None:
        self.attempts += 1
        if self.has_content():
            self.logger.info('Page content found')
            self._activate()
            return

        if self.attempts >= self.timings.content_poll_attempts:
            self.logger.warning(
                f'No content markers after {self.attempts} attempts, watching anyway'
            )
            self._activate()
            return

        self.scheduler.call_later(self.timings.content_poll_seconds, self._poll_content)

    def _activate(self) -> None:
        self.state = ViewingState.active
        self.on_activate()

    # --------------------------------------------------------------------------
    # Route changes

    def _watch_route(self) -> None:
        self.scheduler.call_later(self.timings.route_poll_seconds, self._poll_route)

    def _poll_route(self) -> None:
        if self.document.location != self._location:
            self.route_changed()
            return
        self._watch_route()

    def _on_popstate(self, event: InputEvent) -> None:
        self.route_changed()

    def route_changed(self) -> None:
        """Tear everything down, start over after `route_reinit_seconds`."""
        self.logger.info(f'Route changed to {self.document.location}')
        self._location = self.document.location

        if self.state is ViewingState.active:
            self.on_teardown()
        self.scheduler.bump()
        self.state = ViewingState.idle

        self._watch_route()
        self.scheduler.call_later(self.timings.route_reinit_seconds, self._scan)
