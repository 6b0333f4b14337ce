"""
Download controls injected into the page.

A control is a `<div>` tagged with the process-unique marker class, holding
one button per media group. It is bound to its requests when created and is
never edited afterwards: when the media changes, it's removed and recreated.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.document.dom import contains
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from bs4 import Tag

    from onlyfans_downloader.src.domain.download import DownloadRequest
    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.document.scheduling import (
        EpochScheduler,
    )
    from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
        RuntimeChannel,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


def generate_marker_class() -> str:
    return f'of-downloader-{uuid.uuid4().hex[:8]}'


class ControlState(Enum):
    idle = 'idle'
    downloading = 'downloading'
    downloaded = 'downloaded'
    failed = 'failed'


STATE_LABELS = {
    ControlState.downloading: 'Downloading...',
    ControlState.downloaded: 'Downloaded',
    ControlState.failed: 'Failed',
}


def group_requests(requests: Sequence[DownloadRequest]) -> list[list[DownloadRequest]]:
    """
    Split requests into button groups.

    Videos and images together make a single merged group (videos first),
    otherwise there is one group with whatever kind is present.
    """
    videos = [request for request in requests if request.label.is_video]
    images = [request for request in requests if not request.label.is_video]
    groups = [videos + images] if videos and images else [videos, images]
    return [group for group in groups if group]


def idle_label(group: Sequence[DownloadRequest]) -> str:
    if len(group) > 1:
        return f'Download All ({len(group)})'
    if group[0].label.is_video:
        return 'Download Video'
    return 'Download Image'


@dataclass(eq=False)
class ControlButton:
    element: Tag
    requests: tuple[DownloadRequest, ...]
    state: ControlState = ControlState.idle

    @property
    def idle_label(self) -> str:
        return idle_label(self.requests)

    @property
    def is_video(self) -> bool:
        return any(request.label.is_video for request in self.requests)


@dataclass(eq=False)
class InjectedControl:
    """Control element plus the container it belongs to"""

    element: Tag
    host: Tag
    buttons: list[ControlButton] = field(default_factory=list)

    @property
    def requests(self) -> list[DownloadRequest]:
        return [request for button in self.buttons for request in button.requests]


class ControlRegistry:
    """
    Creates, tracks and removes controls, and runs them when clicked.

    Clicks are handled by one document-level listener which finds the
    button under the event target.
    """

    def __init__(
        self,
        document: LiveDocument,
        channel: RuntimeChannel,
        scheduler: EpochScheduler,
        marker_class: str | None = None,
        reset_seconds: float = 2.0,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.channel = channel
        self.scheduler = scheduler
        self.marker_class = marker_class or generate_marker_class()
        self.reset_seconds = reset_seconds
        self.logger = logger

        self._controls: list[InjectedControl] = []
        self._tasks: set[asyncio.Task[None]] = set()
        self._remove_listener: Callable[[], None] | None = None

    def __len__(self) -> int:
        return len(self._controls)

    @property
    def selector(self) -> str:
        return f'.{self.marker_class}'

    @property
    def controls(self) -> list[InjectedControl]:
        return list(self._controls)

    def listen(self) -> None:
        if self._remove_listener is None:
            self._remove_listener = self.document.add_event_listener(
                'click', self._on_click
            )

    def stop_listening(self) -> None:
        if self._remove_listener is not None:
            self._remove_listener()
            self._remove_listener = None

    # --------------------------------------------------------------------------
    # Idempotency

    def has_control(self, host: Tag) -> bool:
        """Host carries a control (in the document, not just in our list)."""
        return self.document.select_one(self.selector, host) is not None

    def control_for(self, host: Tag) -> InjectedControl | None:
        for control in self._controls:
            if control.host is host and self.document.is_attached(control.element):
                return control
        return None

    def is_own(self, element: Tag) -> bool:
        """Element is (inside) one of our controls"""
        return self.document.closest(element, self.selector) is not None

    def is_covered(self, element: Tag) -> bool:
        """Element or one of its ancestors already has a live control"""
        if self.has_control(element):
            return True
        return any(
            contains(control.host, element) and self.document.is_attached(control.element)
            for control in self._controls
        )

    # --------------------------------------------------------------------------
    # Life cycle

    def create(self, host: Tag, requests: Sequence[DownloadRequest]) -> InjectedControl:
        """Build a (detached) control for the host, bound to `requests`."""
        element = self.document.create_element('div', {'class': self.marker_class})
        control = InjectedControl(element=element, host=host)

        for group in group_requests(requests):
            button_element = self.document.create_element(
                'button',
                {'type': 'button', 'class': f'{self.marker_class}__button'},
                text=idle_label(group),
            )
            element.append(button_element)
            control.buttons.append(ControlButton(button_element, tuple(group)))

        return control

    def attach(
        self,
        host: Tag,
        requests: Sequence[DownloadRequest],
        *,
        parent: Tag | None = None,
        prepend: bool = False,
    ) -> InjectedControl | None:
        """
        Inject a control for `host` into `parent` (the host by default).

        Does nothing when the host already carries one.
        """
        if not requests or self.has_control(host):
            return None
        if parent is not None and self.has_control(parent):
            return None

        control = self.create(host, requests)
        target = parent if parent is not None else host
        if prepend:
            self.document.insert_first(target, control.element)
        else:
            self.document.append_child(target, control.element)

        self._controls.append(control)
        return control

    def replace(
        self,
        host: Tag,
        requests: Sequence[DownloadRequest],
        *,
        parent: Tag | None = None,
        prepend: bool = False,
    ) -> InjectedControl | None:
        """Remove the controls of the host and create a new one"""
        self.remove_within(host)
        if parent is not None:
            self.remove_within(parent)
        return self.attach(host, requests, parent=parent, prepend=prepend)

    def remove_within(self, root: Tag) -> int:
        removed = 0
        for element in self.document.select(self.selector, root):
            self.document.remove(element)
            removed += 1
        self._controls = [
            control
            for control in self._controls
            if self.document.is_attached(control.element)
        ]
        return removed

    def remove_all(self) -> int:
        removed = self.remove_within(self.document.body)
        self._controls.clear()
        return removed

    # --------------------------------------------------------------------------
    # Activation

    def _button_at(self, target: Tag) -> ControlButton | None:
        for control in self._controls:
            for button in control.buttons:
                if contains(button.element, target):
                    return button
        return None

    def _on_click(self, event: InputEvent) -> None:
        if event.target is None:
            return
        button = self._button_at(event.target)
        if button is None or button.state is not ControlState.idle:
            return

        # Busy right away, a second click must not start the same downloads
        self._set_state(button, ControlState.downloading)
        task = asyncio.get_running_loop().create_task(self.activate(button))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _set_state(self, button: ControlButton, state: ControlState) -> None:
        button.state = state
        self.document.set_text(button.element, STATE_LABELS.get(state, button.idle_label))
        if state is ControlState.idle:
            self.document.set_attribute(button.element, 'disabled', None)
        else:
            self.document.set_attribute(button.element, 'disabled', 'disabled')

    async def activate(self, button: ControlButton) -> bool:
        """Send every request of the button, one by one; True if all succeeded."""
        self._set_state(button, ControlState.downloading)

        failed = 0
        for request in button.requests:
            ack = await self.channel.send_message(request.to_message())
            if not ack.success:
                failed += 1
                self.logger.warning(f'Download of {request.url} was rejected: {ack.error}')

        self._set_state(
            button, ControlState.failed if failed else ControlState.downloaded
        )
        self.scheduler.call_later(
            self.reset_seconds, self._set_state, button, ControlState.idle
        )
        return failed == 0

    async def wait_pending(self) -> None:
        if self._tasks:
            await asyncio.gather(*self._tasks)
