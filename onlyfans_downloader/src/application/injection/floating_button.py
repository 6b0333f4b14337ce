"""Page-wide "Download All" button (right click refreshes the controls)"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import Tag

    from onlyfans_downloader.src.application.injection.controls import (
        ControlRegistry,
    )
    from onlyfans_downloader.src.application.injection.injector import (
        ControlInjector,
    )
    from onlyfans_downloader.src.domain.download import DownloadRequest
    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger

FLOATING_BUTTON_ID = 'of-downloader-floating-btn'
IDLE_LABEL = 'Download All'


class FloatingDownloadButton:
    def __init__(
        self,
        document: LiveDocument,
        injector: ControlInjector,
        controls: ControlRegistry,
        reset_seconds: float = 2.0,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.injector = injector
        self.controls = controls
        self.reset_seconds = reset_seconds
        self.logger = logger

        self.busy = False
        self._tasks: set[asyncio.Task[int]] = set()
        self._listeners: list[Callable[[], None]] = []

    @property
    def element(self) -> Tag | None:
        return self.document.select_one(f'#{FLOATING_BUTTON_ID}')

    def mount(self) -> Tag:
        existing = self.element
        if existing is not None:
            return existing

        button = self.document.create_element(
            'button', {'id': FLOATING_BUTTON_ID, 'type': 'button'}, text=IDLE_LABEL
        )
        self.document.append_child(self.document.body, button)
        if not self._listeners:
            self._listeners = [
                self.document.add_event_listener('click', self._on_click),
                self.document.add_event_listener('contextmenu', self._on_context_menu),
            ]
        return button

    def unmount(self) -> None:
        for remove in self._listeners:
            remove()
        self._listeners.clear()

        button = self.element
        if button is not None:
            self.document.remove(button)

    def _set_label(self, text: str) -> None:
        button = self.element
        if button is not None:
            self.document.set_text(button, text)

    def _reset_later(self) -> None:
        def reset() -> None:
            self.busy = False
            self._set_label(IDLE_LABEL)

        self.controls.scheduler.call_later(self.reset_seconds, reset)

    # --------------------------------------------------------------------------

    def collect(self) -> list[DownloadRequest]:
        """Every resolvable media of every post and chat message on the page"""
        extractor = self.injector.extractor
        quality = self.injector.preferred_quality
        requests: list[DownloadRequest] = []
        for post in self.document.select(self.injector.markup.post):
            requests.extend(extractor.from_post(post, quality))
        for message in self.document.select(self.injector.markup.message):
            requests.extend(extractor.from_message(message, quality))
        return requests

    async def download_all(self) -> int:
        """Send everything to the downloader one by one, return how many were accepted."""
        self.busy = True
        self._set_label('Collecting...')

        requests = self.collect()
        if not requests:
            self._set_label('No media found')
            self._reset_later()
            return 0

        self.logger.info(f'Sending {len(requests)} item(s) to the downloader')
        self._set_label(f'Downloading {len(requests)}...')

        accepted = 0
        for index, request in enumerate(requests, start=1):
            ack = await self.controls.channel.send_message(request.to_message())
            if ack.success:
                accepted += 1
            else:
                self.logger.warning(f'Rejected {request.url}: {ack.error}', tab_level=1)
            self._set_label(f'Downloaded {index}/{len(requests)}')

        self._set_label(f'Downloaded {len(requests)} files')
        self._reset_later()
        return accepted

    def refresh(self) -> int:
        """Remove every control and run a fresh injection pass."""
        self.logger.info('Refreshing download controls')
        self.controls.remove_all()
        created = self.injector.inject_all()
        if not self.busy:
            self._set_label('Refreshed')
            self._reset_later()
        return created

    def _on_click(self, event: InputEvent) -> None:
        if self.busy or event.target is None or event.target is not self.element:
            return

        self.busy = True
        task = asyncio.get_running_loop().create_task(self.download_all())
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _on_context_menu(self, event: InputEvent) -> None:
        if event.target is not None and event.target is self.element:
            self.refresh()

    async def wait_pending(self) -> None:
        for task in list(self._tasks):
            await task
