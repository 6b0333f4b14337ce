"""
Serialized download queue.

Requests are executed strictly one at a time in FIFO order, with a short
cool-down between transfers so the host isn't flooded. A failed transfer is
reported and the loop moves on.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import TYPE_CHECKING

from onlyfans_downloader.src.application.download_queue.filename import (
    synthesize_filename,
)
from onlyfans_downloader.src.domain.download import DownloadItem, DownloadStatus
from onlyfans_downloader.src.infrastructure.host.download_service import (
    DownloadOptions,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.domain.download import DownloadRequest
    from onlyfans_downloader.src.infrastructure.host.download_service import (
        DownloadService,
    )
    from onlyfans_downloader.src.infrastructure.host.notifications import (
        NotificationService,
    )
    from onlyfans_downloader.src.infrastructure.host.settings_store import (
        SettingsStore,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


class DownloadRejectedError(Exception):
    """The download service did not start the transfer"""

    def __init__(self, filename: str) -> None:
        super().__init__(f'Download of {filename} failed to start')
        self.filename = filename


class DownloadQueue:
    """
    FIFO of `DownloadItem`s drained by a single background task.

    Usage:
        queue.enqueue(DownloadRequest(url, 'creator'))
        await queue.wait_idle()
    """

    def __init__(
        self,
        service: DownloadService,
        notifications: NotificationService,
        settings: SettingsStore,
        cooldown_seconds: float = 0.1,
        clock: Callable[[], float] = time.time,
        logger: RichLogger = downloader_logger,
    ) -> None:
        self.service = service
        self.notifications = notifications
        self.settings = settings
        self.cooldown_seconds = cooldown_seconds
        self.clock = clock
        self.logger = logger

        self._items: deque[DownloadItem] = deque()
        self._drain_task: asyncio.Task[None] | None = None

    def __len__(self) -> int:
        return len(self._items)

    @property
    def pending(self) -> list[DownloadItem]:
        return list(self._items)

    @property
    def is_draining(self) -> bool:
        return self._drain_task is not None and not self._drain_task.done()

    def enqueue(self, request: DownloadRequest) -> DownloadItem:
        """Append a request and make sure the drain loop is running."""
        filename = synthesize_filename(
            request,
            create_folder=self.settings.get().auto_create_folder,
            clock=self.clock,
        )
        item = DownloadItem(request=request, filename=filename)
        self._items.append(item)
        self.logger.info(f'Queued [bold]{filename}[/bold] ({len(self._items)} pending)')

        if not self.is_draining:
            self._drain_task = asyncio.get_running_loop().create_task(self._drain())
        return item

    async def _drain(self) -> None:
        while self._items:
            item = self._items.popleft()
            await self._execute(item)
            await asyncio.sleep(self.cooldown_seconds)

    async def _execute(self, item: DownloadItem) -> None:
        item.status = DownloadStatus.in_flight
        options = DownloadOptions(url=item.request.url, filename=item.filename)

        try:
            handle = await self.service.download(options)
            if handle is None:
                raise DownloadRejectedError(item.filename)
        except Exception as e:  # noqa: BLE001 a failed transfer never stops the queue
            item.status = DownloadStatus.failed
            self.logger.error(f'Download failed for {item.filename}: {e}')
            self.notifications.notify('Download Failed', f'Failed to download {item.filename}')
        else:
            item.status = DownloadStatus.done
            self.logger.success(f'Downloaded {item.filename}', tab_level=1)

    async def wait_idle(self) -> None:
        """Wait until everything queued so far (and meanwhile) is processed."""
        while self._drain_task is not None and not self._drain_task.done():
            await self._drain_task

    def clear(self) -> int:
        """Drop items which haven't started yet, return how many."""
        dropped = len(self._items)
        self._items.clear()
        return dropped
