"""User-visible notifications about terminal failures"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    downloader_logger,
    failed_downloads_logger,
)

if TYPE_CHECKING:
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
    from onlyfans_downloader.src.infrastructure.loggers.failed_downloads_logger import (
        FailedDownloadsLogger,
    )


class NotificationService(Protocol):
    """Fire-and-forget notifications"""

    def notify(self, title: str, message: str) -> None: ...


class ConsoleNotificationService:
    """Show notifications in the console and keep a journal of them."""

    def __init__(
        self,
        logger: RichLogger = downloader_logger,
        journal: FailedDownloadsLogger | None = failed_downloads_logger,
    ) -> None:
        self.logger = logger
        self.journal = journal
        self._pending: set[asyncio.Task[None]] = set()

    def notify(self, title: str, message: str) -> None:
        self.logger.error(f'[bold]{title}[/bold]: {message}')

        if self.journal is None:
            return

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return

        task = loop.create_task(self._write_journal(f'{title}: {message}'))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _write_journal(self, line: str) -> None:
        try:
            await self.journal.add_error(line)  # type: ignore[union-attr]
        except OSError as e:
            self.logger.warning(f'Could not write the failed downloads journal: {e}')

    async def flush(self) -> None:
        """Wait until every journal line is written."""
        if self._pending:
            await asyncio.gather(*self._pending)
