"""Builds (and tears down) every long-living dependency of the app."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import aiohttp
from aiohttp_retry import RetryClient

from onlyfans_downloader.src.application.background_service import BackgroundService
from onlyfans_downloader.src.application.download_queue.queue import DownloadQueue
from onlyfans_downloader.src.application.page_controller import PageController
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    CorrelationStore,
)
from onlyfans_downloader.src.infrastructure.host.download_service import (
    LocalDownloadService,
)
from onlyfans_downloader.src.infrastructure.host.notifications import (
    ConsoleNotificationService,
)
from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
    InProcessRuntimeChannel,
)
from onlyfans_downloader.src.infrastructure.interception.interceptor import (
    RequestInterceptor,
)
from onlyfans_downloader.src.infrastructure.interception.refetch_client import (
    ApiRefetchClient,
)

if TYPE_CHECKING:
    from pathlib import Path
    from types import TracebackType

    from aiohttp_retry import ExponentialRetry

    from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
    from onlyfans_downloader.src.infrastructure.host.settings_store import (
        SettingsStore,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
    from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
        Timings,
    )


class AppEnvironment:
    """
    Async context manager holding sessions, the store, the channel and the queue.

    On exit it waits for pending refetches and downloads before closing the
    network sessions.
    """

    @dataclass
    class AppConfig:
        target_directory: Path
        retry_options: ExponentialRetry
        settings: SettingsStore
        logger: RichLogger
        cooldown_seconds: float = 0.1
        store_capacity: int | None = 20000
        store_ttl_seconds: float | None = None

    def __init__(self, config: AppConfig) -> None:
        self.config = config

    async def __aenter__(self) -> AppEnvironment:
        config = self.config

        self._session = aiohttp.ClientSession(
            timeout=aiohttp.ClientTimeout(total=None, sock_connect=30, sock_read=60),
        )
        self.downloading_retry_client = RetryClient(
            client_session=self._session,
            retry_options=config.retry_options,
        )

        self.store = CorrelationStore(
            capacity=config.store_capacity,
            ttl_seconds=config.store_ttl_seconds,
        )
        self.channel = InProcessRuntimeChannel()
        self.notifications = ConsoleNotificationService()
        self.download_service = LocalDownloadService(
            session=self.downloading_retry_client,
            target_directory=config.target_directory,
        )
        self.queue = DownloadQueue(
            service=self.download_service,
            notifications=self.notifications,
            settings=config.settings,
            cooldown_seconds=config.cooldown_seconds,
        )
        self.background = BackgroundService(self.queue)
        self.background.bind(self.channel)

        self.interceptor = RequestInterceptor(
            refetch_client=ApiRefetchClient(self._session),
            store=self.store,
            channel=self.channel,
        )
        self._pages: list[PageController] = []
        return self

    def open_page(
        self,
        document: LiveDocument,
        tab_id: int = 0,
        timings: Timings | None = None,
        markup: DocumentMarkup | None = None,
    ) -> PageController:
        """Create and start a page controller sharing this environment's store."""
        page = PageController(
            document=document,
            store=self.store,
            channel=self.channel,
            settings=self.config.settings,
            tab_id=tab_id,
            timings=timings,
            markup=markup,
        )
        page.start()
        self._pages.append(page)
        return page

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        try:
            if exc_type is None:
                await self.interceptor.wait_pending()
                for page in self._pages:
                    await page.controls.wait_pending()
                    await page.floating_button.wait_pending()
                await self.queue.wait_idle()
                await self.notifications.flush()
        finally:
            for page in self._pages:
                page.stop()
            await self.downloading_retry_client.close()
