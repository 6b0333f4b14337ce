"""Shared fixtures"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest

from onlyfans_downloader.src.application.page_controller import PageController
from onlyfans_downloader.src.infrastructure.correlation_store.store import (
    CorrelationStore,
)
from onlyfans_downloader.src.infrastructure.document.dom import (
    LiveDocument,
    StaticLayout,
)
from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
    Ack,
    InProcessRuntimeChannel,
)
from onlyfans_downloader.src.infrastructure.host.settings_store import SettingsStore
from onlyfans_downloader.src.infrastructure.yaml_configuration.config import Timings


@pytest.fixture
def anyio_backend():
    """Everything runs on the asyncio event loop"""
    return 'asyncio'


@pytest.fixture
def fast_timings() -> Timings:
    """Same timers as in production, only a lot shorter"""
    return Timings(
        debounce_seconds=0.01,
        resolution_retry_seconds=0.02,
        resolution_retry_attempts=1,
        content_poll_seconds=0.01,
        content_poll_attempts=3,
        route_poll_seconds=0.01,
        route_reinit_seconds=0.01,
        control_reset_seconds=0.02,
        navigation_settle_seconds=0.01,
        force_detection_seconds=0.01,
    )


@dataclass
class PageHarness:
    """A page controller with everything around it, messages are only recorded"""

    document: LiveDocument
    layout: StaticLayout
    store: CorrelationStore
    channel: InProcessRuntimeChannel
    settings: SettingsStore
    controller: PageController
    messages: list[Any] = field(default_factory=list)

    def controls_in(self, root) -> list:
        return self.document.select(self.controller.controls.selector, root)


@pytest.fixture
def make_page(fast_timings):
    """Build (not start) a page; `PageHarness.controller.start()` needs a running loop."""
    pages: list[PageHarness] = []

    def make(
        html: str,
        url: str = 'https://onlyfans.com/bob',
        timings: Timings | None = None,
        store: CorrelationStore | None = None,
    ) -> PageHarness:
        layout = StaticLayout()
        document = LiveDocument(html, url=url, layout=layout)
        store = store or CorrelationStore()
        channel = InProcessRuntimeChannel()
        settings = SettingsStore()
        controller = PageController(
            document,
            store,
            channel,
            settings,
            tab_id=1,
            timings=timings or fast_timings,
        )
        harness = PageHarness(document, layout, store, channel, settings, controller)

        async def record(message: Any) -> Ack:
            harness.messages.append(message)
            return Ack(success=True)

        channel.set_message_handler(record)
        pages.append(harness)
        return harness

    yield make

    for harness in pages:
        harness.controller.stop()
