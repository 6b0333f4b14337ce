"""
Page side of the downloader.

Wires the document observation, the resolution cascade and the control
injection together for one tab, and drives them through the viewing-context
life cycle (scan -> active -> teardown on route change).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from onlyfans_downloader.src.application.injection.controls import ControlRegistry
from onlyfans_downloader.src.application.injection.floating_button import (
    FLOATING_BUTTON_ID,
    FloatingDownloadButton,
)
from onlyfans_downloader.src.application.injection.injector import ControlInjector
from onlyfans_downloader.src.application.injection.lazy_loading import (
    VisibilityTracker,
)
from onlyfans_downloader.src.application.injection.navigation import MediaNavigator
from onlyfans_downloader.src.application.injection.player_events import PlayerEvents
from onlyfans_downloader.src.application.injection.viewing_context import (
    ViewingContext,
    ViewingState,
)
from onlyfans_downloader.src.application.resolution.cascade import ResolutionCascade
from onlyfans_downloader.src.application.resolution.extraction import MediaExtractor
from onlyfans_downloader.src.infrastructure.document.events import (
    ActiveItemChanged,
    ContentChanged,
    EventBus,
    ItemAdded,
    ItemRemoved,
)
from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
from onlyfans_downloader.src.infrastructure.document.observer import (
    StructuralObserver,
)
from onlyfans_downloader.src.infrastructure.document.scheduling import (
    Debouncer,
    EpochScheduler,
)
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)
from onlyfans_downloader.src.infrastructure.yaml_configuration.config import Timings

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.infrastructure.correlation_store.store import (
        CorrelationStore,
    )
    from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument
    from onlyfans_downloader.src.infrastructure.host.runtime_channel import (
        ApiDataMessage,
        InProcessRuntimeChannel,
    )
    from onlyfans_downloader.src.infrastructure.host.settings_store import (
        SettingsStore,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
    from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
        UserSettings,
    )


class PageController:
    """
    Everything which runs "inside" one page.

    The correlation store is shared with the interceptor: it records the API
    responses, this controller only reacts to them by re-running injection.
    """

    def __init__(
        self,
        document: LiveDocument,
        store: CorrelationStore,
        channel: InProcessRuntimeChannel,
        settings: SettingsStore,
        tab_id: int = 0,
        timings: Timings | None = None,
        markup: DocumentMarkup | None = None,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.store = store
        self.channel = channel
        self.settings = settings
        self.tab_id = tab_id
        self.timings = timings or Timings()
        self.markup = markup or DocumentMarkup()
        self.logger = logger

        self.scheduler = EpochScheduler()
        self.bus = EventBus()
        self.controls = ControlRegistry(
            document,
            channel,
            self.scheduler,
            reset_seconds=self.timings.control_reset_seconds,
        )
        self.cascade = ResolutionCascade(store, self.markup)
        self.extractor = MediaExtractor(document, self.cascade, store)
        self.injector = ControlInjector(
            document,
            self.extractor,
            self.controls,
            self.scheduler,
            settings,
            self.timings,
        )
        self.navigator = MediaNavigator(
            document,
            self.injector,
            self.controls,
            self.scheduler,
            settle_seconds=self.timings.navigation_settle_seconds,
        )
        self.floating_button = FloatingDownloadButton(
            document,
            self.injector,
            self.controls,
            reset_seconds=self.timings.control_reset_seconds,
        )
        self.player_events = PlayerEvents(
            document,
            self.injector,
            self.scheduler,
            force_detection_seconds=self.timings.force_detection_seconds,
        )
        self.rescan = Debouncer(
            self.scheduler, self.timings.debounce_seconds, self._global_pass
        )
        self.visibility = VisibilityTracker(
            document, self.markup, self.injector.inject_item, self.rescan
        )
        self.observer = StructuralObserver(
            document,
            self.markup,
            self.bus,
            ignored_selector=f'{self.controls.selector}, #{FLOATING_BUTTON_ID}',
        )
        self.viewing_context = ViewingContext(
            document,
            self.markup,
            self.scheduler,
            self.timings,
            on_activate=self._activate,
            on_teardown=self._teardown,
        )

        self._detach: list[Callable[[], None]] = []

    @property
    def state(self) -> ViewingState:
        return self.viewing_context.state

    # --------------------------------------------------------------------------
    # Life cycle

    def start(self) -> None:
        self.logger.info(f'Watching {self.document.location}')
        self._detach = [
            self.channel.register_tab(self.tab_id, self.on_api_data),
            self.settings.subscribe(self.on_settings_changed),
        ]
        self.controls.listen()
        self.viewing_context.start()

    def stop(self) -> None:
        self.viewing_context.stop()
        self.controls.stop_listening()
        for detach in self._detach:
            detach()
        self._detach.clear()

    def _activate(self) -> None:
        self.bus.subscribe(ItemAdded, self._on_item_added)
        self.bus.subscribe(ItemRemoved, self._on_item_removed)
        self.bus.subscribe(ActiveItemChanged, self.navigator.on_active_slide)
        self.bus.subscribe(ContentChanged, self.navigator.on_content_changed)
        self.bus.subscribe_coalesced(ContentChanged, self.rescan)

        self.observer.connect()
        self.navigator.connect()
        self.player_events.connect()
        self.floating_button.mount()
        self.visibility.connect()

        self.player_events.analyze_structure()
        self._global_pass()

    def _teardown(self) -> None:
        self.observer.disconnect()
        self.bus.clear()
        self.rescan.cancel()
        self.navigator.disconnect()
        self.player_events.disconnect()
        self.visibility.disconnect()
        self.injector.reset()

        removed = self.controls.remove_all()
        self.floating_button.unmount()
        self.logger.debug(f'Teardown removed {removed} control(s)')

    # --------------------------------------------------------------------------
    # Reactions

    def _global_pass(self) -> int:
        if self.state is not ViewingState.active:
            return 0
        return self.injector.inject_all()

    def _on_item_added(self, event: ItemAdded) -> None:
        self.injector.inject_item(event.node)

    def _on_item_removed(self, event: ItemRemoved) -> None:
        self.controls.remove_within(event.node)
        self.injector.forget(event.node)

    def on_api_data(self, message: ApiDataMessage) -> None:
        """New API data was recorded: media which had no url may resolve now."""
        self.logger.debug(
            f'Received {len(message.data)} item(s) from the API (dm: {message.is_for_dm})'
        )
        if self.state is ViewingState.active:
            self.rescan.trigger()

    def on_settings_changed(self, settings: UserSettings) -> None:
        """Quality changed: controls are bound to urls, so recreate them."""
        self.logger.info(f'Settings changed (quality: {settings.quality.label})')
        if self.state is not ViewingState.active:
            return
        self.controls.remove_all()
        self._global_pass()
