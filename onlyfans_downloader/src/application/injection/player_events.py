"""Reacting to video players: load / play events, play clicks, diagnostics"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from onlyfans_downloader.src.application.injection.injector import (
        ControlInjector,
    )
    from onlyfans_downloader.src.infrastructure.document.dom import (
        InputEvent,
        LiveDocument,
    )
    from onlyfans_downloader.src.infrastructure.document.scheduling import (
        EpochScheduler,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger


@dataclass(frozen=True)
class StructureReport:
    """What the page currently has in terms of video players"""

    video_wrappers: int
    dimension_players: int
    videojs_players: int
    videos: int
    sources: int
    original_sources: int
    data_attribute_videos: int


class PlayerEvents:
    def __init__(
        self,
        document: LiveDocument,
        injector: ControlInjector,
        scheduler: EpochScheduler,
        force_detection_seconds: float = 1.0,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.injector = injector
        self.scheduler = scheduler
        self.force_detection_seconds = force_detection_seconds
        self.logger = logger
        self._listeners: list[Callable[[], None]] = []

    def connect(self) -> None:
        if self._listeners:
            return
        self._listeners = [
            self.document.add_event_listener('load', self._on_media_event),
            self.document.add_event_listener('play', self._on_media_event),
            self.document.add_event_listener('click', self._on_click),
        ]

    def disconnect(self) -> None:
        for remove in self._listeners:
            remove()
        self._listeners.clear()

    def _on_media_event(self, event: InputEvent) -> None:
        video = event.target
        if video is None or video.name != 'video' or video.parent is None:
            return
        if self.injector.inject_player(video.parent):
            self.logger.debug(f'Control added after video "{event.type}" event')

    def _on_click(self, event: InputEvent) -> None:
        target = event.target
        if target is None:
            return
        is_play = self.document.closest(target, self.injector.markup.play_button) is not None
        if is_play or (target.name == 'button' and 'Play' in target.get_text()):
            self.scheduler.call_later(self.force_detection_seconds, self.force_video_detection)

    def force_video_detection(self) -> int:
        """Try every player family again (used after the user starts playback)"""
        created = 0
        for host in self.injector.player_hosts():
            created += self.injector.inject_player(host)
        self.logger.debug(f'Forced video detection created {created} control(s)')
        return created

    def analyze_structure(self) -> StructureReport:
        markup = self.injector.markup
        select = self.document.select
        report = StructureReport(
            video_wrappers=len(select(markup.video_wrapper)),
            dimension_players=len(select(markup.dimension_player)),
            videojs_players=len(select(markup.videojs_player)),
            videos=len(select('video')),
            sources=len(select('source')),
            original_sources=len(select(markup.original_source)),
            data_attribute_videos=len(select(markup.data_video)),
        )
        self.logger.debug(f'Page structure: {report}')
        return report
