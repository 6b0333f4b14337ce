"""
Control injection passes.

`inject_all` walks every container family on the page; the per-container
methods are the same ones used by the reactive paths (inserted items,
visibility, navigation), so there is only one way a control gets created.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from onlyfans_downloader.src.infrastructure.document.dom import contains
from onlyfans_downloader.src.infrastructure.loggers.logger_instances import (
    content_logger,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from bs4 import Tag

    from onlyfans_downloader.src.application.injection.controls import (
        ControlRegistry,
    )
    from onlyfans_downloader.src.application.resolution.extraction import (
        MediaExtractor,
    )
    from onlyfans_downloader.src.domain.media import QualityTier
    from onlyfans_downloader.src.infrastructure.document.dom import LiveDocument
    from onlyfans_downloader.src.infrastructure.document.markup import DocumentMarkup
    from onlyfans_downloader.src.infrastructure.document.scheduling import (
        EpochScheduler,
    )
    from onlyfans_downloader.src.infrastructure.host.settings_store import (
        SettingsStore,
    )
    from onlyfans_downloader.src.infrastructure.loggers.base import RichLogger
    from onlyfans_downloader.src.infrastructure.yaml_configuration.config import (
        Timings,
    )


class ControlInjector:
    """Attaches download controls to posts, messages, the viewer and players"""

    def __init__(
        self,
        document: LiveDocument,
        extractor: MediaExtractor,
        controls: ControlRegistry,
        scheduler: EpochScheduler,
        settings: SettingsStore,
        timings: Timings,
        logger: RichLogger = content_logger,
    ) -> None:
        self.document = document
        self.extractor = extractor
        self.controls = controls
        self.scheduler = scheduler
        self.settings = settings
        self.timings = timings
        self.logger = logger
        self._retrying: dict[int, Tag] = {}
        # Posts with a video which did not resolve, re-resolved on every pass
        self._incomplete: dict[int, Tag] = {}

    @property
    def markup(self) -> DocumentMarkup:
        return self.extractor.markup

    @property
    def preferred_quality(self) -> QualityTier:
        return self.settings.get().quality

    # --------------------------------------------------------------------------
    # Passes

    def inject_all(self) -> int:
        """Global pass, returns how many controls were created."""
        created = 0
        for post in self.document.select(self.markup.post):
            created += self.inject_post(post)
        for message in self.document.select(self.markup.message):
            created += self.inject_message(message)

        viewer = self.document.select_one(self.markup.viewer)
        if viewer is not None:
            created += self.inject_viewer(viewer)

        for host in self.player_hosts():
            created += self.inject_player(host)

        if created:
            self.logger.debug(f'Injected {created} control(s)')
        return created

    def inject_item(self, item: Tag) -> bool:
        """Re-resolve a single post, chat message or viewer"""
        if self.document.matches(item, self.markup.viewer):
            return self.inject_viewer(item)
        if self.document.matches(item, self.markup.message):
            return self.inject_message(item)
        if self.document.matches(item, self.markup.post):
            created = self.inject_post(item)
        else:
            created = False

        for host in self.player_hosts(item):
            created = self.inject_player(host) or created
        return created

    # --------------------------------------------------------------------------
    # Containers

    def inject_post(self, post: Tag, attempt: int = 0) -> bool:
        """
        Attach the post control, or rebind it while a video is unresolved.

        A complete post is never touched again, its control may be bound to
        the current carousel item by the navigator.
        """
        if not self.document.is_attached(post):
            self._incomplete.pop(id(post), None)
            return False

        has_control = self.controls.has_control(post)
        if has_control and self._incomplete.get(id(post)) is not post:
            return False

        media = self.extractor.resolve_post(post, self.preferred_quality)
        if media.is_complete:
            self._incomplete.pop(id(post), None)
        else:
            self._incomplete[id(post)] = post
            self.schedule_retry(post, lambda: self.inject_post(post, attempt + 1), attempt)

        tools = self.document.select_one(self.markup.post_tools, post)
        if not has_control:
            return self.controls.attach(post, media.requests, parent=tools) is not None

        existing = self.controls.control_for(post)
        if existing is not None and existing.requests == media.requests:
            return False

        self.logger.debug('Post media changed, recreating its control')
        control = self.controls.replace(post, media.requests, parent=tools)
        return control is not None

    def inject_message(self, message: Tag) -> bool:
        if self.controls.has_control(message):
            return False

        requests = self.extractor.from_message(message, self.preferred_quality)
        body = self.document.select_one(self.markup.message_body, message)
        return self.controls.attach(message, requests, parent=body) is not None

    def inject_viewer(self, viewer: Tag, attempt: int = 0) -> bool:
        """(Re)create the viewer control for the slide which is shown now"""
        if not self.document.is_attached(viewer):
            return False

        top_bar = self.document.select_one(self.markup.viewer_top_bar, viewer)
        slide = self.document.select_one(self.markup.viewer_active_slide, viewer)
        if top_bar is None or slide is None:
            return False

        request = self.extractor.from_viewer_slide(viewer, slide, self.preferred_quality)
        if request is None:
            self.controls.remove_within(top_bar)
            self.schedule_retry(viewer, lambda: self.inject_viewer(viewer, attempt + 1), attempt)
            return False

        existing = self.controls.control_for(viewer)
        if existing is not None and existing.requests == [request]:
            return False

        control = self.controls.replace(viewer, [request], parent=top_bar, prepend=True)
        return control is not None

    def player_hosts(self, root: Tag | None = None) -> list[Tag]:
        """
        Player containers of every known family, in detection order.

        Standalone and data-attribute videos are represented by their parent.
        """
        hosts: list[Tag] = []

        def add(host: Tag | None) -> None:
            if host is not None and not any(known is host for known in hosts):
                hosts.append(host)

        markup = self.markup
        for selector in (markup.video_wrapper, markup.dimension_player, markup.videojs_player):
            for host in self.document.select(selector, root):
                add(host)

        wrapped = f'{markup.video_wrapper}, {markup.videojs_player}'
        for video in self.document.select('video', root):
            if self.document.closest(video.parent, wrapped) is None:
                add(video.parent)

        for video in self.document.select(markup.data_video, root):
            add(video.parent)

        return hosts

    def inject_player(self, host: Tag, attempt: int = 0) -> bool:
        if not self.document.is_attached(host) or self.controls.is_covered(host):
            return False

        request = self.extractor.from_media(host, self.preferred_quality)
        if request is None:
            self.schedule_retry(host, lambda: self.inject_player(host, attempt + 1), attempt)
            return False

        return self.controls.attach(host, [request]) is not None

    # --------------------------------------------------------------------------
    # Retry

    def schedule_retry(
        self,
        container: Tag,
        retry: Callable[[], object],
        attempt: int,
    ) -> bool:
        """
        Retry a resolution miss later, at most `resolution_retry_attempts` times.

        Only one retry per container is pending at a time.
        """
        key = id(container)
        if attempt >= self.timings.resolution_retry_attempts or key in self._retrying:
            if attempt >= self.timings.resolution_retry_attempts:
                self.logger.debug(f'Giving up on <{container.name}> after {attempt} retries')
            return False

        def fire() -> None:
            self._retrying.pop(key, None)
            retry()

        self._retrying[key] = container
        self.scheduler.call_later(self.timings.resolution_retry_seconds, fire)
        return True

    @property
    def pending_retries(self) -> int:
        return len(self._retrying)

    def reset(self) -> None:
        """Forget retries of the previous epoch (their timers are cancelled)."""
        self._retrying.clear()
        self._incomplete.clear()

    def forget(self, root: Tag) -> None:
        """Drop the posts of a removed subtree"""
        for key, post in list(self._incomplete.items()):
            if contains(root, post):
                del self._incomplete[key]
